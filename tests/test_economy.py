"""
tests/test_economy.py

Tests for revenue distribution, sales, construction and upgrades.
Run with: pytest tests/test_economy.py -v
"""

from lifetown.agents.resident import Resident
from lifetown.economy.distributor import distribute
from lifetown.economy.shop import choose_product, purchase, record_sale, willing_to_pay
from lifetown.os.town import Town
from lifetown.world.workplace import Workplace, fresh_workplaces


# ─── Helpers ─────────────────────────────────────────────────────────────────

def make_town(seed: int = 7) -> Town:
    return Town(seed=seed, observer_name="Tester")


def make_resident(town: Town, name: str, **fields) -> Resident:
    fields.setdefault("personality", "calm")
    r = Resident(id=f"id-{name.lower()}", name=name, **fields)
    town.add_resident(r)
    return r


def staff_workplace(town: Town, workplace_id: str, *staff: Resident) -> Workplace:
    w = town.workplaces[workplace_id]
    w.is_built = True
    w.progress = w.cost
    w.staff = [r.id for r in staff]
    return w


# ─── Distributor ─────────────────────────────────────────────────────────────

def test_hundred_splits_ten_fifty_forty():
    town = make_town()
    owner = make_resident(town, "Mochi")
    waiter = make_resident(town, "Mambo")
    bar = staff_workplace(town, "bar", owner, waiter)

    result = distribute(town, bar, 100)

    assert result.company_share == 10
    assert result.owner_share == 50
    assert result.staff_share == 40
    assert bar.company_funds == 10
    assert owner.money == 50
    assert waiter.money == 40
    assert bar.daily_staff_income == 90
    assert owner.income.work == 50
    assert owner.workplace_income == {"bar": 50}


def test_lone_owner_takes_both_shares():
    town = make_town()
    owner = make_resident(town, "Mochi")
    church = staff_workplace(town, "church", owner)

    distribute(town, church, 100)

    assert owner.money == 90
    assert church.company_funds == 10


def test_no_staff_goes_to_treasury():
    town = make_town()
    bar = staff_workplace(town, "bar")
    result = distribute(town, bar, 75)
    assert town.treasury == 75
    assert result.to_treasury == 75


def test_rounding_never_pays_out_more_than_revenue():
    town = make_town()
    staff = [make_resident(town, n) for n in ("Mochi", "Mambo", "Sans")]
    bar = staff_workplace(town, "bar", *staff)

    for revenue in (1, 7, 15, 56, 99, 101):
        result = distribute(town, bar, revenue)
        assert result.distributed <= revenue
        assert 0 <= result.rounding_loss < 1 + len(staff)


def test_record_sale_tracks_revenue():
    town = make_town()
    owner = make_resident(town, "Mochi")
    bar = staff_workplace(town, "bar", owner)

    record_sale(town, bar, 50)
    record_sale(town, town.workplaces["hotel"], 20)    # not built

    assert bar.total_revenue == 50
    assert owner.money == 45
    assert town.treasury == 20


def test_purchase_stocks_contraceptives():
    town = make_town()
    buyer = make_resident(town, "Mochi", money=100)
    pharmacy = staff_workplace(town, "pharmacy")
    condoms = pharmacy.blueprint.product("condoms")

    assert purchase(town, buyer, pharmacy, condoms) is True
    assert buyer.money == 60
    assert buyer.contraceptives == 12
    assert town.treasury == 40


def test_choose_product_by_trait():
    town = make_town()
    products = town.workplaces["cinema"].products
    stingy = make_resident(town, "Mochi", money=100, traits=["stingy"])
    generous = make_resident(town, "Mambo", money=100, traits=["generous"])
    broke = make_resident(town, "Sans", money=5)

    assert choose_product(town.rng, stingy, products).id == "family_film"
    assert choose_product(town.rng, generous, products).id == "action_film"
    assert choose_product(town.rng, broke, products) is None


def test_money_loving_keeps_a_reserve():
    town = make_town()
    careful = make_resident(town, "Mochi", money=60, traits=["money-loving"])
    assert willing_to_pay(careful, 40) is True
    assert willing_to_pay(careful, 50) is False


# ─── Workplaces ──────────────────────────────────────────────────────────────

def test_new_town_has_only_the_park():
    workplaces = fresh_workplaces(make_town().catalog.blueprints)
    assert [w.id for w in workplaces.values() if w.is_built] == ["park"]


class TestOpeningHours:

    def setup_method(self):
        self.town = make_town()
        self.owner = make_resident(self.town, "Mochi")

    def test_unbuilt_is_closed(self):
        assert not self.town.workplaces["cinema"].is_open(12, 3)

    def test_park_is_always_open(self):
        park = self.town.workplaces["park"]
        assert all(park.is_open(h, d) for h in range(24) for d in range(7))

    def test_roles_without_staff_are_closed(self):
        cinema = staff_workplace(self.town, "cinema")
        assert not cinema.is_open(12, 3)
        cinema.staff = [self.owner.id]
        assert cinema.is_open(12, 3)

    def test_bar_wraps_past_midnight(self):
        bar = staff_workplace(self.town, "bar", self.owner)
        assert bar.is_open(18, 3)
        assert bar.is_open(1, 3)
        assert not bar.is_open(2, 3)
        assert not bar.is_open(12, 3)

    def test_closed_day(self):
        bar = staff_workplace(self.town, "bar", self.owner)
        assert not bar.is_open(20, 0)


def test_hire_fills_roles_in_order_and_never_overfills():
    town = make_town()
    bar = staff_workplace(town, "bar")
    assert [bar.hire(rid) for rid in ("a", "b", "c", "d")] == ["owner", "chef", "waiter", None]
    assert len(bar.staff) == len(bar.roles)


def test_close_books_keeps_thirty_days():
    town = make_town()
    bar = staff_workplace(town, "bar")
    for day in range(40):
        bar.total_revenue += 10
        bar.daily_staff_income = 9
        bar.close_books(day)
    assert len(bar.revenue_history) == 30
    assert bar.staff_income_history == [9] * 30
    assert bar.daily_staff_income == 0


# ─── Construction ────────────────────────────────────────────────────────────

def test_thirty_four_shifts_of_fifteen_finish_a_500_building():
    town = make_town()
    builder = make_resident(town, "Mochi", personality="calm")
    bar = town.workplaces["bar"]
    assert bar.cost == 500

    for _ in range(33):
        town.projects.contribute(builder, bar, power=15)
    assert not bar.is_built
    assert bar.progress == 495

    town.projects.contribute(builder, bar, power=15)
    assert bar.is_built
    assert bar.progress == 510
    assert builder.income.construction == 34 * 5
    # sole contributor takes the whole floor(500 × 0.3) reward
    assert builder.money == 34 * 5 + 150


def test_reward_split_by_contribution():
    town = make_town()
    a = make_resident(town, "Mochi")
    b = make_resident(town, "Mambo")
    cinema = town.workplaces["cinema"]
    town.projects.contribute(a, cinema, power=300)
    paid = town.projects.contribute(b, cinema, power=100)
    assert paid == 100
    assert cinema.is_built
    assert a.money - 5 == 90     # 120 × 3/4
    assert b.money - 5 == 30


def test_auto_upgrade_pays_from_company_funds():
    town = make_town()
    owner = make_resident(town, "Mochi")
    cinema = staff_workplace(town, "cinema", owner)
    cinema.company_funds = 250

    assert town.projects.check_auto_upgrade() == ["cinema"]
    assert cinema.level == 2
    assert cinema.company_funds == 50
    assert cinema.base_salary == 12
    assert town.projects.check_auto_upgrade() == []


def test_manual_upgrade_reports_problems():
    town = make_town()
    assert town.projects.upgrade("casino") is False
    assert town.projects.upgrade("cinema") is False
    cinema = staff_workplace(town, "cinema")
    cinema.company_funds = 100
    assert town.projects.upgrade("cinema") is False
    assert "can't afford" in town.log.latest(1)[0].message
    cinema.company_funds = 200
    assert town.projects.upgrade("cinema") is True
    assert cinema.level == 2
