"""
tests/test_resident.py

Tests for the resident model, the relationship graph and trait rules.
Run with: pytest tests/test_resident.py -v
"""

import random

from lifetown.agents.catalog import default_catalog
from lifetown.agents.factory import child_name, generate_name, new_resident, pick_immigrant_name, spawn_founders
from lifetown.agents.relationships import RelationshipGraph
from lifetown.agents.resident import Job, Relationship, RelationshipStatus, Resident
from lifetown.agents.traits import inherit_traits, inherited_trait_count, roll_starting_traits


# ─── Helpers ─────────────────────────────────────────────────────────────────

def make_resident(name: str, **fields) -> Resident:
    fields.setdefault("personality", "calm")
    return Resident(id=f"id-{name.lower()}", name=name, **fields)


def make_graph(*residents) -> RelationshipGraph:
    graph = RelationshipGraph({r.id: r for r in residents})
    for r in residents:
        graph.introduce(r)
    return graph


# ─── Clamps & money ──────────────────────────────────────────────────────────

def test_happiness_clamped_both_ways():
    r = make_resident("Mochi", happiness=95)
    assert r.adjust_happiness(20) == 100
    assert r.adjust_happiness(-500) == 0


def test_desire_and_satisfaction_clamped():
    r = make_resident("Mochi", desire=90, job_satisfaction=5.0)
    assert r.adjust_desire(30) == 100
    assert r.adjust_satisfaction(-10) == 0.0


def test_relationship_love_clamped_on_create_and_assign():
    rel = Relationship(love=150)
    assert rel.love == 100
    rel.love = -20
    assert rel.love == 0


def test_spend_refuses_to_go_negative():
    r = make_resident("Mochi", money=30)
    assert r.spend(50) is False
    assert r.money == 30
    assert r.spend(30) is True
    assert r.money == 0


def test_earn_books_income_by_category():
    r = make_resident("Mochi")
    r.earn(40, "work", "bar")
    r.earn(5, "construction")
    assert r.money == 45
    assert r.income.work == 40
    assert r.income.construction == 5
    assert r.income.total == 45
    assert r.workplace_income == {"bar": 40}


def test_give_moves_money_only_when_affordable():
    a = make_resident("Mochi", money=10)
    b = make_resident("Mambo", money=0)
    assert a.give(b, 20) is False
    assert a.give(b, 10) is True
    assert (a.money, b.money) == (0, 10)


def test_minor_band():
    assert make_resident("Kid", age=1).is_minor
    assert make_resident("Teen", age=17).is_minor
    assert not make_resident("Adult", age=18).is_minor
    assert not make_resident("Legacy", age=0).is_minor


# ─── Relationship graph ──────────────────────────────────────────────────────

class TestRelationshipGraph:

    def setup_method(self):
        self.a = make_resident("Mochi")
        self.b = make_resident("Mambo")
        self.graph = make_graph(self.a, self.b)

    def test_introduce_creates_strangers_both_ways(self):
        assert self.a.status_with(self.b.id) == "stranger"
        assert self.b.status_with(self.a.id) == "stranger"
        assert self.a.love_for(self.b.id) == 0

    def test_friend_status_is_mirrored(self):
        self.graph.adjust_love(self.a, self.b, 11, 0)
        self.graph.update_status(self.a, self.b)
        assert self.a.status_with(self.b.id) == "friend"
        assert self.b.status_with(self.a.id) == "friend"

    def test_bestfriend_needs_both_sides_friend(self):
        self.graph.adjust_love(self.a, self.b, 61, 61)
        self.graph.update_status(self.a, self.b)
        assert self.a.status_with(self.b.id) == "friend"
        self.graph.update_status(self.a, self.b)
        assert self.b.status_with(self.a.id) == "bestfriend"

    def test_love_stays_in_range(self):
        self.graph.adjust_love(self.a, self.b, 500, -500)
        assert self.a.love_for(self.b.id) == 100
        assert self.b.love_for(self.a.id) == 0

    def test_break_up_leaves_two_exes_with_no_love(self):
        self.graph.adjust_love(self.a, self.b, 80)
        self.graph.become_lovers(self.a, self.b)
        self.graph.break_up(self.a, self.b)
        assert self.a.partner_id is None and self.b.partner_id is None
        assert self.a.status_with(self.b.id) == self.b.status_with(self.a.id) == "ex"
        assert self.a.love_for(self.b.id) == self.b.love_for(self.a.id) == 0

    def test_fwb_never_overrides_a_spouse(self):
        self.graph.marry(self.a, self.b)
        self.graph.add_fwb(self.a, self.b)
        assert self.a.status_with(self.b.id) == RelationshipStatus.SPOUSE.value
        assert self.b.id in self.a.fwb_ids

    def test_family_bond(self):
        self.graph.set_family(self.a, self.b)
        assert self.a.status_with(self.b.id) == "family"
        assert self.a.love_for(self.b.id) == self.b.love_for(self.a.id) == 50

    def test_purge_removes_every_trace(self):
        c = make_resident("Sans")
        self.graph._residents[c.id] = c
        self.graph.introduce(c)
        self.graph.become_lovers(self.a, c)
        self.graph.add_fwb(self.b, c)
        self.graph.purge(c.id)
        assert c.id not in self.a.relationships
        assert self.a.partner_id is None
        assert c.id not in self.b.fwb_ids

    def test_best_liked_first_wins_tie(self):
        c = make_resident("Sans")
        self.graph.pair(self.a, c)
        assert self.graph.best_liked(self.a, [self.b, c]) is self.b
        self.graph.adjust_one_way(self.a, c, 5)
        assert self.graph.best_liked(self.a, [self.b, c]) is c


# ─── Traits ──────────────────────────────────────────────────────────────────

def test_catalog_conflicts():
    catalog = default_catalog()
    assert catalog.conflicts_with(["hardworking"], "lazy")
    assert catalog.conflicts_with(["lazy"], "hardworking")
    assert not catalog.conflicts_with(["lazy"], "social")
    assert "loner" not in catalog.compatible_traits(["social"])


def test_starting_traits_never_conflict():
    catalog = default_catalog()
    for seed in range(200):
        traits = roll_starting_traits(random.Random(seed), catalog)
        assert len(traits) <= 4
        assert len(set(traits)) == len(traits)
        for i, t in enumerate(traits):
            assert not catalog.conflicts_with(traits[:i], t)


def test_inherited_traits_come_from_parents():
    catalog = default_catalog()
    mother = make_resident("Mochi", traits=["social", "romantic"])
    father = make_resident("Mambo", traits=["lazy", "generous"])
    pool = set(mother.traits) | set(father.traits)
    for seed in range(100):
        child = inherit_traits(random.Random(seed), catalog, mother, father)
        assert set(child) <= pool
        for i, t in enumerate(child):
            assert not catalog.conflicts_with(child[:i], t)


def test_inherited_trait_count_is_one_or_two():
    counts = {inherited_trait_count(random.Random(seed)) for seed in range(300)}
    assert counts <= {1, 2}


# ─── Factory ─────────────────────────────────────────────────────────────────

def test_founders_are_strangers_to_each_other():
    catalog = default_catalog()
    founders = spawn_founders(random.Random(1), catalog, now=480)
    assert [f.name for f in founders] == list(catalog.reserved_names)
    assert len({f.id for f in founders}) == len(founders)
    for f in founders:
        assert len(f.relationships) == len(founders) - 1
        assert 18 <= f.age <= 40
        assert 20 <= f.desire <= 60
        assert 30 <= f.alcohol_tolerance <= 90


def test_new_resident_backdates_birth_time():
    r = new_resident(random.Random(2), default_catalog(), "Kid", now=10_000_000, age=1, max_age=100)
    assert r.birth_time == 10_000_000 - 365 * 1440
    assert r.is_minor


def test_generated_names_are_unique():
    rng = random.Random(3)
    taken: set[str] = set()
    for _ in range(300):
        name = generate_name(rng, taken)
        assert name not in taken
        taken.add(name)


def test_immigrant_takes_free_reserved_name_first():
    catalog = default_catalog()
    taken = set(catalog.reserved_names[:-1])
    assert pick_immigrant_name(random.Random(4), catalog, taken) == catalog.reserved_names[-1]
    name = pick_immigrant_name(random.Random(4), catalog, set(catalog.reserved_names))
    assert name not in catalog.reserved_names


def test_child_name_takes_father_initial():
    mother = make_resident("Mochi")
    father = make_resident("Jue")
    name = child_name(random.Random(5), mother, father, set())
    assert name.startswith("J")


def test_job_record():
    r = make_resident("Mochi", job=Job(workplace_id="bar", role="owner"))
    assert r.job.workplace_id == "bar"
    assert "owner@bar" in repr(r)
