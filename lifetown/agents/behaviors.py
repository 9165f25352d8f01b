"""
lifetown/agents/behaviors.py

The decision engine. decide_and_act() is called once per selected
resident per tick and performs exactly one action, in strict priority:

    1. sleep (inside the resident's sleep window)
    2. resignation cooldown bookkeeping
    3. minors: no work, allowance or rest
    4. go to work if employed and the workplace is open
    5. survival: broke and jobless → odd job / streetwalking
    6. exhausted → rest
    7. relief in progress → finish or get interrupted
    8. desire build-up → relief attempt
    9. free time → build / socialise / rest

Each action function mutates the resident (and the town) directly and
returns nothing; decide_and_act() returns a short label of what was done.
"""

from loguru import logger

from lifetown.agents.catalog import RESIGN_RULE, SATISFACTION_DRIFT, SLACK_CHANCE, first_match
from lifetown.agents.romance import affection_boost, check_romance, venue_name
from lifetown.agents.resident import Job, Resident
from lifetown.agents.traits import try_learn_trait
from lifetown.agents.vices import DESIRE_THRESHOLD, check_drunk, handle_drunk_event, handle_relief, try_relief
from lifetown.city.network import try_cross_town_consume
from lifetown.config import MINUTES_PER_DAY
from lifetown.economy.shop import choose_product, purchase, willing_to_pay
from lifetown.os.town_events import try_get_allowance
from lifetown.world.blueprints import CHURCH_ENTRY_FEE, CHURCH_MARRIAGE_FEE, DRINK_IDS

DEFAULT_SLEEP = (23, 7)
NIGHT_SHIFT_SLEEP = (3, 11)
NIGHT_SHIFT_WORKPLACES = ("bar",)

POCKET_MONEY = 20
EXHAUSTED = 20
ROUND_THE_CLOCK_WORK_CHANCE = 0.7
STREETWALK_CHANCE = 0.6
BUILD_CHANCE = 0.3
MONEY_LOVING_BUILD_CHANCE = 0.5
SOCIAL_ROLL = 0.85
SOCIAL_MULTIPLIER = {"social": 1.2, "loner": 0.7}
PHARMACY_PICK_CHANCE = 0.4
SLEEPY_TRAVEL_CHANCE = 0.3

COOLDOWN_DAYS = 5
REHIRE_BAN_DAYS = 30
SLACK_CATCH_CHANCE = 0.3
MAX_SLACK_CATCHES = 3
FRESH_SATISFACTION = 70.0
DEFAULT_RESIGN_RULE = (30, 0.05)

ODD_JOB_PAY = 4
STREETWALK_PAY = (8, 15)
ADULT_ONLY_VENUES = ("bar", "footshop")
CHURCH_PRIEST_SHARE = 0.9
CHURCH_FUND_SHARE = 0.1

NARRATION = {
    "sleep": ("😴", "info"),
    "rest": ("☕", "info"),
    "idle": ("💤", "info"),
    "work": ("💼", "work"),
    "build": ("🔨", "work"),
    "odd_job": ("🧱", "work"),
    "streetwalk": ("🌃", "work"),
    "social": ("💬", "social"),
    "relief": ("💋", "love"),
    "travel": ("🚶", "event"),
}


# ─── Entry point ─────────────────────────────────────────────────────────────

def decide_and_act(town, p: Resident) -> str:
    """Runs one action for p and narrates it. Returns the action label."""
    label = _choose_and_act(town, p)
    icon, category = NARRATION.get(label, ("•", "info"))
    town.log.emit(f"{icon} {p.name}: {p.current_action}", category)
    logger.debug(f"{p.name} → {label} ({p.current_action})")
    return label


def _choose_and_act(town, p: Resident) -> str:
    break_interaction(town, p)
    now, hour = town.now, town.hour

    if in_sleep_window(p, hour):
        p.current_action = "Sleeping"
        p.adjust_happiness(4 if p.has_trait("sleepy") else 2)
        p.total_sleep_hours += 10 / 60
        return "sleep"

    if p.resignation_cooldown is not None and now >= p.resignation_cooldown:
        p.resignation_cooldown = None
        if p.job is None:
            p.current_action = "Job hunting"
            town.log.emit(f"💼 {p.name}'s cooling-off period is over. They can look for work again.", "info")

    in_cooldown = p.resignation_cooldown is not None and now < p.resignation_cooldown

    if p.is_minor:
        if p.job is not None:
            _leave_job(town, p)
        if p.money < POCKET_MONEY:
            try_get_allowance(town, p)
            if p.money < POCKET_MONEY:
                rest(town, p, None)
                p.current_action = "Waiting for pocket money"
                return "rest"
    else:
        if p.job is not None:
            if in_cooldown:
                _leave_job(town, p)
                p.current_action = "Unemployed (cooling off)"
                return "idle"
            workplace = town.workplaces.get(p.job.workplace_id)
            if workplace is not None and workplace.is_open(hour, town.weekday):
                if not workplace.blueprint.is_24_hour or town.rng.random() < ROUND_THE_CLOCK_WORK_CHANCE:
                    do_work(town, p, workplace)
                    return "work"

        if p.job is None and p.money < POCKET_MONEY:
            if in_cooldown:
                rest(town, p, None)
                p.current_action = "Unemployed (cooling off)"
                return "rest"
            return _earn_a_living(town, p)

    if p.happiness < EXHAUSTED:
        rest(town, p, None)
        return "rest"

    if p.is_relieving:
        handle_relief(town, p)
        return "relief"

    p.adjust_desire(town.rng.randint(0, 2))
    if p.desire > DESIRE_THRESHOLD and try_relief(town, p):
        return "relief"

    return free_time(town, p)


def break_interaction(town, p: Resident):
    """Ends whatever encounter p was in at the start of their next turn."""
    if p.interacting_with is None:
        return
    other = town.residents.get(p.interacting_with)
    p.interacting_with = None
    if other is not None and other.interacting_with == p.id:
        other.interacting_with = None
        if not other.is_drunk:
            other.current_action = "idle"
        if other.is_relieving:
            handle_relief(town, other)
    if p.is_relieving:
        handle_relief(town, p)


def sleep_window(p: Resident) -> tuple[int, int]:
    start, end = DEFAULT_SLEEP
    if p.job is not None and p.job.workplace_id in NIGHT_SHIFT_WORKPLACES:
        start, end = NIGHT_SHIFT_SLEEP
    if p.has_trait("sleepy"):
        if start > end:
            start, end = start - 1, end + 1
        else:
            start, end = max(0, start - 1), min(24, end + 1)
    return start, end


def in_sleep_window(p: Resident, hour: int) -> bool:
    start, end = sleep_window(p)
    if start > end:
        return hour >= start or hour < end
    return start <= hour < end


def _earn_a_living(town, p: Resident) -> str:
    if p.has_trait("promiscuous") and town.rng.random() < STREETWALK_CHANCE:
        streetwalk(town, p)
        return "streetwalk"
    odd_job(town, p)
    return "odd_job"


# ─── Free time ───────────────────────────────────────────────────────────────

def open_venues(town) -> list:
    return [w for w in town.workplaces.values() if w.is_built and w.is_open(town.hour, town.weekday)]


def pick_venue(town, p: Resident, venues: list):
    if not venues:
        return None
    if p.has_trait("promiscuous"):
        pharmacy = next((v for v in venues if v.id == "pharmacy"), None)
        if pharmacy is not None and town.rng.random() < PHARMACY_PICK_CHANCE:
            return pharmacy
    return town.rng.choice(venues)


def free_time(town, p: Resident) -> str:
    rng = town.rng
    roll = rng.random()
    venues = open_venues(town)

    if town.remote.connected:
        if not venues and try_cross_town_consume(town, p):
            return "travel"
        hotel = town.workplaces.get("hotel")
        if p.has_trait("sleepy") and rng.random() < SLEEPY_TRAVEL_CHANCE and not (hotel and hotel.is_built):
            if try_cross_town_consume(town, p, "hotel"):
                return "travel"

    venue = pick_venue(town, p, venues)
    site = town.projects.pick_site(p)
    build_chance = MONEY_LOVING_BUILD_CHANCE if p.has_trait("money-loving") and site else BUILD_CHANCE

    if roll < build_chance:
        if site is not None:
            town.projects.contribute(p, site)
            return "build"
        if p.job is None:
            return _earn_a_living(town, p)
        social(town, p, venue)
        return "social"

    if roll < SOCIAL_ROLL:
        if rng.random() < first_match(p.traits, SOCIAL_MULTIPLIER, 1.0):
            social(town, p, venue)
            return "social"
        rest(town, p, venue)
        return "rest"

    rest(town, p, venue)
    return "rest"


# ─── Work ────────────────────────────────────────────────────────────────────

def do_work(town, p: Resident, workplace):
    rng = town.rng
    p.adjust_happiness(-1)
    try_learn_trait(town, p, "work")
    update_job_satisfaction(town, p, workplace)

    slacking = rng.random() < first_match(p.traits, SLACK_CHANCE, 0.0)
    boss_id = workplace.owner_id
    caught = False
    if slacking and boss_id and boss_id != p.id:
        catch = SLACK_CATCH_CHANCE * (0.5 if p.has_trait("clever") else 1.0)
        if rng.random() < catch:
            caught = True
            p.adjust_happiness(-2)
            count = p.slacking_counts.get(workplace.id, 0) + 1
            p.slacking_counts[workplace.id] = count
            boss = town.residents.get(boss_id)
            boss_name = boss.name if boss else "the boss"
            town.log.emit(f"😴 {p.name} was caught slacking at {workplace.name} by {boss_name}!", "work")
            if count >= MAX_SLACK_CATCHES:
                fire(town, p, workplace, boss_name)
                return

    if not slacking or caught:
        p.adjust_satisfaction(first_match(p.traits, SATISFACTION_DRIFT, -1))

    threshold, chance = first_match(p.traits, RESIGN_RULE, DEFAULT_RESIGN_RULE)
    if p.job_satisfaction < threshold and rng.random() < chance:
        resign(town, p, workplace)
        return

    role = p.job.role if p.job else "staff"
    p.current_action = f"Slacking off at {workplace.name}" if slacking and not caught else f"Working as {role} at {workplace.name}"


def update_job_satisfaction(town, p: Resident, workplace):
    delta = 0.0
    if p.happiness > 70:
        delta += 0.5
    elif p.happiness < 40:
        delta -= 1
    average = p.income.work / (town.elapsed_days or 1)
    if average < workplace.base_salary:
        delta -= 0.5
    elif average > workplace.base_salary * 1.5:
        delta += 0.3
    delta -= 2 * p.slacking_counts.get(workplace.id, 0)
    p.adjust_satisfaction(delta)


def _leave_job(town, p: Resident):
    if p.job is None:
        return
    workplace = town.workplaces.get(p.job.workplace_id)
    if workplace is not None:
        workplace.dismiss(p.id)
    p.job = None


def _start_cooldown(town, p: Resident, workplace):
    _leave_job(town, p)
    p.resignation_cooldown = town.now + COOLDOWN_DAYS * MINUTES_PER_DAY
    p.last_resigned_workplace = workplace.id
    p.last_resigned_time = town.now
    p.slacking_counts.pop(workplace.id, None)
    p.current_action = "Unemployed (cooling off)"


def fire(town, p: Resident, workplace, boss_name: str):
    _start_cooldown(town, p, workplace)
    town.log.emit(
        f"💼 {boss_name} fired {p.name} for slacking at {workplace.name} one time too many! "
        f"{p.name} can't work for {COOLDOWN_DAYS} days.",
        "work",
    )
    hire_replacement(town, workplace)
    town.request_save()


def resign(town, p: Resident, workplace):
    role = p.job.role if p.job else "staff"
    _start_cooldown(town, p, workplace)
    p.job_satisfaction = FRESH_SATISFACTION
    town.log.emit(
        f"💼 {p.name} was fed up with being {role} at {workplace.name} and quit! "
        f"{COOLDOWN_DAYS}-day cooling-off period.",
        "work",
    )
    hire_replacement(town, workplace)
    town.request_save()


def can_be_hired(town, r: Resident, workplace) -> bool:
    if r.job is not None or r.escort_at is not None or r.is_minor:
        return False
    if r.resignation_cooldown is not None and town.now < r.resignation_cooldown:
        return False
    if (
        r.last_resigned_workplace == workplace.id
        and r.last_resigned_time is not None
        and town.now - r.last_resigned_time < REHIRE_BAN_DAYS * MINUTES_PER_DAY
    ):
        return False
    return True


def hire_replacement(town, workplace) -> Resident | None:
    """The owner fills a vacancy left by someone who quit or was fired."""
    if not workplace.is_built or not workplace.roles or not workplace.has_vacancy:
        return None
    boss = town.residents.get(workplace.owner_id) if workplace.owner_id else None
    if boss is None:
        return None

    candidates = [r for r in town.residents.values() if can_be_hired(town, r, workplace)]
    if not candidates:
        town.log.emit(f"💼 {workplace.name} is hiring, but nobody suitable is available.", "info")
        return None

    hire = town.rng.choice(candidates)
    role = workplace.hire(hire.id)
    hire.job = Job(workplace_id=workplace.id, role=role)
    hire.job_satisfaction = FRESH_SATISFACTION
    hire.slacking_counts[workplace.id] = 0
    town.log.emit(f"💼 {boss.name} hired {hire.name} as {role} at {workplace.name}!", "work")
    town.request_save()
    return hire


def odd_job(town, p: Resident):
    p.earn(ODD_JOB_PAY, "odd_job")
    p.adjust_happiness(-3)
    p.current_action = "Doing odd jobs"


def streetwalk(town, p: Resident):
    if p.is_minor:
        rest(town, p, None)
        return
    p.earn(town.rng.randint(*STREETWALK_PAY), "streetwalking")
    p.adjust_happiness(-4)
    p.current_action = "Working the street corner"


# ─── Rest & social ───────────────────────────────────────────────────────────

def rest(town, p: Resident, venue):
    try_learn_trait(town, p, "rest")
    where = venue_name(venue)
    if p.current_action == "Sleeping" or (venue is not None and venue.id == "hotel"):
        p.total_sleep_hours += 10 / 60

    recovery = town.rng.randint(5, 10)
    if venue is not None and venue.effect == "fun":
        recovery += 10

    products = venue.products if venue is not None else ()
    if products:
        product = choose_product(town.rng, p, products)
        if product is None:
            p.current_action = f"Wandering around {where}"
        elif not willing_to_pay(p, product.price):
            p.current_action = f"Window shopping at {where}"
            return
        else:
            purchase(town, p, venue, product)
            p.current_action = f"Enjoying {product.name} at {where}"
    else:
        p.current_action = f"Relaxing at {where}"
    p.adjust_happiness(recovery)


def _church_fee(town, p: Resident, church) -> bool:
    """Entry (or wedding paperwork) fee. False if p can't pay and is turned away."""
    partner_status = p.status_with(p.partner_id) if p.partner_id else None
    marrying = partner_status in ("lover", "spouse")
    fee = CHURCH_MARRIAGE_FEE if marrying else CHURCH_ENTRY_FEE
    if not p.spend(fee, "church fee"):
        return False

    priest = town.residents.get(church.owner_id) if church.owner_id else None
    if priest is not None:
        priest.earn(int(fee * CHURCH_PRIEST_SHARE), "work", church.id)
    church.company_funds += int(fee * CHURCH_FUND_SHARE)
    church.total_revenue += fee
    what = "wedding paperwork" if marrying else "entry"
    town.log.emit(f"💒 {p.name} paid {fee} for {what} at {church.name}.", "money")
    return True


def social(town, p: Resident, venue):
    rng, graph = town.rng, town.graph

    if venue is not None and p.is_minor and venue.id in ADULT_ONLY_VENUES:
        rest(town, p, None)
        p.current_action = f"Turned away from {venue.name} (too young)"
        return

    if venue is not None and venue.id == "church" and not _church_fee(town, p, venue):
        rest(town, p, None)
        p.current_action = f"Outside {venue.name} (can't afford the fee)"
        return

    try_learn_trait(town, p, "social")

    if p.is_drunk:
        if p.drunk_until is not None and town.now < p.drunk_until:
            handle_drunk_event(town, p)
            return
        p.is_drunk = False
        p.drunk_until = None

    products = venue.products if venue is not None else ()
    if products:
        product = choose_product(rng, p, products)
        if product is None or not willing_to_pay(p, product.price):
            rest(town, p, None)
            return
        purchase(town, p, venue, product)
        if venue.id == "bar" and product.id in DRINK_IDS:
            if check_drunk(town, p, product.id, venue):
                return

    others = [r for r in town.residents.values() if r.id != p.id]
    where = venue_name(venue)
    if not others:
        p.current_action = f"Alone at {where}"
        return

    t = rng.choice(others)
    p_rel, t_rel = graph.pair(p, t)
    p.current_action = f"With {t.name} at {where}"
    t.current_action = f"With {p.name} at {where}"
    p.interacting_with = t.id
    t.interacting_with = p.id

    if check_romance(town, p, t, venue):
        return

    p_persona = town.catalog.personality(p.personality)
    t_persona = town.catalog.personality(t.personality)
    chaos = p_persona.chaos_bonus + t_persona.chaos_bonus
    fight_chance = max(0.0, min(1.0, 0.03 + chaos * 0.3))
    if rng.random() < fight_chance:
        graph.adjust_love(p, t, -5)
        instigator = p if p_persona.chaos_bonus > t_persona.chaos_bonus else t
        instigator.fight_count += 1
        town.log.emit(f"💢 {p.name} and {t.name} got into an argument at {where}.", "social")
        return

    affection_boost(town, p, t, venue)
    graph.update_status(p, t)
    logger.debug(f"🤝 {p.name} and {t.name} chatted at {where} ({p_rel.love}/{t_rel.love})")
