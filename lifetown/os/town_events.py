"""
lifetown/os/town_events.py

Hourly incidents that aren't anyone's own decision: robberies of the
conspicuously rich, pocket money for children, and credibility slowly
recovering toward its baseline.
"""

from loguru import logger

from lifetown.agents.resident import Resident

BASELINE_CREDIBILITY = 50

RICH_MULTIPLE = 3
RICH_MINIMUM = 100
ROBBERY_CHANCE_CAP = 0.3
ROBBERY_CHANCE_STEP = 0.05
ROBBERY_HOURLY_DIVISOR = 60
OPPORTUNIST_CHANCE = 0.3
ROBBERY_SUCCESS = 0.5
ROBBERY_TAKE_PERCENT = (1, 10)

ALLOWANCE_CHANCE = 0.1
ALLOWANCE_AMOUNT = (5, 20)
POCKET_MONEY = 20


# ─── Credibility ─────────────────────────────────────────────────────────────

def regen_credibility(town):
    """+1 per hour toward 50. Never pushes anyone above the baseline."""
    for r in town.residents.values():
        if r.credibility < BASELINE_CREDIBILITY:
            r.credibility += 1


# ─── Robbery ─────────────────────────────────────────────────────────────────

def check_robbery(town) -> int:
    """Returns the number of robbery attempts this hour."""
    residents = list(town.residents.values())
    if len(residents) < 2:
        return 0
    average = sum(r.money for r in residents) / len(residents)
    if average <= 0:
        return 0

    attempts = 0
    for target in residents:
        if target.money <= average * RICH_MULTIPLE or target.money <= RICH_MINIMUM:
            continue
        ratio = target.money / average
        chance = min(ROBBERY_CHANCE_CAP, (ratio - RICH_MULTIPLE) * ROBBERY_CHANCE_STEP) / ROBBERY_HOURLY_DIVISOR
        if town.rng.random() < chance and attempt_robbery(town, target):
            attempts += 1
    return attempts


def attempt_robbery(town, target: Resident) -> bool:
    """Finds someone desperate enough to rob target. True if a robbery was attempted."""
    rng = town.rng
    jobless_and_poorer = [
        r for r in town.residents.values()
        if r.id != target.id and r.job is None and r.money < target.money * 0.5
    ]
    greedy = [r for r in jobless_and_poorer if r.has_trait("money-loving")]
    if greedy:
        execute_robbery(town, rng.choice(greedy), target)
        return True
    if jobless_and_poorer and rng.random() < OPPORTUNIST_CHANCE:
        execute_robbery(town, rng.choice(jobless_and_poorer), target)
        return True
    return False


def robbery_success_chance(robber: Resident, target: Resident) -> float:
    chance = ROBBERY_SUCCESS
    irritable = target.personality == "irritable"
    stingy = target.has_trait("stingy")
    if irritable and stingy:
        chance *= 0.3
    elif irritable:
        chance *= 0.6
    elif stingy:
        chance *= 0.7

    if robber.personality == "brave":
        chance *= 1.3
    elif robber.personality == "timid":
        chance *= 0.5
    return chance


def execute_robbery(town, robber: Resident, target: Resident) -> int:
    """Returns the amount taken (0 on failure)."""
    rng, graph = town.rng, town.graph
    if rng.random() < robbery_success_chance(robber, target):
        amount = target.money * rng.randint(*ROBBERY_TAKE_PERCENT) // 100
        target.money -= amount
        robber.money += amount
        graph.adjust_love(target, robber, -30, -20)
        target.adjust_happiness(-rng.randint(10, 20))
        robber.adjust_happiness(rng.randint(5, 10))
        town.log.emit(f"💰 {robber.name} robbed {target.name} of {amount}!", "money")
        logger.info(f"💰 Robbery: {robber.name} took {amount} from {target.name}")
        return amount

    graph.adjust_love(target, robber, -10, -5)
    target.adjust_happiness(-rng.randint(3, 8))
    robber.adjust_happiness(-rng.randint(5, 10))
    town.log.emit(f"❌ {robber.name} tried to rob {target.name} but failed!", "event")
    return 0


# ─── Allowance ───────────────────────────────────────────────────────────────

def give_allowance(town, child: Resident) -> int:
    """Mother pays if she has any money, otherwise the father. Returns the amount."""
    if child.parents is None:
        return 0
    mother = town.residents.get(child.parents.mother_id) if child.parents.mother_id else None
    father = town.residents.get(child.parents.father_id) if child.parents.father_id else None
    giver = None
    if mother is not None and mother.money > 0:
        giver = mother
    elif father is not None and father.money > 0:
        giver = father
    if giver is None:
        return 0

    amount = town.rng.randint(*ALLOWANCE_AMOUNT)
    if not giver.give(child, amount):
        return 0
    town.log.emit(f"🪙 {child.name} got {amount} pocket money from {giver.name}.", "money")
    return amount


def check_allowance(town):
    for child in list(town.residents.values()):
        if child.is_minor and child.parents is not None and town.rng.random() < ALLOWANCE_CHANCE:
            give_allowance(town, child)


def try_get_allowance(town, child: Resident) -> int:
    """A broke child asks their parents directly, at most once a day."""
    if not child.is_minor or child.parents is None or child.money >= POCKET_MONEY:
        return 0
    if child.last_allowance_day == town.elapsed_days:
        return 0
    child.last_allowance_day = town.elapsed_days
    return give_allowance(town, child)
