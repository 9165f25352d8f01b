"""
lifetown/os/population.py

Who lives in town: aging and death, happiness-driven emigration and
scheduled immigration.

Aging and emigration run at midnight; immigration runs on the day
rollover once every IMMIGRATION_INTERVAL_DAYS.
"""

from loguru import logger

from lifetown.agents.factory import new_resident, pick_immigrant_name
from lifetown.agents.resident import Resident
from lifetown.config import IMMIGRATION_INTERVAL_DAYS, MINUTES_PER_DAY, SOFT_POPULATION_CAP

DAYS_PER_YEAR = 365
LEAVE_THRESHOLD = 30
LEAVE_CHANCE = 0.1
CROWDING_PENALTY = 0.5


# ─── Removal ─────────────────────────────────────────────────────────────────

def remove_resident(town, resident: Resident):
    """Takes a resident out of every roster and relationship, then out of town."""
    for workplace in town.workplaces.values():
        workplace.dismiss(resident.id)
        if resident.id in workplace.escorts:
            workplace.escorts.remove(resident.id)
    resident.job = None
    resident.escort_at = None
    town.graph.purge(resident.id)
    town.residents.pop(resident.id, None)


def leave_town(town, resident: Resident):
    town.log.emit(f"🚪 {resident.name} was unhappy with life here and left town.", "event")
    logger.info(f"🚪 {resident.name} emigrated")
    remove_resident(town, resident)


# ─── Aging & death ───────────────────────────────────────────────────────────

def check_age_and_death(town) -> list[str]:
    """Midnight pass. Returns the names of residents who died."""
    died = []
    for resident in list(town.residents.values()):
        if resident.birth_time is not None:
            resident.age = (town.now - resident.birth_time) // MINUTES_PER_DAY // DAYS_PER_YEAR
        elif town.rng.random() < 1 / DAYS_PER_YEAR:
            resident.age += 1

        if resident.age >= resident.max_age:
            town.log.emit(f"💀 {resident.name} died of old age at {resident.age}.", "event")
            logger.info(f"💀 {resident.name} died (age {resident.age})")
            remove_resident(town, resident)
            died.append(resident.name)
    return died


# ─── Emigration ──────────────────────────────────────────────────────────────

def town_happiness(town, resident: Resident, population: int) -> float:
    """How happy a resident is with life in this town, 0-100."""
    score = resident.happiness * 0.5
    if resident.job is not None:
        score += resident.job_satisfaction * 0.3
    if resident.partner_id:
        score += 10
    score += min(20, town.graph.friend_count(resident) * 2)
    if population > SOFT_POPULATION_CAP:
        score -= (population - SOFT_POPULATION_CAP) * CROWDING_PENALTY
    return max(0.0, min(100.0, score))


def check_emigration(town) -> list[str]:
    population = len(town.residents)
    left = []
    for resident in list(town.residents.values()):
        if town_happiness(town, resident, population) < LEAVE_THRESHOLD and town.rng.random() < LEAVE_CHANCE:
            leave_town(town, resident)
            left.append(resident.name)
    return left


# ─── Immigration ─────────────────────────────────────────────────────────────

def check_immigration(town) -> Resident | None:
    if town.elapsed_days - town.last_immigration_day < IMMIGRATION_INTERVAL_DAYS:
        return None
    taken = {r.name for r in town.residents.values()}
    name = pick_immigrant_name(town.rng, town.catalog, taken, town.custom_names)
    newcomer = new_resident(town.rng, town.catalog, name, town.now)
    town.add_resident(newcomer)
    town.last_immigration_day = town.elapsed_days
    town.log.emit(f"🧳 {newcomer.name} moved to {town.name}! Say hello to the new neighbour.", "event")
    logger.info(f"🧳 Immigrant: {newcomer!r}")
    town.request_save()
    return newcomer
