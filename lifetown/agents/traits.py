"""
lifetown/agents/traits.py

How residents come by their traits: a random roll at creation,
inheritance from both parents at birth, and "awakening" a first trait
through everyday activity.

Every pick goes through the catalog's conflict table, so a resident can
never end up hardworking and lazy at once.
"""

import random

from loguru import logger

from lifetown.agents.catalog import LEARNING, STARTING_TRAIT_ROLLS, Catalog
from lifetown.agents.resident import Resident

MAX_TRAITS = 4
RECOMMENDED_PICK_CHANCE = 0.7

# Cumulative thresholds for the number of inherited traits.
# The slot weights 70/60/10/2 overlap, so in practice a child inherits
# 1 trait 70% of the time and 2 traits otherwise.
INHERIT_COUNT_THRESHOLDS = ((0.7, 1), (1.3, 2), (1.4, 3), (1.42, 4))

ACTIVITY_LABELS = {"work": "at work", "social": "while socialising", "build": "on a building site", "rest": "while resting"}


def roll_starting_traits(rng: random.Random, catalog: Catalog) -> list[str]:
    """
    Each slot in STARTING_TRAIT_ROLLS is an independent chance of one more
    trait. Slots after the first only fire once the resident already has one.
    """
    traits: list[str] = []
    for i, chance in enumerate(STARTING_TRAIT_ROLLS):
        if rng.random() >= chance:
            continue
        if i > 0 and not traits:
            continue
        available = catalog.compatible_traits(traits)
        if available:
            traits.append(rng.choice(available))
    return traits


def inherited_trait_count(rng: random.Random) -> int:
    roll = rng.random()
    for threshold, count in INHERIT_COUNT_THRESHOLDS:
        if roll < threshold:
            return count
    return 0


def inherit_traits(rng: random.Random, catalog: Catalog, *parents: Resident | None) -> list[str]:
    pool: list[str] = []
    for parent in parents:
        if parent is None:
            continue
        for t in parent.traits:
            if t not in pool:
                pool.append(t)

    count = inherited_trait_count(rng)
    child: list[str] = []
    for _ in range(min(count, len(pool), MAX_TRAITS)):
        trait_id = pool.pop(rng.randrange(len(pool)))
        if catalog.trait(trait_id) and not catalog.conflicts_with(child, trait_id):
            child.append(trait_id)
    return child


def try_learn_trait(town, resident: Resident, activity: str) -> str | None:
    """
    A resident with no traits has a small chance of awakening one during
    an activity. Returns the trait id learned, if any.
    """
    if resident.traits or activity not in LEARNING:
        return None

    chance, recommended = LEARNING[activity]
    rng = town.rng
    if rng.random() >= chance:
        return None

    available = town.catalog.compatible_traits([])
    if not available:
        return None
    suggested = [t for t in available if t in recommended]
    if suggested and rng.random() < RECOMMENDED_PICK_CHANCE:
        trait_id = rng.choice(suggested)
    else:
        trait_id = rng.choice(available)

    resident.traits.append(trait_id)
    trait = town.catalog.trait(trait_id)
    town.log.emit(
        f"✨ {resident.name} awakened a new trait {ACTIVITY_LABELS[activity]}: {trait.name}!",
        "event",
    )
    logger.debug(f"✨ {resident.name} learned {trait_id} ({activity})")
    return trait_id
