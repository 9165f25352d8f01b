"""
lifetown/agents/factory.py

Creates residents: the founding cast, immigrants and newborns.
Every resident gets a unique display name and a UUID drawn from the
town's seeded random source, so a seeded town is fully reproducible.
"""

import random
import uuid

from loguru import logger

from lifetown.agents.catalog import Catalog
from lifetown.agents.resident import Relationship, Resident
from lifetown.agents.traits import roll_starting_traits
from lifetown.config import MINUTES_PER_DAY

NAME_RETRIES = 100

# Immigrants arrive with internet handles once the reserved names run out
HANDLE_PREFIXES = ["", "Mr_", "Ms_", "Dr_", "Cyber", "Neo", "Digital", "Virtual", "Ultra", "Night", "Quantum", "Offline"]
HANDLE_MOODS = ["Lazy", "Chill", "Grumpy", "Sleepy", "Hardcore", "Zen", "Awkward", "Bold", "Salty", "Cosmic", "Spicy", "Lucky"]
HANDLE_CORES = [
    "Fox", "Wolf", "Panda", "Dragon", "Ghost", "Knight", "Wizard", "Ninja", "Pirate", "Mecha",
    "Worker", "Foodie", "Clown", "Boss", "Rookie", "Gamer", "Byte", "Hacker", "Geek", "Bug",
]
HANDLE_SUFFIXES = ["", "123", "007", "2024", "X", "Z", "Pro", "Max", "Plus", "_official", "~", "!"]
HANDLE_TECH = ["Dark", "Shadow", "Light", "Fire", "Ice", "Storm", "Cyber", "Neo", "Tech", "Data", "Code"]

# Children take one letter from a parent and a given name built from these
GIVEN_NAME_PARTS = [
    "ia", "o", "ei", "ara", "elle", "io", "ena", "ax", "ira", "uno", "ola", "ey",
    "ika", "en", "ai", "une", "is", "aro", "ea", "ilo", "an", "uki", "eth", "ory",
]

FOUNDER_AGE = (18, 40)
MAX_AGE = (70, 100)
CHILD_MAX_AGE = 100
STARTING_DESIRE = (20, 60)
STARTING_TOLERANCE = (30, 90)


def new_id(rng: random.Random) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


# ─── Names ───────────────────────────────────────────────────────────────────

def _handle(rng: random.Random) -> str:
    pattern = rng.randint(1, 4)
    if pattern == 1:
        return f"{rng.choice(HANDLE_PREFIXES)}{rng.choice(HANDLE_MOODS)}{rng.choice(HANDLE_CORES)}{rng.choice(HANDLE_SUFFIXES)}"
    if pattern == 2:
        return f"{rng.choice(HANDLE_CORES)}{rng.randint(1, 999)}"
    if pattern == 3:
        return f"{rng.choice(HANDLE_MOODS)}_{rng.choice(HANDLE_CORES)}"
    return f"{rng.choice(HANDLE_TECH)}{rng.randint(1, 999)}"


def generate_name(rng: random.Random, taken: set[str]) -> str:
    """
    A fresh handle not in `taken`. After NAME_RETRIES collisions a numeric
    suffix is appended instead.
    """
    for _ in range(NAME_RETRIES):
        name = _handle(rng)
        if name not in taken:
            return name
    name = f"{_handle(rng)}{rng.randint(1, 999)}"
    while name in taken:
        name = f"{name}{rng.randint(0, 9)}"
    return name


def pick_immigrant_name(rng: random.Random, catalog: Catalog, taken: set[str], custom_names: list[str] = ()) -> str:
    """Reserved names first (skipping custom ones), generated handles after."""
    blocked = taken | set(custom_names)
    available = [n for n in catalog.reserved_names if n not in blocked]
    if available:
        return rng.choice(available)
    return generate_name(rng, blocked)


def child_name(rng: random.Random, mother: Resident, father: Resident | None, taken: set[str]) -> str:
    """
    Family initial from the father (when that name is longer than one
    letter), otherwise from the mother, plus a one- or two-part given name.
    """
    surname = father.name[0] if father and len(father.name) > 1 else mother.name[0]
    surname = surname.upper()

    def given() -> str:
        if rng.random() < 0.5:
            return rng.choice(GIVEN_NAME_PARTS)
        return rng.choice(GIVEN_NAME_PARTS) + rng.choice(GIVEN_NAME_PARTS)

    name = surname + given()
    attempts = 0
    while name in taken and attempts < NAME_RETRIES:
        name = surname + given()
        attempts += 1
    if name in taken:
        name = f"{surname}{rng.choice(GIVEN_NAME_PARTS)}{rng.randint(1, 999)}"
        while name in taken:
            name = f"{name}{rng.randint(0, 9)}"
    return name


# ─── Residents ───────────────────────────────────────────────────────────────

def new_resident(
    rng: random.Random,
    catalog: Catalog,
    name: str,
    now: int,
    age: int | None = None,
    max_age: int | None = None,
    traits: list[str] | None = None,
) -> Resident:
    """
    Bring a new resident into existence with a random personality,
    rolled traits and randomised vices. `now` is the absolute game minute,
    used to back-date birth_time from the age.
    """
    if age is None:
        age = rng.randint(*FOUNDER_AGE)
    if max_age is None:
        max_age = rng.randint(*MAX_AGE)

    resident = Resident(
        id=new_id(rng),
        name=name,
        personality=rng.choice(catalog.personalities).name,
        traits=roll_starting_traits(rng, catalog) if traits is None else traits,
        age=age,
        max_age=max_age,
        birth_time=now - age * 365 * MINUTES_PER_DAY,
        desire=rng.randint(*STARTING_DESIRE),
        alcohol_tolerance=rng.randint(*STARTING_TOLERANCE),
    )
    logger.debug(f"🌱 Created {resident!r}")
    return resident


def spawn_founders(rng: random.Random, catalog: Catalog, now: int, names: list[str] | None = None) -> list[Resident]:
    """The founding cast: custom names when a full set is given, else the reserved names."""
    cast = names if names and len(names) == len(catalog.reserved_names) else list(catalog.reserved_names)
    residents = [new_resident(rng, catalog, n, now) for n in cast]
    for r in residents:
        for other in residents:
            if other.id != r.id:
                r.relationships[other.id] = Relationship()
    logger.info(f"🏙️  {len(residents)} founding residents have moved in")
    return residents
