"""
lifetown/agents/catalog.py

The static character tables: personalities, traits, the trait conflict
graph, reserved resident names and the workplace blueprints.

A Catalog is built once and handed to a Town. Behaviour code never reads
module globals for these tables directly; it goes through town.catalog so
tests can run towns with different tables side by side.

Trait effects are expressed as small modifier tables (trait → number)
rather than chains of if/else. Three ways of combining them are used:
    first_match   if/elif priority: the first trait the resident has wins
    product_of    every matching multiplier applies
    sum_of        every matching bonus is added
"""

from dataclasses import dataclass, field

from lifetown.world.blueprints import BLUEPRINTS, Blueprint


@dataclass(frozen=True)
class Personality:
    name: str
    chaos_bonus: float
    love_gain: float
    child_desire: float
    description: str = ""


@dataclass(frozen=True)
class Trait:
    id: str
    name: str
    description: str = ""


PERSONALITIES: tuple[Personality, ...] = (
    Personality("irritable",   0.30, -0.5, -0.3, "Short fuse, starts arguments"),
    Personality("calm",       -0.20,  0.3,  0.2, "Level-headed, avoids conflict"),
    Personality("cheerful",   -0.10,  0.5,  0.4, "Outgoing and easy to be around"),
    Personality("introverted", 0.10, -0.2, -0.1, "Awkward in company, a little distant"),
    Personality("gentle",     -0.15,  0.4,  0.5, "Kind, liked by everyone"),
    Personality("mean",        0.25, -0.3, -0.2, "Sharp tongue, offends easily"),
    Personality("humorous",   -0.10,  0.3,  0.3, "Funny and charming"),
    Personality("serious",     0.05,  0.0,  0.1, "Strictly business"),
    Personality("passionate", -0.10,  0.6,  0.3, "Warm and infectious"),
    Personality("cold",        0.15, -0.4, -0.2, "Aloof, doesn't care much"),
    Personality("optimistic", -0.15,  0.4,  0.2, "Always sees the bright side"),
    Personality("pessimistic", 0.20, -0.3, -0.1, "Prone to gloom"),
    Personality("brave",       0.10,  0.2,  0.2, "Bold, takes risks"),
    Personality("timid",      -0.10, -0.1, -0.2, "Careful, rarely tries new things"),
    Personality("generous",   -0.05,  0.3,  0.1, "Happy to share"),
    Personality("stingy",      0.10, -0.2, -0.1, "Counts every coin"),
    Personality("honest",     -0.10,  0.2,  0.1, "Reliable and trustworthy"),
    Personality("cunning",     0.20, -0.1, -0.1, "Calculating and shrewd"),
    Personality("romantic",   -0.10,  0.5,  0.4, "Chases love"),
    Personality("pragmatic",   0.05,  0.0,  0.2, "Practical above all"),
)

TRAITS: tuple[Trait, ...] = (
    Trait("sleepy", "Sleepyhead", "Sleeps longer, recovers more"),
    Trait("promiscuous", "Promiscuous", "Seeks intimacy, drifts into affairs"),
    Trait("money-loving", "Money-loving", "Careful spender, keen on paid construction"),
    Trait("hardworking", "Hardworking", "Rarely slacks, builds faster"),
    Trait("lazy", "Lazy", "Slacks often, tires of jobs quickly"),
    Trait("social", "Social butterfly", "Makes friends fast"),
    Trait("loner", "Loner", "Prefers solitude"),
    Trait("romantic", "Romantic", "Confesses and accepts easily"),
    Trait("conservative", "Conservative", "Slow to start relationships"),
    Trait("impulsive", "Impulsive", "Quick to argue and to confess"),
    Trait("rational", "Rational", "Not easily swept away"),
    Trait("generous", "Generous", "Spends freely"),
    Trait("stingy", "Stingy", "Hates spending"),
    Trait("ambitious", "Ambitious", "Demanding about jobs"),
    Trait("content", "Content", "Easily satisfied"),
    Trait("coward", "Coward", "Avoids risk, rarely gets drunk"),
    Trait("clever", "Clever", "Hard to catch slacking"),
)

TRAIT_CONFLICTS: dict[str, tuple[str, ...]] = {
    "hardworking": ("lazy", "sleepy"),
    "lazy": ("hardworking",),
    "sleepy": ("hardworking",),
    "social": ("loner",),
    "loner": ("social",),
    "romantic": ("conservative",),
    "conservative": ("romantic",),
    "impulsive": ("rational",),
    "rational": ("impulsive",),
    "generous": ("stingy",),
    "stingy": ("generous",),
    "ambitious": ("content",),
    "content": ("ambitious",),
}

RESERVED_NAMES: tuple[str, ...] = (
    "Mochi", "Mambo", "Hakimi", "Guomao", "Nuanlei", "Muxia",
    "Sans", "Shisu", "Xiaorui", "Douluo", "Yunrong", "Jue",
)


# ─── Trait modifier tables ───────────────────────────────────────────────────

# Work
SLACK_CHANCE = {"hardworking": 0.05, "lazy": 0.8, "sleepy": 0.7}
SATISFACTION_DRIFT = {"ambitious": -2, "content": 0, "hardworking": 0, "lazy": -2}
RESIGN_RULE = {"ambitious": (50, 0.08), "content": (20, 0.02)}   # (threshold, chance)

# Construction
BUILD_POWER = {"hardworking": 1.3, "lazy": 0.6, "sleepy": 0.7}
FAVORITE_BUILDING = {"promiscuous": "footshop", "sleepy": "hotel"}

# Spending: how much cash relative to the price a resident wants before buying
SPENDING_RESERVE = {"money-loving": 1.5, "stingy": 1.5, "generous": 0.7}

# Romance
CONFESS_MULTIPLIER = {"romantic": 1.8, "impulsive": 1.5, "conservative": 0.5, "rational": 0.7}
ACCEPT_BONUS = {"romantic": 15, "impulsive": 10, "conservative": -15, "rational": -10}

# Friends-with-benefits persuasion
PERSUADER_PERSONALITY_BONUS = {
    "passionate": 20, "cheerful": 15, "humorous": 15, "gentle": 10,
    "cunning": 25, "cold": -10, "mean": -15, "introverted": -10,
}
TARGET_PERSONALITY_BONUS = {
    "romantic": 15, "timid": -30, "optimistic": 10, "serious": -15,
    "honest": -10, "pessimistic": -5,
}
PERSUADER_TRAIT_BONUS = {"social": 10, "impulsive": 5}
TARGET_TRAIT_BONUS = {
    "impulsive": 15, "romantic": 10, "conservative": -20,
    "rational": -15, "loner": -10, "coward": -40,
}

# Drinking
DRUNK_MULTIPLIER = {"impulsive": 1.3, "rational": 0.7, "conservative": 0.8, "coward": 0.3}

# Trait learning: activity → (chance, recommended trait ids)
LEARNING = {
    "work": (0.05, ("hardworking", "lazy", "ambitious", "content")),
    "social": (0.08, ("social", "loner", "romantic", "conservative", "impulsive", "rational")),
    "build": (0.06, ("hardworking", "money-loving", "ambitious")),
    "rest": (0.04, ("sleepy", "content", "generous", "stingy")),
}

# Chance of each successive trait slot at character creation
STARTING_TRAIT_ROLLS = (0.7, 0.8, 0.2, 0.05)


def first_match(traits, table: dict, default=None):
    for trait_id, value in table.items():
        if trait_id in traits:
            return value
    return default


def product_of(traits, table: dict) -> float:
    result = 1.0
    for trait_id, value in table.items():
        if trait_id in traits:
            result *= value
    return result


def sum_of(traits, table: dict) -> float:
    return sum(value for trait_id, value in table.items() if trait_id in traits)


# ─── Catalog ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Catalog:
    personalities: tuple[Personality, ...] = PERSONALITIES
    traits: tuple[Trait, ...] = TRAITS
    conflicts: dict = field(default_factory=lambda: dict(TRAIT_CONFLICTS))
    blueprints: tuple[Blueprint, ...] = BLUEPRINTS
    reserved_names: tuple[str, ...] = RESERVED_NAMES

    def personality(self, name: str) -> Personality:
        for p in self.personalities:
            if p.name == name:
                return p
        # Unknown names (hand-edited saves) behave as a neutral personality
        return Personality(name, 0.0, 0.0, 0.0)

    def trait(self, trait_id: str) -> Trait | None:
        return next((t for t in self.traits if t.id == trait_id), None)

    @property
    def trait_ids(self) -> list[str]:
        return [t.id for t in self.traits]

    def conflicts_with(self, existing: list[str], new_trait: str) -> bool:
        return any(c in existing for c in self.conflicts.get(new_trait, ()))

    def compatible_traits(self, existing: list[str]) -> list[str]:
        """Trait ids that could still be added to `existing`."""
        return [
            t for t in self.trait_ids
            if t not in existing and not self.conflicts_with(existing, t)
        ]

    def blueprint(self, blueprint_id: str) -> Blueprint | None:
        return next((b for b in self.blueprints if b.id == blueprint_id), None)


def default_catalog() -> Catalog:
    return Catalog()
