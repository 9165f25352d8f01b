"""
lifetown/agents/resident.py

The state of every person living in town.

Residents are keyed by `id` everywhere (relationships, staff rosters,
pregnancies). `name` is only for display and can be changed freely.
"""

from enum import Enum
from typing import Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RelationshipStatus(str, Enum):
    STRANGER = "stranger"
    FRIEND = "friend"
    BESTFRIEND = "bestfriend"
    LOVER = "lover"
    SPOUSE = "spouse"
    MISTRESS = "mistress"
    FWB = "fwb"
    EX = "ex"
    FAMILY = "family"


class Relationship(BaseModel):
    love: int = 0
    status: RelationshipStatus = RelationshipStatus.STRANGER
    intimacy_count: int = 0

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    @field_validator("love", mode="before")
    @classmethod
    def _clamp_love(cls, v) -> int:
        return max(0, min(100, int(v)))


class Job(BaseModel):
    workplace_id: str
    role: str


class Pregnancy(BaseModel):
    other_parent_id: Optional[str] = None
    due_time: int


class Parents(BaseModel):
    mother_id: Optional[str] = None
    father_id: Optional[str] = None


class IncomeStats(BaseModel):
    work: int = 0
    odd_job: int = 0
    streetwalking: int = 0
    construction: int = 0
    total: int = 0


class Resident(BaseModel):
    """
    One person in town. Every numeric stat is kept inside its range by
    the mutator methods below; code that writes fields directly is
    responsible for clamping itself.
    """

    # Identity
    id: str
    name: str
    personality: str
    traits: list[str] = []

    # Vitals
    happiness: int = 60
    money: int = 0
    age: int = 20
    max_age: int = 100
    birth_time: Optional[int] = None
    credibility: int = 50

    # Employment
    job: Optional[Job] = None
    job_satisfaction: float = 70.0
    slacking_counts: dict[str, int] = {}
    escort_at: Optional[str] = None
    resignation_cooldown: Optional[int] = None
    last_resigned_workplace: Optional[str] = None
    last_resigned_time: Optional[int] = None
    election_failures: dict[str, int] = {}
    election_cooldown: dict[str, int] = {}

    # Social
    relationships: dict[str, Relationship] = {}
    partner_id: Optional[str] = None
    fwb_ids: list[str] = []
    interacting_with: Optional[str] = None
    current_action: str = "idle"

    # Family
    pregnancy: Optional[Pregnancy] = None
    contraceptives: int = 0
    children: list[str] = []
    parents: Optional[Parents] = None
    last_allowance_day: Optional[int] = None

    # Vices
    desire: int = 40
    alcohol_tolerance: int = 60
    is_drunk: bool = False
    drunk_until: Optional[int] = None
    is_relieving: bool = False
    relieving_with: Optional[str] = None
    relieving_until: Optional[int] = None
    self_relief_count: int = 0
    intimacy_count: int = 0
    fight_count: int = 0
    total_sleep_hours: float = 0.0

    # Multiplayer
    travel_cooldown: Optional[int] = None

    # Bookkeeping
    income: IncomeStats = Field(default_factory=IncomeStats)
    workplace_income: dict[str, int] = {}
    construction_contribution: dict[str, int] = {}

    model_config = ConfigDict(use_enum_values=True)

    # ── Traits ───────────────────────────────────────────────────────────────

    def has_trait(self, trait_id: str) -> bool:
        return trait_id in self.traits

    @property
    def is_minor(self) -> bool:
        return 1 <= self.age <= 17

    # ── Vitals ───────────────────────────────────────────────────────────────

    def adjust_happiness(self, delta: float) -> int:
        self.happiness = int(max(0, min(100, self.happiness + delta)))
        return self.happiness

    def adjust_desire(self, delta: int) -> int:
        self.desire = max(0, min(100, self.desire + delta))
        return self.desire

    def adjust_satisfaction(self, delta: float) -> float:
        self.job_satisfaction = max(0.0, min(100.0, self.job_satisfaction + delta))
        return self.job_satisfaction

    def adjust_credibility(self, delta: int) -> int:
        self.credibility = max(0, min(100, self.credibility + delta))
        return self.credibility

    # ── Money ────────────────────────────────────────────────────────────────

    def earn(self, amount: int, category: str = "work", workplace_id: str | None = None) -> None:
        """Adds income and books it under the given IncomeStats category."""
        if amount <= 0:
            return
        self.money += amount
        if hasattr(self.income, category):
            setattr(self.income, category, getattr(self.income, category) + amount)
        self.income.total += amount
        if workplace_id:
            self.workplace_income[workplace_id] = self.workplace_income.get(workplace_id, 0) + amount

    def spend(self, amount: int, reason: str = "") -> bool:
        """Returns False (and changes nothing) if the resident can't afford it."""
        if amount < 0:
            return False
        if self.money < amount:
            logger.debug(f"{self.name} cannot afford {reason or 'purchase'}: has {self.money}, needs {amount}")
            return False
        self.money -= amount
        return True

    def give(self, other: "Resident", amount: int) -> bool:
        if not self.spend(amount):
            return False
        other.money += amount
        return True

    # ── Relationships ────────────────────────────────────────────────────────

    def love_for(self, other_id: str) -> int:
        rel = self.relationships.get(other_id)
        return rel.love if rel else 0

    def status_with(self, other_id: str) -> str:
        rel = self.relationships.get(other_id)
        return rel.status if rel else RelationshipStatus.STRANGER.value

    def __repr__(self) -> str:
        job = f"{self.job.role}@{self.job.workplace_id}" if self.job else "unemployed"
        return (
            f"Resident {self.name} [{self.id[:8]}] | {self.personality} | "
            f"💰{self.money} 😊{self.happiness} | {job}"
        )
