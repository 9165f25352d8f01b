"""
lifetown/world/workplace.py

Live state of one workplace: construction progress, staff roster,
revenue ledgers, company funds and level.

Workplaces are keyed by their blueprint id. The blueprint itself is not
serialized; saves carry only the id and it is re-linked on load.
"""

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from lifetown.config import HISTORY_DAYS
from lifetown.world.blueprints import Blueprint

BASE_SALARY = 10
SALARY_STEP_PER_LEVEL = 0.2
UPGRADE_COST_FACTOR = 0.5


class Workplace(BaseModel):
    id: str
    blueprint: Blueprint = Field(exclude=True)

    # Construction
    progress: int = 0
    is_built: bool = False
    contributions: dict[str, int] = {}

    # Operations
    staff: list[str] = []             # index 0 is the owner
    escorts: list[str] = []
    total_revenue: int = 0
    revenue_history: list[int] = []
    staff_income_history: list[int] = []
    daily_staff_income: int = 0
    last_revenue_day: int = -1
    company_funds: int = 0
    level: int = 1
    base_salary: int = BASE_SALARY

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def from_blueprint(cls, blueprint: Blueprint, built: bool = False) -> "Workplace":
        w = cls(id=blueprint.id, blueprint=blueprint)
        if built:
            w.is_built = True
            w.progress = blueprint.cost
        return w

    # ── Blueprint passthroughs ───────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self.blueprint.name

    @property
    def cost(self) -> int:
        return self.blueprint.cost

    @property
    def effect(self) -> str:
        return self.blueprint.effect

    @property
    def roles(self) -> tuple[str, ...]:
        return self.blueprint.roles

    @property
    def products(self):
        return self.blueprint.products

    @property
    def owner_id(self) -> str | None:
        return self.staff[0] if self.staff else None

    @property
    def has_vacancy(self) -> bool:
        return len(self.staff) < len(self.roles)

    @property
    def upgrade_cost(self) -> int:
        return int(self.cost * UPGRADE_COST_FACTOR * self.level)

    # ── Opening hours ────────────────────────────────────────────────────────

    def is_open(self, hour: int, weekday: int) -> bool:
        if not self.is_built:
            return False
        if weekday in self.blueprint.closed_days:
            return False
        if self.roles and not self.staff:
            return False
        bp = self.blueprint
        if bp.is_24_hour:
            return True
        if bp.close_hour < bp.open_hour:
            # wraps past midnight, e.g. 18:00 → 02:00
            return hour >= bp.open_hour or hour < bp.close_hour
        return bp.open_hour <= hour < bp.close_hour

    # ── Staff ────────────────────────────────────────────────────────────────

    def hire(self, resident_id: str) -> str | None:
        """Appends to the roster and returns the role filled, or None if full."""
        if not self.has_vacancy or resident_id in self.staff:
            return None
        role = self.roles[len(self.staff)]
        self.staff.append(resident_id)
        return role

    def dismiss(self, resident_id: str) -> bool:
        if resident_id not in self.staff:
            return False
        self.staff.remove(resident_id)
        return True

    # ── Construction ─────────────────────────────────────────────────────────

    def add_progress(self, resident_id: str, amount: int, contribution: int | None = None) -> bool:
        """
        Adds construction progress. Returns True only on the call that
        completes the building.
        """
        if self.is_built:
            return False
        self.progress += amount
        self.contributions[resident_id] = self.contributions.get(resident_id, 0) + (
            amount if contribution is None else contribution
        )
        if self.progress >= self.cost:
            self.is_built = True
            logger.info(f"🏗️  {self.name} completed ({self.progress}/{self.cost})")
            return True
        return False

    # ── Levels ───────────────────────────────────────────────────────────────

    def upgrade(self) -> bool:
        cost = self.upgrade_cost
        if not self.is_built or self.company_funds < cost:
            return False
        self.company_funds -= cost
        self.level += 1
        self.base_salary = int(BASE_SALARY * (1 + (self.level - 1) * SALARY_STEP_PER_LEVEL))
        return True

    # ── Daily ledger ─────────────────────────────────────────────────────────

    def close_books(self, day: int):
        """Pushes yesterday's revenue and staff income into the rolling history."""
        if not self.is_built or self.last_revenue_day >= day:
            return
        daily_revenue = self.total_revenue - sum(self.revenue_history)
        if daily_revenue >= 0:
            self.revenue_history.append(daily_revenue)
            del self.revenue_history[:-HISTORY_DAYS]
        self.staff_income_history.append(max(0, self.daily_staff_income))
        del self.staff_income_history[:-HISTORY_DAYS]
        self.daily_staff_income = 0
        self.last_revenue_day = day

    def average_staff_income(self) -> float:
        if not self.staff_income_history:
            return 0.0
        return sum(self.staff_income_history) / len(self.staff_income_history)


STARTER_BUILDINGS = ("park",)


def fresh_workplaces(blueprints) -> dict[str, "Workplace"]:
    """A new town's workplaces in blueprint order, with the starter buildings already up."""
    return {
        bp.id: Workplace.from_blueprint(bp, built=bp.id in STARTER_BUILDINGS)
        for bp in blueprints
    }
