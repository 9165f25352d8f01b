"""
lifetown/economy/distributor.py

Splits one revenue event at a workplace between its company account,
its owner and the rest of its staff.

    company  10%   → workplace.company_funds (pays for upgrades)
    owner    50%   → staff[0]
    staff    40%   → split evenly across staff[1:], or to the owner if alone

Every share is floored on its own, so the parts can add up to slightly
less than the revenue. That rounding loss is not redistributed.
A workplace with nobody on staff sends the whole amount to the town treasury.

Usage:
    result = distribute(town, town.workplaces["bar"], 56)
"""

from dataclasses import dataclass, field

from loguru import logger

COMPANY_CUT = 0.1
OWNER_CUT = 0.5
STAFF_CUT = 0.4


@dataclass
class DistributionResult:
    revenue: int
    company_share: int = 0
    owner_share: int = 0
    staff_share: int = 0
    to_treasury: int = 0
    payouts: dict[str, int] = field(default_factory=dict)   # resident id → amount

    @property
    def distributed(self) -> int:
        return self.company_share + self.owner_share + self.staff_share + self.to_treasury

    @property
    def rounding_loss(self) -> int:
        return self.revenue - self.distributed


def _pay(town, resident_id: str, amount: int, workplace_id: str, result: DistributionResult) -> int:
    resident = town.residents.get(resident_id)
    if resident is None or amount <= 0:
        return 0
    resident.earn(amount, "work", workplace_id)
    result.payouts[resident_id] = result.payouts.get(resident_id, 0) + amount
    return amount


def distribute(town, workplace, revenue: float) -> DistributionResult:
    revenue = int(revenue)
    result = DistributionResult(revenue=revenue)
    if revenue <= 0:
        return result

    if not workplace.staff:
        town.treasury += revenue
        result.to_treasury = revenue
        return result

    company = int(revenue * COMPANY_CUT)
    workplace.company_funds += company
    workplace.daily_staff_income += revenue - company
    result.company_share = company

    owner_id = workplace.staff[0]
    owner_cut = int(revenue * OWNER_CUT)
    staff_cut = int(revenue * STAFF_CUT)
    others = workplace.staff[1:]

    result.owner_share = _pay(town, owner_id, owner_cut, workplace.id, result)
    if others:
        each = staff_cut // len(others)
        for resident_id in others:
            result.staff_share += _pay(town, resident_id, each, workplace.id, result)
    else:
        result.owner_share += _pay(town, owner_id, staff_cut, workplace.id, result)

    logger.debug(
        f"💰 {workplace.id} revenue {revenue}: company {result.company_share}, "
        f"owner {result.owner_share}, staff {result.staff_share}"
    )
    return result
