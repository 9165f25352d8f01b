"""
lifetown/economy/projects.py

Construction and upgrades.

Construction is crowd-funded by labour: any resident with free time can
put work into an unbuilt workplace. Each shift pays a small subsidy, and
when the building completes 30% of its cost is shared out between every
contributor in proportion to the work they put in.

Once a workplace has staff, its company account pays for upgrades. An
upgrade costs half the blueprint cost times the current level, and each
level raises the base salary by 20%.
"""

from loguru import logger

from lifetown.agents.catalog import BUILD_POWER, FAVORITE_BUILDING, first_match
from lifetown.agents.resident import Resident
from lifetown.agents.traits import try_learn_trait

BUILD_POWER_RANGE = (5, 15)
FAVORITE_POWER_BONUS = 1.5
FAVORITE_CONTRIBUTION_BONUS = 0.3
HARDWORKING_EXTRA = 1.2
BUILD_SUBSIDY = 5
COMPLETION_REWARD_SHARE = 0.3


class ProjectSystem:

    def __init__(self, town):
        self.town = town

    # ── Construction ─────────────────────────────────────────────────────────

    def pending(self):
        return [w for w in self.town.workplaces.values() if not w.is_built]

    def pick_site(self, resident: Resident):
        """Trait-favoured unbuilt workplace first, then the first unbuilt one."""
        pending = self.pending()
        if not pending:
            return None
        for trait_id, workplace_id in FAVORITE_BUILDING.items():
            if resident.has_trait(trait_id):
                favourite = next((w for w in pending if w.id == workplace_id), None)
                if favourite:
                    return favourite
                break
        return pending[0]

    @staticmethod
    def is_favorite(resident: Resident, workplace) -> bool:
        return any(
            resident.has_trait(trait_id) and workplace.id == workplace_id
            for trait_id, workplace_id in FAVORITE_BUILDING.items()
        )

    def build_power(self, resident: Resident, workplace) -> int:
        power = self.town.rng.randint(*BUILD_POWER_RANGE)
        power = int(power * first_match(resident.traits, BUILD_POWER, 1.0))
        if self.is_favorite(resident, workplace):
            power = int(power * FAVORITE_POWER_BONUS)
        if resident.has_trait("hardworking"):
            power = int(power * HARDWORKING_EXTRA)
        return power

    def construction_mood_cost(self, resident: Resident) -> int:
        """Short-tempered personalities find building sites more draining."""
        rng = self.town.rng
        chaos = self.town.catalog.personality(resident.personality).chaos_bonus
        if chaos > 0.1:
            return -rng.randint(3, 4)
        if chaos > 0:
            return -rng.randint(2, 3)
        if chaos < -0.1:
            return -rng.randint(0, 1)
        return -2

    def contribute(self, resident: Resident, workplace, power: int | None = None) -> int:
        """
        One construction shift. Returns the progress added. `power` can be
        forced (tests, scripted events); otherwise it is rolled.
        """
        town = self.town
        if workplace.is_built:
            return 0

        try_learn_trait(town, resident, "build")
        if power is None:
            power = self.build_power(resident, workplace)

        bonus = int(power * FAVORITE_CONTRIBUTION_BONUS) if self.is_favorite(resident, workplace) else 0
        completed = workplace.add_progress(resident.id, power, contribution=power + bonus)
        resident.construction_contribution[workplace.id] = (
            resident.construction_contribution.get(workplace.id, 0) + power + bonus
        )

        resident.earn(BUILD_SUBSIDY, "construction")
        resident.adjust_happiness(self.construction_mood_cost(resident))
        resident.current_action = f"Building: {workplace.name}"

        if completed:
            town.log.emit(f"🔨 Great news! Thanks to everyone's work, {workplace.name} is finally open!", "work")
            self.distribute_reward(workplace)
        return power

    def distribute_reward(self, workplace) -> dict[str, int]:
        """Shares floor(cost × 0.3) among contributors still living in town."""
        town = self.town
        shares = {
            rid: amount for rid, amount in workplace.contributions.items()
            if amount > 0 and rid in town.residents
        }
        total = sum(shares.values())
        if total == 0:
            return {}

        pot = int(workplace.cost * COMPLETION_REWARD_SHARE)
        paid = {}
        for rid, amount in shares.items():
            reward = int(pot * amount / total)
            if reward <= 0:
                continue
            resident = town.residents[rid]
            resident.money += reward
            paid[rid] = reward
            town.log.emit(f"💰 {resident.name} earned {reward} for helping build {workplace.name}!", "money")
        return paid

    # ── Upgrades ─────────────────────────────────────────────────────────────

    def upgrade(self, workplace_id: str) -> bool:
        """Player-requested upgrade. Failures become error log entries."""
        town = self.town
        workplace = town.workplaces.get(workplace_id)
        if workplace is None:
            town.log.emit(f"❌ No workplace called {workplace_id}", "error")
            return False
        if not workplace.is_built:
            town.log.emit(f"❌ {workplace.name} isn't built yet, so it can't be upgraded!", "error")
            return False
        cost = workplace.upgrade_cost
        if not workplace.upgrade():
            town.log.emit(
                f"❌ {workplace.name} can't afford an upgrade (needs {cost}, has {workplace.company_funds})",
                "error",
            )
            return False
        town.log.emit(
            f"⬆️ {workplace.name} upgraded to level {workplace.level}! Base salary is now {workplace.base_salary}",
            "work",
        )
        town.request_save()
        return True

    def check_auto_upgrade(self) -> list[str]:
        """Hourly: staffed workplaces upgrade themselves once the company can pay."""
        upgraded = []
        for workplace in self.town.workplaces.values():
            if not workplace.is_built or not workplace.staff:
                continue
            if workplace.company_funds < workplace.upgrade_cost:
                continue
            if workplace.upgrade():
                upgraded.append(workplace.id)
                self.town.log.emit(
                    f"⬆️ {workplace.name} had enough in the company account and upgraded itself "
                    f"to level {workplace.level}! Base salary is now {workplace.base_salary}",
                    "work",
                )
                logger.info(f"⬆️ Auto-upgrade: {workplace.id} → level {workplace.level}")
        if upgraded:
            self.town.request_save()
        return upgraded
