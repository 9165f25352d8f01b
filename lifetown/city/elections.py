"""
lifetown/city/elections.py

Hourly staffing pass over every built workplace that has roles.

    no staff      → town-wide election for the owner seat (staff[0])
    understaffed  → the owner hires the unemployed adult they like most
    footshop      → the owner may also recruit escorts (max 3)

Election flow:
    1. Eligible candidates: unemployed adults, not cooling off after a
       resignation, not banned from this workplace (30 days after leaving
       it), not in an election cooldown for it.
    2. Each candidate may try to buy one vote. Witnesses can report the
       bribe (or be paid to keep quiet).
    3. Everyone votes yes / no / abstain on every candidate; candidates
       always vote for themselves.
    4. The winner has the most yes votes among candidates with
       yes > no and yes ≥ 1. The first one found wins a tie.
    5. No winner: the front-runner gets a strike. Seven strikes at the same
       workplace bar them from running there for two days.

Who bribed whom lives in an ElectionCycle for one election only; none of
it is stored on residents.
"""

from dataclasses import dataclass, field

from loguru import logger

from lifetown.agents.behaviors import can_be_hired
from lifetown.agents.resident import Job, Resident

REHIRE_BAN_MINUTES = 30 * 1440
BRIBE_ATTEMPT_CHANCE = 0.1
BRIBE_MIN_MONEY = 30
BRIBE_AMOUNT = (15, 30)
WITNESS_CHANCE = 0.3
REPORT_CHANCE_DISLIKED = 0.4
REPORT_CHANCE_LIKED = 0.1
DISLIKE_LOVE = 30
HUSH_MONEY = (10, 20)
HUSH_MIN_MONEY = 20
REJECTED_BRIBE_CREDIBILITY = 5

BRIBED_BONUS = 20
REJECTED_PENALTY = 20
REPORTED_PENALTY = 30
YES_THRESHOLD = 15
NO_THRESHOLD = 5

WINNER_CREDIBILITY = 15
FRESH_SATISFACTION = 70.0
FAILURE_LIMIT = 7
FAILURE_COOLDOWN_MINUTES = 2880

MAX_ESCORTS = 3
ESCORT_RECRUIT_CHANCE = 0.1


@dataclass
class ElectionCycle:
    """Per-election bribery state. Discarded when the election ends."""
    bribed_by: dict[str, str] = field(default_factory=dict)     # voter id → candidate id
    rejected_by: dict[str, str] = field(default_factory=dict)   # voter id → candidate id
    reported: set[str] = field(default_factory=set)             # candidate ids

    def clear(self):
        self.bribed_by.clear()
        self.rejected_by.clear()
        self.reported.clear()


@dataclass
class ElectionResult:
    workplace_id: str
    candidates: list[str] = field(default_factory=list)
    yes: dict[str, int] = field(default_factory=dict)
    no: dict[str, int] = field(default_factory=dict)
    winner_id: str | None = None


# ─── Eligibility ─────────────────────────────────────────────────────────────

def eligible_candidates(town, workplace) -> list[Resident]:
    now = town.now
    candidates = []
    for r in town.residents.values():
        if r.job is not None or r.is_minor:
            continue
        if r.resignation_cooldown is not None and now < r.resignation_cooldown:
            continue
        if (
            r.last_resigned_workplace == workplace.id
            and r.last_resigned_time is not None
            and now < r.last_resigned_time + REHIRE_BAN_MINUTES
        ):
            continue
        cooldown = r.election_cooldown.get(workplace.id)
        if cooldown is not None:
            if now < cooldown:
                continue
            r.election_cooldown.pop(workplace.id, None)
            r.election_failures.pop(workplace.id, None)
        candidates.append(r)
    return candidates


# ─── Bribery ─────────────────────────────────────────────────────────────────

def attempt_bribery(town, briber: Resident, workplace, cycle: ElectionCycle) -> bool:
    """One vote-buying attempt. Returns True if a voter took the money."""
    rng = town.rng
    targets = sorted((r for r in town.residents.values() if r.id != briber.id), key=lambda r: r.money)
    if not targets:
        return False
    target = rng.choice(targets)
    amount = rng.randint(*BRIBE_AMOUNT)
    if briber.money < amount:
        return False

    witnesses = [
        r for r in town.residents.values()
        if r.id not in (briber.id, target.id) and rng.random() < WITNESS_CHANCE
    ]
    for witness in witnesses:
        chance = REPORT_CHANCE_DISLIKED if witness.love_for(briber.id) < DISLIKE_LOVE else REPORT_CHANCE_LIKED
        if rng.random() >= chance:
            continue
        if witness.has_trait("money-loving") and briber.money >= HUSH_MIN_MONEY:
            hush = rng.randint(*HUSH_MONEY)
            if briber.give(witness, hush):
                town.log.emit(f"🤫 {briber.name} paid {witness.name} {hush} to keep quiet about a bribe.", "money")
                continue
        cycle.reported.add(briber.id)
        town.log.emit(f"🚨 {witness.name} saw {briber.name} trying to buy votes and reported it!", "event")

    # hush money may have eaten the bribe
    if briber.money < amount:
        return False

    accept = 0.3 + target.love_for(briber.id) / 100 * 0.3
    accept *= 1.8 if target.has_trait("money-loving") else 0.6
    if briber.id in cycle.reported:
        accept *= 0.5

    if rng.random() < accept and briber.give(target, amount):
        cycle.bribed_by[target.id] = briber.id
        town.log.emit(f"💰 {briber.name} bought {target.name}'s vote for {amount}!", "money")
        return True

    cycle.rejected_by[target.id] = briber.id
    briber.adjust_credibility(-REJECTED_BRIBE_CREDIBILITY)
    town.log.emit(f"❌ {target.name} refused {briber.name}'s bribe. {briber.name}'s credibility took a hit.", "event")
    return False


# ─── Voting ──────────────────────────────────────────────────────────────────

def vote_score(town, voter: Resident, candidate: Resident, cycle: ElectionCycle) -> float:
    score = voter.love_for(candidate.id)
    if cycle.bribed_by.get(voter.id) == candidate.id:
        score += BRIBED_BONUS
    if cycle.rejected_by.get(voter.id) == candidate.id:
        score -= REJECTED_PENALTY
    score += (candidate.credibility - 50) / 3
    if candidate.id in cycle.reported:
        score -= REPORTED_PENALTY
    score += town.rng.randint(-10, 10)
    return score


def tally(town, candidates: list[Resident], cycle: ElectionCycle) -> tuple[dict[str, int], dict[str, int]]:
    yes = {c.id: 0 for c in candidates}
    no = {c.id: 0 for c in candidates}
    for voter in town.residents.values():
        for c in candidates:
            if c.id == voter.id:
                yes[c.id] += 1
                continue
            score = vote_score(town, voter, c, cycle)
            if score >= YES_THRESHOLD:
                yes[c.id] += 1
            elif score <= NO_THRESHOLD:
                no[c.id] += 1
    return yes, no


def pick_winner(candidates: list[Resident], yes: dict[str, int], no: dict[str, int]) -> Resident | None:
    """Most yes votes among candidates with yes > no and yes ≥ 1; first wins a tie."""
    winner, best = None, 0
    for c in candidates:
        y = yes.get(c.id, 0)
        if y > no.get(c.id, 0) and y >= 1 and y > best:
            winner, best = c, y
    return winner


def hold_election(town, workplace, cycle: ElectionCycle | None = None) -> ElectionResult:
    cycle = cycle or ElectionCycle()
    result = ElectionResult(workplace_id=workplace.id)
    candidates = eligible_candidates(town, workplace)
    if not candidates:
        return result
    result.candidates = [c.id for c in candidates]

    rng = town.rng
    for candidate in candidates:
        if candidate.money >= BRIBE_MIN_MONEY and rng.random() < BRIBE_ATTEMPT_CHANCE:
            attempt_bribery(town, candidate, workplace, cycle)

    try:
        yes, no = tally(town, candidates, cycle)
        result.yes, result.no = yes, no
        winner = pick_winner(candidates, yes, no)
        if winner is not None:
            _install_owner(town, workplace, winner, yes[winner.id], no[winner.id])
            result.winner_id = winner.id
        else:
            _record_failure(town, workplace, candidates, yes, no)
    finally:
        cycle.clear()
    return result


def _install_owner(town, workplace, winner: Resident, yes: int, no: int):
    role = workplace.hire(winner.id)
    winner.job = Job(workplace_id=workplace.id, role=role)
    winner.adjust_credibility(WINNER_CREDIBILITY)
    winner.job_satisfaction = FRESH_SATISFACTION
    winner.slacking_counts[workplace.id] = 0
    winner.election_failures.pop(workplace.id, None)
    winner.election_cooldown.pop(workplace.id, None)
    town.log.emit(
        f"🗳️ By popular vote, {winner.name} ({yes} yes / {no} no) is the new {role} of {workplace.name}!",
        "work",
    )
    logger.info(f"🗳️ {workplace.id}: {winner.name} elected {role}")


def _record_failure(town, workplace, candidates, yes, no):
    front = candidates[0]
    for c in candidates[1:]:
        if yes[c.id] > yes[front.id]:
            front = c
    failures = front.election_failures.get(workplace.id, 0) + 1
    front.election_failures[workplace.id] = failures
    town.log.emit(
        f"🗳️ The {workplace.name} election failed: {front.name} only got {yes[front.id]} yes / {no[front.id]} no.",
        "info",
    )
    if failures >= FAILURE_LIMIT:
        front.election_cooldown[workplace.id] = town.now + FAILURE_COOLDOWN_MINUTES
        town.log.emit(
            f"⏸️ {front.name} has lost the {workplace.name} election {FAILURE_LIMIT} times "
            f"and can't run there for two days.",
            "info",
        )


# ─── Hiring ──────────────────────────────────────────────────────────────────

def owner_hire(town, workplace) -> Resident | None:
    """Understaffed workplace: the owner takes on the unemployed adult they like most."""
    owner = town.residents.get(workplace.owner_id) if workplace.owner_id else None
    if owner is None:
        return None
    pool = [r for r in town.residents.values() if r.id != owner.id and can_be_hired(town, r, workplace)]
    pick = town.graph.best_liked(owner, pool)
    if pick is None:
        return None
    role = workplace.hire(pick.id)
    pick.job = Job(workplace_id=workplace.id, role=role)
    pick.job_satisfaction = FRESH_SATISFACTION
    pick.slacking_counts[workplace.id] = 0
    town.log.emit(f"🤝 {owner.name}, who runs {workplace.name}, hired their friend {pick.name} as {role}.", "work")
    return pick


def recruit_escort(town, workplace) -> Resident | None:
    if workplace.id != "footshop" or not workplace.is_built or not workplace.staff:
        return None
    boss = town.residents.get(workplace.owner_id)
    if boss is None or len(workplace.escorts) >= MAX_ESCORTS:
        return None
    pool = [
        r for r in town.residents.values()
        if r.job is None and r.escort_at is None and r.has_trait("promiscuous") and r.age > 17
    ]
    if not pool or town.rng.random() >= ESCORT_RECRUIT_CHANCE:
        return None
    recruit = town.rng.choice(pool)
    recruit.escort_at = workplace.id
    workplace.escorts.append(recruit.id)
    town.log.emit(f"💋 {boss.name} talked {recruit.name} into working at {workplace.name}...", "work")
    return recruit


def run_elections_and_hiring(town) -> list[ElectionResult]:
    results = []
    for workplace in town.workplaces.values():
        if not workplace.is_built or not workplace.roles:
            continue
        if not workplace.staff:
            results.append(hold_election(town, workplace))
        elif workplace.has_vacancy:
            owner_hire(town, workplace)
        recruit_escort(town, workplace)
    return results
