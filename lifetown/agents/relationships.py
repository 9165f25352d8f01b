"""
lifetown/agents/relationships.py

The social graph. Each resident holds its own Relationship record for
every other resident it knows; RelationshipGraph is the only thing that
writes those records so both sides always move together.

Love lives on each side separately (A can like B more than B likes A).
Status is always mirrored.

Status ladder:
    stranger → friend (love > 10) → bestfriend (love > 60, both friends)
    romantic branch: lover → spouse, mistress (affair), fwb (parallel)
    ex: terminal, only reached by breaking up a romantic bond
"""

from loguru import logger

from lifetown.agents.resident import Relationship, RelationshipStatus, Resident

FRIEND_THRESHOLD = 10
BESTFRIEND_THRESHOLD = 60
FAMILY_LOVE = 50

ROMANTIC = {s.value for s in (RelationshipStatus.LOVER, RelationshipStatus.SPOUSE, RelationshipStatus.MISTRESS)}
COMMITTED = {RelationshipStatus.LOVER.value, RelationshipStatus.SPOUSE.value}


class RelationshipGraph:

    def __init__(self, residents: dict[str, Resident]):
        """residents: the live id → Resident map owned by the Town."""
        self._residents = residents

    # ─── Records ──────────────────────────────────────────────────────────────

    def pair(self, a: Resident, b: Resident) -> tuple[Relationship, Relationship]:
        """Both sides of the edge, created as strangers if missing."""
        if b.id not in a.relationships:
            a.relationships[b.id] = Relationship()
        if a.id not in b.relationships:
            b.relationships[a.id] = Relationship()
        return a.relationships[b.id], b.relationships[a.id]

    def introduce(self, newcomer: Resident):
        """Stranger records both ways between a newcomer and everyone else."""
        for other in self._residents.values():
            if other.id != newcomer.id:
                newcomer.relationships[other.id] = Relationship()
                other.relationships[newcomer.id] = Relationship()

    def love(self, a: Resident, b: Resident) -> int:
        return a.love_for(b.id)

    def status(self, a: Resident, b: Resident) -> str:
        return a.status_with(b.id)

    # ─── Mutations ────────────────────────────────────────────────────────────

    def adjust_love(self, a: Resident, b: Resident, delta_a: float, delta_b: float | None = None):
        """
        Changes a's love for b by delta_a and b's love for a by delta_b
        (same as delta_a when omitted). Both are clamped to 0-100.
        """
        ra, rb = self.pair(a, b)
        ra.love = ra.love + delta_a
        rb.love = rb.love + (delta_a if delta_b is None else delta_b)

    def adjust_one_way(self, holder: Resident, other: Resident, delta: float):
        ra, _ = self.pair(holder, other)
        ra.love = ra.love + delta

    def set_status(self, a: Resident, b: Resident, status: RelationshipStatus):
        ra, rb = self.pair(a, b)
        ra.status = status
        rb.status = status

    def update_status(self, a: Resident, b: Resident):
        """Promotes stranger → friend → bestfriend from a's love for b."""
        ra, rb = self.pair(a, b)
        if ra.status == RelationshipStatus.STRANGER and ra.love > FRIEND_THRESHOLD:
            self.set_status(a, b, RelationshipStatus.FRIEND)
        elif (
            ra.status == RelationshipStatus.FRIEND
            and rb.status == RelationshipStatus.FRIEND
            and ra.love > BESTFRIEND_THRESHOLD
        ):
            self.set_status(a, b, RelationshipStatus.BESTFRIEND)

    def record_intimacy(self, a: Resident, b: Resident):
        ra, rb = self.pair(a, b)
        ra.intimacy_count += 1
        rb.intimacy_count += 1
        a.intimacy_count += 1
        b.intimacy_count += 1

    # ─── Romantic bonds ───────────────────────────────────────────────────────

    def become_lovers(self, a: Resident, b: Resident):
        a.partner_id = b.id
        b.partner_id = a.id
        self.set_status(a, b, RelationshipStatus.LOVER)

    def marry(self, a: Resident, b: Resident):
        a.partner_id = b.id
        b.partner_id = a.id
        self.set_status(a, b, RelationshipStatus.SPOUSE)

    def break_up(self, a: Resident, b: Resident):
        """Ends a romantic bond: both sides become ex with love reset to 0."""
        if a.partner_id == b.id:
            a.partner_id = None
        if b.partner_id == a.id:
            b.partner_id = None
        self.set_status(a, b, RelationshipStatus.EX)
        ra, rb = self.pair(a, b)
        ra.love = 0
        rb.love = 0
        logger.debug(f"💔 {a.name} and {b.name} broke up")

    def add_fwb(self, a: Resident, b: Resident):
        if b.id not in a.fwb_ids:
            a.fwb_ids.append(b.id)
        if a.id not in b.fwb_ids:
            b.fwb_ids.append(a.id)
        # an fwb bond never overrides a romantic one
        if self.status(a, b) not in ROMANTIC:
            self.set_status(a, b, RelationshipStatus.FWB)

    def set_family(self, parent: Resident, child: Resident):
        self.set_status(parent, child, RelationshipStatus.FAMILY)
        ra, rb = self.pair(parent, child)
        ra.love = FAMILY_LOVE
        rb.love = FAMILY_LOVE

    # ─── Queries ──────────────────────────────────────────────────────────────

    def partner_of(self, resident: Resident) -> Resident | None:
        if not resident.partner_id:
            return None
        return self._residents.get(resident.partner_id)

    def friend_count(self, resident: Resident) -> int:
        # plain friends only, not best friends
        return sum(1 for r in resident.relationships.values() if r.status == RelationshipStatus.FRIEND)

    def best_liked(self, holder: Resident, candidates: list[Resident]) -> Resident | None:
        """Candidate holder loves most; the first one wins a tie."""
        best, best_love = None, -1
        for c in candidates:
            love = holder.love_for(c.id)
            if love > best_love:
                best, best_love = c, love
        return best

    # ─── Removal ──────────────────────────────────────────────────────────────

    def purge(self, resident_id: str):
        """Removes every trace of a resident from everyone else's social state."""
        for other in self._residents.values():
            if other.id == resident_id:
                continue
            other.relationships.pop(resident_id, None)
            if resident_id in other.fwb_ids:
                other.fwb_ids.remove(resident_id)
            if other.partner_id == resident_id:
                other.partner_id = None
            if other.interacting_with == resident_id:
                other.interacting_with = None
            if other.relieving_with == resident_id:
                other.is_relieving = False
                other.relieving_with = None
                other.relieving_until = None
