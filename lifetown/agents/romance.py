"""
lifetown/agents/romance.py

The romantic side of a social encounter. check_romance() runs first
whenever two residents meet; if it returns True something big happened
(confession, affair, proposal, a night together) and the ordinary chat
is skipped.

Every love change goes through the RelationshipGraph so both sides
stay in step and values stay clamped.
"""

import random

from loguru import logger

from lifetown.agents.catalog import ACCEPT_BONUS, CONFESS_MULTIPLIER, product_of, sum_of
from lifetown.agents.relationships import COMMITTED, ROMANTIC
from lifetown.agents.resident import Pregnancy, RelationshipStatus, Resident
from lifetown.config import MINUTES_PER_DAY

ACCEPT_THRESHOLDS = {"date": 30, "confess": 75, "propose": 90}

CONFESS_LOVE = 65
CONFESS_CHANCE = 0.25
CONFESS_CHANCE_ROMANTIC_VENUE = 0.4
CONFESS_CHANCE_CAP = 0.9

AFFAIR_LOVE = 60
MISTRESS_CHANCE = 0.05
PROMISCUOUS_MISTRESS_FACTOR = 3
CHEAT_CHANCE = 0.05
CHEAT_DISCOVERY_CHANCE = 0.4

PROPOSE_LOVE = 90
PROPOSE_CHANCE = 0.1
PROPOSE_CHANCE_MARRIAGE_VENUE = 0.5
WEDDING_GIFT = 1000

INTIMACY_LOVE = 50
INTIMACY_DISCOVERY_CHANCE = 0.3
PREGNANCY_CHANCE = 0.15
PREGNANCY_DAYS = (7, 14)

VICE_EFFECTS = {"chaos", "ntr"}

# Bonds that can never turn romantic again
OFF_LIMITS = {RelationshipStatus.FAMILY.value, RelationshipStatus.EX.value}


def venue_effect(venue) -> str:
    return venue.effect if venue is not None else "none"


def venue_name(venue) -> str:
    return venue.name if venue is not None else "the street corner"


def decide_proposal(rng: random.Random, target: Resident, asker: Resident, kind: str, bonus: int = 0) -> bool:
    """
    Target's answer to a date, confession or proposal from `asker`:
    love (plus any bonus, clamped) + half the mood above 50 + noise,
    against a threshold that depends on what is being asked.
    """
    rel = target.relationships.get(asker.id)
    if rel is None:
        return False
    love = max(0, min(100, rel.love + bonus))
    score = love + (target.happiness - 50) / 2 + rng.randint(-10, 10)
    return score >= ACCEPT_THRESHOLDS[kind]


# ─── Pregnancy ────────────────────────────────────────────────────────────────

def maybe_conceive(town, a: Resident, b: Resident, chance: float = PREGNANCY_CHANCE,
                   committed: bool = False, use_protection_chance: float = 0.3) -> Resident | None:
    """
    One of the two may become pregnant. Contraceptives are used whenever
    the pair aren't a couple, and some of the time when they are.
    Returns the resident who became pregnant, if any.
    """
    rng = town.rng
    carrier = a if rng.random() < 0.5 else b
    other = b if carrier is a else a

    if carrier.contraceptives > 0 and (not committed or rng.random() < use_protection_chance):
        carrier.contraceptives -= 1
        return None
    if carrier.pregnancy is not None or rng.random() >= chance:
        return None

    days = rng.randint(*PREGNANCY_DAYS)
    carrier.pregnancy = Pregnancy(other_parent_id=other.id, due_time=town.now + days * MINUTES_PER_DAY)
    town.log.emit(f"🤰 {carrier.name} is pregnant! The other parent is {other.name}...", "love")
    return carrier


def expose_infidelity(town, cheater: Resident):
    """The cheater's partner finds out: the couple breaks up for good."""
    partner = town.graph.partner_of(cheater)
    if partner is None:
        return
    partner.happiness = 0
    town.graph.break_up(cheater, partner)
    town.log.emit(f"✂️ {partner.name} found out the truth! They're finished.", "love")


# ─── Encounter ────────────────────────────────────────────────────────────────

def check_romance(town, p: Resident, t: Resident, venue) -> bool:
    graph, rng = town.graph, town.rng
    p_rel, t_rel = graph.pair(p, t)
    effect = venue_effect(venue)
    where = venue_name(venue)

    if p.is_minor or t.is_minor or p_rel.status == RelationshipStatus.FAMILY:
        return False

    # Confession between two single residents
    if (
        not p.partner_id and not t.partner_id
        and p_rel.love > CONFESS_LOVE
        and p_rel.status not in COMMITTED
        and p_rel.status not in OFF_LIMITS
    ):
        chance = CONFESS_CHANCE_ROMANTIC_VENUE if effect == "romance" else CONFESS_CHANCE
        chance = min(CONFESS_CHANCE_CAP, chance * product_of(p.traits, CONFESS_MULTIPLIER))
        if rng.random() < chance:
            bonus = int(sum_of(t.traits, ACCEPT_BONUS))
            if decide_proposal(rng, t, p, "confess", bonus):
                graph.become_lovers(p, t)
                p.adjust_happiness(20)
                t.adjust_happiness(20)
                town.log.emit(f"❤️ At {where}, {p.name} worked up the courage to confess to {t.name}... and it worked!", "love")
            else:
                p.adjust_happiness(-20)
                graph.adjust_one_way(p, t, -10)
                town.log.emit(f"💔 {p.name} confessed to {t.name} but got friend-zoned...", "love")
            return True

    # Affair with someone already in a relationship
    if (
        (p.partner_id or t.partner_id)
        and p_rel.love > AFFAIR_LOVE
        and p_rel.status not in ROMANTIC
        and p_rel.status not in OFF_LIMITS
    ):
        chance = MISTRESS_CHANCE
        if p.has_trait("promiscuous") or t.has_trait("promiscuous"):
            chance *= PROMISCUOUS_MISTRESS_FACTOR
        if effect in VICE_EFFECTS and rng.random() < chance:
            if decide_proposal(rng, t, p, "confess"):
                graph.set_status(p, t, RelationshipStatus.MISTRESS)
                p.adjust_happiness(15)
                t.adjust_happiness(15)
                town.log.emit(f"💋 At {where}, {p.name} and {t.name} started a secret affair!", "love")
                return True

    # Proposal
    if p.partner_id == t.id and p_rel.love > PROPOSE_LOVE and p_rel.status != RelationshipStatus.SPOUSE:
        chance = PROPOSE_CHANCE_MARRIAGE_VENUE if effect == "marriage" else PROPOSE_CHANCE
        if rng.random() < chance:
            if decide_proposal(rng, t, p, "propose"):
                graph.marry(p, t)
                p.happiness = 100
                t.happiness = 100
                town.treasury += WEDDING_GIFT
                town.log.emit(f"💍 Congratulations! {p.name} and {t.name} are married! The whole town celebrates!", "love")
            else:
                p.adjust_happiness(-30)
                town.log.emit(f"🖐 {p.name} proposed and got turned down! {t.name} wants to wait a little longer.", "love")
            return True

    # A night together at a vice venue
    if effect == "ntr" and p_rel.love > INTIMACY_LOVE:
        committed = p_rel.status in ROMANTIC
        chance = 0.05 if committed else 0.02
        chance += (p_rel.love - INTIMACY_LOVE) / 2000
        if p.has_trait("promiscuous") or t.has_trait("promiscuous"):
            chance *= 2.5
        if p.has_trait("coward") or t.has_trait("coward"):
            chance *= 0.2
        if rng.random() < chance:
            graph.record_intimacy(p, t)
            graph.adjust_love(p, t, 3)
            p.adjust_happiness(10)
            t.adjust_happiness(10)
            town.log.emit(
                f"🔥 {p.name} and {t.name} spent the night together at {where}... ({p_rel.status}, #{p_rel.intimacy_count})",
                "love",
            )
            couple = p.partner_id == t.id or p_rel.status in COMMITTED
            maybe_conceive(town, p, t, committed=couple)
            if p.partner_id and p.partner_id != t.id and rng.random() < INTIMACY_DISCOVERY_CHANCE:
                expose_infidelity(town, p)
            return True

    # Cheating on a partner
    if p.partner_id and p.partner_id != t.id and p_rel.love > AFFAIR_LOVE and effect in VICE_EFFECTS:
        if rng.random() < CHEAT_CHANCE:
            partner = graph.partner_of(p)
            partner_name = partner.name if partner else "their partner"
            town.log.emit(f"🔥 Oh no! {p.name} cheated on {partner_name} with {t.name} at {where}!", "love")
            if rng.random() < CHEAT_DISCOVERY_CHANCE:
                expose_infidelity(town, p)
            return True

    return False


def affection_boost(town, p: Resident, t: Resident, venue) -> int:
    """Love gained by both sides from an ordinary pleasant chat."""
    rng = town.rng
    effect = venue_effect(venue)
    boost = rng.randint(2, 5)
    if effect == "romance":
        boost += 3
    if effect in VICE_EFFECTS:
        boost += 2
    if p.has_trait("social") or t.has_trait("social"):
        boost += 3
    if p.has_trait("loner") or t.has_trait("loner"):
        boost = int(boost * 0.8)
    if effect == "romance" and (p.has_trait("romantic") or t.has_trait("romantic")):
        boost += 4

    p_personality = town.catalog.personality(p.personality)
    t_personality = town.catalog.personality(t.personality)
    boost += p_personality.love_gain * 2 + t_personality.love_gain * 2
    boost = max(0, round(boost))

    p_rel, t_rel = town.graph.pair(p, t)
    if p_rel.status != RelationshipStatus.STRANGER:
        boost = int(boost * 1.3)
    if p_rel.status == RelationshipStatus.STRANGER and p_rel.love == 0:
        # a first meeting always leaves an impression
        p_rel.love = 1
        t_rel.love = 1

    town.graph.adjust_love(p, t, boost)
    logger.debug(f"💬 {p.name} ↔ {t.name} +{boost} love")
    return boost
