"""
lifetown/agents/vices.py

Drinking and desire.

A drink at a venue can leave a resident drunk for one to three hours.
While drunk they are either taken in by someone (home or the hotel) or
end up sleeping on the street, where passers-by may help, mock or take
them in.

Desire builds up over the day. Promiscuous residents above the threshold
go looking for relief: an existing friend-with-benefits, a willing new
one, a persuasion attempt, or alone. Relief lasts a while and can be
interrupted by anyone who starts talking to them.
"""

from loguru import logger

from lifetown.agents.catalog import (
    DRUNK_MULTIPLIER,
    PERSUADER_PERSONALITY_BONUS,
    PERSUADER_TRAIT_BONUS,
    TARGET_PERSONALITY_BONUS,
    TARGET_TRAIT_BONUS,
    product_of,
    sum_of,
)
from lifetown.agents.resident import Pregnancy, Resident
from lifetown.config import MINUTES_PER_DAY
from lifetown.economy.shop import record_sale
from lifetown.world.blueprints import COCKTAIL_IDS

# ─── Drinking ────────────────────────────────────────────────────────────────

COCKTAIL_FACTOR = 1.5
DRUNK_MINUTES = (60, 180)
TAKEN_IN_CHANCE = 0.7
STREET_RESCUE_CHANCE = 0.5
HOTEL_CHANCE = 0.6
DISCOVERY_CHANCE = 0.3
DRUNK_INTIMACY_CHANCE = 0.3
DRUNK_PREGNANCY_CHANCE = 0.3
DRUNK_PREGNANCY_DAYS = (7, 14)
DRUNK_FWB_CHANCE = 0.4

SLEEPING_ROUGH = "Sleeping on the street"

# ─── Desire ──────────────────────────────────────────────────────────────────

DESIRE_THRESHOLD = 70
SHY_SELF_RELIEF_CHANCE = 0.7
SEEK_FWB_CHANCE = 0.6
FALLBACK_SELF_RELIEF_CHANCE = 0.4
PERSUADE_ATTEMPT_CHANCE = 0.3
PERSUADE_THRESHOLD = 50
FWB_LOVE = 40
PERSUADE_LOVE = 30
SELF_RELIEF_MINUTES = (30, 60)
FWB_RELIEF_MINUTES = (40, 80)


def _free(resident: Resident) -> bool:
    return not resident.is_drunk and resident.interacting_with is None


def _others(town, resident: Resident) -> list[Resident]:
    return [r for r in town.residents.values() if r.id != resident.id]


# ─── Getting drunk ───────────────────────────────────────────────────────────

def drunk_chance(town, resident: Resident, product_id: str) -> float:
    """Likelihood that one drink knocks this resident over, 0-1."""
    chance = (100 - resident.alcohol_tolerance) / 100
    if product_id in COCKTAIL_IDS:
        chance *= COCKTAIL_FACTOR
    chance *= product_of(resident.traits, DRUNK_MULTIPLIER)
    chance += (town.rng.random() - 0.5) * 0.2
    return max(0.0, min(1.0, chance))


def check_drunk(town, resident: Resident, product_id: str, venue) -> bool:
    """Called after a drink is bought. Returns True if the resident got drunk."""
    if resident.is_drunk:
        return False
    if town.rng.random() >= drunk_chance(town, resident, product_id):
        return False
    resident.is_drunk = True
    resident.drunk_until = town.now + town.rng.randint(*DRUNK_MINUTES)
    resident.current_action = "Drunk"
    town.log.emit(f"🍺 {resident.name} had one too many at {venue.name} and is now drunk!", "event")
    handle_drunk_event(town, resident)
    return True


def sober_up(town, resident: Resident):
    resident.is_drunk = False
    resident.drunk_until = None
    resident.current_action = "idle"
    town.log.emit(f"☀️ {resident.name} has sobered up.", "event")


def handle_drunk_event(town, resident: Resident):
    """What happens to a drunk resident this turn."""
    rng = town.rng
    if resident.drunk_until is not None and town.now >= resident.drunk_until:
        sober_up(town, resident)
        return
    if resident.interacting_with is not None:
        return

    helpers = [r for r in _others(town, resident) if _free(r)]
    if resident.current_action == SLEEPING_ROUGH:
        if helpers and rng.random() < STREET_RESCUE_CHANCE:
            take_home_or_hotel(town, resident, rng.choice(helpers))
        return

    if helpers and rng.random() < TAKEN_IN_CHANCE:
        take_home_or_hotel(town, resident, rng.choice(helpers))
    else:
        sleep_on_street(town, resident)


def _hotel_room(town, payer: Resident):
    """The hotel and an affordable room, if the hotel can take a guest right now."""
    hotel = town.workplaces.get("hotel")
    if hotel is None or not hotel.is_built or not hotel.is_open(town.hour, town.weekday):
        return None, None
    rooms = [p for p in hotel.products if payer.money >= p.price]
    if not rooms:
        return None, None
    return hotel, town.rng.choice(rooms)


def take_home_or_hotel(town, drunk: Resident, taker: Resident):
    rng, graph = town.rng, town.graph

    graph.adjust_love(drunk, taker, rng.randint(5, 15), rng.randint(3, 10))
    graph.update_status(drunk, taker)

    hotel, room = _hotel_room(town, taker)
    at_hotel = hotel is not None and rng.random() < HOTEL_CHANCE
    if at_hotel:
        taker.spend(room.price, room.name)
        record_sale(town, hotel, room.price)
        where = f"{hotel.name} ({room.name})"
    else:
        where = f"{taker.name}'s place"

    chance = DRUNK_INTIMACY_CHANCE
    if drunk.has_trait("promiscuous") or taker.has_trait("promiscuous"):
        chance = 0.6
    if drunk.has_trait("coward") or taker.has_trait("coward"):
        chance *= 0.2
    if drunk.love_for(taker.id) > 50:
        chance += 0.2

    if rng.random() < chance:
        _drunk_night(town, drunk, taker, at_hotel, where)
    elif at_hotel:
        town.log.emit(f"🛏️ {taker.name} got {drunk.name} a room at {where} to sleep it off.", "social")
    else:
        drunk.adjust_happiness(rng.randint(5, 10))
        taker.adjust_happiness(rng.randint(3, 8))
        graph.adjust_love(drunk, taker, rng.randint(8, 15), rng.randint(5, 10))
        town.log.emit(f"🏠 {taker.name} took {drunk.name} home and looked after them all night.", "social")

    drunk.interacting_with = taker.id
    taker.interacting_with = drunk.id
    drunk.current_action = f"Sleeping it off at {where}"
    taker.current_action = f"Looking after {drunk.name}"


def _drunk_night(town, drunk: Resident, taker: Resident, at_hotel: bool, where: str):
    rng, graph = town.rng, town.graph
    drunk.adjust_happiness(rng.randint(10, 20))
    taker.adjust_happiness(rng.randint(8, 15))
    graph.record_intimacy(drunk, taker)

    if not drunk.has_trait("promiscuous"):
        # woke up regretting it
        graph.adjust_one_way(taker, drunk, -rng.randint(10, 20))
        if at_hotel:
            graph.adjust_one_way(drunk, taker, rng.randint(3, 8))
    elif rng.random() < 0.3:
        graph.adjust_one_way(taker, drunk, -rng.randint(5, 10))
    else:
        graph.adjust_love(drunk, taker, rng.randint(5, 10))
        if rng.random() < DRUNK_FWB_CHANCE:
            graph.add_fwb(drunk, taker)
            town.log.emit(f"💋 {drunk.name} and {taker.name} decided to keep seeing each other...", "love")

    town.log.emit(f"🔥 {drunk.name} and {taker.name} spent a drunken night together at {where}.", "love")

    if drunk.pregnancy is None and taker.pregnancy is None and rng.random() < DRUNK_PREGNANCY_CHANCE:
        carrier, other = (drunk, taker) if rng.random() < 0.5 else (taker, drunk)
        if carrier.contraceptives > 0:
            carrier.contraceptives -= 1
            return
        days = rng.randint(*DRUNK_PREGNANCY_DAYS)
        carrier.pregnancy = Pregnancy(other_parent_id=other.id, due_time=town.now + days * MINUTES_PER_DAY)
        town.log.emit(f"🤰 {carrier.name} is pregnant after that night with {other.name}...", "love")


def sleep_on_street(town, drunk: Resident):
    rng, graph = town.rng, town.graph
    drunk.current_action = SLEEPING_ROUGH
    drunk.adjust_happiness(-rng.randint(5, 15))

    passers = [r for r in _others(town, drunk) if _free(r)]
    if not passers or rng.random() >= DISCOVERY_CHANCE:
        town.log.emit(f"🌃 {drunk.name} passed out on the street. Nobody noticed...", "event")
        return

    passer = rng.choice(passers)
    if rng.random() < 0.5:
        take_home_or_hotel(town, drunk, passer)
    elif rng.random() < 0.5:
        graph.adjust_love(drunk, passer, rng.randint(3, 8), rng.randint(2, 5))
        drunk.adjust_happiness(rng.randint(3, 8))
        town.log.emit(f"🧥 {passer.name} found {drunk.name} on the street and covered them with a coat.", "social")
    else:
        graph.adjust_love(drunk, passer, -rng.randint(2, 5), -rng.randint(1, 3))
        town.log.emit(f"😏 {passer.name} laughed at {drunk.name} sleeping on the street.", "social")


# ─── Desire relief ───────────────────────────────────────────────────────────

def is_shy(resident: Resident) -> bool:
    return resident.personality in ("introverted", "timid") or resident.has_trait("loner")


def try_relief(town, resident: Resident) -> bool:
    """Promiscuous residents with pent-up desire look for relief. True if they found it."""
    if not resident.has_trait("promiscuous") or resident.is_relieving:
        return False
    rng = town.rng

    if is_shy(resident) and rng.random() < SHY_SELF_RELIEF_CHANCE:
        self_relief(town, resident)
        return True

    if rng.random() < SEEK_FWB_CHANCE:
        partner = find_fwb(town, resident)
        if partner is not None:
            start_fwb_relief(town, resident, partner)
            return True

    if rng.random() < FALLBACK_SELF_RELIEF_CHANCE:
        self_relief(town, resident)
        return True
    return False


def find_fwb(town, resident: Resident) -> Resident | None:
    rng = town.rng
    existing = [
        town.residents[rid] for rid in resident.fwb_ids
        if rid in town.residents and not town.residents[rid].is_relieving
    ]
    if existing:
        return rng.choice(existing)

    willing = [
        r for r in _others(town, resident)
        if r.has_trait("promiscuous") and not r.is_relieving
        and r.id not in resident.fwb_ids and resident.love_for(r.id) > FWB_LOVE
    ]
    if willing:
        partner = rng.choice(willing)
        town.graph.add_fwb(resident, partner)
        town.log.emit(f"💋 {resident.name} and {partner.name} are now friends with benefits!", "love")
        return partner

    if rng.random() < PERSUADE_ATTEMPT_CHANCE:
        targets = [
            r for r in _others(town, resident)
            if not r.has_trait("promiscuous") and not r.is_relieving
            and r.id not in resident.fwb_ids and resident.love_for(r.id) > PERSUADE_LOVE
        ]
        if targets:
            target = rng.choice(targets)
            if persuade_to_fwb(town, resident, target):
                return target
    return None


def persuasion_score(town, persuader: Resident, target: Resident) -> float:
    score = persuader.love_for(target.id) * 0.3
    score += PERSUADER_PERSONALITY_BONUS.get(persuader.personality, 0)
    score += TARGET_PERSONALITY_BONUS.get(target.personality, 0)
    score += sum_of(persuader.traits, PERSUADER_TRAIT_BONUS)
    score += sum_of(target.traits, TARGET_TRAIT_BONUS)
    score += (target.happiness - 50) * 0.2
    if target.desire > 50:
        score += (target.desire - 50) * 0.3
    score += town.rng.randint(-10, 10)
    return score


def persuade_to_fwb(town, persuader: Resident, target: Resident) -> bool:
    rng, graph = town.rng, town.graph
    if persuasion_score(town, persuader, target) >= PERSUADE_THRESHOLD:
        graph.add_fwb(persuader, target)
        graph.adjust_love(persuader, target, rng.randint(3, 8), rng.randint(3, 8))
        target.adjust_happiness(-rng.randint(3, 8))
        town.log.emit(f"💋 {persuader.name} talked {target.name} into being friends with benefits!", "love")
        return True

    graph.adjust_love(persuader, target, -rng.randint(5, 10), -rng.randint(3, 8))
    persuader.adjust_happiness(-rng.randint(3, 5))
    town.log.emit(f"🙅 {target.name} turned down {persuader.name}'s indecent proposal.", "love")
    return False


def self_relief(town, resident: Resident):
    resident.is_relieving = True
    resident.relieving_with = None
    resident.relieving_until = town.now + town.rng.randint(*SELF_RELIEF_MINUTES)
    resident.adjust_desire(-50)
    resident.self_relief_count += 1
    resident.current_action = "Taking care of themselves"
    logger.debug(f"🔞 {resident.name} relieving alone until {resident.relieving_until}")


def start_fwb_relief(town, resident: Resident, partner: Resident):
    rng = town.rng
    until = town.now + rng.randint(*FWB_RELIEF_MINUTES)
    for a, b in ((resident, partner), (partner, resident)):
        a.is_relieving = True
        a.relieving_with = b.id
        a.relieving_until = until
        a.adjust_desire(-60)
        a.intimacy_count += 1
        a.current_action = f"Busy with {b.name}"
    town.graph.adjust_love(resident, partner, rng.randint(2, 5), rng.randint(2, 5))
    town.log.emit(f"💋 {resident.name} and {partner.name} slipped away together...", "love")


def _end_relief(resident: Resident):
    resident.is_relieving = False
    resident.relieving_with = None
    resident.relieving_until = None
    resident.current_action = "idle"


def handle_relief(town, resident: Resident):
    """Finishes relief that has run its course, or breaks it off if someone interrupted."""
    if not resident.is_relieving:
        return
    rng = town.rng
    partner = town.residents.get(resident.relieving_with) if resident.relieving_with else None
    partner_engaged = partner is not None and partner.is_relieving and partner.relieving_with == resident.id

    if resident.relieving_until is not None and town.now >= resident.relieving_until:
        if partner is not None:
            if partner_engaged:
                partner.adjust_happiness(rng.randint(8, 15))
                _end_relief(partner)
            resident.adjust_happiness(rng.randint(8, 15))
            town.log.emit(f"😌 {resident.name} and {partner.name} are done and both in a better mood.", "event")
        else:
            resident.adjust_happiness(rng.randint(5, 10))
            town.log.emit(f"😌 {resident.name} feels much better now.", "event")
        _end_relief(resident)
        return

    if resident.interacting_with is not None and resident.interacting_with != resident.relieving_with:
        if partner_engaged:
            partner.adjust_happiness(-rng.randint(5, 10))
            _end_relief(partner)
        resident.adjust_happiness(-rng.randint(5, 10))
        _end_relief(resident)
        town.log.emit(f"😤 {resident.name} got interrupted and is in a foul mood.", "event")
