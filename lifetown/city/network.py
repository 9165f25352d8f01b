"""
lifetown/city/network.py

Contract between a town and the other towns it may be connected to.

The transport is not part of this package: anything that implements
RemoteTown can be plugged into Town(remote=...). Without one, a
NullRemoteTown is used and residents never travel.

Outbound: try_cross_town_consume() sends a resident to spend money in
another town's venue.
Inbound: the transport calls on_resident_arrived / on_resident_departed /
on_remote_revenue on the receiving town; each becomes a log entry, and
remote revenue is booked like any local sale.
"""

from dataclasses import dataclass, field
from typing import Protocol

from loguru import logger

from lifetown.agents.resident import Resident
from lifetown.economy.shop import record_sale

TRAVEL_CHANCE = 0.3
TRAVEL_COOLDOWN_MINUTES = (120, 240)
DEFAULT_SPEND = 10
VENUE_SPEND = {"hotel": (20, 50), "bar": (5, 15)}


@dataclass(frozen=True)
class RemoteVenue:
    id: str
    name: str


@dataclass(frozen=True)
class RemoteTownInfo:
    town_id: str
    town_name: str
    venues: tuple[RemoteVenue, ...] = field(default_factory=tuple)


class RemoteTown(Protocol):
    """What a town needs from whatever links it to other towns."""

    @property
    def connected(self) -> bool: ...

    @property
    def town_id(self) -> str | None: ...

    def list_towns(self) -> list[RemoteTownInfo]: ...

    def attempt_remote_consume(self, resident_id: str, town_id: str, venue_id: str, amount: int) -> bool: ...


class NullRemoteTown:
    """Single-player stand-in: never connected, never accepts anyone."""

    connected = False
    town_id = None

    def list_towns(self) -> list[RemoteTownInfo]:
        return []

    def attempt_remote_consume(self, resident_id: str, town_id: str, venue_id: str, amount: int) -> bool:
        return False


# ─── Outbound ────────────────────────────────────────────────────────────────

def _spend_for(rng, venue_id: str) -> int:
    span = VENUE_SPEND.get(venue_id)
    return rng.randint(*span) if span else DEFAULT_SPEND


def try_cross_town_consume(town, resident: Resident, venue_id: str | None = None) -> bool:
    """
    Sends a resident to spend money in another town. Returns True when
    the trip happened (money spent, travel cooldown started).
    """
    remote = town.remote
    if not remote.connected:
        return False
    if resident.travel_cooldown is not None and town.now < resident.travel_cooldown:
        return False
    rng = town.rng
    if rng.random() >= TRAVEL_CHANCE:
        return False

    towns = [t for t in remote.list_towns() if t.town_id != remote.town_id]
    if not towns:
        return False

    target = None
    if venue_id:
        target = next((t for t in towns if any(v.id == venue_id for v in t.venues)), None)
    if target is None:
        target = rng.choice(towns)

    venue = None
    if venue_id:
        venue = next((v for v in target.venues if v.id == venue_id), None)
    if venue is None and target.venues:
        venue = rng.choice(target.venues)
    if venue is None:
        return False

    amount = _spend_for(rng, venue.id)
    if resident.money < amount:
        return False
    if not remote.attempt_remote_consume(resident.id, target.town_id, venue.id, amount):
        logger.debug(f"🚶 {resident.name}'s trip to {target.town_name} was refused")
        return False

    resident.spend(amount, f"trip to {target.town_name}")
    resident.travel_cooldown = town.now + rng.randint(*TRAVEL_COOLDOWN_MINUTES)
    resident.current_action = f"At {venue.name} in {target.town_name}"
    town.log.emit(f"🚶 {resident.name} went to {venue.name} in {target.town_name} and spent {amount}.", "event")
    return True


# ─── Inbound ─────────────────────────────────────────────────────────────────

def on_resident_arrived(town, resident_name: str, from_town: str):
    town.log.emit(f"🚶 {resident_name} from {from_town} is visiting {town.name}.", "event")


def on_resident_departed(town, resident_name: str, to_town: str):
    town.log.emit(f"👋 {resident_name} left {town.name} for {to_town}.", "event")


def on_remote_revenue(town, visitor_name: str, from_town: str, venue_id: str, amount: int) -> bool:
    """A visitor spent money at one of our venues. False if the venue isn't open for business."""
    workplace = town.workplaces.get(venue_id)
    if workplace is None or not workplace.is_built:
        logger.warning(f"Remote revenue for unknown or unbuilt venue {venue_id!r} ignored")
        return False
    record_sale(town, workplace, amount)
    town.log.emit(
        f"💰 {visitor_name} from {from_town} spent {amount} at {workplace.name}.",
        "money",
    )
    return True
