"""
lifetown/memory/persistence.py

Save / load for a whole town.

A save is one JSON document:

    {
      "version": "0.7.2",
      "savedAt": "2026-01-01T12:00:00+00:00",
      "agents": [...],            Resident.model_dump()
      "workplaces": [...],        Workplace.model_dump(), blueprint re-linked by id
      "townTreasury": 0,
      "clockMinutes": 480,
      "weekday": 1,
      "elapsedDays": 0,
      "speedMultiplier": 1,
      "lastImmigrationDay": 0,
      "townName": "Catnip Town",
      "customResidentNames": [],
      "observerName": "..."
    }

Loading checks the version first (same major, minor at least the minimum
supported one; saves without a version are treated as legacy and
accepted), then backfills fields older saves don't have before handing
the records to pydantic for validation.
"""

import copy
import json
import math
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone

from loguru import logger
from pydantic import ValidationError

from lifetown.agents.catalog import Catalog
from lifetown.agents.factory import STARTING_DESIRE, STARTING_TOLERANCE, generate_name, new_id
from lifetown.agents.resident import Resident
from lifetown.config import (
    DEFAULT_TOWN_NAME,
    GAME_VERSION,
    MAX_SPEED,
    MIN_SPEED,
    MIN_SUPPORTED_VERSION,
    START_OF_DAY_MINUTES,
    START_WEEKDAY,
)
from lifetown.errors import CorruptSaveError, IncompatibleSaveError
from lifetown.memory.slots import SlotStore, slot_key
from lifetown.world.workplace import BASE_SALARY, Workplace, fresh_workplaces

LEGACY_VERSION = "0.0.0"

# Fields added after the first public saves, with the value an old save gets
WORKPLACE_DEFAULTS = {
    "company_funds": 0,
    "level": 1,
    "base_salary": BASE_SALARY,
    "staff_income_history": [],
    "daily_staff_income": 0,
}

RESIDENT_DEFAULTS = {
    "relationships": {},
    "income": {"work": 0, "odd_job": 0, "streetwalking": 0, "construction": 0, "total": 0},
    "slacking_counts": {},
    "job_satisfaction": 70.0,
    "fight_count": 0,
    "total_sleep_hours": 0.0,
    "is_relieving": False,
    "fwb_ids": [],
    "self_relief_count": 0,
    "intimacy_count": 0,
    "is_drunk": False,
    "workplace_income": {},
}

# Rolled per resident, like a newcomer's
RESIDENT_RANDOM_DEFAULTS = {
    "desire": STARTING_DESIRE,
    "alcohol_tolerance": STARTING_TOLERANCE,
}


@dataclass
class SaveState:
    """Everything a Town needs to resume, already validated."""
    version: str
    residents: dict[str, Resident]
    workplaces: dict[str, Workplace]
    treasury: int = 0
    minutes: int = START_OF_DAY_MINUTES
    weekday: int = START_WEEKDAY
    elapsed_days: int = 0
    speed: float = 1.0
    last_immigration_day: int = 0
    town_name: str = DEFAULT_TOWN_NAME
    custom_names: list[str] = field(default_factory=list)
    observer_name: str = ""
    notes: list[str] = field(default_factory=list)


# ─── Versions ────────────────────────────────────────────────────────────────

def _major_minor(version: str) -> tuple[int, int]:
    parts = str(version).split(".")
    if len(parts) < 2:
        raise ValueError(f"not a version: {version!r}")
    return int(parts[0]), int(parts[1])


def is_version_compatible(
    version: str | None,
    current: str = GAME_VERSION,
    minimum: str = MIN_SUPPORTED_VERSION,
) -> bool:
    if not version or version == LEGACY_VERSION:
        return True
    try:
        major, minor = _major_minor(version)
    except ValueError:
        return False
    current_major, _ = _major_minor(current)
    _, min_minor = _major_minor(minimum)
    return major == current_major and minor >= min_minor


# ─── Serialize ───────────────────────────────────────────────────────────────

def serialize(town) -> dict:
    return {
        "version": GAME_VERSION,
        "savedAt": datetime.now(timezone.utc).isoformat(),
        "agents": [r.model_dump(mode="json") for r in town.residents.values()],
        "workplaces": [w.model_dump(mode="json") for w in town.workplaces.values()],
        "townTreasury": town.treasury,
        "clockMinutes": town.minutes,
        "weekday": town.weekday,
        "elapsedDays": town.elapsed_days,
        "speedMultiplier": town.speed,
        "lastImmigrationDay": town.last_immigration_day,
        "townName": town.name,
        "customResidentNames": list(town.custom_names),
        "observerName": town.observer_name,
    }


def save(town, store: SlotStore, slot: int = 1) -> str:
    """Writes the town to a slot and returns the slot key."""
    key = slot_key(slot)
    store.write(key, json.dumps(serialize(town), ensure_ascii=False))
    return key


# ─── Migration ───────────────────────────────────────────────────────────────

def _backfill(record: dict, defaults: dict):
    for name, value in defaults.items():
        if record.get(name) is None:
            record[name] = copy.deepcopy(value)


def migrate(data: dict, rng: random.Random) -> dict:
    """
    Fills in everything an older save may be missing. Works in place and
    returns the same dict.
    """
    for w in data.get("workplaces") or []:
        _backfill(w, WORKPLACE_DEFAULTS)

    for a in data.get("agents") or []:
        _backfill(a, RESIDENT_DEFAULTS)
        for name, bounds in RESIDENT_RANDOM_DEFAULTS.items():
            if a.get(name) is None:
                a[name] = rng.randint(*bounds)
        if not a.get("id"):
            a["id"] = new_id(rng)
    return data


# ─── Load ────────────────────────────────────────────────────────────────────

def _relink_workplaces(records: list[dict], catalog: Catalog) -> dict[str, Workplace]:
    workplaces = {}
    for record in records:
        bp_ref = record.get("blueprint")
        bp_id = bp_ref.get("id") if isinstance(bp_ref, dict) else None
        bp_id = bp_id or record.get("id")
        blueprint = catalog.blueprint(bp_id) if bp_id else None
        if blueprint is None:
            logger.warning(f"⚠️  Dropping unknown workplace {bp_id!r} from save")
            continue
        fields = {k: v for k, v in record.items() if k not in ("blueprint", "id")}
        workplaces[blueprint.id] = Workplace(id=blueprint.id, blueprint=blueprint, **fields)

    # Keep blueprint order so hiring and building passes run in the same order as a new town
    order = [bp.id for bp in catalog.blueprints]
    return {wid: workplaces[wid] for wid in order if wid in workplaces}


def _drop_dangling(residents: dict[str, Resident], workplaces: dict[str, Workplace]):
    """Jobs at dropped workplaces and roster entries for missing residents."""
    for r in residents.values():
        if r.job is not None and r.job.workplace_id not in workplaces:
            logger.warning(f"⚠️  {r.name} worked at missing workplace {r.job.workplace_id}; now unemployed")
            r.job = None
        if r.escort_at is not None and r.escort_at not in workplaces:
            r.escort_at = None
    for w in workplaces.values():
        w.staff = [sid for sid in w.staff if sid in residents]
        w.escorts = [sid for sid in w.escorts if sid in residents]


def _value(data: dict, key: str, default):
    value = data.get(key)
    return default if value is None else value


def _require_objects(records: list | None, what: str):
    for i, record in enumerate(records or []):
        if not isinstance(record, dict):
            raise CorruptSaveError(f"{what}[{i}] is not an object, got {type(record).__name__}")


def _speed(data: dict, notes: list[str]) -> float:
    """A speed outside the settable range (NaN included) resumes at 1x."""
    speed = float(_value(data, "speedMultiplier", 1))
    if math.isfinite(speed) and MIN_SPEED <= speed <= MAX_SPEED:
        return speed
    logger.warning(f"⚠️  Save had speed {speed!r}; resuming at 1x")
    notes.append("⏱️ The saved speed was out of range; time runs at 1x again.")
    return 1.0


def parse(text: str) -> dict:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise CorruptSaveError(str(e)) from e
    if not isinstance(data, dict):
        raise CorruptSaveError(f"expected an object, got {type(data).__name__}")
    return data


def load_state(data: dict | str, catalog: Catalog, rng: random.Random) -> SaveState:
    """
    Turns a save document into a SaveState.

    Raises IncompatibleSaveError for a version this build can't read and
    CorruptSaveError for anything malformed.
    """
    if isinstance(data, str):
        data = parse(data)
    version = data.get("version") or LEGACY_VERSION
    if not is_version_compatible(version):
        raise IncompatibleSaveError(str(version), GAME_VERSION)

    agents = data.get("agents")
    if agents is not None and not isinstance(agents, list):
        raise CorruptSaveError("agents is not a list")
    workplace_records = data.get("workplaces")
    if workplace_records is not None and not isinstance(workplace_records, list):
        raise CorruptSaveError("workplaces is not a list")
    _require_objects(agents, "agents")
    _require_objects(workplace_records, "workplaces")

    notes = []

    try:
        migrate(data, rng)
        residents = {}
        for record in agents or []:
            resident = Resident.model_validate(record)
            residents[resident.id] = resident
        if workplace_records:
            workplaces = _relink_workplaces(workplace_records, catalog)
        else:
            workplaces = fresh_workplaces(catalog.blueprints)
            notes.append("The save had no buildings; the town starts over with just the park.")
    except (ValidationError, TypeError, AttributeError) as e:
        raise CorruptSaveError(str(e)) from e

    _drop_dangling(residents, workplaces)

    elapsed_days = int(_value(data, "elapsedDays", 0))
    last_immigration = data.get("lastImmigrationDay")
    observer = data.get("observerName")
    if not observer:
        observer = f"{generate_name(rng, set())}{rng.randint(1, 999)}"
        notes.append(f"👁️ Welcome, observer {observer}!")

    try:
        state = SaveState(
            version=version,
            residents=residents,
            workplaces=workplaces,
            treasury=int(_value(data, "townTreasury", 0)),
            minutes=int(_value(data, "clockMinutes", START_OF_DAY_MINUTES)),
            weekday=int(_value(data, "weekday", START_WEEKDAY)),
            elapsed_days=elapsed_days,
            speed=_speed(data, notes),
            last_immigration_day=elapsed_days if last_immigration is None else int(last_immigration),
            town_name=data.get("townName") or DEFAULT_TOWN_NAME,
            custom_names=list(data.get("customResidentNames") or []),
            observer_name=observer,
            notes=notes,
        )
    except (TypeError, ValueError) as e:
        raise CorruptSaveError(str(e)) from e

    logger.info(f"📂 Loaded save v{version}: {len(residents)} residents, {len(workplaces)} workplaces")
    return state


def load(store: SlotStore, catalog: Catalog, rng: random.Random, slot: int = 1) -> SaveState | None:
    """None when the slot is empty. Raises the same errors as load_state."""
    try:
        text = store.read(slot_key(slot))
    except UnicodeDecodeError as e:
        raise CorruptSaveError(str(e)) from e
    if text is None:
        return None
    return load_state(text, catalog, rng)
