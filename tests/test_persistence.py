"""
tests/test_persistence.py

Tests for save slots, version checks, migration of older saves and
full save / load round trips.
Run with: pytest tests/test_persistence.py -v
"""

import json
import random

import pytest

from lifetown.agents.catalog import default_catalog
from lifetown.errors import CorruptSaveError, IncompatibleSaveError
from lifetown.memory import persistence
from lifetown.memory.persistence import is_version_compatible, load_state, migrate
from lifetown.memory.slots import InMemorySlotStore, JsonFileSlotStore, slot_key
from lifetown.os.town import Town


# ─── Helpers ─────────────────────────────────────────────────────────────────

def legacy_save() -> dict:
    """A save from before workplaces had funds and residents had vices."""
    return {
        "agents": [
            {"id": "a1", "name": "Mochi", "personality": "calm", "money": 120},
            {"name": "Mambo", "personality": "brave", "job": {"workplace_id": "casino", "role": "dealer"}},
        ],
        "workplaces": [
            {"blueprint": {"id": "park"}, "is_built": True, "progress": 200},
            {"id": "bar", "progress": 120, "staff": ["a1", "ghost"]},
            {"id": "casino", "progress": 50},
        ],
        "townTreasury": 300,
        "clockMinutes": 600,
        "weekday": 4,
        "elapsedDays": 12,
    }


# ─── Slots ───────────────────────────────────────────────────────────────────

def test_slot_keys():
    assert slot_key(1) == "lifetown_save_slot1"
    with pytest.raises(ValueError):
        slot_key(0)
    with pytest.raises(ValueError):
        slot_key(6)


def test_json_file_store(tmp_path):
    store = JsonFileSlotStore(str(tmp_path))
    assert store.read(slot_key(1)) is None
    store.write(slot_key(1), '{"a": 1}')
    store.write(slot_key(3), '{"b": 2}')
    assert json.loads(store.read(slot_key(1))) == {"a": 1}
    assert sorted(store.keys()) == [slot_key(1), slot_key(3)]
    store.delete(slot_key(1))
    store.delete(slot_key(1))
    assert store.read(slot_key(1)) is None
    assert not list(tmp_path.glob("*.tmp"))


# ─── Versions ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("version, ok", [
    ("0.7.2", True),
    ("0.7.0", True),
    ("0.9.1", True),
    ("0.6.9", False),
    ("1.7.0", False),
    ("garbage", False),
    (None, True),
    ("0.0.0", True),
])
def test_version_compatibility(version, ok):
    assert is_version_compatible(version, "0.7.2", "0.7.0") is ok


def test_incompatible_save_message():
    with pytest.raises(IncompatibleSaveError) as info:
        load_state({"version": "0.6.9"}, default_catalog(), random.Random(1))
    assert str(info.value) == "save version 0.6.9 is incompatible with 0.7.2"
    assert info.value.found == "0.6.9"


# ─── Corruption ──────────────────────────────────────────────────────────────

def test_unparseable_text_is_corrupt():
    with pytest.raises(CorruptSaveError):
        load_state("{nope", default_catalog(), random.Random(1))
    with pytest.raises(CorruptSaveError):
        load_state("[1, 2, 3]", default_catalog(), random.Random(1))


def test_agents_must_be_a_list():
    with pytest.raises(CorruptSaveError):
        load_state({"agents": {"a": 1}}, default_catalog(), random.Random(1))


def test_agent_without_a_name_is_corrupt():
    data = {"agents": [{"id": "x", "personality": "calm"}]}
    with pytest.raises(CorruptSaveError):
        load_state(data, default_catalog(), random.Random(1))


@pytest.mark.parametrize("data", [
    {"version": "0.7.2", "agents": [1], "workplaces": []},
    {"version": "0.7.2", "agents": [], "workplaces": ["bar"]},
    {"agents": [None]},
])
def test_records_must_be_objects(data):
    with pytest.raises(CorruptSaveError) as info:
        load_state(data, default_catalog(), random.Random(1))
    assert "is not an object" in str(info.value)


def test_undecodable_slot_file_is_corrupt(tmp_path):
    (tmp_path / f"{slot_key(1)}.json").write_bytes(b"\xff\xfe{}")
    with pytest.raises(CorruptSaveError):
        persistence.load(JsonFileSlotStore(tmp_path), default_catalog(), random.Random(1))


@pytest.mark.parametrize("text", [
    '{"agents": [], "speedMultiplier": NaN}',
    '{"agents": [], "speedMultiplier": 5000}',
    '{"agents": [], "speedMultiplier": 0}',
])
def test_saved_speed_out_of_range_resumes_at_normal_speed(text):
    state = load_state(text, default_catalog(), random.Random(1))
    assert state.speed == 1.0
    assert any("1x" in note for note in state.notes)


def test_saved_speed_in_range_is_kept():
    state = load_state({"agents": [], "speedMultiplier": 250}, default_catalog(), random.Random(1))
    assert state.speed == 250.0


# ─── Migration ───────────────────────────────────────────────────────────────

def test_migrate_backfills_without_clobbering():
    data = legacy_save()
    data["agents"][0]["fight_count"] = 3
    migrate(data, random.Random(2))

    first, second = data["agents"]
    assert first["fight_count"] == 3
    assert second["fight_count"] == 0
    assert second["id"]
    assert 20 <= second["desire"] <= 60
    assert 30 <= second["alcohol_tolerance"] <= 90
    assert all(w["level"] == 1 and w["company_funds"] == 0 for w in data["workplaces"])


def test_migrated_defaults_are_not_shared():
    data = legacy_save()
    migrate(data, random.Random(2))
    data["agents"][0]["slacking_counts"]["bar"] = 1
    assert data["agents"][1]["slacking_counts"] == {}


def test_legacy_save_loads():
    state = load_state(legacy_save(), default_catalog(), random.Random(3))

    assert state.version == "0.0.0"
    assert list(state.workplaces) == ["park", "bar"]
    assert state.workplaces["park"].is_built
    assert state.workplaces["bar"].progress == 120
    # ghost staff and the unknown casino are dropped
    assert state.workplaces["bar"].staff == ["a1"]
    assert state.last_immigration_day == 12
    assert (state.minutes, state.weekday, state.treasury) == (600, 4, 300)
    assert state.observer_name
    assert any(state.observer_name in note for note in state.notes)

    mambo = next(r for r in state.residents.values() if r.name == "Mambo")
    assert mambo.job is None
    assert state.residents["a1"].money == 120


def test_save_without_workplaces_gets_the_park():
    state = load_state({"version": "0.7.2", "agents": []}, default_catalog(), random.Random(3))
    assert [w.id for w in state.workplaces.values() if w.is_built] == ["park"]
    assert len(state.workplaces) == len(default_catalog().blueprints)
    assert state.notes


def test_zero_values_survive_loading():
    data = {"version": "0.7.2", "agents": [], "clockMinutes": 0, "weekday": 0, "observerName": "Owl"}
    state = load_state(data, default_catalog(), random.Random(3))
    assert state.minutes == 0
    assert state.weekday == 0
    assert state.notes == ["The save had no buildings; the town starts over with just the park."]


# ─── Round trip ──────────────────────────────────────────────────────────────

def test_round_trip_after_a_busy_week():
    store = InMemorySlotStore()
    town = Town.new_game(seed=12, store=store, observer_name="Tester", speed=5)
    for _ in range(200):
        town.tick()
    persistence.save(town, store, 1)

    state = persistence.load(store, town.catalog, random.Random(0), 1)

    assert state.version == "0.7.2"
    assert {rid: r.model_dump() for rid, r in state.residents.items()} == {
        rid: r.model_dump() for rid, r in town.residents.items()
    }
    assert {wid: w.model_dump() for wid, w in state.workplaces.items()} == {
        wid: w.model_dump() for wid, w in town.workplaces.items()
    }
    assert state.treasury == town.treasury
    assert (state.minutes, state.weekday, state.elapsed_days) == (town.minutes, town.weekday, town.elapsed_days)
    assert state.speed == 5.0
    assert state.observer_name == "Tester"
    assert state.notes == []


def test_empty_slot_loads_nothing():
    assert persistence.load(InMemorySlotStore(), default_catalog(), random.Random(0), 2) is None
