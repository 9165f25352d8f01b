"""
tests/test_town.py

Tests for the scheduler: clock, day rollover, hourly passes, settings
and the session helpers around saving.
Run with: pytest tests/test_town.py -v
"""

import json

import pytest

from lifetown.agents.behaviors import NARRATION
from lifetown.agents.resident import Resident
from lifetown.errors import InvalidSettingError
from lifetown.memory.slots import InMemorySlotStore, JsonFileSlotStore, slot_key
from lifetown.os.town import Town, validate_speed


# ─── Helpers ─────────────────────────────────────────────────────────────────

def make_town(seed: int = 21, **kwargs) -> Town:
    kwargs.setdefault("observer_name", "Tester")
    return Town(seed=seed, **kwargs)


def make_resident(town: Town, name: str, **fields) -> Resident:
    fields.setdefault("personality", "calm")
    r = Resident(id=f"id-{name.lower()}", name=name, **fields)
    town.add_resident(r)
    return r


# ─── Clock ───────────────────────────────────────────────────────────────────

def test_new_town_starts_at_eight_on_weekday_one():
    town = make_town()
    assert (town.minutes, town.weekday, town.elapsed_days) == (480, 1, 0)
    assert town.now == 480
    assert town.hour == 8


def test_speed_two_advances_twenty_minutes():
    town = make_town()
    assert town.set_speed(2) is True
    town.tick()
    assert town.minutes == 500


def test_speed_outside_range_is_rejected():
    town = make_town()
    assert town.set_speed(1500) is False
    assert town.set_speed(0.05) is False
    assert town.set_speed("fast") is False
    assert town.speed == 1.0
    assert town.log.latest(1)[0].category == "error"


def test_validate_speed_bounds():
    assert validate_speed(0.1) == 0.1
    assert validate_speed(1000) == 1000.0
    with pytest.raises(InvalidSettingError):
        validate_speed(1000.5)
    with pytest.raises(InvalidSettingError):
        validate_speed(float("nan"))


def test_non_finite_speed_is_rejected():
    town = make_town()
    assert town.set_speed("nan") is False
    assert town.set_speed(float("inf")) is False
    assert town.speed == 1.0
    town.tick()
    assert town.minutes == 490


def test_day_rollover():
    town = make_town()
    bar = town.workplaces["bar"]
    bar.is_built = True
    bar.total_revenue = 30
    bar.daily_staff_income = 27
    town.minutes = 1430

    town.tick()

    assert town.minutes == 0
    assert town.weekday == 2
    assert town.elapsed_days == 1
    assert town.now == 1440
    assert bar.revenue_history == [30]
    assert bar.staff_income_history == [27]
    assert bar.daily_staff_income == 0


def test_weekday_wraps_to_sunday():
    town = make_town()
    town.weekday = 6
    town.minutes = 1435
    town.tick()
    assert town.weekday == 0


def test_remainder_past_midnight_is_dropped():
    town = make_town(speed=5)
    town.minutes = 1420
    town.tick()
    assert town.minutes == 0


def test_immigrant_arrives_every_five_days():
    town = make_town()
    town.elapsed_days = 3
    town.minutes = 1430
    town.tick()
    assert not town.residents

    town.minutes = 1430
    town.tick()
    assert town.elapsed_days == 5
    assert len(town.residents) == 1
    assert town.last_immigration_day == 5
    newcomer = next(iter(town.residents.values()))
    assert newcomer.name in town.catalog.reserved_names


def test_credibility_recovers_on_the_hour():
    town = make_town()
    low = make_resident(town, "Mochi", credibility=40)
    high = make_resident(town, "Mambo", credibility=70)
    town.minutes = 530
    town.tick()
    assert town.minutes == 540
    assert low.credibility == 41
    assert high.credibility == 70


def test_one_action_per_whole_speed_unit():
    town = Town.new_game(seed=3, observer_name="Tester", speed=3)
    actions = town.tick()
    assert len(actions) == 3
    assert set(actions) <= set(NARRATION)


def test_slow_speed_still_acts_once():
    town = Town.new_game(seed=3, observer_name="Tester", speed=0.5)
    actions = town.tick()
    assert len(actions) == 1
    assert town.minutes == 485


def test_empty_town_ticks_quietly():
    town = make_town()
    for _ in range(300):
        assert town.tick() == []


def test_long_run_keeps_invariants():
    town = Town.new_game(seed=8, observer_name="Tester", speed=10)
    for _ in range(2000):
        town.tick()
    for w in town.workplaces.values():
        assert len(w.staff) <= len(w.roles)
        assert len(w.revenue_history) <= 30
    for r in town.residents.values():
        assert 0 <= r.happiness <= 100
        assert r.money >= 0
        assert 0 <= r.desire <= 100
        assert 0 <= r.credibility <= 100
        for other_id, rel in r.relationships.items():
            assert 0 <= rel.love <= 100
            assert town.residents[other_id].relationships[r.id].status == rel.status
        if r.job is not None:
            assert r.id in town.workplaces[r.job.workplace_id].staff


# ─── Autosave ────────────────────────────────────────────────────────────────

def test_autosave_after_fifteen_seconds_of_ticks():
    store = InMemorySlotStore()
    town = make_town(store=store)
    for _ in range(9):
        town.tick()
    assert store.read(slot_key(1)) is None
    town.tick()
    assert json.loads(store.read(slot_key(1)))["clockMinutes"] == town.minutes


# ─── Settings ────────────────────────────────────────────────────────────────

def test_rename_town():
    town = make_town()
    assert town.rename_town("   ") is False
    assert town.name == "Catnip Town"
    assert town.rename_town("  Harbour  ") is True
    assert town.name == "Harbour"


def test_observer_name_length_limit():
    town = make_town()
    assert town.set_observer_name("x" * 21) is False
    assert town.set_observer_name("Owl") is True
    assert town.observer_name == "Owl"


def test_generated_observer_name():
    town = Town(seed=1)
    assert town.observer_name


def test_slot_range():
    town = make_town()
    assert town.set_slot(5) is True
    assert town.set_slot(6) is False
    assert town.slot == 5
    with pytest.raises(InvalidSettingError):
        Town(slot=0)


# ─── Sessions ────────────────────────────────────────────────────────────────

def test_new_game_with_custom_founders():
    names = [f"Cat{i}" for i in range(12)]
    town = Town.new_game(names=names, seed=2, observer_name="Tester")
    assert sorted(r.name for r in town.residents.values()) == sorted(names)
    assert town.custom_names == names


def test_short_custom_list_falls_back_to_reserved_names():
    town = Town.new_game(names=["Solo"], seed=2, observer_name="Tester")
    assert {r.name for r in town.residents.values()} == set(town.catalog.reserved_names)


def test_load_or_new_on_empty_slot_founds_a_town():
    town = Town.load_or_new(InMemorySlotStore(), seed=4, observer_name="Tester")
    assert len(town.residents) == 12
    assert town.workplaces["park"].is_built


def test_load_or_new_resumes_a_save():
    store = InMemorySlotStore()
    first = Town.new_game(seed=4, store=store, observer_name="Tester")
    for _ in range(50):
        first.tick()
    assert first.save() is True

    second = Town.load_or_new(store, seed=99)
    assert second.now == first.now
    assert set(second.residents) == set(first.residents)
    assert second.observer_name == "Tester"


def test_load_or_new_recovers_from_a_corrupt_save():
    store = InMemorySlotStore()
    store.write(slot_key(1), "{definitely not json")
    town = Town.load_or_new(store, seed=4, observer_name="Tester")
    assert len(town.residents) == 12
    errors = town.log.latest(5, "error")
    assert errors and "save corrupt" in errors[0].message


def test_load_or_new_recovers_from_an_incompatible_save():
    store = InMemorySlotStore()
    store.write(slot_key(1), json.dumps({"version": "2.0.0", "agents": []}))
    town = Town.load_or_new(store, seed=4, observer_name="Tester")
    assert len(town.residents) == 12
    assert "incompatible" in town.log.latest(5, "error")[0].message


@pytest.mark.parametrize("text", [
    '{"version": "0.7.2", "agents": [1], "workplaces": []}',
    '{"version": "0.7.2", "agents": [], "workplaces": ["bar"]}',
])
def test_load_or_new_recovers_from_malformed_records(text):
    store = InMemorySlotStore()
    store.write(slot_key(1), text)
    town = Town.load_or_new(store, seed=4, observer_name="Tester")
    assert len(town.residents) == 12
    assert "save corrupt" in town.log.latest(5, "error")[0].message


def test_load_or_new_recovers_from_an_undecodable_file(tmp_path):
    (tmp_path / f"{slot_key(1)}.json").write_bytes(b"\xff\xfe")
    town = Town.load_or_new(JsonFileSlotStore(tmp_path), seed=4, observer_name="Tester")
    assert len(town.residents) == 12
    assert "save corrupt" in town.log.latest(5, "error")[0].message


def test_manual_save_logs_and_writes():
    store = InMemorySlotStore()
    town = make_town(store=store, slot=2)
    assert town.save() is True
    assert store.keys() == [slot_key(2)]
    assert town.log.latest(1)[0].message == "💾 Saved"


def test_export_then_import(tmp_path):
    town = Town.new_game(seed=6, observer_name="Tester")
    for _ in range(30):
        town.tick()
    path = town.export_save(tmp_path / "town.json")
    exported = json.loads(path.read_text(encoding="utf-8"))
    assert exported["gameName"] == "Lifetown"
    assert "exportTime" in exported

    other = make_town(seed=1)
    assert other.import_save(path) is True
    assert set(other.residents) == set(town.residents)
    assert other.store.read(slot_key(1)) is not None


def test_import_rejects_non_json_files(tmp_path):
    path = tmp_path / "town.txt"
    path.write_text("{}", encoding="utf-8")
    town = make_town()
    assert town.import_save(path) is False
    assert town.log.latest(1)[0].category == "error"


def test_import_reports_unreadable_files(tmp_path):
    town = make_town()
    garbled = tmp_path / "garbled.json"
    garbled.write_bytes(b"\xff\xfe")
    malformed = tmp_path / "malformed.json"
    malformed.write_text('{"version": "0.7.2", "agents": ["Mochi"]}', encoding="utf-8")

    for path in (garbled, malformed):
        assert town.import_save(path) is False
        assert town.log.latest(1)[0].message.startswith("❌ Import failed")
    assert town.residents == {}


def test_reset_wipes_slot_and_refounds():
    store = InMemorySlotStore()
    town = Town.new_game(seed=6, store=store, observer_name="Tester")
    town.rename_town("Harbour")
    for _ in range(30):
        town.tick()
    town.save()

    town.reset()

    assert store.read(slot_key(1)) is None
    assert town.name == "Catnip Town"
    assert town.now == 480
    assert len(town.residents) == 12


def test_reset_can_keep_customisation():
    names = [f"Cat{i}" for i in range(12)]
    town = Town.new_game(names=names, seed=6, observer_name="Tester")
    town.rename_town("Harbour")
    town.reset(preserve_customization=True)
    assert town.name == "Harbour"
    assert sorted(r.name for r in town.residents.values()) == sorted(names)


def test_reroll_residents():
    town = Town.new_game(seed=6, observer_name="Tester")
    assert town.reroll_residents() == 12
    for r in town.residents.values():
        for i, t in enumerate(r.traits):
            assert not town.catalog.conflicts_with(r.traits[:i], t)
    assert make_town().reroll_residents() == 0
