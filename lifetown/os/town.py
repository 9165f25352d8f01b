"""
lifetown/os/town.py

The engine session. One Town owns the clock, the residents, the
workplaces and every subsystem, and advances the simulation one tick at
a time.

Each tick:
    1. Advance the clock by floor(10 × speed) minutes. Crossing midnight
       closes the books, starts a new weekday and may bring an immigrant.
    2. On the hour: elections and hiring, credibility recovery,
       auto-upgrades, due pregnancies, robberies, pocket money. At 00:00
       also aging, death and emigration.
    3. max(1, floor(speed)) random residents each take one action.
    4. Autosave once enough wall-clock time has accumulated.

Nothing in a tick raises. Settings and save files coming from outside
are checked at the boundary methods, which turn problems into an
"error" entry in the event log.

Usage:
    town = Town.load_or_new(JsonFileSlotStore("saves"))
    town.run(days=7)
"""

import json
import math
import random
import time
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from lifetown.agents.behaviors import decide_and_act
from lifetown.agents.births import check_pregnancies
from lifetown.agents.catalog import Catalog, default_catalog
from lifetown.agents.factory import generate_name, spawn_founders
from lifetown.agents.relationships import RelationshipGraph
from lifetown.agents.resident import Resident
from lifetown.agents.traits import roll_starting_traits
from lifetown.city.elections import run_elections_and_hiring
from lifetown.city.event_log import EventLog, format_clock
from lifetown.city.network import NullRemoteTown, RemoteTown
from lifetown.config import (
    AUTOSAVE_INTERVAL_SECONDS,
    BASE_MINUTES_PER_TICK,
    DEFAULT_SPEED,
    DEFAULT_TOWN_NAME,
    MAX_OBSERVER_NAME_LENGTH,
    MAX_SPEED,
    MIN_SPEED,
    MINUTES_PER_DAY,
    SAVE_SLOTS,
    SEED,
    START_OF_DAY_MINUTES,
    START_WEEKDAY,
    TICK_INTERVAL_SECONDS,
)
from lifetown.economy.projects import ProjectSystem
from lifetown.errors import InvalidSettingError, SaveError
from lifetown.memory import persistence
from lifetown.memory.persistence import SaveState
from lifetown.memory.slots import InMemorySlotStore, SlotStore, slot_key
from lifetown.os.population import check_age_and_death, check_emigration, check_immigration
from lifetown.os.town_events import check_allowance, check_robbery, regen_credibility
from lifetown.world.workplace import fresh_workplaces

console = Console()

WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
GAME_NAME = "Lifetown"
MAX_TOWN_NAME_LENGTH = 30


# ─── Setting checks ──────────────────────────────────────────────────────────

def validate_speed(value) -> float:
    try:
        speed = float(value)
    except (TypeError, ValueError):
        raise InvalidSettingError(f"speed must be a number, got {value!r}") from None
    if not math.isfinite(speed):
        raise InvalidSettingError(f"speed must be a finite number, got {value!r}")
    if speed < MIN_SPEED:
        raise InvalidSettingError(f"speed must be at least {MIN_SPEED}")
    if speed > MAX_SPEED:
        raise InvalidSettingError(f"speed can't go above {MAX_SPEED:g}x")
    return speed


def validate_name(value, what: str, max_length: int) -> str:
    name = str(value or "").strip()
    if not name:
        raise InvalidSettingError(f"{what} can't be blank")
    if len(name) > max_length:
        raise InvalidSettingError(f"{what} can't be longer than {max_length} characters")
    return name


class Town:

    def __init__(
        self,
        catalog: Catalog | None = None,
        seed: int | None = SEED,
        rng: random.Random | None = None,
        store: SlotStore | None = None,
        remote: RemoteTown | None = None,
        name: str = DEFAULT_TOWN_NAME,
        observer_name: str | None = None,
        speed: float = DEFAULT_SPEED,
        slot: int = 1,
    ):
        self.catalog = catalog or default_catalog()
        self.rng = rng or random.Random(seed)
        self.store = store if store is not None else InMemorySlotStore()
        self.remote = remote or NullRemoteTown()
        if not 1 <= slot <= SAVE_SLOTS:
            raise InvalidSettingError(f"save slot must be between 1 and {SAVE_SLOTS}")
        self.slot = slot

        self.name = name
        self.observer_name = observer_name or f"{generate_name(self.rng, set())}{self.rng.randint(1, 999)}"
        self.custom_names: list[str] = []

        # Clock
        self.minutes = START_OF_DAY_MINUTES
        self.weekday = START_WEEKDAY
        self.elapsed_days = 0
        self.speed = validate_speed(speed)

        # World
        self.residents: dict[str, Resident] = {}
        self.workplaces = fresh_workplaces(self.catalog.blueprints)
        self.treasury = 0
        self.last_immigration_day = 0

        # Subsystems
        self.log = EventLog(clock=lambda: self.minutes)
        self.graph = RelationshipGraph(self.residents)
        self.projects = ProjectSystem(self)

        self._autosave_elapsed = 0.0
        self.ticks = 0

    # ─── Construction ────────────────────────────────────────────────────────

    @classmethod
    def new_game(cls, names: list[str] | None = None, **kwargs) -> "Town":
        town = cls(**kwargs)
        town.found(names)
        return town

    @classmethod
    def load_or_new(cls, store: SlotStore, slot: int = 1, **kwargs) -> "Town":
        """Resumes the slot if it holds a readable save, otherwise founds a new town."""
        town = cls(store=store, slot=slot, **kwargs)
        try:
            state = persistence.load(store, town.catalog, town.rng, slot)
        except SaveError as e:
            logger.warning(f"⚠️  Slot {slot} could not be loaded: {e}")
            town.found()
            town.log.emit(f"❌ Couldn't load the save ({e}). A new town was founded instead.", "error")
            return town

        if state is None:
            town.found()
        else:
            town.restore(state)
            town.log.emit("📂 Save loaded. Welcome back!", "info")
        return town

    def found(self, names: list[str] | None = None):
        """Moves the founding cast in. A full set of custom names replaces the reserved ones."""
        if names and len(names) == len(self.catalog.reserved_names):
            self.custom_names = [validate_name(n, "resident name", MAX_OBSERVER_NAME_LENGTH) for n in names]
        for resident in spawn_founders(self.rng, self.catalog, self.now, self.custom_names or None):
            self.residents[resident.id] = resident
        self.log.emit(f"🏙️ {self.name} was founded! {len(self.residents)} residents moved in.", "event")
        logger.info(f"🏙️  {self.name} founded with {len(self.residents)} residents")

    def restore(self, state: SaveState):
        self.residents.clear()
        self.residents.update(state.residents)
        self.workplaces = state.workplaces
        self.treasury = state.treasury
        self.minutes = state.minutes
        self.weekday = state.weekday
        self.elapsed_days = state.elapsed_days
        self.speed = state.speed
        self.last_immigration_day = state.last_immigration_day
        self.name = state.town_name
        self.custom_names = list(state.custom_names)
        self.observer_name = state.observer_name
        for note in state.notes:
            self.log.emit(note, "info")

    # ─── Clock ───────────────────────────────────────────────────────────────

    @property
    def now(self) -> int:
        """Absolute game minute since the town was founded."""
        return self.elapsed_days * MINUTES_PER_DAY + self.minutes

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def day_name(self) -> str:
        return WEEKDAYS[self.weekday]

    # ─── Tick ────────────────────────────────────────────────────────────────

    def tick(self) -> list[str]:
        """One unit of simulated work. Returns the labels of the actions taken."""
        self.ticks += 1
        self.minutes += int(BASE_MINUTES_PER_TICK * self.speed)
        if self.minutes >= MINUTES_PER_DAY:
            self._roll_over_day()

        if self.minutes % 60 == 0:
            self._on_the_hour()

        actions = []
        for _ in range(max(1, int(self.speed))):
            if not self.residents:
                break
            actor = self.rng.choice(list(self.residents.values()))
            actions.append(decide_and_act(self, actor))

        self._autosave_elapsed += TICK_INTERVAL_SECONDS
        if self._autosave_elapsed >= AUTOSAVE_INTERVAL_SECONDS:
            self.request_save()
            self._autosave_elapsed = 0.0
        return actions

    def _roll_over_day(self):
        for workplace in self.workplaces.values():
            workplace.close_books(self.elapsed_days)
        self.minutes = 0
        self.weekday = (self.weekday + 1) % 7
        self.elapsed_days += 1
        self.log.emit(f"🌅 A new day begins! Today is {self.day_name}.", "info")
        logger.info(f"🌅 Day {self.elapsed_days} ({self.day_name}) | population {len(self.residents)}")
        check_immigration(self)

    def _on_the_hour(self):
        run_elections_and_hiring(self)
        regen_credibility(self)
        self.projects.check_auto_upgrade()
        check_pregnancies(self)
        check_robbery(self)
        check_allowance(self)
        if self.minutes == 0:
            check_age_and_death(self)
            check_emigration(self)

    # ─── Settings ────────────────────────────────────────────────────────────

    def set_speed(self, value) -> bool:
        try:
            self.speed = validate_speed(value)
        except InvalidSettingError as e:
            self.log.emit(f"❌ {e}", "error")
            return False
        self.log.emit(f"⏱️ Time now runs at {self.speed:g}x", "info")
        return True

    def rename_town(self, name) -> bool:
        try:
            self.name = validate_name(name, "town name", MAX_TOWN_NAME_LENGTH)
        except InvalidSettingError as e:
            self.log.emit(f"❌ {e}", "error")
            return False
        self.log.emit(f"🏷️ The town is now called {self.name}.", "info")
        self.request_save()
        return True

    def set_observer_name(self, name) -> bool:
        try:
            self.observer_name = validate_name(name, "observer name", MAX_OBSERVER_NAME_LENGTH)
        except InvalidSettingError as e:
            self.log.emit(f"❌ {e}", "error")
            return False
        self.log.emit(f"👁️ Observer is now {self.observer_name}.", "info")
        self.request_save()
        return True

    def set_slot(self, slot: int) -> bool:
        if not 1 <= slot <= SAVE_SLOTS:
            self.log.emit(f"❌ Save slot must be between 1 and {SAVE_SLOTS}", "error")
            return False
        self.slot = slot
        return True

    def add_resident(self, resident: Resident):
        """Newcomers start as strangers to everyone already here."""
        self.graph.introduce(resident)
        self.residents[resident.id] = resident

    # ─── Saving ──────────────────────────────────────────────────────────────

    def request_save(self):
        """Silent autosave. Failures are reported, never raised."""
        try:
            persistence.save(self, self.store, self.slot)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"⚠️  Autosave to slot {self.slot} failed: {e}")
            self.log.emit(f"❌ Autosave failed: {e}", "error")

    def save(self) -> bool:
        try:
            persistence.save(self, self.store, self.slot)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"⚠️  Save to slot {self.slot} failed: {e}")
            self.log.emit(f"❌ Save failed: {e}", "error")
            return False
        self.log.emit("💾 Saved", "info")
        logger.info(f"💾 Saved {self.name} to slot {self.slot}")
        return True

    def export_save(self, path: str | Path) -> Path | None:
        data = persistence.serialize(self)
        data["exportTime"] = datetime.now(timezone.utc).isoformat()
        data["gameName"] = GAME_NAME
        path = Path(path)
        try:
            path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as e:
            self.log.emit(f"❌ Export failed: {e}", "error")
            return None
        self.log.emit(f"✅ Save exported to {path.name} (version {data['version']})", "info")
        return path

    def import_save(self, path: str | Path) -> bool:
        path = Path(path)
        if path.suffix.lower() != ".json":
            self.log.emit("❌ Save files must be .json", "error")
            return False
        try:
            state = persistence.load_state(path.read_text(encoding="utf-8"), self.catalog, self.rng)
        except (OSError, UnicodeDecodeError, SaveError) as e:
            self.log.emit(f"❌ Import failed: {e}", "error")
            return False
        self.restore(state)
        self.request_save()
        self.log.emit("📂 Save imported!", "info")
        return True

    def reset(self, preserve_customization: bool = False):
        """Wipes the current slot and founds a new town in its place."""
        name = self.name if preserve_customization else DEFAULT_TOWN_NAME
        names = list(self.custom_names) if preserve_customization else []
        self.store.delete(slot_key(self.slot))

        self.residents.clear()
        self.workplaces = fresh_workplaces(self.catalog.blueprints)
        self.treasury = 0
        self.minutes = START_OF_DAY_MINUTES
        self.weekday = START_WEEKDAY
        self.elapsed_days = 0
        self.speed = 1.0
        self.last_immigration_day = 0
        self.name = name
        self.custom_names = []
        self._autosave_elapsed = 0.0
        self.log.clear()
        self.log.emit("🗑 The game was reset.", "info")
        self.found(names or None)

    def reroll_residents(self) -> int:
        """New personality and traits for everyone. Returns how many were re-rolled."""
        if not self.residents:
            self.log.emit("❌ There is nobody to re-roll!", "error")
            return 0
        for r in self.residents.values():
            r.personality = self.rng.choice(self.catalog.personalities).name
            r.traits = roll_starting_traits(self.rng, self.catalog)
        self.log.emit(f"🎲 Re-rolled the personality and traits of {len(self.residents)} residents!", "info")
        self.request_save()
        return len(self.residents)

    # ─── Console ─────────────────────────────────────────────────────────────

    def print_status(self):
        table = Table(title=f" {self.name} — Day {self.elapsed_days} {self.day_name} {format_clock(self.minutes)}")
        table.add_column("Name", style="bold")
        table.add_column("Age")
        table.add_column("Personality")
        table.add_column("Traits")
        table.add_column("Money")
        table.add_column("Mood")
        table.add_column("Job")
        table.add_column("Doing")

        for r in sorted(self.residents.values(), key=lambda r: r.money, reverse=True):
            job = "—"
            if r.job is not None:
                workplace = self.workplaces.get(r.job.workplace_id)
                job = f"{r.job.role} @ {workplace.name if workplace else r.job.workplace_id}"
            money = f"{r.money} ⚠️" if r.money < 20 else str(r.money)
            table.add_row(
                r.name, str(r.age), r.personality, ", ".join(r.traits) or "—",
                money, str(r.happiness), job, r.current_action,
            )

        console.print(table)
        built = [w.name for w in self.workplaces.values() if w.is_built]
        console.print(
            f"Town Stats: [green]{len(self.residents)} residents[/green] | "
            f"Treasury: {self.treasury:,} | Built: {', '.join(built) or 'nothing yet'}\n"
        )

    def run(self, days: int = 7, delay: float = 0.0):
        console.print(Panel.fit(f"🏙️ {self.name}\n\nObserver: {self.observer_name}", style="bold yellow"))
        console.print(f"\n🚀 [bold]{self.name} is running for {days} days at {self.speed:g}x.[/bold]\n")

        last_day = self.elapsed_days + days
        console.rule(f"[bold]━━━ Day {self.elapsed_days} ━━━[/bold]")
        while self.elapsed_days < last_day:
            day = self.elapsed_days
            self.tick()
            if self.elapsed_days != day:
                self.print_status()
                if self.elapsed_days < last_day:
                    console.rule(f"[bold]━━━ Day {self.elapsed_days} ━━━[/bold]")
            if delay:
                time.sleep(delay)

        self.save()
        console.print("\n📜 [bold]Simulation paused.[/bold]")
        console.print(f"\n[bold]━━━ FINAL REPORT — Day {self.elapsed_days} ━━━[/bold]")
        console.print(f"Residents: [green]{len(self.residents)}[/green]")
        console.print(f"Treasury: [yellow]{self.treasury:,}[/yellow]")
        if self.residents:
            richest = max(self.residents.values(), key=lambda r: r.money)
            console.print(f"Richest: [yellow]{richest.name}[/yellow] ({richest.money})")
            couples = sum(1 for r in self.residents.values() if r.partner_id) // 2
            console.print(f"Couples: [magenta]{couples}[/magenta]")
        built = sum(1 for w in self.workplaces.values() if w.is_built)
        console.print(f"Buildings: {built}/{len(self.workplaces)} built")
