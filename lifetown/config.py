"""
lifetown/config.py

Runtime settings, read once from the environment (.env supported).
Static game tables (traits, personalities, blueprints) live in the
catalog and are injected into each Town; nothing here is mutable state.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# ─── Versioning ──────────────────────────────────────────────────────────────

GAME_VERSION = "0.7.2"
MIN_SUPPORTED_VERSION = "0.7.0"

# ─── Clock ───────────────────────────────────────────────────────────────────

MINUTES_PER_DAY = 1440
BASE_MINUTES_PER_TICK = 10          # scaled by the speed multiplier
START_OF_DAY_MINUTES = 480          # a new town wakes up at 08:00
START_WEEKDAY = 1                   # 0 = Sunday
MIN_SPEED = 0.1
MAX_SPEED = 1000.0
DEFAULT_SPEED = float(os.getenv("LIFETOWN_SPEED", "1"))

# Wall-clock cadence of one tick, used for the autosave accumulator
TICK_INTERVAL_SECONDS = float(os.getenv("LIFETOWN_TICK_SECONDS", "1.5"))
AUTOSAVE_INTERVAL_SECONDS = float(os.getenv("LIFETOWN_AUTOSAVE_SECONDS", "15"))

# ─── Population ──────────────────────────────────────────────────────────────

IMMIGRATION_INTERVAL_DAYS = int(os.getenv("LIFETOWN_IMMIGRATION_DAYS", "5"))
SOFT_POPULATION_CAP = 100
JUVENILE_MIN_AGE = 1
JUVENILE_MAX_AGE = 17

# ─── Narration / storage ─────────────────────────────────────────────────────

LOG_CAPACITY = int(os.getenv("LIFETOWN_LOG_CAPACITY", "60"))
HISTORY_DAYS = 30
SAVE_DIR = os.getenv("LIFETOWN_SAVE_DIR", "saves")
SAVE_SLOTS = 5
DEFAULT_TOWN_NAME = os.getenv("LIFETOWN_TOWN_NAME", "Catnip Town")
MAX_OBSERVER_NAME_LENGTH = 20

_seed = os.getenv("LIFETOWN_SEED")
SEED = int(_seed) if _seed else None
