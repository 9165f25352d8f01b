"""
lifetown/city/event_log.py

In-game narration. Every decision, election, birth and robbery ends up
here as one short line that a UI (or the console status screen) can show.

Entries are kept newest-first in a bounded buffer; the oldest entry is
dropped once capacity is reached. emit() never raises: a narration
failure must never interrupt a tick.
"""

import itertools
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from lifetown.config import LOG_CAPACITY

CATEGORIES = ("info", "work", "social", "love", "event", "money", "error")


@dataclass
class LogEntry:
    id: int
    time: str
    message: str
    category: str


def format_clock(minutes: int) -> str:
    h, m = divmod(int(minutes) % 1440, 60)
    return f"{h:02d}:{m:02d}"


class EventLog:

    def __init__(self, clock: Optional[Callable[[], int]] = None, capacity: int = LOG_CAPACITY):
        """
        clock: returns the current in-game minute of the day. Defaults
        to a clock stuck at 00:00, which is handy in tests.
        """
        self._clock = clock or (lambda: 0)
        self._entries: deque[LogEntry] = deque(maxlen=max(1, capacity))
        self._ids = itertools.count(1)
        self._listeners: list[Callable[[LogEntry], None]] = []

    # ── Sink ─────────────────────────────────────────────────────────────────

    def emit(self, message: str, category: str = "info") -> Optional[LogEntry]:
        try:
            if category not in CATEGORIES:
                category = "info"
            entry = LogEntry(
                id=next(self._ids),
                time=format_clock(self._clock()),
                message=str(message),
                category=category,
            )
            self._entries.appendleft(entry)
        except Exception as e:
            logger.warning(f"EventLog dropped a message: {e}")
            return None

        for listener in self._listeners:
            try:
                listener(entry)
            except Exception as e:
                logger.warning(f"EventLog listener failed: {e}")
        return entry

    def subscribe(self, listener: Callable[[LogEntry], None]):
        """Push-style hook for UIs that want each entry as it is written."""
        self._listeners.append(listener)

    # ── Reads ────────────────────────────────────────────────────────────────

    @property
    def entries(self) -> list[LogEntry]:
        """Newest first."""
        return list(self._entries)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def latest(self, n: int = 10, category: str | None = None) -> list[LogEntry]:
        picked = [e for e in self._entries if category is None or e.category == category]
        return picked[:n]

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
