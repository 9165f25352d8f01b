"""
lifetown/memory/slots.py

Where save documents live. A slot store is a tiny key → JSON-text map;
the rest of the package never touches files directly.

    InMemorySlotStore   tests and throwaway towns
    JsonFileSlotStore   one <key>.json file per slot under a directory

Usage:
    store = JsonFileSlotStore("saves")
    store.write(slot_key(1), text)
"""

import os
from pathlib import Path
from typing import Protocol

from loguru import logger

from lifetown.config import SAVE_DIR, SAVE_SLOTS

SLOT_PREFIX = "lifetown_save_slot"


def slot_key(slot: int) -> str:
    if not 1 <= slot <= SAVE_SLOTS:
        raise ValueError(f"slot must be between 1 and {SAVE_SLOTS}, got {slot}")
    return f"{SLOT_PREFIX}{slot}"


class SlotStore(Protocol):

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, text: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class InMemorySlotStore:

    def __init__(self):
        self._data: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, text: str) -> None:
        self._data[key] = text

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileSlotStore:

    def __init__(self, directory: str = SAVE_DIR):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, text: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
        logger.debug(f"💾 Wrote {path}")

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
