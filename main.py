"""
main.py — Entry point for Lifetown.

Resumes the town saved in the chosen slot, or founds a new one, runs it
for a number of game days and saves on the way out. Narration is echoed
to the console as it happens.

Settings come from .env (see lifetown/config.py):
    LIFETOWN_SEED, LIFETOWN_SPEED, LIFETOWN_SAVE_DIR, LIFETOWN_TOWN_NAME ...

Run:
    python main.py [days] [slot]
"""

import sys

from dotenv import load_dotenv
load_dotenv()

from loguru import logger
from rich.console import Console

from lifetown.config import SAVE_DIR
from lifetown.memory.slots import JsonFileSlotStore
from lifetown.os.town import Town

console = Console()

CATEGORY_STYLE = {
    "work": "cyan",
    "social": "green",
    "love": "magenta",
    "event": "yellow",
    "money": "bright_yellow",
    "error": "bold red",
}


def echo(entry):
    style = CATEGORY_STYLE.get(entry.category)
    line = f"[dim]{entry.time}[/dim] {entry.message}"
    console.print(f"[{style}]{line}[/{style}]" if style else line, highlight=False)


if __name__ == "__main__":
    days = int(sys.argv[1]) if len(sys.argv) > 1 else 7
    slot = int(sys.argv[2]) if len(sys.argv) > 2 else 1

    logger.remove()
    logger.add(sys.stderr, level="WARNING")

    town = Town.load_or_new(JsonFileSlotStore(SAVE_DIR), slot=slot)
    town.log.subscribe(echo)
    if town.elapsed_days == 0 and town.minutes == 480:
        print(f"🌌 New town founded — {town.name}")
    else:
        print(f"🔄 Resuming {town.name} from Day {town.elapsed_days}")

    town.run(days=days)
