"""Centralized configuration with env var overrides.

All hardcoded values live here. Override any via environment variables.
"""

import os
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")

# ── Paths ──
DB_FILE = Path(os.environ.get("DB_FILE", str(PROJECT_ROOT / "db.json")))

# ── Logging ──
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# ── Write queue ──
WRITE_QUEUE_DELAY = float(os.environ.get("WRITE_QUEUE_DELAY", 0.01))  # seconds between queued writes
WRITE_QUEUE_SHUTDOWN_TIMEOUT = float(os.environ.get("WRITE_QUEUE_SHUTDOWN_TIMEOUT", 10))

# ── Game period ──
GAME_START = date.fromisoformat(os.environ.get("GAME_START", "2025-08-25"))
GAME_END = date.fromisoformat(os.environ.get("GAME_END", "2025-09-30"))
GAME_YEAR = int(os.environ.get("GAME_YEAR", GAME_START.year))
DAYS_PER_WEEK = 7

# ── Current week ──
# "fixed" always reports CURRENT_WEEK; "calendar" maps today's date onto the
# game weeks and falls back to CURRENT_WEEK outside the game period.
WEEK_MODE = os.environ.get("WEEK_MODE", "fixed").strip().lower()
CURRENT_WEEK = int(os.environ.get("CURRENT_WEEK", 1))


def checked_current_week(week: int, start: date, end: date) -> int:
    """Return week if the game has it, else warn and fall back to week 1."""
    weeks = (end - start).days // DAYS_PER_WEEK + 1 if end >= start else 0
    if 1 <= week <= weeks:
        return week
    import logging as _logging
    _logging.getLogger(__name__).warning(
        f"CURRENT_WEEK={week} is outside the game (weeks 1..{weeks}) — using week 1."
    )
    return 1


CURRENT_WEEK = checked_current_week(CURRENT_WEEK, GAME_START, GAME_END)

# ── Players ──
DEFAULT_DAILY_LIMIT = int(os.environ.get("DEFAULT_DAILY_LIMIT", 120))  # minutes
DEFAULT_WEEKLY_GOALS = ["Meta 1", "Meta 2", "Meta 3"]

if GAME_END < GAME_START:
    import logging as _logging
    _logging.getLogger(__name__).warning(
        f"GAME_END ({GAME_END}) is before GAME_START ({GAME_START}) — the game has no weeks."
    )
