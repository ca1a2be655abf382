"""Game calendar: the week windows and the current-week resolvers.

The game runs from GAME_START to GAME_END in 7-day windows. With the default
dates that gives six weeks, 2025-08-25 .. 2025-09-30, the last one holding
only two days (09-29 and 09-30).

Goal completion is keyed by "<year>-W<week>", e.g. "2025-W1".
"""

import logging
from datetime import date, timedelta

from .config import CURRENT_WEEK, DAYS_PER_WEEK, GAME_END, GAME_START, GAME_YEAR, WEEK_MODE
from .errors import ValidationError

log = logging.getLogger(__name__)


def _build_windows(start: date, end: date) -> dict[int, list[str]]:
    windows: dict[int, list[str]] = {}
    day = start
    while day <= end:
        week = (day - start).days // DAYS_PER_WEEK + 1
        windows.setdefault(week, []).append(day.isoformat())
        day += timedelta(days=1)
    return windows


_WINDOWS = _build_windows(GAME_START, GAME_END)
_WEEK_BY_DATE = {d: week for week, dates in _WINDOWS.items() for d in dates}


def week_windows() -> dict[int, list[str]]:
    """All weeks of the game, {week_number: [iso_date, ...]}."""
    return {week: list(dates) for week, dates in _WINDOWS.items()}


def week_count() -> int:
    return len(_WINDOWS)


def week_dates(week: int) -> list[str]:
    """ISO dates belonging to a week. Raises ValidationError for an unknown week."""
    dates = _WINDOWS.get(week)
    if dates is None:
        raise ValidationError(f"Week must be between 1 and {week_count()}, got {week}")
    return list(dates)


def week_key(week: int, year: int = GAME_YEAR) -> str:
    return f"{year}-W{week}"


def week_of(day: date | str) -> int | None:
    """Week number containing day, or None outside the game period."""
    if isinstance(day, date):
        day = day.isoformat()
    return _WEEK_BY_DATE.get(day)


def is_game_date(value: str) -> bool:
    return value in _WEEK_BY_DATE


# ──────────────────────────────────────────────
# Current-week resolvers
# ──────────────────────────────────────────────

class FixedWeek:
    """Always reports the same week. The game is pinned to it."""

    def __init__(self, week: int = CURRENT_WEEK):
        self.week = week

    def __call__(self) -> int:
        return self.week

    def __repr__(self):
        return f"FixedWeek({self.week})"


class CalendarWeek:
    """Maps today's date onto the game weeks.

    Outside the game period the fallback week is reported. `today` is any
    callable returning a date; tests inject a fixed clock.
    """

    def __init__(self, today=date.today, fallback: int = CURRENT_WEEK):
        self.today = today
        self.fallback = fallback

    def __call__(self) -> int:
        week = week_of(self.today())
        return week if week is not None else self.fallback

    def __repr__(self):
        return f"CalendarWeek(fallback={self.fallback})"


def make_week_resolver(mode: str = WEEK_MODE):
    """Build the resolver for WEEK_MODE ("fixed" or "calendar")."""
    if mode == "calendar":
        return CalendarWeek()
    if mode != "fixed":
        log.warning(f"Unknown WEEK_MODE {mode!r} — using fixed week {CURRENT_WEEK}")
    return FixedWeek()
