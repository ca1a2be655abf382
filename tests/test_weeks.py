"""Game calendar and current-week resolver tests."""

from datetime import date

import pytest

from screenbattle.errors import ValidationError
from screenbattle.weeks import (
    CalendarWeek,
    FixedWeek,
    is_game_date,
    make_week_resolver,
    week_count,
    week_dates,
    week_key,
    week_of,
    week_windows,
)


def test_six_weeks():
    assert week_count() == 6
    assert sorted(week_windows()) == [1, 2, 3, 4, 5, 6]


def test_week_one_dates():
    assert week_dates(1) == [
        "2025-08-25", "2025-08-26", "2025-08-27", "2025-08-28",
        "2025-08-29", "2025-08-30", "2025-08-31",
    ]


def test_week_two_crosses_month():
    assert week_dates(2)[0] == "2025-09-01"
    assert week_dates(2)[-1] == "2025-09-07"


def test_last_week_has_two_days():
    assert week_dates(6) == ["2025-09-29", "2025-09-30"]


def test_weeks_cover_game_period_without_gaps():
    all_dates = [d for w in range(1, 7) for d in week_dates(w)]
    assert len(all_dates) == 37
    assert len(set(all_dates)) == 37
    assert all_dates[0] == "2025-08-25"
    assert all_dates[-1] == "2025-09-30"


@pytest.mark.parametrize("week", [0, 7, -1])
def test_unknown_week_rejected(week):
    with pytest.raises(ValidationError):
        week_dates(week)


def test_week_dates_returns_copy():
    week_dates(1).clear()
    assert len(week_dates(1)) == 7


def test_week_key():
    assert week_key(1) == "2025-W1"
    assert week_key(6, 2026) == "2026-W6"


def test_week_of():
    assert week_of("2025-08-25") == 1
    assert week_of(date(2025, 9, 7)) == 2
    assert week_of("2025-09-30") == 6
    assert week_of("2025-10-01") is None
    assert week_of("2025-08-24") is None


def test_is_game_date():
    assert is_game_date("2025-09-15")
    assert not is_game_date("2025-12-25")
    assert not is_game_date("garbage")


# ── Resolvers ──

def test_fixed_week_is_constant():
    resolver = FixedWeek()
    assert resolver() == 1
    assert FixedWeek(4)() == 4


def test_calendar_week_follows_clock():
    assert CalendarWeek(today=lambda: date(2025, 9, 10))() == 3
    assert CalendarWeek(today=lambda: date(2025, 9, 29))() == 6


def test_calendar_week_falls_back_outside_game():
    assert CalendarWeek(today=lambda: date(2026, 1, 1))() == 1
    assert CalendarWeek(today=lambda: date(2024, 1, 1), fallback=2)() == 2


def test_make_week_resolver():
    assert isinstance(make_week_resolver("fixed"), FixedWeek)
    assert isinstance(make_week_resolver("calendar"), CalendarWeek)
    # Unknown mode falls back to the fixed week
    assert isinstance(make_week_resolver("bogus"), FixedWeek)


# ── Configured current week ──

def test_configured_week_in_range_kept():
    from screenbattle.config import checked_current_week
    assert checked_current_week(6, date(2025, 8, 25), date(2025, 9, 30)) == 6


@pytest.mark.parametrize("week", [0, 7, -3])
def test_configured_week_out_of_range_falls_back(week, caplog):
    from screenbattle.config import checked_current_week
    with caplog.at_level("WARNING"):
        assert checked_current_week(week, date(2025, 8, 25), date(2025, 9, 30)) == 1
    assert "CURRENT_WEEK" in caplog.text


def test_default_resolver_week_is_in_game():
    assert make_week_resolver("fixed")() in week_windows()
    assert make_week_resolver("calendar")() in week_windows()
