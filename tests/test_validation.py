"""Client input parsing tests."""

import pytest

from screenbattle.errors import ValidationError
from screenbattle.validation import (
    clean_user_patch,
    parse_game_date,
    parse_goals,
    parse_minutes,
    parse_week_key,
)


# ── Minutes ──

@pytest.mark.parametrize("raw, expected", [
    (90, 90),
    (0, 0),
    ("90", 90),
    (" 45 ", 45),
    (120.0, 120),
])
def test_parse_minutes_accepts(raw, expected):
    assert parse_minutes(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "", "90min", "+90", "9 0", None, True, 12.5, -5, "-5", [], {}])
def test_parse_minutes_rejects(raw):
    with pytest.raises(ValidationError):
        parse_minutes(raw)


# ── Dates ──

def test_parse_game_date():
    assert parse_game_date("2025-08-25") == "2025-08-25"
    assert parse_game_date(" 2025-09-30 ") == "2025-09-30"


@pytest.mark.parametrize("raw", ["2025-10-01", "2025-08-24", "25/08/2025", "yesterday", None, 20250825])
def test_parse_game_date_rejects(raw):
    with pytest.raises(ValidationError):
        parse_game_date(raw)


# ── Weeks and goals ──

def test_parse_week_key():
    assert parse_week_key("2025-W1") == "2025-W1"
    with pytest.raises(ValidationError):
        parse_week_key("W1")
    with pytest.raises(ValidationError):
        parse_week_key(1)


def test_parse_goals():
    assert parse_goals([True, False]) == [True, False]
    assert parse_goals([]) == []
    with pytest.raises(ValidationError):
        parse_goals([1, 0])
    with pytest.raises(ValidationError):
        parse_goals("true")


# ── User patches ──

def test_patch_drops_points_and_unknown_fields():
    patch = clean_user_patch({"points": 999, "name": "Aizi 2", "isAdmin": True})
    assert patch == {"name": "Aizi 2"}


def test_patch_validates_fields():
    patch = clean_user_patch({
        "dailyLimit": "90",
        "weeklyGoals": ["Read", "Walk"],
        "screenTimes": {"2025-08-25": 30},
        "goalsCompleted": {"2025-W1": [True]},
    })
    assert patch == {
        "dailyLimit": 90,
        "weeklyGoals": ["Read", "Walk"],
        "screenTimes": {"2025-08-25": 30},
        "goalsCompleted": {"2025-W1": [True]},
    }


@pytest.mark.parametrize("body", [
    {"dailyLimit": "lots"},
    {"dailyLimit": -1},
    {"name": 5},
    {"weeklyGoals": "Read"},
    {"screenTimes": {"2025-08-25": "abc"}},
    {"goalsCompleted": {"week1": [True]}},
    [],
])
def test_patch_rejects_bad_values(body):
    with pytest.raises(ValidationError):
        clean_user_patch(body)
