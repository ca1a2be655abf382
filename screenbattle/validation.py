"""Parsing and checking of client input before anything is written."""

import re
from datetime import date

from .errors import ValidationError
from .weeks import is_game_date

_DIGITS = re.compile(r"\s*(\d+)\s*")
_WEEK_KEY = re.compile(r"\d{4}-W\d+")

# Fields a client may set on a user record; "points" is always derived
USER_FIELDS = ("name", "avatar", "dailyLimit", "weeklyGoals", "screenTimes", "goalsCompleted")


def _non_negative_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, int):
        n = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be a whole number")
        n = int(value)
    elif isinstance(value, str):
        # Digits only, surrounding whitespace allowed: "90", " 45 "
        m = _DIGITS.fullmatch(value)
        if not m:
            raise ValidationError(f"{field} must be a number, got {value!r}")
        n = int(m.group(1))
    else:
        raise ValidationError(f"{field} must be a number")
    if n < 0:
        raise ValidationError(f"{field} cannot be negative")
    return n


def parse_minutes(value) -> int:
    """Minutes of screen time as a non-negative int. Rejects non-numeric input."""
    return _non_negative_int(value, "minutes")


def parse_game_date(value) -> str:
    """ISO date (YYYY-MM-DD) inside one of the game weeks."""
    if not isinstance(value, str):
        raise ValidationError("date must be a string in YYYY-MM-DD format")
    try:
        day = date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None
    iso = day.isoformat()
    if not is_game_date(iso):
        raise ValidationError(f"{iso} is outside the game period")
    return iso


def parse_week_key(value) -> str:
    """Week key like "2025-W1"."""
    if not isinstance(value, str) or not _WEEK_KEY.fullmatch(value.strip()):
        raise ValidationError(f"Invalid week {value!r}, expected e.g. 2025-W1")
    return value.strip()


def parse_goals(value) -> list[bool]:
    """List of completion flags. Length is not checked against weeklyGoals."""
    if not isinstance(value, list) or not all(isinstance(v, bool) for v in value):
        raise ValidationError("goals must be a list of true/false values")
    return list(value)


def clean_user_patch(body) -> dict:
    """Validate a partial user update. Drops "points" and unknown fields."""
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    patch = {}
    for key in USER_FIELDS:
        if key not in body:
            continue
        value = body[key]
        if key in ("name", "avatar"):
            if not isinstance(value, str):
                raise ValidationError(f"{key} must be a string")
            patch[key] = value.strip()
        elif key == "dailyLimit":
            patch[key] = _non_negative_int(value, key)
        elif key == "weeklyGoals":
            if not isinstance(value, list) or not all(isinstance(g, str) for g in value):
                raise ValidationError("weeklyGoals must be a list of strings")
            patch[key] = list(value)
        elif key == "screenTimes":
            if not isinstance(value, dict):
                raise ValidationError("screenTimes must be an object")
            patch[key] = {parse_game_date(d): parse_minutes(m) for d, m in value.items()}
        elif key == "goalsCompleted":
            if not isinstance(value, dict):
                raise ValidationError("goalsCompleted must be an object")
            patch[key] = {parse_week_key(w): parse_goals(g) for w, g in value.items()}
    return patch
