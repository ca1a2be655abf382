"""Points and weekly winner, derived from the stored records.

Nothing here writes to disk. Points are always recomputed from screenTimes
and goalsCompleted:
  - 1 point per day of the week with recorded screen time <= dailyLimit
  - 1 point per completed (truthy) weekly goal
The weekly winner is the player with the lowest total screen time for the
week; the listing endpoint gives the winner a bonus point (both on a tie).
"""

from .config import GAME_YEAR
from .store import get_user
from .weeks import week_dates, week_key

TIE = "tie"


def _minutes(screen_times: dict, day: str) -> int | None:
    """Recorded minutes for day, or None. Non-integer values count as absent."""
    value = screen_times.get(day)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def compute_points(user: dict, week: int, year: int = GAME_YEAR) -> int:
    """Points a user earned in a week."""
    screen_times = user.get("screenTimes") or {}
    limit = user.get("dailyLimit", 0)
    points = 0

    for day in week_dates(week):
        minutes = _minutes(screen_times, day)
        if minutes is not None and minutes <= limit:
            points += 1

    goals = (user.get("goalsCompleted") or {}).get(week_key(week, year)) or []
    points += sum(1 for done in goals if done)
    return points


def user_points(doc: dict, user_id: str, week: int) -> int:
    """Points for one user. Raises NotFoundError for unknown ids."""
    return compute_points(get_user(doc, user_id), week)


def score_users(doc: dict, week: int) -> dict[str, int]:
    """{user_id: points} for every user, without the winner bonus."""
    return {user_id: compute_points(user, week) for user_id, user in doc["users"].items()}


def weekly_totals(doc: dict, week: int) -> dict[str, int]:
    """{user_id: total recorded minutes} over the week. Missing days count 0."""
    dates = week_dates(week)
    totals = {}
    for user_id, user in doc["users"].items():
        screen_times = user.get("screenTimes") or {}
        totals[user_id] = sum(_minutes(screen_times, d) or 0 for d in dates)
    return totals


def compute_weekly_winner(doc: dict, week: int) -> str:
    """User id with the strictly lowest total screen time, or "tie"."""
    totals = weekly_totals(doc, week)
    if not totals:
        return TIE
    lowest = min(totals.values())
    leaders = [user_id for user_id, total in totals.items() if total == lowest]
    return leaders[0] if len(leaders) == 1 else TIE


def apply_winner_bonus(points: dict[str, int], winner: str) -> dict[str, int]:
    """Return a copy of points with +1 for the winner, or +1 for everyone on a tie."""
    if winner == TIE:
        return {user_id: p + 1 for user_id, p in points.items()}
    return {user_id: p + 1 if user_id == winner else p for user_id, p in points.items()}
