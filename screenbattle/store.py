"""Persistence for the game document.

Loads/saves db.json as one document. Every save is a full overwrite; callers
read the whole document, change what they need, and write the whole thing
back (through the WriteQueue when running inside the web app).

Schema:
    {
        "users": {
            "aizi": {
                "name": "Aizi",
                "avatar": "https://...",
                "dailyLimit": 120,
                "weeklyGoals": ["Meta 1", "Meta 2", "Meta 3"],
                "points": 0,
                "screenTimes": {"2025-08-25": 90},
                "goalsCompleted": {"2025-W1": [true, false, true]}
            },
            "orfeus": {...}
        },
        "gameSettings": {"startDate": "2025-08-25", "endDate": "2025-09-30"}
    }
"""

import logging
from pathlib import Path

from .config import DB_FILE, DEFAULT_DAILY_LIMIT, DEFAULT_WEEKLY_GOALS, GAME_END, GAME_START
from .errors import NotFoundError, StorageError
from .file_lock import create_json, read_json, write_json

log = logging.getLogger(__name__)

_SEED_USERS = {
    "aizi": {
        "name": "Aizi",
        "avatar": (
            "https://a0.anyrgb.com/pngimg/1708/588/"
            "rattata-raticate-color-depth-pidgeot-8bit-pikachu-bit-sprite-pixel-art-pokemon.png"
        ),
    },
    "orfeus": {
        "name": "Orfeus",
        "avatar": "https://art.pixilart.com/sr280fab26ceb71.png",
    },
}


def _path(path: Path | None) -> Path:
    # Resolved at call time so tests can monkeypatch store.DB_FILE
    return Path(path) if path is not None else DB_FILE


def seed_document() -> dict:
    """Return a fresh copy of the initial document: two players, no records."""
    users = {}
    for user_id, profile in _SEED_USERS.items():
        users[user_id] = {
            **profile,
            "dailyLimit": DEFAULT_DAILY_LIMIT,
            "weeklyGoals": list(DEFAULT_WEEKLY_GOALS),
            "points": 0,
            "screenTimes": {},
            "goalsCompleted": {},
        }
    return {
        "users": users,
        "gameSettings": {
            "startDate": GAME_START.isoformat(),
            "endDate": GAME_END.isoformat(),
        },
    }


def check_document(doc) -> dict:
    """Raise StorageError unless doc has the document shape. Returns doc."""
    if not isinstance(doc, dict):
        raise StorageError("Document must be a JSON object")
    users = doc.get("users")
    if not isinstance(users, dict):
        raise StorageError("Document has no 'users' object")
    for user_id, user in users.items():
        if not isinstance(user, dict):
            raise StorageError(f"User {user_id!r} is not an object")
        for field in ("screenTimes", "goalsCompleted"):
            if field in user and not isinstance(user[field], dict):
                raise StorageError(f"User {user_id!r} has a malformed {field!r}")
        limit = user.get("dailyLimit", 0)
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise StorageError(f"User {user_id!r} has a non-integer 'dailyLimit': {limit!r}")
        for week, goals in user.get("goalsCompleted", {}).items():
            if not isinstance(goals, list):
                raise StorageError(f"User {user_id!r} has malformed goals for {week!r}")
    if not isinstance(doc.get("gameSettings"), dict):
        raise StorageError("Document has no 'gameSettings' object")
    return doc


def load_document(path: Path | None = None) -> dict:
    """Read the whole document from disk. Raises StorageError if unreadable or malformed."""
    return check_document(read_json(_path(path)))


def save_document(doc: dict, path: Path | None = None) -> None:
    """Overwrite the stored document with doc. Raises StorageError on failure."""
    write_json(_path(path), check_document(doc))


def ensure_initialized(path: Path | None = None) -> bool:
    """Create the data file with the seed document if it doesn't exist.

    Never touches an existing file. Returns True if the file was created.
    """
    path = _path(path)
    created = create_json(path, seed_document())
    if created:
        log.info(f"Created {path.name} with seed users: {', '.join(_SEED_USERS)}")
    return created


def get_user(doc: dict, user_id: str) -> dict:
    """Return the user record from doc. Raises NotFoundError for unknown ids."""
    user = doc["users"].get(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id!r} not found")
    return user

