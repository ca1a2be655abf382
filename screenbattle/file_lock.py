"""File-locking utilities for the JSON data file.

Provides read_json() for shared-lock reads and write_json() for exclusive,
atomic overwrites (tmp + fsync + os.replace). Locks are taken on a sidecar
"<name>.lock" file so that the data file itself is only ever created by a
complete write. Uses fcntl.flock for process-safe locking.

Nothing is cached: every read goes to disk.
"""

import fcntl
import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path

from .errors import StorageError

log = logging.getLogger(__name__)


def _lock_path(path: Path) -> Path:
    return path.with_name(path.name + ".lock")


@contextmanager
def file_lock(path: Path, exclusive: bool = False):
    """Hold a shared (or exclusive) flock on the sidecar lock file for path."""
    try:
        fd = os.open(str(_lock_path(path)), os.O_RDWR | os.O_CREAT, 0o644)
    except OSError as e:
        raise StorageError(f"Cannot open lock file for {path.name}: {e}") from e
    try:
        fcntl.flock(fd, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
        yield
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)


def read_json(path: Path):
    """Read and decode a JSON file under a shared lock.

    Raises StorageError if the file is missing, unreadable, not UTF-8 or not JSON.
    """
    with file_lock(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError as e:
            raise StorageError(f"{path.name} does not exist") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StorageError(f"{path.name} is corrupt: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read {path.name}: {e}") from e


def _write_unlocked(path: Path, data) -> None:
    try:
        payload = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise StorageError(f"Cannot serialize data for {path.name}: {e}") from e

    tmp = str(path) + ".tmp"
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, str(path))
    except OSError as e:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise StorageError(f"Cannot write {path.name}: {e}") from e


def write_json(path: Path, data) -> None:
    """Overwrite path with data, atomically, under an exclusive lock.

    The whole file is replaced; there is no merge with the previous content.
    """
    with file_lock(path, exclusive=True):
        _write_unlocked(path, data)


def create_json(path: Path, data) -> bool:
    """Write data to path only if path does not exist yet.

    Returns True if the file was created, False if it already existed.
    The existence check and the write happen under the same exclusive lock.
    """
    with file_lock(path, exclusive=True):
        if path.exists():
            return False
        _write_unlocked(path, data)
        return True
