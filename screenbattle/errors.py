"""Error kinds raised by the store, scoring and validation layers.

The web app maps them onto HTTP responses:
NotFoundError -> 404, ValidationError -> 400, StorageError -> 500.
"""


class ScreenBattleError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ScreenBattleError):
    """Unknown user id."""


class StorageError(ScreenBattleError):
    """The data file could not be read or written, or its content is malformed."""


class ValidationError(ScreenBattleError):
    """Client input was rejected."""
