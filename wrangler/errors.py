from __future__ import annotations
from enum import Enum


class ErrorKind(str, Enum):
    NO_DATA = "no_data"
    AT_BOUNDARY = "at_boundary"
    ENTRY_NOT_FOUND = "entry_not_found"
    EMPTY_HISTORY = "empty_history"
    LOCK_FAILURE = "lock_failure"
    TRANSFORM = "transform"
    IO = "io"


class WranglerError(Exception):
    """Domain error. Raising one never leaves the history store half-updated."""

    kind: ErrorKind = ErrorKind.TRANSFORM

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    default_message = "operation failed"


class HistoryError(WranglerError):
    pass


class NoDataError(HistoryError):
    kind = ErrorKind.NO_DATA
    default_message = "no data"


class AtBoundaryError(HistoryError):
    kind = ErrorKind.AT_BOUNDARY
    default_message = "already at boundary"


class EntryNotFoundError(HistoryError):
    kind = ErrorKind.ENTRY_NOT_FOUND
    default_message = "entry not found"

    def __init__(self, entry_id: str = ""):
        super().__init__(f"entry not found: {entry_id}" if entry_id else "")
        self.entry_id = entry_id


class EmptyHistoryError(HistoryError):
    kind = ErrorKind.EMPTY_HISTORY
    default_message = "no history"


class LockFailureError(WranglerError):
    kind = ErrorKind.LOCK_FAILURE
    default_message = "internal store lock failure"


class TransformError(WranglerError):
    kind = ErrorKind.TRANSFORM


class LoadError(WranglerError):
    kind = ErrorKind.IO
    default_message = "could not read file"
