"""Linear, snapshot-based undo/redo history of the current dataset.

Every entry holds the complete frame produced by one import or transform.
Undo, redo and jumps only move the cursor; a push after an undo drops the
abandoned redo branch.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from .errors import AtBoundaryError, EmptyHistoryError, EntryNotFoundError, NoDataError
from .operations import Import, Operation
from .summary import DatasetInfo, summarise

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 50


@dataclass(frozen=True)
class HistoryEntryInfo:
    id: str
    operation: Operation
    summary: DatasetInfo
    timestamp: str
    description: str


@dataclass(frozen=True, eq=False)
class HistoryEntry:
    id: str
    operation: Operation
    frame: pd.DataFrame
    summary: DatasetInfo
    timestamp: str
    description: str

    @classmethod
    def create(cls, operation: Operation, frame: pd.DataFrame, entry_id: str, timestamp: str,
               description: str | None = None, file_path: str = "") -> "HistoryEntry":
        description = description or operation.describe()
        name = description
        if isinstance(operation, Import):
            name = os.path.basename(operation.file_path) or "unknown"
            file_path = file_path or operation.file_path
        summary = summarise(frame, entry_id, name, file_path=file_path, imported_at=timestamp)
        return cls(
            id=entry_id,
            operation=operation,
            frame=frame,
            summary=summary,
            timestamp=timestamp,
            description=description,
        )

    def info(self) -> HistoryEntryInfo:
        return HistoryEntryInfo(
            id=self.id,
            operation=self.operation,
            summary=self.summary,
            timestamp=self.timestamp,
            description=self.description,
        )


class HistoryStore:
    """Not thread-safe on its own; share it through ``SharedHistory``."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
            raise ValueError("max_depth must be a positive integer")
        self.max_depth = max_depth
        self._entries: List[HistoryEntry] = []
        self._cursor: Optional[int] = None

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, entry: HistoryEntry) -> None:
        if self._cursor is None:
            self._entries.clear()
        elif self._cursor < len(self._entries) - 1:
            dropped = len(self._entries) - self._cursor - 1
            del self._entries[self._cursor + 1:]
            logger.debug("Discarded %d redo entries", dropped)
        self._entries.append(entry)
        if len(self._entries) > self.max_depth:
            evicted = self._entries.pop(0)
            logger.debug("Evicted oldest entry %s", evicted.id)
        self._cursor = len(self._entries) - 1
        logger.debug("Pushed %s (depth %d, cursor %d)", entry.id, len(self._entries), self._cursor)

    def get_current_entry(self) -> Optional[HistoryEntry]:
        if self._cursor is None:
            return None
        return self._entries[self._cursor]

    def get_current(self) -> Optional[pd.DataFrame]:
        entry = self.get_current_entry()
        return entry.frame if entry is not None else None

    def get_current_summary(self) -> Optional[DatasetInfo]:
        entry = self.get_current_entry()
        return entry.summary if entry is not None else None

    def undo(self) -> None:
        if self._cursor is None:
            raise NoDataError()
        if self._cursor == 0:
            raise AtBoundaryError("already at earliest")
        self._cursor -= 1

    def redo(self) -> None:
        if self._cursor is None:
            raise NoDataError()
        if self._cursor >= len(self._entries) - 1:
            raise AtBoundaryError("already at latest")
        self._cursor += 1

    def jump_to(self, entry_id: str) -> None:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                self._cursor = index
                return
        raise EntryNotFoundError(entry_id)

    def can_undo(self) -> bool:
        return self._cursor is not None and self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor is not None and self._cursor < len(self._entries) - 1

    def reset_to_initial(self) -> None:
        if not self._entries:
            raise EmptyHistoryError()
        del self._entries[1:]
        self._cursor = 0

    def clear(self) -> None:
        self._entries.clear()
        self._cursor = None

    def get_history(self) -> List[HistoryEntryInfo]:
        return [entry.info() for entry in self._entries]

    def get_current_index(self) -> Optional[int]:
        return self._cursor

    def history_len(self) -> int:
        return len(self._entries)

    def trim_history(self, keep_count: int) -> int:
        """Drop the oldest entries beyond ``keep_count``; returns how many went.

        Trimming to zero empties the store.
        """
        if isinstance(keep_count, bool) or not isinstance(keep_count, int) or keep_count < 0:
            raise ValueError("keep_count must be a non-negative integer")
        excess = len(self._entries) - keep_count
        if excess <= 0:
            return 0
        del self._entries[:excess]
        if not self._entries:
            self._cursor = None
        elif self._cursor is not None:
            self._cursor = max(self._cursor - excess, 0)
        logger.debug("Trimmed %d entries (cursor %s)", excess, self._cursor)
        return excess
