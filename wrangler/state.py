from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import pandas as pd

from . import handlers
from .config import Settings
from .operations import Operation
from .preview import run_preview
from .shared import SharedHistory
from .summary import DatasetInfo

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    settings: Settings = field(default_factory=Settings)
    history: Optional[SharedHistory] = None
    preview_df: Optional[pd.DataFrame] = None
    preview_meta: Dict[str, Any] = field(default_factory=dict)
    preview_operation: Optional[Operation] = None
    preview_base_id: Optional[str] = None

    def __post_init__(self):
        if self.history is None:
            self.history = SharedHistory(max_depth=self.settings.max_history, timeout=self.settings.lock_timeout)

    @property
    def current_df(self) -> Optional[pd.DataFrame]:
        return handlers.get_current_frame(self.history)

    def _current_id(self) -> Optional[str]:
        with self.history.lock() as store:
            entry = store.get_current_entry()
        return entry.id if entry is not None else None

    def compute_preview(self, operation: Operation) -> tuple[pd.DataFrame, Dict[str, Any]]:
        """Run on a worker thread; the lock is only held to read the snapshot.

        ``meta["base_entry_id"]`` names the entry the preview was built from.
        """
        entry = handlers.require_current_entry(self.history)
        df, meta = run_preview(entry.frame, operation)
        meta["base_entry_id"] = entry.id
        return df, meta

    def set_preview(self, operation: Operation, df: pd.DataFrame, meta: Dict[str, Any]) -> bool:
        """Keep the preview unless the current entry moved since it was computed."""
        base_id = meta.get("base_entry_id")
        if base_id is None or base_id != self._current_id():
            logger.info("Discarded stale preview of %s", operation.describe())
            self.clear_preview()
            return False
        self.preview_operation = operation
        self.preview_df = df
        self.preview_meta = meta
        self.preview_base_id = base_id
        return True

    def clear_preview(self) -> None:
        self.preview_df = None
        self.preview_meta = {}
        self.preview_operation = None
        self.preview_base_id = None

    def commit_preview(self) -> Optional[DatasetInfo]:
        if self.preview_df is None or self.preview_operation is None:
            return None
        entry = handlers.new_entry(self.preview_operation, self.preview_df)
        with self.history.lock() as store:
            current = store.get_current_entry()
            stale = current is None or current.id != self.preview_base_id
            if not stale:
                store.push(entry)
        if stale:
            logger.info("Discarded stale preview of %s", entry.description)
            self.clear_preview()
            return None
        self.clear_preview()
        return entry.summary

    def undo(self) -> None:
        handlers.undo(self.history)
        self.clear_preview()

    def redo(self) -> None:
        handlers.redo(self.history)
        self.clear_preview()
