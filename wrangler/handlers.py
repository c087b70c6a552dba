"""Request handlers: every UI command goes through one of these.

Handlers take the session's ``SharedHistory`` explicitly. They read the
current frame under the lock, release it while pandas works, then take the
lock again to push the result.
"""
from __future__ import annotations
import logging
import os
import uuid
from typing import List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from . import io, transforms
from .errors import LoadError, NoDataError
from .history import HistoryEntry, HistoryEntryInfo
from .operations import (
    CastTypes, DropAllNulls, DropColumns, DropNulls, FillNull, FillStrategy, Filter, Import,
    Operation, Pivot, RenameColumns, Rolling, RollingStat, SelectColumns, Unpivot,
)
from .shared import SharedHistory
from .summary import ColumnStats, DatasetInfo, DatasetPage, column_stats, now_iso, page

logger = logging.getLogger(__name__)


def new_entry(operation: Operation, frame: pd.DataFrame, file_path: str = "") -> HistoryEntry:
    return HistoryEntry.create(operation, frame, entry_id=str(uuid.uuid4()), timestamp=now_iso(), file_path=file_path)


def require_current_entry(handle: SharedHistory) -> HistoryEntry:
    with handle.lock() as store:
        entry = store.get_current_entry()
    if entry is None:
        raise NoDataError()
    return entry


def require_current(handle: SharedHistory) -> pd.DataFrame:
    return require_current_entry(handle).frame


def push(handle: SharedHistory, entry: HistoryEntry) -> DatasetInfo:
    with handle.lock() as store:
        store.push(entry)
    return entry.summary


# Import / export

def import_file(handle: SharedHistory, path: str, sheet_name: Optional[str] = None) -> DatasetInfo:
    df, ctx = io.load_file(path, sheet_name)
    entry = new_entry(Import(file_path=path), df, file_path=ctx.path)
    with handle.lock() as store:
        store.clear()
        store.push(entry)
    logger.info("Imported %s as %s", os.path.basename(path), entry.id)
    return entry.summary


def export(handle: SharedHistory, path: str, fmt: Optional[str] = None) -> str:
    fmt = (fmt or io.file_ext(path)).lower()
    exporter = io.EXPORTERS.get(fmt)
    if exporter is None:
        raise LoadError(f"Unsupported export format: {fmt}")
    df = require_current(handle)
    exporter(df, path)
    logger.info("Exported %d rows to %s", len(df), path)
    return path


# Transforms

def preview(handle: SharedHistory, operation: Operation) -> transforms.TransformResult:
    """Run ``operation`` on the current frame without touching history."""
    return transforms.apply_operation(require_current(handle), operation)


def apply(handle: SharedHistory, operation: Operation) -> DatasetInfo:
    df = require_current(handle)
    result, _, warnings = transforms.apply_operation(df, operation)
    entry = new_entry(operation, result)
    push(handle, entry)
    logger.info("Applied %s -> %d rows x %d columns", entry.description, result.shape[0], result.shape[1])
    for warning in warnings:
        logger.warning("%s: %s", entry.description, warning)
    return entry.summary


def drop_nulls(handle: SharedHistory, subset: Optional[Sequence[str]] = None) -> DatasetInfo:
    return apply(handle, DropNulls(subset=subset))


def drop_all_nulls(handle: SharedHistory) -> DatasetInfo:
    return apply(handle, DropAllNulls())


def select_columns(handle: SharedHistory, columns: Sequence[str]) -> DatasetInfo:
    return apply(handle, SelectColumns(columns=columns))


def drop_columns(handle: SharedHistory, columns: Sequence[str]) -> DatasetInfo:
    return apply(handle, DropColumns(columns=columns))


def rename_columns(handle: SharedHistory, mapping: Mapping[str, str]) -> DatasetInfo:
    return apply(handle, RenameColumns(mapping=dict(mapping)))


def cast_types(handle: SharedHistory, mapping: Mapping[str, str]) -> DatasetInfo:
    return apply(handle, CastTypes(mapping=dict(mapping)))


def filter_rows(handle: SharedHistory, expression: str) -> DatasetInfo:
    return apply(handle, Filter(expression=expression))


def fill_null(handle: SharedHistory, strategy: FillStrategy, columns: Optional[Sequence[str]] = None) -> DatasetInfo:
    return apply(handle, FillNull(strategy=strategy, columns=columns))


def unpivot(handle: SharedHistory, id_vars: Sequence[str], value_vars: Sequence[str], variable_name: str = "variable",
            value_name: str = "value", sort_column: Optional[str] = None) -> DatasetInfo:
    return apply(handle, Unpivot(id_vars, value_vars, variable_name, value_name, sort_column))


def pivot(handle: SharedHistory, index: Sequence[str], columns: str, values: str, aggregate: Optional[str] = None) -> DatasetInfo:
    return apply(handle, Pivot(index, columns, values, aggregate))


def rolling(handle: SharedHistory, stat: RollingStat | str, column: str, window_size: int, center: bool = False,
            min_periods: Optional[int] = None, quantile: Optional[float] = None) -> DatasetInfo:
    return apply(handle, Rolling(RollingStat(stat), column, window_size, center, min_periods, quantile))


# History

def get_history(handle: SharedHistory) -> List[HistoryEntryInfo]:
    with handle.lock() as store:
        return store.get_history()


def get_current_index(handle: SharedHistory) -> Optional[int]:
    with handle.lock() as store:
        return store.get_current_index()


def undo(handle: SharedHistory) -> None:
    with handle.lock() as store:
        store.undo()
        index = store.get_current_index()
    logger.info("Undo -> %s", index)


def redo(handle: SharedHistory) -> None:
    with handle.lock() as store:
        store.redo()
        index = store.get_current_index()
    logger.info("Redo -> %s", index)


def jump_to(handle: SharedHistory, entry_id: str) -> None:
    with handle.lock() as store:
        store.jump_to(entry_id)
        index = store.get_current_index()
    logger.info("Jumped to %s (index %s)", entry_id, index)


def can_undo(handle: SharedHistory) -> bool:
    with handle.lock() as store:
        return store.can_undo()


def can_redo(handle: SharedHistory) -> bool:
    with handle.lock() as store:
        return store.can_redo()


def undo_redo_state(handle: SharedHistory) -> Tuple[bool, bool]:
    with handle.lock() as store:
        return store.can_undo(), store.can_redo()


def reset_to_initial(handle: SharedHistory) -> None:
    with handle.lock() as store:
        store.reset_to_initial()
    logger.info("Reset history to the initial entry")


def trim_history(handle: SharedHistory, keep_count: int) -> int:
    # outside the lock: a ValueError inside it would poison the handle
    if isinstance(keep_count, bool) or not isinstance(keep_count, int) or keep_count < 0:
        raise ValueError("keep_count must be a non-negative integer")
    with handle.lock() as store:
        removed = store.trim_history(keep_count)
    if removed:
        logger.info("Trimmed %d history entries", removed)
    return removed


def clear(handle: SharedHistory) -> None:
    with handle.lock() as store:
        store.clear()
    logger.info("Cleared history")


# Queries

def get_current_info(handle: SharedHistory) -> Optional[DatasetInfo]:
    with handle.lock() as store:
        return store.get_current_summary()


def get_current_frame(handle: SharedHistory) -> Optional[pd.DataFrame]:
    with handle.lock() as store:
        return store.get_current()


def get_current_data(handle: SharedHistory, offset: int = 0, limit: int = 100) -> DatasetPage:
    return page(require_current(handle), offset, limit)


def get_column_stats(handle: SharedHistory, column: str) -> ColumnStats:
    return column_stats(require_current(handle), column)
