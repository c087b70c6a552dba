from __future__ import annotations
import datetime as _dt
import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .errors import TransformError


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    dtype: str
    null_count: int


@dataclass(frozen=True)
class DatasetInfo:
    id: str
    name: str
    rows: int
    columns: Tuple[ColumnInfo, ...]
    file_path: str = ""
    imported_at: str = ""

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, len(self.columns)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]


@dataclass(frozen=True)
class ColumnStats:
    name: str
    dtype: str
    total_count: int
    null_count: int
    unique_count: int
    max: Optional[float] = None
    min: Optional[float] = None
    mean: Optional[float] = None
    std: Optional[float] = None
    q25: Optional[float] = None
    q50: Optional[float] = None
    q75: Optional[float] = None
    min_datetime: Optional[str] = None
    max_datetime: Optional[str] = None
    datetime_range_days: Optional[float] = None
    true_count: Optional[int] = None
    false_count: Optional[int] = None


@dataclass(frozen=True)
class DatasetPage:
    columns: List[str]
    rows: List[List[Any]] = field(default_factory=list)
    total_rows: int = 0


def now_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat()


def summarise(df: pd.DataFrame, entry_id: str, name: str, file_path: str = "", imported_at: str | None = None) -> DatasetInfo:
    columns = tuple(
        ColumnInfo(name=str(col), dtype=str(df[col].dtype), null_count=int(df[col].isna().sum()))
        for col in df.columns
    )
    return DatasetInfo(
        id=entry_id,
        name=name,
        rows=len(df),
        columns=columns,
        file_path=file_path,
        imported_at=imported_at or now_iso(),
    )


def _as_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def _format_ts(value: Any) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value).strftime("%Y-%m-%d %H:%M:%S")


def column_stats(df: pd.DataFrame, column: str) -> ColumnStats:
    if column not in df.columns:
        raise TransformError(f"Column not found: {column}")
    s = df[column]
    total = len(s)
    nulls = int(s.isna().sum())
    stats: Dict[str, Any] = {
        "name": str(column),
        "dtype": str(s.dtype),
        "total_count": total,
        "null_count": nulls,
        "unique_count": int(s.nunique(dropna=False)),
    }
    if pd.api.types.is_bool_dtype(s):
        trues = int(s.dropna().astype(bool).sum())
        stats["true_count"] = trues
        stats["false_count"] = total - nulls - trues
    elif pd.api.types.is_numeric_dtype(s):
        values = s.dropna().astype("float64")
        if len(values):
            q25, q50, q75 = values.quantile([0.25, 0.5, 0.75]).tolist()
            stats.update(
                max=_as_float(values.max()),
                min=_as_float(values.min()),
                mean=_as_float(values.mean()),
                std=_as_float(values.std(ddof=1)),
                q25=_as_float(q25),
                q50=_as_float(q50),
                q75=_as_float(q75),
            )
    elif pd.api.types.is_datetime64_any_dtype(s):
        values = s.dropna()
        if len(values):
            lo, hi = values.min(), values.max()
            stats.update(
                min_datetime=_format_ts(lo),
                max_datetime=_format_ts(hi),
                datetime_range_days=(hi - lo) / pd.Timedelta(days=1),
            )
    return ColumnStats(**stats)


def cell_value(value: Any) -> Any:
    """Map a cell to something a table widget or JSON encoder can show."""
    if value is None:
        return None
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    if pd.api.types.is_bool(value):
        return bool(value)
    if isinstance(value, str):
        return value
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return _as_float(value)
    if isinstance(value, (pd.Timestamp, _dt.datetime)):
        return pd.Timestamp(value).strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, _dt.date):
        return value.isoformat()
    if isinstance(value, _dt.time):
        return value.strftime("%H:%M:%S")
    return str(value)


def page(df: pd.DataFrame, offset: int = 0, limit: int = 100) -> DatasetPage:
    total = len(df)
    start = min(max(offset, 0), total)
    end = min(start + max(limit, 0), total)
    sliced = df.iloc[start:end]
    rows = [[cell_value(v) for v in row] for row in sliced.itertuples(index=False, name=None)]
    return DatasetPage(columns=[str(c) for c in df.columns], rows=rows, total_rows=total)
