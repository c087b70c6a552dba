from __future__ import annotations
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .clean_columns import sanitise_columns
from .errors import TransformError
from .operations import (
    CastTypes, DropAllNulls, DropColumns, DropNulls, FillKind, FillNull, FillStrategy, Filter,
    Import, Operation, Pivot, RenameColumns, Rolling, RollingStat, SelectColumns, Unpivot,
)

TransformResult = Tuple[pd.DataFrame, Dict[str, Any], List[str]]

AGGREGATES = ("first", "last", "sum", "mean", "median", "count", "min", "max")

BOOL_WORDS = {
    "true": True, "false": False, "1": True, "0": False,
    "yes": True, "no": False, "t": True, "f": False, "y": True, "n": False,
}


def _require_columns(df: pd.DataFrame, columns: Sequence[str]) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise TransformError(f"Column not found: {', '.join(map(str, missing))}")


def _finish(df: pd.DataFrame, meta: Dict[str, Any], warnings: List[str], step: str) -> TransformResult:
    df, mapping = sanitise_columns(df)
    if mapping:
        meta["mapping"] = mapping
        warnings.append(f"Column names were sanitised after {step}")
    return df, meta, warnings


def _is_numeric(s: pd.Series) -> bool:
    return pd.api.types.is_numeric_dtype(s) and not pd.api.types.is_bool_dtype(s)


def drop_nulls(df: pd.DataFrame, subset: Optional[Sequence[str]] = None) -> TransformResult:
    if subset is not None:
        subset = list(subset)
        if not subset:
            raise TransformError("Choose at least one column to check")
        _require_columns(df, subset)
    result = df.dropna(subset=subset)
    return result, {"dropped_rows": len(df) - len(result)}, []


def drop_all_nulls(df: pd.DataFrame) -> TransformResult:
    if df.shape[1] == 0:
        return df.copy(), {"dropped_rows": 0}, []
    result = df.dropna(how="all")
    return result, {"dropped_rows": len(df) - len(result)}, []


def select_columns(df: pd.DataFrame, columns: Sequence[str]) -> TransformResult:
    columns = list(columns)
    if not columns:
        raise TransformError("Choose at least one column")
    if len(set(columns)) != len(columns):
        raise TransformError("Columns listed more than once")
    _require_columns(df, columns)
    return df[columns].copy(), {}, []


def drop_columns(df: pd.DataFrame, columns: Sequence[str]) -> TransformResult:
    columns = list(columns)
    if not columns:
        raise TransformError("Choose at least one column")
    _require_columns(df, columns)
    warnings = ["All columns were dropped"] if set(columns) >= set(df.columns) else []
    return df.drop(columns=columns), {}, warnings


def rename_columns(df: pd.DataFrame, mapping: Mapping[str, str]) -> TransformResult:
    if not mapping:
        raise TransformError("Nothing to rename")
    _require_columns(df, list(mapping))
    new_names = [str(mapping.get(c, c)) for c in df.columns]
    if any(not n.strip() for n in new_names):
        raise TransformError("Column names cannot be empty")
    if len(set(new_names)) != len(new_names):
        raise TransformError("Column names must be unique")
    return df.rename(columns=dict(mapping)), {}, []


def _to_numeric(s: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(s) and not pd.api.types.is_bool_dtype(s):
        return s
    if pd.api.types.is_bool_dtype(s):
        return s.astype("float64")
    return pd.to_numeric(s, errors="raise")


def _to_bool(s: pd.Series) -> pd.Series:
    if pd.api.types.is_bool_dtype(s) or pd.api.types.is_numeric_dtype(s):
        return s.astype("boolean")
    mask = s.notna()
    words = s[mask].astype(str).str.strip().str.lower()
    unknown = sorted(set(words) - set(BOOL_WORDS))
    if unknown:
        raise ValueError(f"not a boolean: {unknown[0]!r}")
    out = pd.Series(pd.NA, index=s.index, dtype="boolean")
    out[mask] = words.map(BOOL_WORDS).astype("boolean")
    return out


def _integer(dtype: str) -> Callable[[pd.Series], pd.Series]:
    return lambda s: _to_numeric(s).astype(dtype)


CAST_TYPES: Dict[str, Callable[[pd.Series], pd.Series]] = {
    "Int8": _integer("Int8"),
    "Int16": _integer("Int16"),
    "Int32": _integer("Int32"),
    "Int64": _integer("Int64"),
    "UInt8": _integer("UInt8"),
    "UInt16": _integer("UInt16"),
    "UInt32": _integer("UInt32"),
    "UInt64": _integer("UInt64"),
    "Float32": lambda s: _to_numeric(s).astype("float32"),
    "Float64": lambda s: _to_numeric(s).astype("float64"),
    "String": lambda s: s.astype("string"),
    "Boolean": _to_bool,
    "Date": lambda s: pd.to_datetime(s).dt.normalize(),
    "Datetime": lambda s: pd.to_datetime(s),
    "Time": lambda s: pd.to_datetime(s.astype("string")).dt.time,
    "Duration": lambda s: pd.to_timedelta(s),
}


def cast_types(df: pd.DataFrame, mapping: Mapping[str, str]) -> TransformResult:
    if not mapping:
        raise TransformError("Nothing to cast")
    _require_columns(df, list(mapping))
    work = df.copy()
    for col, target in mapping.items():
        caster = CAST_TYPES.get(target)
        if caster is None:
            raise TransformError(f"Unsupported type: {target}")
        try:
            work[col] = caster(work[col])
        except (ValueError, TypeError, OverflowError) as exc:
            raise TransformError(f"Failed to cast column {col} to {target}: {exc}") from exc
    return work, {"dtypes": {c: str(work[c].dtype) for c in mapping}}, []


def filter_rows(df: pd.DataFrame, expression: str) -> TransformResult:
    expression = (expression or "").strip()
    if not expression:
        raise TransformError("Filter expression is empty")
    try:
        result = df.query(expression, engine="python")
    except (SyntaxError, NameError, KeyError, TypeError, ValueError, AttributeError) as exc:
        raise TransformError(f"Invalid filter expression: {exc}") from exc
    if not isinstance(result, pd.DataFrame):
        raise TransformError("Filter expression must select rows")
    return result, {"kept_rows": len(result), "dropped_rows": len(df) - len(result)}, []


def _fill_numeric(s: pd.Series, value: float) -> pd.Series:
    if not s.isna().any():
        return s
    if pd.api.types.is_integer_dtype(s):
        if float(value) != int(value):
            return s.astype("float64").fillna(float(value))
        return s.fillna(int(value))
    return s.fillna(value)


def fill_null(df: pd.DataFrame, strategy: FillStrategy, columns: Optional[Sequence[str]] = None) -> TransformResult:
    if columns is not None and not list(columns):
        raise TransformError("Choose at least one column")
    targets = list(df.columns) if columns is None else list(columns)
    _require_columns(df, targets)
    work = df.copy()
    warnings: List[str] = []
    before = work[targets].isna().sum().to_dict()
    kind = strategy.kind
    stats = {
        FillKind.MEAN: lambda s: s.mean(),
        FillKind.MEDIAN: lambda s: s.median(),
        FillKind.MIN: lambda s: s.min(),
        FillKind.MAX: lambda s: s.max(),
    }
    skipped: List[str] = []
    for col in targets:
        s = work[col]
        if kind is FillKind.FORWARD:
            work[col] = s.ffill()
        elif kind is FillKind.BACKWARD:
            work[col] = s.bfill()
        elif kind in stats or kind in (FillKind.ZERO, FillKind.ONE):
            if not _is_numeric(s):
                skipped.append(str(col))
                continue
            if kind is FillKind.ZERO:
                value = 0
            elif kind is FillKind.ONE:
                value = 1
            else:
                value = stats[kind](s.dropna())
                if pd.isna(value):
                    continue
            work[col] = _fill_numeric(s, value)
        else:
            if _is_numeric(s):
                try:
                    value = float(strategy.value)
                except (TypeError, ValueError):
                    raise TransformError(f"Column {col} is numeric; {strategy.value!r} is not a number") from None
                work[col] = _fill_numeric(s, value)
            else:
                work[col] = s.fillna(strategy.value)
    if skipped:
        warnings.append(f"Skipped non-numeric columns: {', '.join(skipped)}")
    after = work[targets].isna().sum().to_dict()
    filled = {str(c): int(before[c] - after[c]) for c in targets}
    return work, {"filled_counts": filled}, warnings


def make_longer(df: pd.DataFrame, id_vars: Sequence[str], value_vars: Sequence[str], variable_name: str = "variable",
                value_name: str = "value", sort_column: Optional[str] = None) -> TransformResult:
    id_vars, value_vars = list(id_vars), list(value_vars)
    _require_columns(df, id_vars + value_vars)
    if set(id_vars) & set(value_vars):
        raise TransformError("A column cannot be both an id and a value column")
    try:
        melted = df.melt(id_vars=id_vars, value_vars=value_vars or None, var_name=variable_name, value_name=value_name)
    except (KeyError, ValueError) as exc:
        raise TransformError(str(exc)) from exc
    if sort_column:
        if sort_column not in melted.columns:
            raise TransformError(f"Column not found: {sort_column}")
        melted = melted.sort_values(sort_column, kind="stable").reset_index(drop=True)
    return _finish(melted, {}, [], "unpivot")


def make_wider(df: pd.DataFrame, index: Sequence[str], columns: str, values: str, aggregate: Optional[str] = None) -> TransformResult:
    index = list(index)
    if not index:
        raise TransformError("Choose at least one index column")
    if not columns:
        raise TransformError("Choose a column to spread")
    if not values:
        raise TransformError("Choose a values column")
    _require_columns(df, index + [columns, values])
    if aggregate and aggregate not in AGGREGATES:
        raise TransformError(f"Unsupported aggregation: {aggregate}")
    duplicates = bool(df.duplicated(subset=index + [columns]).any())
    if duplicates and not aggregate:
        raise TransformError("Duplicates detected; choose aggregation")
    try:
        if aggregate:
            pivoted = df.pivot_table(index=index, columns=columns, values=values, aggfunc=aggregate)
        else:
            pivoted = df.pivot(index=index, columns=columns, values=values)
    except (KeyError, ValueError, TypeError) as exc:
        raise TransformError(str(exc)) from exc
    pivoted = pivoted.reset_index()
    pivoted.columns.name = None
    warnings = [f"Duplicates aggregated using {aggregate}"] if duplicates else []
    return _finish(pivoted, {"duplicates_detected": duplicates}, warnings, "pivot")


def rolling(df: pd.DataFrame, stat: RollingStat | str, column: str, window_size: int, center: bool = False,
            min_periods: Optional[int] = None, quantile: Optional[float] = None) -> TransformResult:
    stat = RollingStat(stat)
    _require_columns(df, [column])
    if window_size < 1:
        raise TransformError("Window size must be positive")
    min_p = 1 if min_periods is None else min_periods
    if not 1 <= min_p <= window_size:
        raise TransformError("Minimum periods must be between 1 and the window size")
    s = df[column]
    if not _is_numeric(s):
        raise TransformError(f"Column {column} is not numeric")
    window = s.astype("float64").rolling(window=window_size, center=center, min_periods=min_p)
    if stat is RollingStat.QUANTILE:
        if quantile is None or not 0 <= quantile <= 1:
            raise TransformError("Quantile must be between 0 and 1")
        result = window.quantile(quantile)
    else:
        result = getattr(window, stat.value)()
    name = f"{column}_rolling_{stat.value}_{window_size}"
    warnings = [f"Replaced existing column {name}"] if name in df.columns else []
    return df.assign(**{name: result}), {"column": name}, warnings


def _unsupported(df: pd.DataFrame, op: Operation) -> TransformResult:
    raise TransformError(f"{type(op).__name__} is not a transform")


_DISPATCH: Dict[type, Callable[[pd.DataFrame, Any], TransformResult]] = {
    Import: _unsupported,
    Unpivot: lambda df, op: make_longer(df, op.id_vars, op.value_vars, op.variable_name, op.value_name, op.sort_column),
    Pivot: lambda df, op: make_wider(df, op.index, op.columns, op.values, op.aggregate),
    DropNulls: lambda df, op: drop_nulls(df, op.subset),
    DropAllNulls: lambda df, op: drop_all_nulls(df),
    SelectColumns: lambda df, op: select_columns(df, op.columns),
    DropColumns: lambda df, op: drop_columns(df, op.columns),
    RenameColumns: lambda df, op: rename_columns(df, op.mapping),
    CastTypes: lambda df, op: cast_types(df, op.mapping),
    Filter: lambda df, op: filter_rows(df, op.expression),
    FillNull: lambda df, op: fill_null(df, op.strategy, op.columns),
    Rolling: lambda df, op: rolling(df, op.stat, op.column, op.window_size, op.center, op.min_periods, op.quantile),
}


def apply_operation(df: pd.DataFrame, op: Operation) -> TransformResult:
    fn = _DISPATCH.get(type(op))
    if fn is None:
        raise TransformError(f"Unknown operation: {type(op).__name__}")
    return fn(df, op)
