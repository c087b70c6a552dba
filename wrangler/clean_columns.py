from __future__ import annotations
import re
import pandas as pd
from typing import Any, List, Tuple, Dict

UNNAMED_PATTERN = re.compile(r"^Unnamed(:\s*\d+)?(_level_\d+)?$", re.IGNORECASE)


def is_invalid(name: Any) -> bool:
    if name is None:
        return True
    if isinstance(name, float) and pd.isna(name):
        return True
    s = str(name).strip()
    return s == "" or bool(UNNAMED_PATTERN.match(s))


def dedupe(names: List[str]) -> List[str]:
    seen: Dict[str, int] = {}
    taken = set(names)
    result: List[str] = []
    for name in names:
        count = seen.get(name, 0)
        seen[name] = count + 1
        if count == 0:
            result.append(name)
            continue
        # skip suffixes that collide with a real column
        suffix = count + 1
        while f"{name}.{suffix}" in taken:
            suffix += 1
        new = f"{name}.{suffix}"
        taken.add(new)
        result.append(new)
    return result


def propose_safe_columns(columns: List[Any]) -> tuple[List[str], List[Tuple[str, str]]]:
    """Return safe column names and the (old, new) pairs that changed."""
    safe_cols: List[str] = []
    for idx, col in enumerate(columns):
        safe_cols.append(f"column_{idx + 1}" if is_invalid(col) else str(col).strip())
    safe_cols = dedupe(safe_cols)
    mapping = [(str(old), new) for old, new in zip(columns, safe_cols) if str(old) != new]
    return safe_cols, mapping


def sanitise_columns(df: pd.DataFrame) -> tuple[pd.DataFrame, List[Tuple[str, str]]]:
    """Return a frame with safe column names plus the renames applied.

    The input is returned as-is when nothing needs fixing.
    """
    safe_cols, mapping = propose_safe_columns(list(df.columns))
    if not mapping and all(isinstance(c, str) for c in df.columns):
        return df, []
    df = df.copy(deep=False)
    df.columns = safe_cols
    return df, mapping
