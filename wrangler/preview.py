from __future__ import annotations
from typing import Any, Dict, Tuple
import pandas as pd

from .operations import Operation
from .transforms import apply_operation


def run_preview(df: pd.DataFrame, operation: Operation) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    after_df, meta, warnings = apply_operation(df, operation)
    meta = dict(meta or {})
    meta.update({
        "description": operation.describe(),
        "before_shape": df.shape,
        "after_shape": after_df.shape,
        "warnings": warnings,
    })
    return after_df, meta


def format_meta(meta: Dict[str, Any]) -> str:
    if not meta:
        return ""
    text = f"Before {meta.get('before_shape')} → After {meta.get('after_shape')}"
    warnings = meta.get("warnings")
    if warnings:
        text += " | " + "; ".join(warnings)
    return text
