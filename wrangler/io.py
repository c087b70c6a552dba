from __future__ import annotations
import logging
import os
import zipfile
from dataclasses import dataclass
from typing import List, Optional, Tuple

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from .clean_columns import sanitise_columns
from .errors import LoadError

logger = logging.getLogger(__name__)

CSV_EXTS = ("csv", "tsv", "txt")
EXCEL_EXTS = ("xlsx", "xlsm")
PARQUET_EXTS = ("parquet", "pq")
SEPARATOR_CANDIDATES = (",", "\t", ";", "|")
SNIFF_LINES = 10
EXCEL_ERRORS = (OSError, ValueError, KeyError, InvalidFileException, zipfile.BadZipFile)


@dataclass
class FileContext:
    path: str
    ext: str
    sheet_name: Optional[str] = None
    separator: Optional[str] = None


def file_ext(path: str) -> str:
    return os.path.splitext(path)[1].lower().lstrip(".")


def _sample_lines(path: str, encoding: str) -> List[str]:
    lines: List[str] = []
    with open(path, "r", encoding=encoding, errors="replace", newline="") as fh:
        for line in fh:
            line = line.rstrip("\r\n")
            if line:
                lines.append(line)
            if len(lines) >= SNIFF_LINES:
                break
    return lines


def detect_separator(path: str, encoding: str = "utf-8") -> str:
    """Pick the candidate that splits the sample into the most even field counts."""
    lines = _sample_lines(path, encoding)
    if len(lines) < 2:
        return ","
    best, best_score = ",", float("inf")
    for sep in SEPARATOR_CANDIDATES:
        counts = [line.count(sep) + 1 for line in lines]
        mean = sum(counts) / len(counts)
        variance = sum((c - mean) ** 2 for c in counts) / len(counts)
        if mean >= 2 and variance < best_score:
            best, best_score = sep, variance
    return best


def read_csv(path: str, encoding_try: Tuple[str, ...] = ("utf-8", "cp1251"), separator: Optional[str] = None) -> pd.DataFrame:
    last_err: Exception | None = None
    for enc in encoding_try:
        try:
            sep = separator or detect_separator(path, enc)
            df = pd.read_csv(path, sep=sep, encoding=enc)
            return sanitise_columns(df)[0]
        except UnicodeDecodeError as exc:
            last_err = exc
            continue
        except (OSError, ValueError) as exc:
            raise LoadError(f"Failed to load CSV: {exc}") from exc
    raise LoadError(f"Failed to load CSV: {last_err}")


def get_sheet_names(path: str) -> List[str]:
    from openpyxl import load_workbook
    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except EXCEL_ERRORS as exc:
        raise LoadError(f"Failed to open workbook: {exc}") from exc
    try:
        return list(wb.sheetnames)
    finally:
        wb.close()


def read_excel(path: str, sheet_name: Optional[str] = None) -> pd.DataFrame:
    if sheet_name is None:
        sheets = get_sheet_names(path)
        if not sheets:
            raise LoadError("No sheets found")
        sheet_name = sheets[0]
    try:
        df = pd.read_excel(path, sheet_name=sheet_name, engine="openpyxl")
    except EXCEL_ERRORS as exc:
        raise LoadError(f"Failed to load Excel: {exc}") from exc
    if df.shape[1] == 0:
        raise LoadError("Empty Excel sheet")
    return sanitise_columns(df)[0]


def read_parquet(path: str) -> pd.DataFrame:
    try:
        df = pd.read_parquet(path, engine="pyarrow")
    except (OSError, ValueError) as exc:
        raise LoadError(f"Failed to load Parquet: {exc}") from exc
    return sanitise_columns(df)[0]


def load_file(path: str, sheet_name: Optional[str] = None) -> tuple[pd.DataFrame, FileContext]:
    if not os.path.isfile(path):
        raise LoadError(f"File not found: {path}")
    ext = file_ext(path)
    if ext in CSV_EXTS:
        sep = detect_separator(path)
        df = read_csv(path, separator=sep)
        ctx = FileContext(path=path, ext=ext, separator=sep)
    elif ext in EXCEL_EXTS:
        df = read_excel(path, sheet_name)
        ctx = FileContext(path=path, ext=ext, sheet_name=sheet_name)
    elif ext in PARQUET_EXTS:
        df = read_parquet(path)
        ctx = FileContext(path=path, ext=ext)
    else:
        raise LoadError(f"Unsupported file type: .{ext}" if ext else "Unsupported file type")
    logger.info("Loaded %s: %d rows x %d columns", os.path.basename(path), df.shape[0], df.shape[1])
    return df, ctx


def export_csv(df: pd.DataFrame, path: str) -> str:
    try:
        df.to_csv(path, index=False)
    except OSError as exc:
        raise LoadError(f"Failed to write CSV: {exc}") from exc
    return path


def export_parquet(df: pd.DataFrame, path: str) -> str:
    try:
        df.to_parquet(path, index=False, engine="pyarrow")
    except (OSError, ValueError, TypeError, NotImplementedError) as exc:
        raise LoadError(f"Failed to write Parquet: {exc}") from exc
    return path


def export_excel(df: pd.DataFrame, path: str) -> str:
    try:
        df.to_excel(path, index=False, engine="openpyxl")
    except (OSError, ValueError) as exc:
        raise LoadError(f"Failed to write Excel: {exc}") from exc
    return path


EXPORTERS = {
    "csv": export_csv,
    "parquet": export_parquet,
    "xlsx": export_excel,
}
