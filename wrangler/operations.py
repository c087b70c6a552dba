"""Operation records: which transformation produced a history entry.

Records describe a step for display; they are not replayed. The set of
record types is closed, see ``OPERATION_TYPES``.
"""
from __future__ import annotations
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Sequence, Tuple, Union


class FillKind(str, Enum):
    CONSTANT = "constant"
    FORWARD = "forward"
    BACKWARD = "backward"
    MEAN = "mean"
    MEDIAN = "median"
    MIN = "min"
    MAX = "max"
    ZERO = "zero"
    ONE = "one"


FILL_LABELS = {
    FillKind.CONSTANT: "constant",
    FillKind.FORWARD: "forward fill",
    FillKind.BACKWARD: "backward fill",
    FillKind.MEAN: "mean",
    FillKind.MEDIAN: "median",
    FillKind.MIN: "minimum",
    FillKind.MAX: "maximum",
    FillKind.ZERO: "0",
    FillKind.ONE: "1",
}


@dataclass(frozen=True)
class FillStrategy:
    kind: FillKind
    value: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", FillKind(self.kind))
        if self.kind is FillKind.CONSTANT and self.value is None:
            raise ValueError("Constant fill needs a value")
        if self.kind is not FillKind.CONSTANT and self.value is not None:
            raise ValueError(f"{self.kind.value} fill takes no value")

    @classmethod
    def constant(cls, value: Any) -> "FillStrategy":
        return cls(FillKind.CONSTANT, str(value))

    @property
    def label(self) -> str:
        return FILL_LABELS[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        if self.kind is FillKind.CONSTANT:
            return {"type": self.kind.value, "value": self.value}
        return {"type": self.kind.value}


class RollingStat(str, Enum):
    MEAN = "mean"
    MEDIAN = "median"
    SUM = "sum"
    MIN = "min"
    MAX = "max"
    STD = "std"
    VAR = "var"
    QUANTILE = "quantile"


def _names(values: Optional[Sequence[str]]) -> Optional[Tuple[str, ...]]:
    if values is None:
        return None
    if isinstance(values, str):
        return (values,)
    return tuple(values)


class _Record:
    kind: ClassVar[str] = ""

    def params(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            elif isinstance(value, FillStrategy):
                value = value.to_dict()
            elif isinstance(value, Enum):
                value = value.value
            out[f.name] = value
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "params": self.params()}

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Import(_Record):
    kind: ClassVar[str] = "import"
    file_path: str

    def describe(self) -> str:
        name = os.path.basename(self.file_path) or "unknown file"
        return f"Imported file: {name}"


@dataclass(frozen=True)
class Unpivot(_Record):
    kind: ClassVar[str] = "unpivot"
    id_vars: Tuple[str, ...]
    value_vars: Tuple[str, ...]
    variable_name: str = "variable"
    value_name: str = "value"
    sort_column: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "id_vars", _names(self.id_vars))
        object.__setattr__(self, "value_vars", _names(self.value_vars))

    def describe(self) -> str:
        base = f"Wide to long (id columns: {len(self.id_vars)}, value columns: {len(self.value_vars)})"
        if self.sort_column:
            return f"{base} [sorted by {self.sort_column}]"
        return base


@dataclass(frozen=True)
class Pivot(_Record):
    kind: ClassVar[str] = "pivot"
    index: Tuple[str, ...]
    columns: str
    values: str
    aggregate: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "index", _names(self.index))

    def describe(self) -> str:
        text = f"Long to wide (index: {', '.join(self.index)}, columns: {self.columns}, values: {self.values})"
        if self.aggregate:
            text += f" [{self.aggregate}]"
        return text


@dataclass(frozen=True)
class DropNulls(_Record):
    kind: ClassVar[str] = "drop_nulls"
    subset: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, "subset", _names(self.subset))

    def describe(self) -> str:
        if self.subset is not None:
            return f"Drop rows with nulls (checking {len(self.subset)} columns)"
        return "Drop rows with nulls (checking all columns)"


@dataclass(frozen=True)
class DropAllNulls(_Record):
    kind: ClassVar[str] = "drop_all_nulls"

    def describe(self) -> str:
        return "Drop fully empty rows"


@dataclass(frozen=True)
class SelectColumns(_Record):
    kind: ClassVar[str] = "select_columns"
    columns: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "columns", _names(self.columns))

    def describe(self) -> str:
        return f"Select columns ({len(self.columns)} columns)"


@dataclass(frozen=True)
class DropColumns(_Record):
    kind: ClassVar[str] = "drop_columns"
    columns: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "columns", _names(self.columns))

    def describe(self) -> str:
        return f"Drop columns ({len(self.columns)} columns)"


@dataclass(frozen=True)
class RenameColumns(_Record):
    kind: ClassVar[str] = "rename_columns"
    mapping: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "mapping", dict(self.mapping))

    def describe(self) -> str:
        return f"Rename columns ({len(self.mapping)} columns)"


@dataclass(frozen=True)
class CastTypes(_Record):
    kind: ClassVar[str] = "cast_types"
    mapping: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "mapping", dict(self.mapping))

    def describe(self) -> str:
        return f"Cast column types ({len(self.mapping)} columns)"


@dataclass(frozen=True)
class Filter(_Record):
    kind: ClassVar[str] = "filter"
    expression: str

    def describe(self) -> str:
        return "Filter rows"


@dataclass(frozen=True)
class FillNull(_Record):
    kind: ClassVar[str] = "fill_null"
    strategy: FillStrategy
    columns: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, "columns", _names(self.columns))

    def describe(self) -> str:
        return f"Fill nulls ({self.strategy.label})"


@dataclass(frozen=True)
class Rolling(_Record):
    kind: ClassVar[str] = "rolling"
    stat: RollingStat
    column: str
    window_size: int
    center: bool = False
    min_periods: Optional[int] = None
    quantile: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "stat", RollingStat(self.stat))
        if self.stat is RollingStat.QUANTILE and self.quantile is None:
            raise ValueError("Rolling quantile needs a quantile")

    def describe(self) -> str:
        centered = "yes" if self.center else "no"
        min_p = self.min_periods if self.min_periods is not None else 1
        quantile = f", quantile: {self.quantile}" if self.stat is RollingStat.QUANTILE else ""
        return (
            f"Rolling {self.stat.value} (column: {self.column}, window: {self.window_size}"
            f"{quantile}, centered: {centered}, min periods: {min_p})"
        )


Operation = Union[
    Import, Unpivot, Pivot, DropNulls, DropAllNulls, SelectColumns, DropColumns,
    RenameColumns, CastTypes, Filter, FillNull, Rolling,
]

OPERATION_TYPES = (
    Import, Unpivot, Pivot, DropNulls, DropAllNulls, SelectColumns, DropColumns,
    RenameColumns, CastTypes, Filter, FillNull, Rolling,
)
