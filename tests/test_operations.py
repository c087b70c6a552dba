import pytest

from wrangler.operations import (
    OPERATION_TYPES, CastTypes, DropAllNulls, DropColumns, DropNulls, FillKind, FillNull, FillStrategy,
    Filter, Import, Pivot, RenameColumns, Rolling, RollingStat, SelectColumns, Unpivot,
)


@pytest.mark.parametrize("operation, expected", [
    (Import("/home/me/data/sales.csv"), "Imported file: sales.csv"),
    (Unpivot(["id"], ["q1", "q2", "q3"]), "Wide to long (id columns: 1, value columns: 3)"),
    (Unpivot(["id", "year"], ["q1"], sort_column="id"), "Wide to long (id columns: 2, value columns: 1) [sorted by id]"),
    (Pivot(["a", "b"], "c", "v"), "Long to wide (index: a, b, columns: c, values: v)"),
    (DropNulls(["a", "b"]), "Drop rows with nulls (checking 2 columns)"),
    (DropNulls(), "Drop rows with nulls (checking all columns)"),
    (DropAllNulls(), "Drop fully empty rows"),
    (SelectColumns(["a", "b", "c"]), "Select columns (3 columns)"),
    (DropColumns(["a"]), "Drop columns (1 columns)"),
    (RenameColumns({"a": "b"}), "Rename columns (1 columns)"),
    (CastTypes({"a": "Int64", "b": "String"}), "Cast column types (2 columns)"),
    (Filter("a > 1"), "Filter rows"),
    (FillNull(FillStrategy(FillKind.FORWARD)), "Fill nulls (forward fill)"),
    (FillNull(FillStrategy.constant("n/a"), ["a"]), "Fill nulls (constant)"),
    (Rolling(RollingStat.MEAN, "price", 3), "Rolling mean (column: price, window: 3, centered: no, min periods: 1)"),
    (Rolling("quantile", "price", 5, center=True, min_periods=2, quantile=0.9),
     "Rolling quantile (column: price, window: 5, quantile: 0.9, centered: yes, min periods: 2)"),
])
def test_describe(operation, expected):
    assert operation.describe() == expected


def test_every_type_has_a_kind():
    kinds = [t.kind for t in OPERATION_TYPES]
    assert all(kinds)
    assert len(set(kinds)) == len(kinds)


def test_to_dict():
    op = FillNull(FillStrategy.constant(0), ["a", "b"])
    assert op.to_dict() == {
        "type": "fill_null",
        "params": {"strategy": {"type": "constant", "value": "0"}, "columns": ["a", "b"]},
    }
    assert Rolling("sum", "x", 2).params()["stat"] == "sum"
    assert DropAllNulls().to_dict() == {"type": "drop_all_nulls", "params": {}}


def test_sequences_are_frozen():
    cols = ["a", "b"]
    op = SelectColumns(cols)
    cols.append("c")
    assert op.columns == ("a", "b")
    assert op == SelectColumns(("a", "b"))
    assert DropNulls("a").subset == ("a",)


def test_fill_strategy_validation():
    with pytest.raises(ValueError):
        FillStrategy(FillKind.CONSTANT)
    with pytest.raises(ValueError):
        FillStrategy(FillKind.MEAN, "1")
    assert FillStrategy("median").kind is FillKind.MEDIAN
    assert FillStrategy(FillKind.ZERO).label == "0"


def test_rolling_quantile_needs_value():
    with pytest.raises(ValueError):
        Rolling(RollingStat.QUANTILE, "x", 3)
    with pytest.raises(ValueError):
        Rolling("nope", "x", 3)
