import datetime as dt

import numpy as np
import pandas as pd
import pytest

from wrangler.errors import TransformError
from wrangler.summary import cell_value, column_stats, page, summarise


def test_summarise(sales_df):
    info = summarise(sales_df, "id-1", "sales.csv", file_path="/tmp/sales.csv", imported_at="t")
    assert info.shape == (4, 4)
    assert info.column_names == ["region", "year", "q1", "q2"]
    assert [c.null_count for c in info.columns] == [0, 0, 1, 1]
    assert info.columns[1].dtype == "int64"


def test_numeric_stats(sales_df):
    stats = column_stats(sales_df, "year")
    assert stats.total_count == 4
    assert stats.unique_count == 2
    assert stats.min == 2022.0
    assert stats.max == 2023.0
    assert stats.q50 == pytest.approx(2022.5)
    assert stats.true_count is None


def test_bool_and_datetime_stats():
    df = pd.DataFrame({
        "flag": [True, False, True],
        "when": pd.to_datetime(["2024-01-01", None, "2024-01-11"]),
    })
    flag = column_stats(df, "flag")
    assert (flag.true_count, flag.false_count) == (2, 1)
    assert flag.mean is None
    when = column_stats(df, "when")
    assert when.null_count == 1
    assert when.min_datetime == "2024-01-01 00:00:00"
    assert when.datetime_range_days == pytest.approx(10.0)


def test_stats_unknown_column(sales_df):
    with pytest.raises(TransformError):
        column_stats(sales_df, "nope")


@pytest.mark.parametrize("value, expected", [
    (None, None),
    (np.nan, None),
    (pd.NA, None),
    (np.bool_(True), True),
    (np.int64(3), 3),
    (np.float64(1.5), 1.5),
    (float("inf"), None),
    (pd.Timestamp("2024-02-03 04:05:06"), "2024-02-03 04:05:06"),
    (dt.date(2024, 2, 3), "2024-02-03"),
    (dt.time(4, 5, 6), "04:05:06"),
    ("text", "text"),
])
def test_cell_value(value, expected):
    assert cell_value(value) == expected


def test_page_clamps(sales_df):
    assert page(sales_df, offset=10, limit=5).rows == []
    assert len(page(sales_df, offset=-3, limit=2).rows) == 2
    assert page(sales_df, offset=0, limit=0).total_rows == 4


def test_first_page_with_whole_frame_null_counts(sales_df):
    data = page(sales_df, 0, 2)
    infos = summarise(sales_df, "", "").columns
    assert data.rows == [["EU", 2022, 10.0, 11.0], ["EU", 2023, 12.0, None]]
    assert data.total_rows == 4
    assert [(c.name, c.null_count) for c in infos] == [("region", 0), ("year", 0), ("q1", 1), ("q2", 1)]
