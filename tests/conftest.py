import itertools

import pandas as pd
import pytest

from wrangler.history import HistoryEntry, HistoryStore
from wrangler.operations import Import
from wrangler.shared import SharedHistory

_ids = itertools.count()


@pytest.fixture
def make_entry():
    """Factory for entries holding a tiny frame; ids default to e0, e1, ..."""

    def _make(entry_id=None, operation=None, rows=1):
        entry_id = entry_id or f"e{next(_ids)}"
        frame = pd.DataFrame({"x": list(range(rows))})
        operation = operation or Import(file_path=f"/data/{entry_id}.csv")
        return HistoryEntry.create(operation, frame, entry_id=entry_id, timestamp="2024-05-01T12:00:00+00:00")

    return _make


@pytest.fixture
def store():
    return HistoryStore(max_depth=50)


@pytest.fixture
def handle():
    return SharedHistory(max_depth=50)


@pytest.fixture
def sales_df():
    return pd.DataFrame({
        "region": ["EU", "EU", "US", "US"],
        "year": [2022, 2023, 2022, 2023],
        "q1": [10.0, 12.0, None, 9.0],
        "q2": [11.0, None, 8.0, 7.0],
    })


@pytest.fixture
def nulls_df():
    return pd.DataFrame({
        "a": [1.0, None, 3.0, None],
        "b": ["x", None, None, None],
        "c": [1, 2, 3, 4],
    })


@pytest.fixture
def csv_path(tmp_path, sales_df):
    path = tmp_path / "sales.csv"
    sales_df.to_csv(path, index=False)
    return str(path)
