import pytest

from wrangler import handlers
from wrangler.config import Settings
from wrangler.errors import NoDataError
from wrangler.operations import DropNulls, SelectColumns
from wrangler.preview import format_meta
from wrangler.state import AppState


@pytest.fixture
def state(csv_path):
    state = AppState(settings=Settings(max_history=5))
    handlers.import_file(state.history, csv_path)
    return state


def test_history_uses_settings(state):
    assert state.history.read(lambda store: store.max_depth) == 5


def test_preview_then_commit(state):
    op = DropNulls(["q2"])
    df, meta = state.compute_preview(op)
    assert meta["before_shape"] == (4, 4)
    assert meta["after_shape"] == (3, 4)
    assert meta["description"] == "Drop rows with nulls (checking 1 columns)"
    state.set_preview(op, df, meta)
    assert len(handlers.get_history(state.history)) == 1
    info = state.commit_preview()
    assert info.rows == 3
    assert state.current_df is df
    assert state.preview_df is None
    assert len(handlers.get_history(state.history)) == 2


def test_commit_without_preview(state):
    assert state.commit_preview() is None
    assert len(handlers.get_history(state.history)) == 1


def test_undo_clears_preview(state):
    handlers.drop_nulls(state.history)
    op = SelectColumns(["region"])
    state.set_preview(op, *state.compute_preview(op))
    state.undo()
    assert state.preview_operation is None
    assert state.current_df.shape == (4, 4)
    state.redo()
    assert state.current_df.shape == (2, 4)


def test_preview_needs_data():
    with pytest.raises(NoDataError):
        AppState().compute_preview(DropNulls())


def test_format_meta():
    assert format_meta({}) == ""
    text = format_meta({"before_shape": (4, 2), "after_shape": (3, 2), "warnings": ["careful"]})
    assert text == "Before (4, 2) → After (3, 2) | careful"


def test_preview_of_a_moved_entry_is_dropped(state):
    handlers.rename_columns(state.history, {"q1": "first"})
    op = SelectColumns(["first"])
    df, meta = state.compute_preview(op)
    handlers.undo(state.history)
    assert state.set_preview(op, df, meta) is False
    assert state.preview_df is None
    assert state.commit_preview() is None
    history = handlers.get_history(state.history)
    assert [e.description for e in history] == ["Imported file: sales.csv", "Rename columns (1 columns)"]
    assert handlers.get_current_index(state.history) == 0


def test_commit_checks_the_base_entry(state):
    handlers.rename_columns(state.history, {"q1": "first"})
    op = SelectColumns(["first"])
    assert state.set_preview(op, *state.compute_preview(op)) is True
    handlers.undo(state.history)
    assert state.commit_preview() is None
    assert state.preview_operation is None
    assert handlers.get_current_info(state.history).column_names == ["region", "year", "q1", "q2"]
    assert len(handlers.get_history(state.history)) == 2
    handlers.redo(state.history)
    assert state.set_preview(op, *state.compute_preview(op)) is True
    assert state.commit_preview().column_names == ["first"]


def test_preview_records_base_entry(state):
    _, meta = state.compute_preview(DropNulls())
    assert meta["base_entry_id"] == handlers.get_history(state.history)[0].id
