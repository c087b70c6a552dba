import pandas as pd
import pytest

from wrangler.errors import AtBoundaryError, EmptyHistoryError, EntryNotFoundError, ErrorKind, NoDataError
from wrangler.history import HistoryEntry, HistoryStore
from wrangler.operations import DropAllNulls, Import


def ids(store):
    return [info.id for info in store.get_history()]


def fill(store, make_entry, names):
    for name in names:
        store.push(make_entry(name))


def test_empty_store(store):
    assert store.get_current() is None
    assert store.get_current_summary() is None
    assert store.get_current_index() is None
    assert not store.can_undo()
    assert not store.can_redo()
    with pytest.raises(NoDataError):
        store.undo()
    with pytest.raises(NoDataError):
        store.redo()
    with pytest.raises(EmptyHistoryError):
        store.reset_to_initial()


def test_single_import(store, make_entry):
    entry = make_entry("a")
    store.push(entry)
    assert not store.can_undo()
    assert not store.can_redo()
    store.reset_to_initial()
    assert ids(store) == ["a"]
    assert store.get_current_index() == 0
    assert store.get_current() is entry.frame


def test_cursor_follows_pushes(store, make_entry):
    for k in range(1, 8):
        store.push(make_entry())
        assert store.get_current_index() == k - 1
        assert store.history_len() == len(store) == k


def test_max_depth_scenario(make_entry):
    store = HistoryStore(max_depth=3)
    fill(store, make_entry, "ABCD")
    assert ids(store) == ["B", "C", "D"]
    assert store.get_current_index() == 2
    store.undo()
    store.undo()
    assert store.get_current_index() == 0
    assert store.get_current_entry().id == "B"
    assert not store.can_undo()
    store.push(make_entry("E"))
    assert ids(store) == ["B", "E"]
    assert store.get_current_index() == 1
    assert not store.can_redo()
    for gone in "ACD":
        with pytest.raises(EntryNotFoundError):
            store.jump_to(gone)
        assert store.get_current_index() == 1


def test_depth_bound_holds(make_entry):
    store = HistoryStore(max_depth=5)
    for _ in range(20):
        store.push(make_entry())
        assert len(store) <= 5


def test_eviction_drops_oldest(make_entry):
    store = HistoryStore(max_depth=4)
    fill(store, make_entry, ["a", "b", "c", "d"])
    store.push(make_entry("e"))
    assert len(store) == 4
    assert "a" not in ids(store)
    assert store.get_current_index() == 3
    assert store.get_current_entry().id == "e"
    with pytest.raises(EntryNotFoundError):
        store.jump_to("a")
    assert store.get_current_index() == 3
    store.undo()
    with pytest.raises(EntryNotFoundError):
        store.jump_to("a")
    assert store.get_current_index() == 2


def test_undo_then_redo_restores_snapshot(store, make_entry):
    fill(store, make_entry, ["a", "b", "c"])
    before = store.get_current()
    store.undo()
    assert store.get_current() is not before
    store.redo()
    assert store.get_current_index() == 2
    assert store.get_current() is before


def test_push_after_undo_discards_redo_branch(store, make_entry):
    fill(store, make_entry, ["a", "b", "c", "d"])
    store.undo()
    store.undo()
    cursor = store.get_current_index()
    store.push(make_entry("new"))
    assert len(store.get_history()) == cursor + 2
    assert ids(store) == ["a", "b", "new"]
    with pytest.raises(AtBoundaryError):
        store.redo()


def test_boundaries(store, make_entry):
    fill(store, make_entry, ["a", "b"])
    with pytest.raises(AtBoundaryError, match="latest"):
        store.redo()
    store.undo()
    with pytest.raises(AtBoundaryError, match="earliest"):
        store.undo()
    assert store.get_current_index() == 0


def test_reset_to_initial(store, make_entry):
    fill(store, make_entry, ["a", "b", "c"])
    store.undo()
    store.reset_to_initial()
    assert ids(store) == ["a"]
    assert store.get_current_index() == 0
    with pytest.raises(AtBoundaryError):
        store.redo()


def test_jump_to(store, make_entry):
    fill(store, make_entry, ["a", "b", "c"])
    store.jump_to("a")
    assert store.get_current_index() == 0
    assert store.can_redo()
    store.jump_to("c")
    assert store.get_current_index() == 2


def test_jump_to_unknown_keeps_cursor(store, make_entry):
    fill(store, make_entry, ["a", "b", "c"])
    store.undo()
    with pytest.raises(EntryNotFoundError) as info:
        store.jump_to("zzz")
    assert info.value.entry_id == "zzz"
    assert store.get_current_index() == 1


def test_push_after_clear_starts_fresh(store, make_entry):
    fill(store, make_entry, ["a", "b"])
    store.clear()
    assert store.get_current_index() is None
    assert store.get_history() == []
    store.push(make_entry("c"))
    assert ids(store) == ["c"]
    assert store.get_current_index() == 0


def test_trim_history(store, make_entry):
    fill(store, make_entry, ["a", "b", "c", "d", "e"])
    store.undo()
    assert store.trim_history(2) == 3
    assert ids(store) == ["d", "e"]
    assert store.get_current_index() == 0


def test_trim_clamps_cursor(store, make_entry):
    fill(store, make_entry, ["a", "b", "c", "d"])
    store.jump_to("a")
    store.trim_history(2)
    assert ids(store) == ["c", "d"]
    assert store.get_current_index() == 0


def test_trim_noop_and_zero(store, make_entry):
    fill(store, make_entry, ["a", "b"])
    assert store.trim_history(5) == 0
    assert ids(store) == ["a", "b"]
    assert store.trim_history(0) == 2
    assert len(store) == 0
    assert store.get_current_index() is None


def test_history_has_no_frames(store, make_entry):
    store.push(make_entry("a", rows=3))
    (info,) = store.get_history()
    assert not hasattr(info, "frame")
    assert info.summary.rows == 3
    assert info.description == "Imported file: a.csv"


def test_get_history_is_a_copy(store, make_entry):
    fill(store, make_entry, ["a"])
    store.get_history().clear()
    assert len(store) == 1


def test_entry_summary_names():
    frame = pd.DataFrame({"x": [1, None]})
    imported = HistoryEntry.create(Import("/tmp/data/sales.csv"), frame, entry_id="i", timestamp="t")
    assert imported.summary.name == "sales.csv"
    assert imported.summary.file_path == "/tmp/data/sales.csv"
    assert imported.summary.columns[0].null_count == 1
    step = HistoryEntry.create(DropAllNulls(), frame, entry_id="s", timestamp="t")
    assert step.summary.name == "Drop fully empty rows"
    assert step.summary.imported_at == "t"


@pytest.mark.parametrize("depth", [0, -1, 2.5, True])
def test_invalid_depth(depth):
    with pytest.raises(ValueError):
        HistoryStore(max_depth=depth)


def test_error_kinds(store, make_entry):
    with pytest.raises(NoDataError) as info:
        store.undo()
    assert info.value.kind is ErrorKind.NO_DATA
    assert str(info.value) == "no data"
    store.push(make_entry("a"))
    with pytest.raises(AtBoundaryError) as info:
        store.undo()
    assert info.value.kind is ErrorKind.AT_BOUNDARY
    store.clear()
    with pytest.raises(EmptyHistoryError) as info:
        store.reset_to_initial()
    assert info.value.kind is ErrorKind.EMPTY_HISTORY


@pytest.mark.parametrize("keep", [-1, 1.5, True])
def test_trim_rejects_bad_counts(store, make_entry, keep):
    fill(store, make_entry, ["a", "b"])
    with pytest.raises(ValueError):
        store.trim_history(keep)
    assert ids(store) == ["a", "b"]
    assert store.get_current_index() == 1
