from __future__ import annotations
import logging
import sys
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd
from PySide6.QtCore import Qt, QRunnable, QThreadPool, QObject, Signal
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton,
    QFileDialog, QTabWidget, QLabel, QDockWidget, QListWidget, QLineEdit,
    QMessageBox, QComboBox, QCheckBox, QFormLayout, QSpinBox, QDoubleSpinBox, QTextEdit,
    QToolBar, QDialog, QDialogButtonBox, QTableWidget, QTableWidgetItem
)

from wrangler import handlers, io
from wrangler.clean_columns import is_invalid
from wrangler.config import Settings
from wrangler.errors import LockFailureError, NoDataError, WranglerError
from wrangler.operations import (
    CastTypes, DropAllNulls, DropColumns, DropNulls, FillKind, FillNull, FillStrategy, Filter,
    Operation, Pivot, Rolling, RollingStat, SelectColumns, Unpivot,
)
from wrangler.preview import format_meta
from wrangler.state import AppState
from wrangler.summary import ColumnInfo, DatasetPage, page
from wrangler.transforms import AGGREGATES, CAST_TYPES
from wrangler_ui.widgets.data_table import DataTable
from wrangler_ui.widgets.history_panel import HistoryPanel

logger = logging.getLogger(__name__)

COPY_CELL_LIMIT = 200_000


def split_names(text: str) -> List[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


class TaskSignals(QObject):
    finished = Signal(object)
    failed = Signal(str, bool)


class TaskWorker(QRunnable):
    """Runs one handler call on the pool; reports back on the GUI thread."""

    def __init__(self, fn: Callable[[], Any]):
        super().__init__()
        self.fn = fn
        self.signals = TaskSignals()

    def run(self):
        try:
            result = self.fn()
        except LockFailureError as exc:
            self.signals.failed.emit(str(exc), True)
        except WranglerError as exc:
            self.signals.failed.emit(str(exc), False)
        except Exception as exc:  # pragma: no cover - threaded
            logger.exception("Task failed")
            self.signals.failed.emit(f"Unexpected error: {exc}", True)
        else:
            self.signals.finished.emit(result)


class OperationTab(QWidget):
    def __init__(self, name: str, build: Callable[[], Operation]):
        super().__init__()
        self.setObjectName(name)
        self.build = build
        layout = QVBoxLayout(self)
        self.form_box = QVBoxLayout()
        layout.addLayout(self.form_box)

        self.before_table = DataTable()
        self.after_table = DataTable()
        tables = QHBoxLayout()
        tables.addWidget(self.before_table)
        tables.addWidget(self.after_table)
        layout.addLayout(tables, 1)

        btns = QHBoxLayout()
        self.preview_btn = QPushButton("Preview")
        self.apply_btn = QPushButton("Apply")
        self.copy_btn = QPushButton("Copy table")
        self.apply_btn.setEnabled(False)
        btns.addWidget(self.preview_btn)
        btns.addWidget(self.apply_btn)
        btns.addWidget(self.copy_btn)
        layout.addLayout(btns)
        self.meta_label = QLabel()
        layout.addWidget(self.meta_label)

    def set_form(self, layout: QFormLayout):
        wrapper = QWidget()
        wrapper.setLayout(layout)
        self.form_box.addWidget(wrapper)

    def set_tables(self, before: pd.DataFrame | None, after: pd.DataFrame | None, limit: int):
        self.before_table.show_frame(before, limit)
        self.after_table.show_frame(after, limit)

    def set_meta(self, text: str):
        self.meta_label.setText(text)

    def set_busy(self, busy: bool, has_preview: bool = False):
        self.preview_btn.setEnabled(not busy)
        self.apply_btn.setEnabled(not busy and has_preview)


class DataBrowser(QWidget):
    """Pages through the current dataset, ``page_size`` rows at a time."""

    page_requested = Signal(int)

    def __init__(self, page_size: int):
        super().__init__()
        self.page_size = page_size
        self.offset = 0
        self.total = 0
        layout = QVBoxLayout(self)
        self.table = DataTable()
        layout.addWidget(self.table, 1)
        nav = QHBoxLayout()
        self.prev_btn = QPushButton("◀ Previous")
        self.next_btn = QPushButton("Next ▶")
        self.position = QLabel("No data")
        nav.addWidget(self.prev_btn)
        nav.addWidget(self.position, 1)
        nav.addWidget(self.next_btn)
        layout.addLayout(nav)
        self.prev_btn.clicked.connect(lambda: self.page_requested.emit(max(self.offset - self.page_size, 0)))
        self.next_btn.clicked.connect(lambda: self.page_requested.emit(self.offset + self.page_size))

    def set_page(self, offset: int, data: DatasetPage | None, infos: Sequence[ColumnInfo] = ()):
        self.offset = offset
        self.table.show_page(data, offset, infos)
        if data is None:
            self.total = 0
            self.position.setText("No data")
        else:
            self.total = data.total_rows
            end = offset + len(data.rows)
            self.position.setText(f"Rows {offset + 1 if data.rows else 0}–{end} of {self.total}")
        self.prev_btn.setEnabled(self.offset > 0)
        self.next_btn.setEnabled(self.offset + self.page_size < self.total)


class ImportDialog(QDialog):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Load File")
        layout = QVBoxLayout(self)
        form = QFormLayout()
        self.path_edit = QLineEdit()
        browse = QPushButton("Browse…")
        browse.clicked.connect(self._choose)
        hb = QHBoxLayout()
        hb.addWidget(self.path_edit)
        hb.addWidget(browse)
        form.addRow("File", hb)
        self.sheet_combo = QComboBox()
        self.sheet_combo.setEnabled(False)
        form.addRow("Sheet", self.sheet_combo)
        layout.addLayout(form)
        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        layout.addWidget(self.buttons)
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)

    def _choose(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Open", filter="Data files (*.csv *.tsv *.txt *.xlsx *.xlsm *.parquet *.pq)")
        if not path:
            return
        self.path_edit.setText(path)
        self.sheet_combo.clear()
        if io.file_ext(path) in io.EXCEL_EXTS:
            try:
                sheets = io.get_sheet_names(path)
            except WranglerError as exc:
                QMessageBox.critical(self, "Error", str(exc))
                return
            self.sheet_combo.addItems(sheets)
            self.sheet_combo.setCurrentIndex(0)
            self.sheet_combo.setEnabled(True)
        else:
            self.sheet_combo.setEnabled(False)

    def get_values(self):
        return {
            "path": self.path_edit.text().strip(),
            "sheet": self.sheet_combo.currentText() if self.sheet_combo.isEnabled() else None,
        }


class RenameDialog(QDialog):
    def __init__(self, columns: List[str], parent=None):
        super().__init__(parent)
        self.setWindowTitle("Rename columns")
        layout = QVBoxLayout(self)
        self.table = QTableWidget(len(columns), 2)
        self.table.setHorizontalHeaderLabels(["Old", "New"])
        for row, name in enumerate(columns):
            old_item = QTableWidgetItem(name)
            old_item.setFlags(old_item.flags() & ~Qt.ItemIsEditable)
            self.table.setItem(row, 0, old_item)
            self.table.setItem(row, 1, QTableWidgetItem(name))
        layout.addWidget(self.table)
        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.buttons.accepted.connect(self._validate)
        self.buttons.rejected.connect(self.reject)
        layout.addWidget(self.buttons)
        self.result_mapping: Dict[str, str] = {}

    def _validate(self):
        new_names = []
        mapping: Dict[str, str] = {}
        for row in range(self.table.rowCount()):
            old = self.table.item(row, 0).text()
            new_item = self.table.item(row, 1)
            new = new_item.text().strip() if new_item else ""
            if not new or is_invalid(new):
                QMessageBox.warning(self, "Invalid", f"Column '{old}' must have a valid name")
                return
            new_names.append(new)
            if new != old:
                mapping[old] = new
        if len(new_names) != len(set(new_names)):
            QMessageBox.warning(self, "Duplicates", "Column names must be unique")
            return
        self.result_mapping = mapping
        self.accept()


class MainWindow(QMainWindow):
    def __init__(self, settings: Optional[Settings] = None):
        super().__init__()
        self.setWindowTitle("Table Wrangler")
        self.resize(1400, 900)
        self.state = AppState(settings=settings or Settings())
        self.threadpool = QThreadPool.globalInstance()
        self.columns: List[str] = []
        self._busy = 0

        self._build_toolbar()
        self._build_tabs()
        self._build_docks()
        self._connect_signals()
        self._refresh()

    @property
    def handle(self):
        return self.state.history

    # Toolbar & docks
    def _build_toolbar(self):
        tb = QToolBar("Main")
        self.addToolBar(tb)

        def add(text: str, slot, shortcut=None) -> QAction:
            act = QAction(text, self)
            if shortcut is not None:
                act.setShortcut(shortcut)
            act.triggered.connect(slot)
            tb.addAction(act)
            return act

        self.load_act = add("Load File…", self.open_file_dialog, QKeySequence.Open)
        tb.addSeparator()
        self.undo_act = add("Undo", self.undo, QKeySequence.Undo)
        self.redo_act = add("Redo", self.redo, QKeySequence.Redo)
        self.reset_act = add("Reset", self.reset_state)
        self.trim_act = add("Trim history", self.trim_history)
        self.clear_act = add("Clear", self.clear_data)
        tb.addSeparator()
        self.rename_act = add("Rename columns…", self.rename_columns)
        tb.addSeparator()
        self.export_acts = [
            add("Export CSV", lambda: self.export("csv")),
            add("Export Parquet", lambda: self.export("parquet")),
            add("Export XLSX", lambda: self.export("xlsx")),
        ]
        self.history_acts = [self.load_act, self.undo_act, self.redo_act, self.reset_act, self.trim_act,
                             self.clear_act, self.rename_act, *self.export_acts]

    def _build_tabs(self):
        self.tabs = QTabWidget()
        self.columns_tab = OperationTab("Columns", self._columns_operation)
        self.cast_tab = OperationTab("Cast", self._cast_operation)
        self.nulls_tab = OperationTab("Nulls", self._nulls_operation)
        self.filter_tab = OperationTab("Filter", self._filter_operation)
        self.longer_tab = OperationTab("Longer", self._longer_operation)
        self.wider_tab = OperationTab("Wider", self._wider_operation)
        self.rolling_tab = OperationTab("Rolling", self._rolling_operation)
        self.op_tabs = [self.columns_tab, self.cast_tab, self.nulls_tab, self.filter_tab,
                        self.longer_tab, self.wider_tab, self.rolling_tab]

        self.browser = DataBrowser(self.state.settings.page_size)
        self.tabs.addTab(self.browser, "Data")
        self.tabs.addTab(self.columns_tab, "Columns")
        self.tabs.addTab(self.cast_tab, "Cast types")
        self.tabs.addTab(self.nulls_tab, "Nulls")
        self.tabs.addTab(self.filter_tab, "Filter")
        self.tabs.addTab(self.longer_tab, "Make longer")
        self.tabs.addTab(self.wider_tab, "Make wider")
        self.tabs.addTab(self.rolling_tab, "Rolling")
        container = QWidget()
        lay = QVBoxLayout(container)
        lay.addWidget(self.tabs)
        self.setCentralWidget(container)

        self._build_columns_form()
        self._build_cast_form()
        self._build_nulls_form()
        self._build_filter_form()
        self._build_longer_form()
        self._build_wider_form()
        self._build_rolling_form()

    def _build_docks(self):
        # Variables dock
        self.vars_dock = QDockWidget("Variables", self)
        vwidget = QWidget()
        vlayout = QVBoxLayout(vwidget)
        self.vars_search = QLineEdit()
        self.vars_search.setPlaceholderText("Search…")
        self.vars_list = QListWidget()
        self.stats_view = QTextEdit()
        self.stats_view.setReadOnly(True)
        vlayout.addWidget(self.vars_search)
        vlayout.addWidget(self.vars_list, 2)
        vlayout.addWidget(QLabel("Column statistics"))
        vlayout.addWidget(self.stats_view, 1)
        self.vars_dock.setWidget(vwidget)
        self.addDockWidget(Qt.LeftDockWidgetArea, self.vars_dock)

        # History dock
        self.history_dock = QDockWidget("History", self)
        self.history_panel = HistoryPanel()
        self.history_dock.setWidget(self.history_panel)
        self.addDockWidget(Qt.RightDockWidgetArea, self.history_dock)

    # Forms
    def _build_columns_form(self):
        form = QFormLayout()
        self.columns_mode = QComboBox()
        self.columns_mode.addItems(["Select", "Drop"])
        self.columns_edit = QLineEdit()
        form.addRow("Mode", self.columns_mode)
        form.addRow("Columns (comma)", self.columns_edit)
        self.columns_tab.set_form(form)

    def _build_cast_form(self):
        form = QFormLayout()
        self.cast_column = QComboBox()
        self.cast_type = QComboBox()
        self.cast_type.addItems(list(CAST_TYPES))
        form.addRow("Column", self.cast_column)
        form.addRow("Type", self.cast_type)
        self.cast_tab.set_form(form)

    def _build_nulls_form(self):
        form = QFormLayout()
        self.nulls_mode = QComboBox()
        self.nulls_mode.addItems(["Drop rows with nulls", "Drop fully empty rows", "Fill nulls"])
        self.nulls_columns = QLineEdit()
        self.nulls_columns.setPlaceholderText("all columns")
        self.fill_kind = QComboBox()
        self.fill_kind.addItems([k.value for k in FillKind])
        self.fill_value = QLineEdit()
        form.addRow("Mode", self.nulls_mode)
        form.addRow("Columns (comma)", self.nulls_columns)
        form.addRow("Fill strategy", self.fill_kind)
        form.addRow("Constant value", self.fill_value)
        self.nulls_tab.set_form(form)

    def _build_filter_form(self):
        form = QFormLayout()
        self.filter_edit = QLineEdit()
        self.filter_edit.setPlaceholderText("e.g. price > 10 and region == 'EU'")
        form.addRow("Expression", self.filter_edit)
        self.filter_tab.set_form(form)

    def _build_longer_form(self):
        form = QFormLayout()
        self.longer_id_cols = QLineEdit()
        self.longer_value_cols = QLineEdit()
        self.longer_value_cols.setPlaceholderText("all other columns")
        self.longer_var_name = QLineEdit("variable")
        self.longer_value_name = QLineEdit("value")
        self.longer_sort = QLineEdit()
        form.addRow("ID columns", self.longer_id_cols)
        form.addRow("Value columns", self.longer_value_cols)
        form.addRow("Var name", self.longer_var_name)
        form.addRow("Value name", self.longer_value_name)
        form.addRow("Sort by", self.longer_sort)
        self.longer_tab.set_form(form)

    def _build_wider_form(self):
        form = QFormLayout()
        self.wider_index_cols = QLineEdit()
        self.wider_columns_from = QLineEdit()
        self.wider_values_from = QLineEdit()
        self.wider_agg = QComboBox()
        self.wider_agg.addItems([""] + list(AGGREGATES))
        form.addRow("Index (Rows)", self.wider_index_cols)
        form.addRow("Columns from", self.wider_columns_from)
        form.addRow("Values from", self.wider_values_from)
        form.addRow("Aggregation (if duplicates)", self.wider_agg)
        self.wider_tab.set_form(form)

    def _build_rolling_form(self):
        form = QFormLayout()
        self.rolling_column = QComboBox()
        self.rolling_stat = QComboBox()
        self.rolling_stat.addItems([s.value for s in RollingStat])
        self.rolling_window = QSpinBox()
        self.rolling_window.setRange(1, 1_000_000)
        self.rolling_window.setValue(3)
        self.rolling_center = QCheckBox("Centered window")
        self.rolling_min = QSpinBox()
        self.rolling_min.setRange(1, 1_000_000)
        self.rolling_quantile = QDoubleSpinBox()
        self.rolling_quantile.setRange(0.0, 1.0)
        self.rolling_quantile.setSingleStep(0.05)
        self.rolling_quantile.setValue(0.5)
        form.addRow("Column", self.rolling_column)
        form.addRow("Statistic", self.rolling_stat)
        form.addRow("Window", self.rolling_window)
        form.addRow(self.rolling_center)
        form.addRow("Min periods", self.rolling_min)
        form.addRow("Quantile", self.rolling_quantile)
        self.rolling_tab.set_form(form)

    # Operation builders
    def _columns_operation(self) -> Operation:
        cols = split_names(self.columns_edit.text())
        if self.columns_mode.currentText() == "Drop":
            return DropColumns(cols)
        return SelectColumns(cols)

    def _cast_operation(self) -> Operation:
        return CastTypes({self.cast_column.currentText(): self.cast_type.currentText()})

    def _nulls_operation(self) -> Operation:
        cols = split_names(self.nulls_columns.text()) or None
        mode = self.nulls_mode.currentIndex()
        if mode == 0:
            return DropNulls(cols)
        if mode == 1:
            return DropAllNulls()
        kind = FillKind(self.fill_kind.currentText())
        if kind is FillKind.CONSTANT:
            strategy = FillStrategy.constant(self.fill_value.text())
        else:
            strategy = FillStrategy(kind)
        return FillNull(strategy, cols)

    def _filter_operation(self) -> Operation:
        return Filter(self.filter_edit.text())

    def _longer_operation(self) -> Operation:
        return Unpivot(
            split_names(self.longer_id_cols.text()),
            split_names(self.longer_value_cols.text()),
            self.longer_var_name.text() or "variable",
            self.longer_value_name.text() or "value",
            self.longer_sort.text().strip() or None,
        )

    def _wider_operation(self) -> Operation:
        return Pivot(
            split_names(self.wider_index_cols.text()),
            self.wider_columns_from.text().strip(),
            self.wider_values_from.text().strip(),
            self.wider_agg.currentText() or None,
        )

    def _rolling_operation(self) -> Operation:
        stat = RollingStat(self.rolling_stat.currentText())
        return Rolling(
            stat,
            self.rolling_column.currentText(),
            self.rolling_window.value(),
            self.rolling_center.isChecked(),
            self.rolling_min.value(),
            self.rolling_quantile.value() if stat is RollingStat.QUANTILE else None,
        )

    # Signal wiring
    def _connect_signals(self):
        for tab in self.op_tabs:
            tab.preview_btn.clicked.connect(lambda _=False, t=tab: self.preview(t))
            tab.apply_btn.clicked.connect(lambda _=False, t=tab: self.apply_preview(t))
            tab.copy_btn.clicked.connect(self.copy_table)
        self.vars_search.textChanged.connect(self._filter_vars)
        self.vars_list.currentTextChanged.connect(self._show_stats)
        self.history_panel.jump_requested.connect(self.jump_to)
        self.browser.page_requested.connect(self.load_page)

    # Worker plumbing
    def _run_async(self, fn: Callable[[], Any], on_done: Callable[[Any], None], message: str = "Working…"):
        worker = TaskWorker(fn)
        self._busy += 1
        for tab in self.op_tabs:
            tab.set_busy(True)
        self._set_history_enabled(False)
        self.statusBar().showMessage(message)
        # runs before on_done
        worker.signals.finished.connect(self._task_done)
        worker.signals.failed.connect(self._task_done)
        worker.signals.finished.connect(on_done)
        worker.signals.failed.connect(self._on_task_failed)
        self.threadpool.start(worker)

    def _on_task_failed(self, message: str, internal: bool):
        self._set_idle()
        if not internal:
            QMessageBox.warning(self, "Cannot do that", message)
            return
        QMessageBox.critical(self, "Internal error", message)
        if self.handle.poisoned:
            answer = QMessageBox.question(
                self, "History store",
                "The history store may be inconsistent. Clear it and start over?")
            if answer == QMessageBox.Yes:
                self.handle.clear_poison()
                handlers.clear(self.handle)
                self._after_change()

    def _task_done(self, *_):
        self._busy = max(self._busy - 1, 0)

    def _set_history_enabled(self, enabled: bool):
        for act in self.history_acts:
            act.setEnabled(enabled)
        self.history_panel.setEnabled(enabled)

    def _set_idle(self):
        busy = self._busy > 0
        for tab in self.op_tabs:
            tab.set_busy(busy, self.state.preview_operation is not None)
        self._refresh_status()

    def _after_change(self, _result: Any = None):
        self.state.clear_preview()
        self._refresh()

    # Import / export
    def open_file_dialog(self):
        dlg = ImportDialog(self)
        if dlg.exec() != QDialog.Accepted:
            return
        vals = dlg.get_values()
        path = vals["path"]
        if not path:
            return
        self._run_async(lambda: handlers.import_file(self.handle, path, vals["sheet"]),
                        self._after_change, "Loading…")

    def export(self, fmt: str):
        filters = {"csv": "CSV files (*.csv)", "parquet": "Parquet files (*.parquet)", "xlsx": "Excel files (*.xlsx)"}
        path, _ = QFileDialog.getSaveFileName(self, f"Export {fmt.upper()}", filter=filters[fmt])
        if not path:
            return
        if io.file_ext(path) != fmt:
            path = f"{path}.{fmt}"
        self._run_async(lambda: handlers.export(self.handle, path, fmt), self._on_exported, "Exporting…")

    def _on_exported(self, path: str):
        self._set_idle()
        self.statusBar().showMessage(f"Saved {path}")

    def copy_table(self):
        df = self.state.preview_df
        if df is None:
            try:
                df = self.state.current_df
            except LockFailureError as exc:
                self._on_task_failed(str(exc), True)
                return
        if df is None:
            return
        if df.shape[0] * df.shape[1] > COPY_CELL_LIMIT:
            QMessageBox.warning(self, "Copy", "Table too large to copy (over 200k cells)")
            return
        QApplication.clipboard().setText(df.to_csv(sep="\t", index=False))
        self.statusBar().showMessage("Copied table to clipboard")

    # History
    def undo(self):
        self._run_async(lambda: handlers.undo(self.handle), self._after_change)

    def redo(self):
        self._run_async(lambda: handlers.redo(self.handle), self._after_change)

    def jump_to(self, entry_id: str):
        self._run_async(lambda: handlers.jump_to(self.handle, entry_id), self._after_change)

    def reset_state(self):
        answer = QMessageBox.question(self, "Reset", "Discard every step after the import?")
        if answer != QMessageBox.Yes:
            return
        self._run_async(lambda: handlers.reset_to_initial(self.handle), self._after_change)

    def trim_history(self):
        keep = self.state.settings.trim_keep
        self._run_async(lambda: handlers.trim_history(self.handle, keep), self._after_change)

    def clear_data(self):
        self._run_async(lambda: handlers.clear(self.handle), self._after_change)

    def rename_columns(self):
        if not self.columns:
            QMessageBox.information(self, "No data", "Load data first")
            return
        dlg = RenameDialog(self.columns, self)
        if dlg.exec() != QDialog.Accepted or not dlg.result_mapping:
            return
        mapping = dlg.result_mapping
        self._run_async(lambda: handlers.rename_columns(self.handle, mapping), self._after_change)

    # Preview / apply
    def preview(self, tab: OperationTab):
        try:
            operation = tab.build()
        except ValueError as exc:
            QMessageBox.information(self, tab.objectName(), str(exc))
            return
        self.state.clear_preview()
        self._run_async(lambda: self.state.compute_preview(operation),
                        lambda result: self._on_preview_finished(operation, result),
                        "Computing preview…")

    def _on_preview_finished(self, operation: Operation, result):
        df, meta = result
        kept = self.state.set_preview(operation, df, meta)
        self._refresh()
        if not kept:
            self.statusBar().showMessage("Data changed while previewing; preview discarded")

    def apply_preview(self, tab: OperationTab):
        if self.state.preview_df is None:
            return
        if self._busy:
            return
        try:
            info = self.state.commit_preview()
        except WranglerError as exc:
            self._on_task_failed(str(exc), isinstance(exc, LockFailureError))
            return
        self._refresh()
        if info is None:
            QMessageBox.information(self, tab.objectName(), "The data changed since this preview was computed. Preview again.")

    # Helpers
    def _filter_vars(self, text: str):
        for i in range(self.vars_list.count()):
            item = self.vars_list.item(i)
            item.setHidden(text.lower() not in item.text().lower())

    def _show_stats(self, column: str):
        if not column:
            self.stats_view.clear()
            return
        self._run_async(lambda: handlers.get_column_stats(self.handle, column), self._on_stats)

    def _on_stats(self, stats):
        self._set_idle()
        lines = [f"{key}: {value}" for key, value in vars(stats).items() if value is not None]
        self.stats_view.setPlainText("\n".join(lines))

    # Refresh
    def _refresh(self):
        try:
            with self.handle.lock() as store:
                df = store.get_current()
                entries = store.get_history()
                index = store.get_current_index()
        except LockFailureError as exc:
            self._on_task_failed(str(exc), True)
            return
        limit = self.state.settings.preview_rows
        meta_text = format_meta(self.state.preview_meta)
        for tab in self.op_tabs:
            tab.set_tables(df, self.state.preview_df, limit)
            tab.set_meta(meta_text)
        self.history_panel.set_history(entries, index)
        self._refresh_columns([] if df is None else [str(c) for c in df.columns])
        self.load_page(self.browser.offset if df is not None and self.browser.offset < len(df) else 0)
        self._set_idle()

    def load_page(self, offset: int):
        try:
            entry = handlers.require_current_entry(self.handle)
        except NoDataError:
            self.browser.set_page(0, None)
            return
        except LockFailureError as exc:
            self._on_task_failed(str(exc), True)
            return
        data = page(entry.frame, offset, self.browser.page_size)
        self.browser.set_page(offset, data, entry.summary.columns)

    def _refresh_columns(self, names: List[str]):
        if names == self.columns:
            return
        self.columns = names
        self.vars_list.clear()
        self.vars_list.addItems(names)
        self._filter_vars(self.vars_search.text())
        for combo in (self.cast_column, self.rolling_column):
            current = combo.currentText()
            combo.clear()
            combo.addItems(names)
            if current in names:
                combo.setCurrentText(current)

    def _refresh_status(self):
        try:
            with self.handle.lock() as store:
                df = store.get_current()
                index = store.get_current_index()
                total = store.history_len()
                can_undo, can_redo = store.can_undo(), store.can_redo()
        except LockFailureError:
            self._set_history_enabled(False)
            self.statusBar().showMessage("History store unavailable")
            return
        if self._busy:
            self._set_history_enabled(False)
        else:
            self._set_history_enabled(True)
            self.undo_act.setEnabled(can_undo)
            self.redo_act.setEnabled(can_redo)
            for act in (self.reset_act, self.clear_act, self.rename_act, *self.export_acts):
                act.setEnabled(df is not None)
            self.trim_act.setEnabled(total > self.state.settings.trim_keep)
        if df is None:
            self.statusBar().showMessage("No data loaded")
            return
        msg = f"Current shape: {df.shape} | Step {index + 1 if index is not None else 0} of {total}"
        if self.state.preview_df is not None:
            msg += f" | Preview: {self.state.preview_df.shape}"
        self.statusBar().showMessage(msg)


def main():
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    win = MainWindow(settings)
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
