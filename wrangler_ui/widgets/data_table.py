from __future__ import annotations
from typing import List, Optional, Sequence

import pandas as pd
from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt
from PySide6.QtGui import QColor, QFont
from PySide6.QtWidgets import QHeaderView, QTableView

from wrangler.summary import ColumnInfo, DatasetPage, page, summarise

NULL_TEXT = "null"
NULL_COLOR = QColor(150, 150, 150)


class PageModel(QAbstractTableModel):
    """One page of display-safe rows; column headers carry dtype and null counts."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._page = DatasetPage(columns=[])
        self._offset = 0
        self._infos: List[ColumnInfo] = []

    def set_page(self, data: Optional[DatasetPage], offset: int = 0, infos: Sequence[ColumnInfo] = ()):
        self.beginResetModel()
        self._page = data if data is not None else DatasetPage(columns=[])
        self._offset = offset
        self._infos = list(infos)
        self.endResetModel()

    @property
    def total_rows(self) -> int:
        return self._page.total_rows

    def rowCount(self, parent=QModelIndex()):
        return 0 if parent.isValid() else len(self._page.rows)

    def columnCount(self, parent=QModelIndex()):
        return 0 if parent.isValid() else len(self._page.columns)

    def data(self, index: QModelIndex, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        value = self._page.rows[index.row()][index.column()]
        if role == Qt.DisplayRole:
            return NULL_TEXT if value is None else str(value)
        if value is None:
            if role == Qt.ForegroundRole:
                return NULL_COLOR
            if role == Qt.FontRole:
                font = QFont()
                font.setItalic(True)
                return font
        elif role == Qt.TextAlignmentRole and isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(Qt.AlignRight | Qt.AlignVCenter)
        return None

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Vertical:
            return str(self._offset + section + 1) if role == Qt.DisplayRole else None
        if not 0 <= section < len(self._page.columns):
            return None
        if role == Qt.DisplayRole:
            return self._page.columns[section]
        if role == Qt.ToolTipRole and section < len(self._infos):
            info = self._infos[section]
            return f"{info.name}: {info.dtype}, {info.null_count} nulls"
        return None


class DataTable(QTableView):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.page_model = PageModel(self)
        self.setModel(self.page_model)
        self.horizontalHeader().setSectionResizeMode(QHeaderView.Interactive)
        self.verticalHeader().setDefaultSectionSize(22)

    def show_page(self, data: Optional[DatasetPage], offset: int = 0, infos: Sequence[ColumnInfo] = ()):
        self.page_model.set_page(data, offset, infos)

    def show_frame(self, df: Optional[pd.DataFrame], limit: int):
        """First ``limit`` rows of ``df``; header null counts cover the whole frame."""
        if df is None:
            self.show_page(None)
            return
        self.show_page(page(df, 0, limit), 0, summarise(df, "", "").columns)
