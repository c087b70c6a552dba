from __future__ import annotations
from typing import List, Optional
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont
from PySide6.QtWidgets import QListWidget, QListWidgetItem, QVBoxLayout, QWidget, QLabel

from wrangler.history import HistoryEntryInfo


class HistoryPanel(QWidget):
    """Entries oldest first; the current one is bold. Double-click jumps."""

    jump_requested = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        layout = QVBoxLayout(self)
        self.header = QLabel("No history")
        self.list = QListWidget()
        layout.addWidget(self.header)
        layout.addWidget(self.list, 1)
        self.list.itemDoubleClicked.connect(self._on_double_click)

    def set_history(self, entries: List[HistoryEntryInfo], current: Optional[int]):
        self.list.clear()
        for idx, info in enumerate(entries):
            rows, cols = info.summary.shape
            item = QListWidgetItem(f"{idx + 1}. {info.description}  [{rows} × {cols}]")
            item.setData(Qt.UserRole, info.id)
            item.setToolTip(f"{info.timestamp}\n{info.operation.to_dict()}")
            if idx == current:
                font = QFont(item.font())
                font.setBold(True)
                item.setFont(font)
            elif current is not None and idx > current:
                item.setForeground(Qt.gray)
            self.list.addItem(item)
        if current is not None:
            self.list.setCurrentRow(current)
            self.header.setText(f"Step {current + 1} of {len(entries)}")
        else:
            self.header.setText("No history")

    def _on_double_click(self, item: QListWidgetItem):
        entry_id = item.data(Qt.UserRole)
        if entry_id:
            self.jump_requested.emit(entry_id)
