"""Scans view: one row per scan, newest id first.

This is a thin UI on top of ScanRegistry snapshots; it re-renders whenever the
event loop publishes a batch or a refresh tick.
"""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWidgets import QLabel, QTableWidget, QTableWidgetItem, QVBoxLayout, QWidget

from scanstream.core.scans.models import ScanStatus
from scanstream.core.scans.scan_registry import ScanRegistry
from scanstream.ui.infrastructure.signals import ScanSignals
from scanstream.ui.views.scans.formatting import COLUMNS, format_duration, format_status

_STATUS_COLORS = {
    ScanStatus.SCANNING: "#3e8ed0",
    ScanStatus.SCANNED: "#48c78e",
    ScanStatus.FAILED: "#f14668",
}


class ScansView(QWidget):
    def __init__(self, registry: ScanRegistry, signals: ScanSignals) -> None:
        super().__init__()
        self._registry = registry

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 12, 12, 12)
        root.setSpacing(8)

        title = QLabel("scan stream")
        title.setStyleSheet("font-size: 20px; font-weight: 600;")
        root.addWidget(title)

        self._table = QTableWidget(0, len(COLUMNS))
        self._table.setHorizontalHeaderLabels(list(COLUMNS))
        self._table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self._table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self._table.verticalHeader().setVisible(False)
        self._table.horizontalHeader().setStretchLastSection(True)
        root.addWidget(self._table, 1)

        self._empty_label = QLabel("Waiting for scan events…")
        self._empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        root.addWidget(self._empty_label)

        signals.refresh_requested.connect(self._refresh)
        self._refresh()

    def _refresh(self) -> None:
        rows = self._registry.snapshot(order="id", reverse=True)
        self._table.setRowCount(len(rows))
        self._table.setVisible(bool(rows))
        self._empty_label.setVisible(not rows)
        for r, row in enumerate(rows):
            id_item = QTableWidgetItem(str(row.scan_id))
            id_item.setData(Qt.ItemDataRole.UserRole, row.scan_id)
            self._table.setItem(r, 0, id_item)
            self._table.setItem(r, 1, QTableWidgetItem(format_duration(row.seconds)))
            status_item = QTableWidgetItem(format_status(row.status))
            status_item.setForeground(QBrush(QColor(_STATUS_COLORS[row.status])))
            self._table.setItem(r, 2, status_item)
