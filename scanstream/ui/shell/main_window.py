"""
Main window: the scans table plus a status bar for stream diagnostics.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtWidgets import QLabel, QMainWindow, QStatusBar

from scanstream.core.version import get_version_string
from scanstream.ui.infrastructure.notifications import NotificationCenter
from scanstream.ui.infrastructure.signals import ScanSignals
from scanstream.ui.views.scans.view import ScansView

if TYPE_CHECKING:
    from scanstream.application.container import Container


class MainWindow(QMainWindow):
    def __init__(self, container: Container, signals: ScanSignals) -> None:
        super().__init__()
        self.setWindowTitle(f"scan stream — {get_version_string()}")
        self.setMinimumSize(520, 360)
        self.resize(760, 560)

        self.setCentralWidget(ScansView(container.scan_registry, signals))

        status = QStatusBar(self)
        self.setStatusBar(status)
        self._connection_label = QLabel("connecting…")
        status.addPermanentWidget(self._connection_label)

        self.notifications = NotificationCenter(self)
        signals.diagnostic.connect(self.notifications.show)
        signals.connection_changed.connect(self._connection_label.setText)
