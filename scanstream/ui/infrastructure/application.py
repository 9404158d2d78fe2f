"""
QApplication bootstrap for the scan stream window.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import NoReturn

from PySide6.QtCore import Qt
from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QApplication

from scanstream.core.version import get_build_info

APP_NAME = "scan stream"


def create_application(argv: Sequence[str] | None = None) -> QApplication:
    """Create the QApplication, or return the running one. Call before creating widgets."""
    existing = QApplication.instance()
    if isinstance(existing, QApplication):
        return existing
    # Fractional scaling on mixed-DPI setups; must be set before the app exists.
    QGuiApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )
    app = QApplication(list(argv) if argv is not None else sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationDisplayName(APP_NAME)
    app.setApplicationVersion(get_build_info()["version"])
    app.setQuitOnLastWindowClosed(True)
    return app


def run_application(app: QApplication) -> NoReturn:
    sys.exit(app.exec())
