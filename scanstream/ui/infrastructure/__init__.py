"""Infrastructure: application bootstrap, signals bridge, notifications.

Keep this package import lightweight: do not import Qt GUI modules at import time.
Some headless CI environments have PySide6 installed but miss runtime GUI libs
(e.g. ``libGL.so.1``).
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "create_application",
    "run_application",
    "NotificationCenter",
    "install_error_boundary",
    "ScanSignals",
]


def __getattr__(name: str) -> Any:
    if name in {"create_application", "run_application"}:
        return getattr(import_module("scanstream.ui.infrastructure.application"), name)
    if name == "NotificationCenter":
        return import_module("scanstream.ui.infrastructure.notifications").NotificationCenter
    if name == "install_error_boundary":
        return import_module("scanstream.ui.infrastructure.error_boundary").install_error_boundary
    if name == "ScanSignals":
        return import_module("scanstream.ui.infrastructure.signals").ScanSignals
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
