"""Scan lifecycle: state model and transition rules.

The registry lives in :mod:`scanstream.core.scans.scan_registry`.
"""

from .models import (
    Failed,
    NotificationBatch,
    Scanned,
    Scanning,
    ScanRecord,
    ScanSnapshot,
    ScanState,
    ScanStatus,
    StatusNotification,
)
from .transitions import Transition, TransitionOutcome, next_state

__all__ = [
    "Failed",
    "NotificationBatch",
    "Scanned",
    "Scanning",
    "ScanRecord",
    "ScanSnapshot",
    "ScanState",
    "ScanStatus",
    "StatusNotification",
    "Transition",
    "TransitionOutcome",
    "next_state",
]
