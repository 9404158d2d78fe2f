"""Lightweight in-process event bus.

The event loop and the scan registry publish; the UI and the diagnostics log
subscribe.
"""

from .event_bus import EventBus, Subscription
from .scan_events import (
    BatchApplied,
    ConnectionLost,
    ConnectionOpened,
    Diagnostic,
    RefreshTick,
    ScanCreated,
    ScanStateChanged,
    TransitionRejected,
)

__all__ = [
    "EventBus",
    "Subscription",
    "ScanCreated",
    "ScanStateChanged",
    "TransitionRejected",
    "BatchApplied",
    "RefreshTick",
    "ConnectionOpened",
    "ConnectionLost",
    "Diagnostic",
]
