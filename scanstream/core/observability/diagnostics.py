"""Diagnostics sink: ``(severity, message)`` pairs for the UI and for tests.

Every diagnostic is also written to stdlib logging, so nothing is lost when no
UI is attached.
"""

from __future__ import annotations

import logging
from collections import deque
from threading import RLock

from scanstream.config import DIAGNOSTICS_MAX_ENTRIES
from scanstream.core.events import Diagnostic, EventBus, Subscription

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def report(
    bus: EventBus | None, log: logging.Logger, severity: str, message: str, **extra: object
) -> None:
    log.log(_LEVELS.get(severity, logging.WARNING), message, extra={"severity": severity, **extra})
    if bus is not None:
        bus.publish(Diagnostic(severity=severity, message=message))


class DiagnosticsLog:
    """Keeps the most recent diagnostics published on the bus."""

    def __init__(self, event_bus: EventBus, *, max_entries: int = DIAGNOSTICS_MAX_ENTRIES) -> None:
        self._bus = event_bus
        self._entries: deque[tuple[str, str]] = deque(maxlen=max_entries)
        self._lock = RLock()
        self._sub: Subscription | None = event_bus.subscribe(Diagnostic, self._on_diagnostic)

    def _on_diagnostic(self, e: Diagnostic) -> None:
        with self._lock:
            self._entries.append((e.severity, e.message))

    def entries(self, severity: str | None = None) -> list[tuple[str, str]]:
        with self._lock:
            if severity is None:
                return list(self._entries)
            return [entry for entry in self._entries if entry[0] == severity]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def close(self) -> None:
        if self._sub is not None:
            self._bus.unsubscribe(self._sub)
            self._sub = None
