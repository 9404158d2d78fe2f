"""
Thread-safe signal bridge: the scan event loop thread publishes on the EventBus,
these signals carry the news over to the GUI thread.
"""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from scanstream.core.events import (
    BatchApplied,
    ConnectionLost,
    ConnectionOpened,
    Diagnostic,
    EventBus,
    RefreshTick,
    Subscription,
)


class ScanSignals(QObject):
    """Emit from any thread; slots run on the thread that owns the receiver."""

    refresh_requested = Signal()
    diagnostic = Signal(str, str)  # (severity, message)
    connection_changed = Signal(str)  # short label for the status bar

    def __init__(self) -> None:
        super().__init__()
        self._subs: list[Subscription] = []

    def bind(self, bus: EventBus) -> None:
        self._subs.extend(
            bus.subscribe_many(
                (RefreshTick, BatchApplied),
                self._on_redraw_event,
            )
        )
        self._subs.append(bus.subscribe(Diagnostic, self._on_diagnostic))
        self._subs.append(bus.subscribe(ConnectionOpened, self._on_connection_opened))
        self._subs.append(bus.subscribe(ConnectionLost, self._on_connection_lost))

    def unbind(self, bus: EventBus) -> None:
        for sub in self._subs:
            bus.unsubscribe(sub)
        self._subs.clear()

    def _on_redraw_event(self, _e: object) -> None:
        self.refresh_requested.emit()

    def _on_diagnostic(self, e: Diagnostic) -> None:
        self.diagnostic.emit(e.severity, e.message)

    def _on_connection_opened(self, e: ConnectionOpened) -> None:
        self.connection_changed.emit("resuming" if e.resume_cursor else "subscribed")

    def _on_connection_lost(self, _e: ConnectionLost) -> None:
        self.connection_changed.emit("reconnecting…")
