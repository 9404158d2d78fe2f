"""Composition root.

Wires the bus, the registry, the resume state, the supervisor and the event
loop. The UI only talks to the objects exposed here.
"""

from __future__ import annotations

import logging
import queue
import time
from collections.abc import Callable

from scanstream.config import StreamSettings
from scanstream.core.events import EventBus
from scanstream.core.loop import ScanEventLoop
from scanstream.core.observability.diagnostics import DiagnosticsLog
from scanstream.core.scans.scan_registry import ScanRegistry
from scanstream.core.stream import (
    Connection,
    ReconnectionSupervisor,
    ResumeState,
    StreamConnection,
)

logger = logging.getLogger(__name__)


class Container:
    """Resolves application services lazily. Single place to swap implementations."""

    def __init__(
        self,
        settings: StreamSettings | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or StreamSettings()
        self._clock = clock
        self._inbox: queue.Queue[object] = queue.Queue()
        self._event_bus: EventBus | None = None
        self._scan_registry: ScanRegistry | None = None
        self._diagnostics: DiagnosticsLog | None = None
        self._resume = ResumeState()
        self._supervisor: ReconnectionSupervisor | None = None
        self._event_loop: ScanEventLoop | None = None

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            self._event_bus = EventBus()
        return self._event_bus

    @property
    def scan_registry(self) -> ScanRegistry:
        if self._scan_registry is None:
            self._scan_registry = ScanRegistry(self.event_bus, clock=self._clock)
        return self._scan_registry

    @property
    def diagnostics(self) -> DiagnosticsLog:
        if self._diagnostics is None:
            self._diagnostics = DiagnosticsLog(self.event_bus)
        return self._diagnostics

    @property
    def resume_state(self) -> ResumeState:
        return self._resume

    def connect(self, endpoint: str, resume_cursor: str | None) -> Connection:
        return StreamConnection.open(
            endpoint,
            resume_cursor,
            inbox=self._inbox,
            cookies=self.settings.cookies,
            connect_timeout=self.settings.connect_timeout_sec,
        )

    @property
    def supervisor(self) -> ReconnectionSupervisor:
        if self._supervisor is None:
            self._supervisor = ReconnectionSupervisor(
                self.settings.url, self.connect, self._resume, self.event_bus
            )
        return self._supervisor

    @property
    def event_loop(self) -> ScanEventLoop:
        if self._event_loop is None:
            # Diagnostics must be subscribed before the first connection attempt.
            _ = self.diagnostics
            self._event_loop = ScanEventLoop(
                self.scan_registry,
                self.supervisor,
                self._resume,
                self.event_bus,
                inbox=self._inbox,
                probe_interval_sec=self.settings.probe_interval_sec,
                refresh_interval_sec=self.settings.refresh_interval_sec,
                clock=self._clock,
            )
        return self._event_loop

    def shutdown(self) -> None:
        if self._event_loop is not None:
            self._event_loop.stop()
        if self._diagnostics is not None:
            self._diagnostics.close()
        logger.info("Scan stream client stopped")
