"""Keeps exactly one stream connection alive.

The transport only exposes a readiness flag, not a reliable "closed" callback,
so liveness is polled: the event loop calls :meth:`ReconnectionSupervisor.probe`
on a fixed interval and a dead connection is replaced wholesale.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Protocol

from scanstream.core.errors import TransportError
from scanstream.core.events import ConnectionLost, ConnectionOpened, EventBus
from scanstream.core.observability.diagnostics import report
from scanstream.core.stream.resume import ResumeState

logger = logging.getLogger(__name__)


class Connection(Protocol):
    url: str

    def is_live(self) -> bool:
        """Current transport readiness, without blocking."""

    def close(self) -> None:
        """Release the transport. Safe to call more than once."""


ConnectFn = Callable[[str, str | None], Connection]


class SupervisorState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class ReconnectionSupervisor:
    def __init__(
        self,
        endpoint: str,
        connect: ConnectFn,
        resume: ResumeState,
        event_bus: EventBus | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._connect = connect
        self._resume = resume
        self._bus = event_bus
        self._connection: Connection | None = None
        self._state = SupervisorState.DISCONNECTED
        self.reconnects = 0

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def connection(self) -> Connection | None:
        return self._connection

    def start(self) -> None:
        """First subscription attempt; always without a resume cursor."""
        self._discard()
        self._open(None)

    def probe(self) -> bool:
        """Check liveness; replace the connection if needed. Returns True if it reopened."""
        if self._state is SupervisorState.CONNECTED and self._connection is not None:
            if self._connection.is_live():
                return False
        reason = "SSE connection lost. Reconnecting!"
        report(self._bus, logger, "warning", reason)
        if self._bus is not None:
            self._bus.publish(ConnectionLost(reason=reason))
        self._discard()
        self.reconnects += 1
        self._open(self._resume.last_cursor)
        return True

    def close(self) -> None:
        self._discard()

    def _discard(self) -> None:
        conn, self._connection = self._connection, None
        self._state = SupervisorState.DISCONNECTED
        if conn is not None:
            conn.close()

    def _open(self, cursor: str | None) -> None:
        try:
            conn = self._connect(self._endpoint, cursor)
        except TransportError as e:
            self._connection = None
            self._state = SupervisorState.DISCONNECTED
            report(self._bus, logger, "warning", f"Could not subscribe: {e}")
            return
        self._connection = conn
        self._state = SupervisorState.CONNECTED
        if self._bus is not None:
            self._bus.publish(ConnectionOpened(url=conn.url, resume_cursor=cursor))
