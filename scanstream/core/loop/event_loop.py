"""Single-threaded dispatcher for everything that touches scan state.

Three kinds of triggers are serialized here: decoded batches posted by stream
connections, the liveness-probe timer and the refresh timer. Because only this
loop's thread mutates the registry and the resume state, neither needs its own
synchronization for writes.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from scanstream.config import DEFAULT_PROBE_INTERVAL_SEC, DEFAULT_REFRESH_INTERVAL_SEC
from scanstream.core.errors import ValidationError
from scanstream.core.events import BatchApplied, EventBus, RefreshTick
from scanstream.core.observability.diagnostics import report
from scanstream.core.scans.models import NotificationBatch
from scanstream.core.scans.scan_registry import ScanRegistry
from scanstream.core.scans.transitions import TransitionOutcome
from scanstream.core.stream.messages import BatchReceived, ConnectionWarning, DecodeFailed
from scanstream.core.stream.resume import ResumeState
from scanstream.core.stream.supervisor import ReconnectionSupervisor

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass(slots=True)
class IntervalTimer:
    name: str
    interval: float
    callback: Callable[[float], None]
    next_due: float

    def is_due(self, now: float) -> bool:
        return now >= self.next_due

    def fire(self, now: float) -> None:
        self.next_due += self.interval
        if self.next_due <= now:
            # Fell behind (e.g. a slow reconnect); skip missed ticks instead of bursting.
            self.next_due = now + self.interval
        self.callback(now)


class ScanEventLoop:
    def __init__(
        self,
        registry: ScanRegistry,
        supervisor: ReconnectionSupervisor,
        resume: ResumeState,
        event_bus: EventBus | None = None,
        *,
        inbox: queue.Queue[object] | None = None,
        probe_interval_sec: float = DEFAULT_PROBE_INTERVAL_SEC,
        refresh_interval_sec: float = DEFAULT_REFRESH_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if refresh_interval_sec >= probe_interval_sec:
            raise ValidationError("Refresh interval must be shorter than the probe interval")
        self._registry = registry
        self._supervisor = supervisor
        self._resume = resume
        self._bus = event_bus
        self.inbox: queue.Queue[object] = inbox if inbox is not None else queue.Queue()
        self._probe_interval = probe_interval_sec
        self._refresh_interval = refresh_interval_sec
        self._clock = clock
        self._timers: list[IntervalTimer] = []
        self._running = False
        self._thread: threading.Thread | None = None
        self.batches_applied = 0

    # --- lifecycle ---
    def open(self) -> None:
        """Subscribe and arm the timers. Runs on the loop's own thread when started with start()."""
        now = self._clock()
        self._timers = [
            IntervalTimer("probe", self._probe_interval, self._on_probe, now + self._probe_interval),
            IntervalTimer(
                "refresh", self._refresh_interval, self._on_refresh, now + self._refresh_interval
            ),
        ]
        self._running = True
        self._supervisor.start()

    def start(self) -> None:
        """Run the loop on a background thread until :meth:`stop`."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._thread_main, name="scan-loop", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        thread, self._thread = self._thread, None
        if thread is None:
            self._shutdown()
            return
        self.inbox.put(_STOP)
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("Event loop thread did not stop within %.1fs", timeout)

    def __enter__(self) -> ScanEventLoop:
        self.open()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()

    @property
    def running(self) -> bool:
        return self._running

    def _thread_main(self) -> None:
        try:
            self.open()
            self.run_forever()
        finally:
            self._shutdown()

    def _shutdown(self) -> None:
        self._running = False
        self._timers.clear()
        self._supervisor.close()

    # --- dispatching ---
    def run_forever(self) -> None:
        while self._running:
            self.run_once()

    def run_once(self, timeout: float | None = None) -> bool:
        """Handle at most one inbox message, then fire whatever timers are due.

        Blocks until the next timer is due, a message arrives or ``timeout`` elapses.
        Returns True if a message was handled.
        """
        wait = self._seconds_until_next_timer()
        if timeout is not None:
            wait = timeout if wait is None else min(wait, timeout)
        try:
            msg = self.inbox.get(timeout=None if wait is None else max(0.0, wait))
        except queue.Empty:
            msg = None

        handled = False
        if msg is _STOP:
            self._running = False
            return False
        if msg is not None:
            self._dispatch(msg)
            handled = True
        self._fire_due_timers()
        return handled

    def drain(self) -> int:
        """Handle every message already queued without waiting. Returns how many."""
        count = 0
        while True:
            try:
                msg = self.inbox.get_nowait()
            except queue.Empty:
                return count
            if msg is _STOP:
                self._running = False
                return count
            self._dispatch(msg)
            count += 1

    def _seconds_until_next_timer(self) -> float | None:
        if not self._timers:
            return None
        return min(t.next_due for t in self._timers) - self._clock()

    def _fire_due_timers(self) -> None:
        now = self._clock()
        for timer in list(self._timers):
            if timer.is_due(now):
                try:
                    timer.fire(now)
                except Exception:
                    logger.exception("Timer %s failed", timer.name)

    def _dispatch(self, msg: object) -> None:
        try:
            if isinstance(msg, BatchReceived):
                self._apply_batch(msg.batch)
            elif isinstance(msg, DecodeFailed):
                report(self._bus, logger, "warning", f"Dropped stream message: {msg.reason}")
            elif isinstance(msg, ConnectionWarning):
                report(self._bus, logger, "warning", msg.message)
            else:
                logger.warning("Unexpected inbox message: %r", msg)
        except Exception:
            logger.exception("Failed to handle %s", type(msg).__name__)

    def _apply_batch(self, batch: NotificationBatch) -> None:
        applied = rejected = 0
        for notification in batch.notifications:
            logger.debug(
                "received event: %s, id %s",
                notification,
                batch.cursor,
                extra={"scan_id": notification.scan_id, "cursor": batch.cursor},
            )
            outcome = self._registry.apply(notification)
            if outcome is TransitionOutcome.APPLIED:
                applied += 1
            elif outcome is TransitionOutcome.REJECTED:
                rejected += 1
        # Remember the last handled message regardless of rejections, for resuming.
        self._resume.advance(batch.cursor)
        self.batches_applied += 1
        if self._bus is not None:
            self._bus.publish(
                BatchApplied(
                    cursor=batch.cursor, total=len(batch), applied=applied, rejected=rejected
                )
            )

    # --- timers ---
    def _on_probe(self, _now: float) -> None:
        self._supervisor.probe()

    def _on_refresh(self, now: float) -> None:
        if self._bus is not None:
            self._bus.publish(RefreshTick(now=now))
