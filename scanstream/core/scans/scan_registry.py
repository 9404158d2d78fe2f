from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import replace
from threading import RLock

from scanstream.core.events import (
    EventBus,
    ScanCreated,
    ScanStateChanged,
    TransitionRejected,
)
from scanstream.core.observability.diagnostics import report
from scanstream.core.scans.models import (
    Scanning,
    ScanRecord,
    ScanSnapshot,
    StatusNotification,
)
from scanstream.core.scans.transitions import TransitionOutcome, next_state

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class ScanRegistry:
    """Authoritative scan_id -> scan state mapping.

    Only the event loop calls :meth:`apply`. Readers (the Qt view) go through
    :meth:`get`, :meth:`list` and :meth:`snapshot`, which hand out copies.
    Entries are never removed.
    """

    def __init__(self, event_bus: EventBus | None = None, *, clock: Clock = time.monotonic) -> None:
        self._bus = event_bus
        self._clock = clock
        self._scans: dict[int, ScanRecord] = {}
        self._lock = RLock()

    def apply(self, notification: StatusNotification) -> TransitionOutcome:
        now = self._clock()
        created = False
        with self._lock:
            rec = self._scans.get(notification.scan_id)
            if rec is None:
                # Every scan starts out scanning, so a duration exists even when
                # the first thing we hear about it is "scanned" or "failed".
                rec = ScanRecord(
                    scan_id=notification.scan_id,
                    state=Scanning(started_at=now),
                    seq=len(self._scans),
                )
                self._scans[notification.scan_id] = rec
                created = True
            previous = rec.state
            transition = next_state(previous, notification.status, now)
            rec.state = transition.state

        if created:
            self._publish(ScanCreated(scan_id=notification.scan_id))

        if transition.outcome is TransitionOutcome.APPLIED:
            logger.info(
                "Scan %s: %s -> %s after %.1fs",
                notification.scan_id,
                previous,
                transition.state,
                transition.state.elapsed(now),
                extra={"scan_id": notification.scan_id},
            )
            self._publish(
                ScanStateChanged(
                    scan_id=notification.scan_id,
                    previous=previous.status,
                    current=transition.state.status,
                    seconds=transition.state.elapsed(now),
                )
            )
        elif transition.outcome is TransitionOutcome.REJECTED:
            report(
                self._bus,
                logger,
                "warning",
                f"Rejected update for scan {notification.scan_id}: "
                f"current state {previous}, incoming {notification.status}",
                scan_id=notification.scan_id,
            )
            self._publish(
                TransitionRejected(
                    scan_id=notification.scan_id,
                    current=previous.status,
                    incoming=notification.status,
                )
            )
        else:
            logger.debug("Duplicate %s for scan %s ignored", notification.status, notification.scan_id)
        return transition.outcome

    def get(self, scan_id: int) -> ScanRecord | None:
        with self._lock:
            rec = self._scans.get(scan_id)
            return None if rec is None else replace(rec)

    def list(self) -> list[ScanRecord]:
        """All scans in insertion order."""
        with self._lock:
            return [replace(rec) for rec in self._scans.values()]

    def elapsed(self, scan_id: int) -> float | None:
        """Seconds running so far, or the final duration. ``None`` for unknown ids."""
        with self._lock:
            rec = self._scans.get(scan_id)
            state = None if rec is None else rec.state
        return None if state is None else state.elapsed(self._clock())

    def snapshot(self, *, order: str = "id", reverse: bool = False) -> list[ScanSnapshot]:
        """Rows for presentation, ordered by scan ``"id"`` or by ``"insertion"``."""
        if order not in {"id", "insertion"}:
            raise ValueError(f"Unknown snapshot order: {order!r}")
        now = self._clock()
        with self._lock:
            records = list(self._scans.values())
        key = (lambda r: r.scan_id) if order == "id" else (lambda r: r.seq)
        records.sort(key=key, reverse=reverse)
        return [
            ScanSnapshot(scan_id=r.scan_id, status=r.state.status, seconds=r.state.elapsed(now))
            for r in records
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._scans)

    def __contains__(self, scan_id: object) -> bool:
        with self._lock:
            return scan_id in self._scans

    def _publish(self, event: object) -> None:
        if self._bus is not None:
            self._bus.publish(event)
