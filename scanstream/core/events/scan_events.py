from __future__ import annotations

from dataclasses import dataclass

from scanstream.core.scans.models import ScanStatus


@dataclass(frozen=True, slots=True)
class ScanCreated:
    """A scan id was referenced for the first time."""

    scan_id: int


@dataclass(frozen=True, slots=True)
class ScanStateChanged:
    scan_id: int
    previous: ScanStatus
    current: ScanStatus
    seconds: float  # final duration for terminal states


@dataclass(frozen=True, slots=True)
class TransitionRejected:
    """A notification tried to move a scan out of a terminal state."""

    scan_id: int
    current: ScanStatus
    incoming: ScanStatus


@dataclass(frozen=True, slots=True)
class BatchApplied:
    cursor: str
    total: int
    applied: int
    rejected: int


@dataclass(frozen=True, slots=True)
class RefreshTick:
    """Heartbeat for re-rendering elapsed time of running scans. Carries no state change."""

    now: float


@dataclass(frozen=True, slots=True)
class ConnectionOpened:
    url: str
    resume_cursor: str | None


@dataclass(frozen=True, slots=True)
class ConnectionLost:
    reason: str


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Human readable diagnostic. ``severity`` is "info", "warning" or "error"."""

    severity: str
    message: str
