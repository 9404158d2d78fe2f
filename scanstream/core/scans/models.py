"""Scan state model.

A scan is always in exactly one of three states. ``Scanning`` remembers when the
scan was first seen; the two terminal states carry the final duration. All
timestamps come from a monotonic clock, durations are seconds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ScanStatus(str, Enum):
    """Wire-level status tag (lower-case on the wire)."""

    SCANNING = "scanning"
    SCANNED = "scanned"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Scanning:
    started_at: float

    status = ScanStatus.SCANNING
    is_terminal = False

    def elapsed(self, now: float) -> float:
        return max(0.0, now - self.started_at)

    def __str__(self) -> str:
        return self.status.value


@dataclass(frozen=True, slots=True)
class Scanned:
    duration: float

    status = ScanStatus.SCANNED
    is_terminal = True

    def elapsed(self, now: float) -> float:  # noqa: ARG002
        return self.duration

    def __str__(self) -> str:
        return self.status.value


@dataclass(frozen=True, slots=True)
class Failed:
    duration: float

    status = ScanStatus.FAILED
    is_terminal = True

    def elapsed(self, now: float) -> float:  # noqa: ARG002
        return self.duration

    def __str__(self) -> str:
        return self.status.value


ScanState = Scanning | Scanned | Failed


@dataclass(frozen=True, slots=True)
class StatusNotification:
    scan_id: int
    status: ScanStatus

    def __str__(self) -> str:
        return f"({self.scan_id}, {self.status})"


@dataclass(frozen=True, slots=True)
class NotificationBatch:
    """Notifications delivered by one stream message, plus that message's cursor."""

    notifications: tuple[StatusNotification, ...]
    cursor: str

    def __len__(self) -> int:
        return len(self.notifications)


@dataclass(slots=True)
class ScanRecord:
    scan_id: int
    state: ScanState
    seq: int  # insertion order within the registry

    def __str__(self) -> str:
        return f"({self.scan_id}, {self.state})"


@dataclass(frozen=True, slots=True)
class ScanSnapshot:
    """Read-only row handed to the presentation layer."""

    scan_id: int
    status: ScanStatus
    seconds: float  # elapsed so far for scanning, final duration otherwise
