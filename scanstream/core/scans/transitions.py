"""Scan lifecycle transitions.

    current        | scanning   | scanned            | failed
    ---------------+------------+--------------------+-------------------
    Scanning(t0)   | unchanged  | Scanned(now - t0)  | Failed(now - t0)
    Scanned / Failed: every incoming status is rejected

Terminal states never change. Re-applying a status is always harmless, which is
what makes redelivery after a reconnect safe.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from scanstream.core.scans.models import Failed, Scanned, Scanning, ScanState, ScanStatus


class TransitionOutcome(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class Transition:
    state: ScanState
    outcome: TransitionOutcome

    @property
    def changed(self) -> bool:
        return self.outcome is TransitionOutcome.APPLIED


def next_state(current: ScanState, incoming: ScanStatus, now: float) -> Transition:
    if not isinstance(current, Scanning):
        return Transition(current, TransitionOutcome.REJECTED)
    if incoming is ScanStatus.SCANNING:
        return Transition(current, TransitionOutcome.DUPLICATE)
    duration = current.elapsed(now)
    if incoming is ScanStatus.SCANNED:
        return Transition(Scanned(duration), TransitionOutcome.APPLIED)
    return Transition(Failed(duration), TransitionOutcome.APPLIED)
