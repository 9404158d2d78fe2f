"""Text for the scans table. No Qt imports, so it is testable headless."""

from __future__ import annotations

from scanstream.core.scans.models import ScanStatus

COLUMNS = ("Scan id", "Elapsed time", "Status")


def format_duration(seconds: float) -> str:
    # Whole seconds only; sub-second jitter would make the table flicker.
    return f"{int(max(0.0, seconds))} seconds"


def format_status(status: ScanStatus) -> str:
    return status.value
