from __future__ import annotations

import pytest

from scanstream.core.scans import ScanStatus
from scanstream.ui.views.scans.formatting import COLUMNS, format_duration, format_status


def test_columns() -> None:
    assert COLUMNS == ("Scan id", "Elapsed time", "Status")


@pytest.mark.parametrize(
    ("seconds", "text"),
    [(0.0, "0 seconds"), (5.0, "5 seconds"), (5.99, "5 seconds"), (-0.2, "0 seconds")],
)
def test_format_duration_whole_seconds(seconds: float, text: str) -> None:
    assert format_duration(seconds) == text


@pytest.mark.parametrize(
    ("status", "text"),
    [(ScanStatus.SCANNING, "scanning"), (ScanStatus.SCANNED, "scanned"), (ScanStatus.FAILED, "failed")],
)
def test_format_status_is_the_plain_tag(status: ScanStatus, text: str) -> None:
    assert format_status(status) == text
