"""Status payload decoding.

A stream message carries a JSON array such as::

    [{"scanId": 1, "status": "scanning"}, {"scanId": 2, "status": "failed"}]

Decoding is all-or-nothing: one bad entry rejects the whole message.
"""

from __future__ import annotations

import json
from typing import Any

from scanstream.core.errors import DecodeError
from scanstream.core.scans.models import NotificationBatch, ScanStatus, StatusNotification


def _decode_entry(index: int, entry: Any) -> StatusNotification:
    if not isinstance(entry, dict):
        raise DecodeError(f"Entry {index} is not an object: {entry!r}")
    scan_id = entry.get("scanId")
    # bool is an int subclass; true/false are not ids.
    if isinstance(scan_id, bool) or not isinstance(scan_id, int):
        raise DecodeError(f"Entry {index} has invalid scanId: {scan_id!r}")
    raw_status = entry.get("status")
    if not isinstance(raw_status, str):
        raise DecodeError(f"Entry {index} has invalid status: {raw_status!r}")
    try:
        status = ScanStatus(raw_status.strip().lower())
    except ValueError as e:
        raise DecodeError(f"Entry {index} has unknown status: {raw_status!r}", cause=e) from e
    return StatusNotification(scan_id=scan_id, status=status)


def decode_batch(payload: str | None, cursor: str | None) -> NotificationBatch:
    if payload is None:
        raise DecodeError("Message has no text payload")
    if cursor is None:
        raise DecodeError("Message has no event id")
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise DecodeError("Could not deserialize JSON event", cause=e) from e
    if not isinstance(data, list):
        raise DecodeError(f"Expected a JSON array, got {type(data).__name__}")
    notifications = tuple(_decode_entry(i, entry) for i, entry in enumerate(data))
    return NotificationBatch(notifications=notifications, cursor=cursor)
