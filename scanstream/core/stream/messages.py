"""Messages posted into the event loop's inbox by stream connections."""

from __future__ import annotations

from dataclasses import dataclass

from scanstream.core.scans.models import NotificationBatch


@dataclass(frozen=True, slots=True)
class BatchReceived:
    batch: NotificationBatch


@dataclass(frozen=True, slots=True)
class DecodeFailed:
    reason: str


@dataclass(frozen=True, slots=True)
class ConnectionWarning:
    message: str


InboxMessage = BatchReceived | DecodeFailed | ConnectionWarning
