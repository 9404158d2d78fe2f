from __future__ import annotations

from scanstream.application import Container
from scanstream.config import StreamSettings
from scanstream.core.scans import NotificationBatch, ScanStatus, StatusNotification
from scanstream.core.stream import BatchReceived, DecodeFailed


class _FakeConnection:
    def __init__(self, url: str) -> None:
        self.url = url
        self.closed = False

    def is_live(self) -> bool:
        return not self.closed

    def close(self) -> None:
        self.closed = True


class _TestContainer(Container):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.connects: list[tuple[str, str | None]] = []
        self.connections: list[_FakeConnection] = []

    def connect(self, endpoint: str, resume_cursor: str | None) -> _FakeConnection:
        self.connects.append((endpoint, resume_cursor))
        conn = _FakeConnection(endpoint)
        self.connections.append(conn)
        return conn


def test_services_are_shared_singletons() -> None:
    c = Container(StreamSettings(url="http://hub/stream"))

    assert c.event_bus is c.event_bus
    assert c.scan_registry is c.scan_registry
    assert c.supervisor is c.supervisor
    assert c.event_loop is c.event_loop


def test_stream_messages_flow_from_inbox_to_registry_and_diagnostics() -> None:
    t = {"now": 0.0}
    c = _TestContainer(StreamSettings(url="http://hub/stream"), clock=lambda: t["now"])
    loop = c.event_loop
    loop.open()

    loop.inbox.put(
        BatchReceived(
            NotificationBatch(
                notifications=(StatusNotification(scan_id=1, status=ScanStatus.SCANNING),),
                cursor="c-1",
            )
        )
    )
    loop.inbox.put(DecodeFailed(reason="Entry 0 is not an object"))
    loop.drain()

    assert c.connects == [("http://hub/stream", None)]
    assert 1 in c.scan_registry
    assert c.resume_state.last_cursor == "c-1"
    assert c.diagnostics.entries("warning") == [
        ("warning", "Dropped stream message: Entry 0 is not an object")
    ]

    c.shutdown()
    assert c.connections[0].closed
