from __future__ import annotations

import queue
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from scanstream.core.errors import TransportError
from scanstream.core.scans import ScanStatus
from scanstream.core.stream import (
    BatchReceived,
    ConnectionWarning,
    DecodeFailed,
    ReadyState,
    StreamConnection,
    build_subscription_url,
)

ENDPOINT = "https://hub.example.com/.well-known/mercure?topic=scans"


class _FakeResponse:
    def __init__(
        self, lines: list[str], *, status: int = 200, hold: threading.Event | None = None
    ) -> None:
        self._lines = lines
        self.status_code = status
        self.closed = False
        self._hold = hold

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size: int = 1):
        for line in self._lines:
            yield (line + "\n").encode("utf-8")
        if self._hold is not None:
            self._hold.wait(5.0)

    def close(self) -> None:
        self.closed = True
        if self._hold is not None:
            self._hold.set()


class _FakeSession:
    def __init__(self, response: _FakeResponse | None = None, error: Exception | None = None):
        self._response = response
        self._error = error
        self.calls: list[tuple[str, dict]] = []
        self.cookies: dict[str, str] = {}
        self.closed = False

    def get(self, url: str, **kwargs):
        self.calls.append((url, kwargs))
        if self._error is not None:
            raise self._error
        return self._response

    def close(self) -> None:
        self.closed = True


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _drain(inbox: queue.Queue) -> list[object]:
    items = []
    while True:
        try:
            items.append(inbox.get_nowait())
        except queue.Empty:
            return items


def test_build_subscription_url_appends_encoded_cursor() -> None:
    assert build_subscription_url(ENDPOINT) == ENDPOINT
    assert (
        build_subscription_url(ENDPOINT, "urn:uuid:1 2")
        == ENDPOINT + "&Last-Event-ID=urn%3Auuid%3A1%202"
    )
    assert (
        build_subscription_url("http://hub.local/stream", "42")
        == "http://hub.local/stream?Last-Event-ID=42"
    )


@pytest.mark.parametrize("endpoint", ["", "hub.example.com/stream", "ftp://hub/stream", "/relative"])
def test_unusable_endpoint_fails_to_open(endpoint: str) -> None:
    with pytest.raises(TransportError):
        StreamConnection.open(endpoint, inbox=queue.Queue(), session=_FakeSession())


def test_messages_are_decoded_into_the_inbox() -> None:
    response = _FakeResponse(
        [
            "id: c-1",
            'data: [{"scanId": 1, "status": "scanning"}]',
            "",
            "id: c-2",
            "data: not json",
            "",
        ]
    )
    session = _FakeSession(response)
    inbox: queue.Queue = queue.Queue()

    conn = StreamConnection.open(ENDPOINT, "c-0", inbox=inbox, session=session)
    conn.join(2.0)

    items = _drain(inbox)
    assert isinstance(items[0], BatchReceived)
    assert items[0].batch.cursor == "c-1"
    assert items[0].batch.notifications[0].status is ScanStatus.SCANNING
    assert isinstance(items[1], DecodeFailed)
    assert isinstance(items[2], ConnectionWarning)
    assert "ended" in items[2].message
    assert conn.ready_state is ReadyState.CLOSED

    url, kwargs = session.calls[0]
    assert url.endswith("Last-Event-ID=c-0")
    assert kwargs["stream"] is True
    assert kwargs["headers"]["Accept"] == "text/event-stream"


def test_named_events_other_than_message_are_ignored() -> None:
    response = _FakeResponse(["event: ping", "data: {}", ""])
    inbox: queue.Queue = queue.Queue()

    conn = StreamConnection.open(ENDPOINT, inbox=inbox, session=_FakeSession(response))
    conn.join(2.0)

    items = _drain(inbox)
    assert len(items) == 1
    assert isinstance(items[0], ConnectionWarning)


def test_is_live_while_streaming_and_close_stops_delivery() -> None:
    hold = threading.Event()
    response = _FakeResponse(["id: 1", 'data: [{"scanId": 1, "status": "scanning"}]', ""], hold=hold)
    session = _FakeSession(response)
    inbox: queue.Queue = queue.Queue()

    conn = StreamConnection.open(ENDPOINT, inbox=inbox, session=session)
    assert _wait_for(conn.is_live)
    assert _wait_for(lambda: inbox.qsize() == 1)

    conn.close()
    conn.close()
    conn.join(2.0)

    assert not conn.is_live()
    assert response.closed
    # Session was handed in, so it is not ours to close.
    assert not session.closed
    items = _drain(inbox)
    assert len(items) == 1
    assert isinstance(items[0], BatchReceived)


def test_connect_error_marks_connection_dead_with_warning() -> None:
    session = _FakeSession(error=requests.ConnectionError("refused"))
    inbox: queue.Queue = queue.Queue()

    conn = StreamConnection.open(ENDPOINT, inbox=inbox, session=session)
    conn.join(2.0)

    assert not conn.is_live()
    items = _drain(inbox)
    assert len(items) == 1
    assert isinstance(items[0], ConnectionWarning)
    assert "refused" in items[0].message


def test_http_error_status_marks_connection_dead() -> None:
    response = _FakeResponse([], status=401)
    inbox: queue.Queue = queue.Queue()

    conn = StreamConnection.open(ENDPOINT, inbox=inbox, session=_FakeSession(response))
    conn.join(2.0)

    assert conn.ready_state is ReadyState.CLOSED
    items = _drain(inbox)
    assert isinstance(items[0], ConnectionWarning)
    assert "401" in items[0].message


def test_cookies_are_attached_to_the_session() -> None:
    session = _FakeSession(_FakeResponse([]))

    conn = StreamConnection.open(
        ENDPOINT, inbox=queue.Queue(), session=session, cookies={"mercureAuthorization": "jwt"}
    )
    conn.join(2.0)

    assert session.cookies == {"mercureAuthorization": "jwt"}


_HELLO = b'id: c-1\ndata: [{"scanId": 1, "status": "scanning"}]\n\n'


class _QuietHubHandler(BaseHTTPRequestHandler):
    """Sends one message, then keeps the stream open without writing anything."""

    protocol_version = "HTTP/1.1"

    def do_GET(self) -> None:
        self.send_response(200)
        self.send_header("Content-Type", "text/event-stream")
        if self.server.chunked:
            self.send_header("Transfer-Encoding", "chunked")
            self.end_headers()
            self.wfile.write(b"%x\r\n%s\r\n" % (len(_HELLO), _HELLO))
        else:
            # No length, no chunking: the body ends when the socket closes.
            self.send_header("Connection", "close")
            self.end_headers()
            self.wfile.write(_HELLO)
        self.wfile.flush()
        self.server.release.wait(10.0)
        self.close_connection = True

    def log_message(self, format: str, *args: object) -> None:
        pass


@pytest.fixture
def quiet_hub():
    servers: list[ThreadingHTTPServer] = []

    def _start(*, chunked: bool) -> str:
        server = ThreadingHTTPServer(("127.0.0.1", 0), _QuietHubHandler)
        server.daemon_threads = True
        server.chunked = chunked
        server.release = threading.Event()
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return f"http://127.0.0.1:{server.server_address[1]}/.well-known/mercure?topic=scans"

    yield _start
    for server in servers:
        server.release.set()
        server.shutdown()
        server.server_close()


@pytest.fixture
def local_session():
    session = requests.Session()
    # Never route the loopback hub through a proxy from the environment.
    session.trust_env = False
    yield session
    session.close()


@pytest.mark.parametrize("chunked", [True, False], ids=["chunked", "close-delimited"])
def test_short_message_is_delivered_while_hub_stays_open(quiet_hub, local_session, chunked) -> None:
    inbox: queue.Queue = queue.Queue()
    conn = StreamConnection.open(
        quiet_hub(chunked=chunked), inbox=inbox, session=local_session
    )
    try:
        item = inbox.get(timeout=3.0)
    finally:
        conn.close()

    assert isinstance(item, BatchReceived)
    assert item.batch.cursor == "c-1"


@pytest.mark.parametrize("chunked", [True, False], ids=["chunked", "close-delimited"])
def test_close_returns_promptly_while_reader_waits_on_silent_hub(
    quiet_hub, local_session, chunked
) -> None:
    inbox: queue.Queue = queue.Queue()
    conn = StreamConnection.open(
        quiet_hub(chunked=chunked), inbox=inbox, session=local_session
    )
    assert isinstance(inbox.get(timeout=3.0), BatchReceived)
    assert conn.is_live()

    started = time.monotonic()
    conn.close()
    took = time.monotonic() - started
    conn.join(2.0)

    assert took < 1.0
    assert conn.ready_state is ReadyState.CLOSED
    # The reader wound down without reporting the shutdown as a failure.
    assert _drain(inbox) == []
