"""One live subscription to the push endpoint.

The connection owns a reader thread that streams the ``text/event-stream``
response, decodes each message and posts the result into the event loop's
inbox. It never touches scan state itself.
"""

from __future__ import annotations

import logging
import queue
import socket
import threading
from enum import IntEnum
from urllib.parse import quote, urlsplit

import requests

from scanstream.config import DEFAULT_CONNECT_TIMEOUT_SEC, RESUME_QUERY_PARAM
from scanstream.core.errors import DecodeError, TransportError
from scanstream.core.stream.decoder import decode_batch
from scanstream.core.stream.messages import (
    BatchReceived,
    ConnectionWarning,
    DecodeFailed,
    InboxMessage,
)
from scanstream.core.stream.sse import SSEMessage, iter_messages, split_lines

logger = logging.getLogger(__name__)


class ReadyState(IntEnum):
    """Same values as the browser ``EventSource.readyState``."""

    CONNECTING = 0
    OPEN = 1
    CLOSED = 2


def _socket_of(response: object) -> socket.socket | None:
    """The socket a streamed ``requests`` response is reading from, if reachable."""
    raw = getattr(response, "raw", None)
    sock = getattr(getattr(raw, "connection", None), "sock", None)
    if sock is None:
        # Close-delimited bodies: http.client already dropped the connection's
        # reference and only the response's socket file keeps it.
        fp = getattr(getattr(raw, "_fp", None), "fp", None)
        sock = getattr(getattr(fp, "raw", None), "_sock", None)
    return sock if isinstance(sock, socket.socket) else None


def build_subscription_url(
    endpoint: str, resume_cursor: str | None = None, *, param: str = RESUME_QUERY_PARAM
) -> str:
    parts = urlsplit(endpoint)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise TransportError(f"Push endpoint must be an absolute http(s) URL: {endpoint!r}")
    if not resume_cursor:
        return endpoint
    sep = "&" if parts.query else "?"
    return f"{endpoint}{sep}{quote(param, safe='')}={quote(resume_cursor, safe='')}"


class StreamConnection:
    def __init__(
        self,
        url: str,
        inbox: queue.Queue[InboxMessage],
        *,
        session: requests.Session,
        owns_session: bool,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SEC,
    ) -> None:
        self.url = url
        self._inbox = inbox
        self._session = session
        self._owns_session = owns_session
        self._connect_timeout = connect_timeout
        self._lock = threading.RLock()
        self._state = ReadyState.CONNECTING
        self._closed = False
        self._response: requests.Response | None = None
        self._thread = threading.Thread(target=self._run, name="scan-stream", daemon=True)

    @classmethod
    def open(
        cls,
        endpoint: str,
        resume_cursor: str | None = None,
        *,
        inbox: queue.Queue[InboxMessage],
        session: requests.Session | None = None,
        cookies: dict[str, str] | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SEC,
    ) -> StreamConnection:
        """Start subscribing to ``endpoint``, resuming after ``resume_cursor`` if given.

        Only an unusable endpoint fails here (``TransportError``). Network errors
        happen later on the reader thread and show up as a dead connection plus a
        ``ConnectionWarning`` in the inbox.
        """
        url = build_subscription_url(endpoint, resume_cursor)
        owns_session = session is None
        if session is None:
            session = requests.Session()
        if cookies:
            session.cookies.update(cookies)
        conn = cls(
            url,
            inbox,
            session=session,
            owns_session=owns_session,
            connect_timeout=connect_timeout,
        )
        conn._thread.start()
        logger.info("Subscribing to %s", url, extra={"url": url, "cursor": resume_cursor})
        return conn

    @property
    def ready_state(self) -> ReadyState:
        with self._lock:
            return self._state

    def is_live(self) -> bool:
        return self.ready_state is ReadyState.OPEN

    def close(self) -> None:
        """Mark the connection closed and wake the reader. Does not wait for I/O.

        The response and an owned session are released by the reader thread
        once its pending read returns.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._state = ReadyState.CLOSED
            response = self._response
        if response is not None:
            self._interrupt(response)
        logger.debug("Closed subscription %s", self.url)

    @staticmethod
    def _interrupt(response: requests.Response) -> None:
        sock = _socket_of(response)
        if sock is None:
            response.close()
            return
        # Closing the response here would wait for the reader's buffer lock,
        # i.e. for the hub's next bytes. A shutdown ends the blocked read now.
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            logger.debug("Socket already gone for %s", response.url, exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        """Wait for the reader thread to finish (tests, orderly shutdown)."""
        if self._thread.is_alive():
            self._thread.join(timeout)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def _post(self, message: InboxMessage) -> bool:
        # Under the lock so that nothing reaches the inbox after close() returned.
        with self._lock:
            if self._closed:
                return False
            self._inbox.put(message)
            return True

    def _fail(self, message: str) -> None:
        with self._lock:
            if self._closed:
                return
            self._state = ReadyState.CLOSED
            self._inbox.put(ConnectionWarning(message))

    def _deliver(self, msg: SSEMessage) -> None:
        if msg.event != "message":
            logger.debug("Ignoring %r event from %s", msg.event, self.url)
            return
        try:
            batch = decode_batch(msg.data, msg.last_event_id)
        except DecodeError as e:
            self._post(DecodeFailed(reason=str(e)))
            return
        self._post(BatchReceived(batch))

    def _run(self) -> None:
        response: requests.Response | None = None
        try:
            response = self._open_response()
            if response is not None:
                self._stream(response)
        finally:
            if response is not None:
                response.close()
            if self._owns_session:
                self._session.close()

    def _open_response(self) -> requests.Response | None:
        try:
            response = self._session.get(
                self.url,
                stream=True,
                headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
                timeout=(self._connect_timeout, None),
            )
        except requests.RequestException as e:
            self._fail(f"Could not open event stream: {e}")
            return None
        with self._lock:
            if not self._closed:
                self._response = response
        return response

    def _stream(self, response: requests.Response) -> None:
        try:
            response.raise_for_status()
            with self._lock:
                if self._closed:
                    return
                self._state = ReadyState.OPEN
            # One byte per read: on a close-delimited body a bigger read would
            # sit waiting until that many bytes have arrived.
            lines = split_lines(response.iter_content(chunk_size=1))
            for msg in iter_messages(lines):
                if self.closed:
                    return
                self._deliver(msg)
            self._fail("Event stream ended by server")
        except requests.RequestException as e:
            self._fail(f"Event stream failed: {e}")
        except Exception as e:  # noqa: BLE001
            if self.closed:
                # Reads on a socket shut down under our feet fail in assorted ways.
                logger.debug("Reader stopped after close", exc_info=True)
                return
            logger.exception("Unexpected error while reading %s", self.url)
            self._fail(f"Event stream failed: {e}")
