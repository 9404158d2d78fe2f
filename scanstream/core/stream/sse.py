"""Server-Sent Events framing (``text/event-stream``).

Turns the line stream of a response body into discrete messages, following the
browser EventSource rules: ``data`` lines are joined with newlines, a blank line
dispatches, ``:`` starts a comment, and the last seen ``id`` sticks to every
following message until the server sends a new one.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

_EOL = re.compile(rb"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class SSEMessage:
    data: str
    event: str = "message"
    last_event_id: str = ""
    retry_ms: int | None = None


class SSEParser:
    def __init__(self) -> None:
        self.last_event_id = ""
        self.retry_ms: int | None = None
        self._data: list[str] = []
        self._event = ""
        self._first_line = True

    def feed_line(self, line: str) -> SSEMessage | None:
        """Consume one line (without its terminator); return a message on dispatch."""
        if self._first_line:
            self._first_line = False
            line = line.lstrip("\ufeff")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None
        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if name == "data":
            self._data.append(value)
        elif name == "event":
            self._event = value
        elif name == "id":
            if "\0" not in value:
                self.last_event_id = value
        elif name == "retry":
            if value.isdigit():
                self.retry_ms = int(value)
        return None

    def _dispatch(self) -> SSEMessage | None:
        data, event = self._data, self._event
        self._data, self._event = [], ""
        if not data:
            return None
        return SSEMessage(
            data="\n".join(data),
            event=event or "message",
            last_event_id=self.last_event_id,
            retry_ms=self.retry_ms,
        )


def iter_messages(lines: Iterable[str], parser: SSEParser | None = None) -> Iterator[SSEMessage]:
    """Yield messages from an iterable of lines. An unterminated trailing message is dropped."""
    p = parser or SSEParser()
    for line in lines:
        msg = p.feed_line(line)
        if msg is not None:
            yield msg


def split_lines(chunks: Iterable[bytes]) -> Iterator[str]:
    """Cut a raw body into lines as soon as each terminator arrives.

    CRLF, LF and a lone CR all end a line, also when a CRLF pair is split
    across two chunks. Lines are decoded as UTF-8 (the stream's mandated
    encoding); a trailing line without terminator is dropped.
    """
    buf = b""
    skip_lf = False
    for chunk in chunks:
        if not chunk:
            continue
        if skip_lf and chunk[:1] == b"\n":
            chunk = chunk[1:]
        skip_lf = False
        buf += chunk
        while True:
            m = _EOL.search(buf)
            if m is None:
                break
            yield buf[: m.start()].decode("utf-8", "replace")
            buf = buf[m.end():]
            # A CR that ends the buffer may be the first half of a CRLF.
            skip_lf = m.group() == b"\r" and not buf
