"""Configuration and constants.

Module-level defaults for the push endpoint, timers and transport. Use
:meth:`StreamSettings.from_env` to override them at startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from scanstream.core.errors import ValidationError

# Base paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Push endpoint (Mercure hub, topic-scoped)
DEFAULT_STREAM_URL = (
    "http://localhost:3000/.well-known/mercure"
    "?topic=https%3A%2F%2Fsome.example.com%2Fstream"
)
RESUME_QUERY_PARAM = "Last-Event-ID"

# Timers (seconds)
DEFAULT_PROBE_INTERVAL_SEC = 10.0
DEFAULT_REFRESH_INTERVAL_SEC = 1.0

# Transport
DEFAULT_CONNECT_TIMEOUT_SEC = 10.0

# Diagnostics kept in memory for the status bar / tests
DIAGNOSTICS_MAX_ENTRIES = 500


def parse_cookie_header(raw: str) -> dict[str, str]:
    """Parse ``"a=1; b=2"`` into ``{"a": "1", "b": "2"}``. Empty parts are skipped."""
    cookies: dict[str, str] = {}
    for part in raw.split(";"):
        part = part.strip()
        if not part:
            continue
        name, sep, value = part.partition("=")
        if not sep or not name.strip():
            raise ValidationError(f"Malformed cookie entry: {part!r}")
        cookies[name.strip()] = value.strip()
    return cookies


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be a number, got {raw!r}", cause=e) from e
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True, slots=True)
class StreamSettings:
    url: str = DEFAULT_STREAM_URL
    cookies: dict[str, str] = field(default_factory=dict)
    probe_interval_sec: float = DEFAULT_PROBE_INTERVAL_SEC
    refresh_interval_sec: float = DEFAULT_REFRESH_INTERVAL_SEC
    connect_timeout_sec: float = DEFAULT_CONNECT_TIMEOUT_SEC

    def __post_init__(self) -> None:
        if self.refresh_interval_sec >= self.probe_interval_sec:
            raise ValidationError(
                "Refresh interval must be shorter than the liveness probe interval "
                f"({self.refresh_interval_sec}s >= {self.probe_interval_sec}s)"
            )

    @classmethod
    def from_env(cls) -> StreamSettings:
        """Build settings from environment variables.

        - SCANSTREAM_URL: push endpoint URL.
        - SCANSTREAM_COOKIES: ``name=value; name2=value2`` sent with the subscription.
        - SCANSTREAM_PROBE_INTERVAL / SCANSTREAM_REFRESH_INTERVAL: timer periods, seconds.
        - SCANSTREAM_CONNECT_TIMEOUT: seconds to wait for the stream to open.
        """
        url = os.getenv("SCANSTREAM_URL", "").strip() or DEFAULT_STREAM_URL
        return cls(
            url=url,
            cookies=parse_cookie_header(os.getenv("SCANSTREAM_COOKIES", "")),
            probe_interval_sec=_env_float("SCANSTREAM_PROBE_INTERVAL", DEFAULT_PROBE_INTERVAL_SEC),
            refresh_interval_sec=_env_float(
                "SCANSTREAM_REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL_SEC
            ),
            connect_timeout_sec=_env_float(
                "SCANSTREAM_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT_SEC
            ),
        )
