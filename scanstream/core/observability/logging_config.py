"""Root logging for the client.

Three threads write logs (GUI, scan loop, stream reader), so every line carries
the thread name. Stdlib logging only.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

from scanstream.core.paths import get_app_state_dir

_TEXT_FORMAT = "%(asctime)s | %(levelname)-7s | %(threadName)s | %(name)s | %(message)s"
_EXTRA_KEYS = ("event", "scan_id", "cursor", "url", "severity")
_TRUTHY = {"1", "true", "yes", "on"}

# Chatty libraries: one record per HTTP connection or retry.
_QUIET_LOGGERS = ("urllib3", "requests")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(  # noqa: UP017
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "thread": record.threadName,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def _resolve_level(level: str | int | None) -> int:
    raw = level if level is not None else os.getenv("LOG_LEVEL", "INFO")
    if isinstance(raw, int):
        return raw
    value = logging.getLevelName(raw.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def _file_handler(state_dir: Path | None) -> logging.Handler | None:
    try:
        logs_dir = (state_dir or get_app_state_dir()) / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            logs_dir / "scanstream.log",
            maxBytes=1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
    except OSError:
        return None
    handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    *,
    level: str | int | None = None,
    json_logs: bool | None = None,
    log_to_file: bool | None = None,
    state_dir: Path | None = None,
) -> None:
    """Configure the root logger. Safe to call more than once.

    Unset arguments come from the environment: ``LOG_LEVEL`` (default INFO),
    ``LOG_JSON`` (default off) and ``LOG_FILE`` (default on). The log file is
    ``<state dir>/logs/scanstream.log``; if it cannot be created the client
    logs to stdout only.
    """
    if json_logs is None:
        json_logs = _env_flag("LOG_JSON", "0")
    if log_to_file is None:
        log_to_file = _env_flag("LOG_FILE", "1")

    console = logging.StreamHandler(stream=sys.stdout)
    console.setFormatter(
        _JsonFormatter() if json_logs else logging.Formatter(_TEXT_FORMAT, datefmt="%H:%M:%S")
    )
    handlers: list[logging.Handler] = [console]
    if log_to_file:
        fh = _file_handler(state_dir)
        if fh is not None:
            handlers.append(fh)

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        if isinstance(old, logging.FileHandler):
            old.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(_resolve_level(level))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
