from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class NotificationCenter:
    """Shows short messages in the main window's status bar."""

    def __init__(self, window) -> None:
        self._window = window

    def _status(self, text: str, *, ms: int = 4500) -> None:
        sb = getattr(self._window, "statusBar", None)
        if callable(sb):
            sb = sb()
        if sb is not None and hasattr(sb, "showMessage"):
            sb.showMessage(text, ms)
            return
        logger.debug("No status bar to show: %s", text)

    def info(self, message: str) -> None:
        self._status(message)

    def warning(self, message: str) -> None:
        self._status(f"⚠ {message}", ms=8000)

    def error(self, message: str) -> None:
        self._status(f"❌ {message}", ms=15000)

    def show(self, severity: str, message: str) -> None:
        {"info": self.info, "warning": self.warning, "error": self.error}.get(
            severity, self.warning
        )(message)
