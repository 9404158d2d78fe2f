from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ResumeState:
    """Cursor of the last applied stream message. Lives in memory only."""

    last_cursor: str | None = None

    def advance(self, cursor: str) -> None:
        # Messages without an id carry an empty cursor; they do not move the resume point.
        if cursor:
            self.last_cursor = cursor
