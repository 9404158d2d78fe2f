"""Shared error types.

The goal is to make errors explicit and easy to absorb at the event loop boundary:
nothing raised here is meant to terminate the process.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class AppError(Exception):
    """Base error for application-level failures."""

    message: str
    cause: Exception | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.cause is None:
            return self.message
        return f"{self.message} (cause: {self.cause})"


class ValidationError(AppError):
    """Invalid input or configuration."""


class DecodeError(ValidationError):
    """A pushed payload could not be turned into status notifications."""


class InfrastructureError(AppError):
    """IO/network/OS failures."""


class TransportError(InfrastructureError):
    """The push subscription could not be opened or was lost."""
