"""Push stream client: SSE framing, payload decoding, connection and supervision."""

from .connection import ReadyState, StreamConnection, build_subscription_url
from .decoder import decode_batch
from .messages import BatchReceived, ConnectionWarning, DecodeFailed, InboxMessage
from .resume import ResumeState
from .sse import SSEMessage, SSEParser, iter_messages
from .supervisor import Connection, ReconnectionSupervisor, SupervisorState

__all__ = [
    "BatchReceived",
    "Connection",
    "ConnectionWarning",
    "DecodeFailed",
    "InboxMessage",
    "ReadyState",
    "ReconnectionSupervisor",
    "ResumeState",
    "SSEMessage",
    "SSEParser",
    "StreamConnection",
    "SupervisorState",
    "build_subscription_url",
    "decode_batch",
    "iter_messages",
]
