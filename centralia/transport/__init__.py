"""Streaming transport to the agent endpoint."""

from centralia.transport.base import (
    OutgoingMessage,
    StreamingTransport,
    TransportError,
    TransportRequest,
)
from centralia.transport.http import HttpStreamingTransport

__all__ = [
    "HttpStreamingTransport",
    "OutgoingMessage",
    "StreamingTransport",
    "TransportError",
    "TransportRequest",
]
