"""Streaming transport interface."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Protocol

from centralia.protocol.events import ConfirmationPayload, StreamEvent


class TransportError(Exception):
    """Network or protocol failure during a streaming call."""


@dataclass(frozen=True)
class OutgoingMessage:
    role: str
    content: str


@dataclass(frozen=True)
class TransportRequest:
    """One streaming call.

    A confirmation payload replaces the message list; otherwise ``messages``
    carries only the messages new to this call.
    """

    messages: list[OutgoingMessage] = field(default_factory=list)
    session_id: str | None = None
    confirmation: ConfirmationPayload | None = None

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any]
        if self.confirmation is not None:
            body = self.confirmation.to_wire()
        else:
            body = {"messages": [{"role": m.role, "content": m.content} for m in self.messages]}
        if self.session_id:
            body["sessionId"] = self.session_id
        return body


class StreamingTransport(Protocol):
    def stream(self, request: TransportRequest) -> AsyncIterator[StreamEvent]: ...
