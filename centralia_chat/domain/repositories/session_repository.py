"""Repository interface for session persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from centralia.protocol.elements import InteractiveElement
from centralia_chat.domain.entities.message import Message, MessageRole
from centralia_chat.domain.entities.session import Session

PREVIEW_MAX_LENGTH = 100


@dataclass(frozen=True)
class SessionFilters:
    search: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int | None = None


def make_preview(content: str, max_length: int = PREVIEW_MAX_LENGTH) -> str:
    return content[:max_length]


class SessionRepository(Protocol):
    """Durable storage for sessions and their messages.

    ``list_all`` is ordered most-recently-updated first, ``get_messages`` oldest
    first. ``append_message`` also refreshes the session preview and
    updated-at, and raises ``SessionNotFoundError`` for unknown sessions.
    """

    async def create(self, title: str | None = None) -> Session: ...

    async def list_all(self, filters: SessionFilters | None = None) -> list[Session]: ...

    async def get(self, session_id: str) -> Session | None: ...

    async def get_messages(self, session_id: str) -> list[Message]: ...

    async def append_message(
        self,
        session_id: str,
        *,
        role: MessageRole,
        content: str,
        tool_calls: list[dict[str, Any]] | None = None,
        interactive: list[InteractiveElement] | None = None,
    ) -> Message: ...

    async def rename(self, session_id: str, title: str) -> None: ...

    async def delete(self, session_id: str) -> bool: ...

    async def count(self) -> int: ...
