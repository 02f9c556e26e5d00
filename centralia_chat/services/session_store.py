from __future__ import annotations

import itertools
import threading
import uuid
from dataclasses import replace
from typing import Any

from centralia.protocol.elements import InteractiveElement
from centralia_chat.domain.entities.message import Message, MessageRole
from centralia_chat.domain.entities.session import Session
from centralia_chat.domain.errors import PersistenceError, SessionNotFoundError
from centralia_chat.domain.repositories.session_repository import (
    PREVIEW_MAX_LENGTH,
    SessionFilters,
    make_preview,
)


class SessionStore:
    """In-memory session repository.

    Bounded: once `max_sessions` is reached, `create` raises
    `PersistenceError`. Sessions only disappear through `delete`.
    """

    def __init__(self, max_sessions: int = 1000, preview_max_length: int = PREVIEW_MAX_LENGTH):
        self._sessions: dict[str, Session] = {}
        self._messages: dict[str, list[Message]] = {}
        self._order: dict[str, int] = {}
        self._counter = itertools.count()
        self._max_sessions = max_sessions
        self._preview_max_length = preview_max_length
        self._lock = threading.Lock()

    def _bump(self, session: Session) -> None:
        session.touch()
        self._order[session.session_id] = next(self._counter)

    def _recency(self, session: Session) -> tuple[Any, int]:
        return session.updated_at, self._order.get(session.session_id, 0)

    async def create(self, title: str | None = None) -> Session:
        with self._lock:
            if len(self._sessions) >= self._max_sessions:
                raise PersistenceError(
                    f"Session store is full ({self._max_sessions} sessions); delete one first"
                )

            session = Session(session_id=str(uuid.uuid4()), title=title)
            self._sessions[session.session_id] = session
            self._messages[session.session_id] = []
            self._order[session.session_id] = next(self._counter)
            return replace(session)

    async def get(self, session_id: str) -> Session | None:
        session = self._sessions.get(session_id)
        return replace(session) if session else None

    async def list_all(self, filters: SessionFilters | None = None) -> list[Session]:
        filters = filters or SessionFilters()
        sessions = list(self._sessions.values())

        if filters.search:
            needle = filters.search.lower()
            sessions = [
                s
                for s in sessions
                if needle in (s.title or "").lower()
                or needle in (s.last_message_preview or "").lower()
            ]
        if filters.date_from:
            sessions = [s for s in sessions if s.created_at >= filters.date_from]
        if filters.date_to:
            sessions = [s for s in sessions if s.created_at <= filters.date_to]

        sessions.sort(key=self._recency, reverse=True)
        if filters.limit is not None:
            sessions = sessions[: filters.limit]
        return [replace(s) for s in sessions]

    async def get_messages(self, session_id: str) -> list[Message]:
        messages = self._messages.get(session_id)
        if messages is None:
            raise SessionNotFoundError(session_id)
        return list(messages)

    async def append_message(
        self,
        session_id: str,
        *,
        role: MessageRole,
        content: str,
        tool_calls: list[dict[str, Any]] | None = None,
        interactive: list[InteractiveElement] | None = None,
    ) -> Message:
        role = MessageRole(role)
        if role is MessageRole.TOOL:
            raise PersistenceError("Tool messages are not persisted")

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            message = Message(
                role=role,
                content=content,
                tool_calls=tool_calls,
                interactive=list(interactive or []),
                message_id=str(uuid.uuid4()),
                session_id=session_id,
            )
            self._messages[session_id].append(message)
            session.last_message_preview = make_preview(content, self._preview_max_length)
            session.message_count += 1
            self._bump(session)
            return message

    async def rename(self, session_id: str, title: str) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            session.title = title
            self._bump(session)

    async def delete(self, session_id: str) -> bool:
        with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                del self._messages[session_id]
                self._order.pop(session_id, None)
                return True
            return False

    async def count(self) -> int:
        return len(self._sessions)
