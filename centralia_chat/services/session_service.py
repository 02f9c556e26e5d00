"""Application service for browsing and managing stored sessions."""

from __future__ import annotations

from datetime import datetime

from centralia.utils.logger import get_logger
from centralia_chat.domain.entities.session import Session
from centralia_chat.domain.errors import SessionNotFoundError
from centralia_chat.domain.repositories.session_repository import SessionFilters, SessionRepository
from centralia_chat.services.titles import TITLE_MAX_LENGTH

logger = get_logger(__name__)

RECENT_SESSIONS_LIMIT = 10


class SessionService:
    """Session history operations used by the CLI sidebar commands."""

    def __init__(self, repository: SessionRepository, title_max_length: int = TITLE_MAX_LENGTH):
        self._repository = repository
        self._title_max_length = title_max_length

    async def list_sessions(
        self,
        search: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        limit: int | None = None,
    ) -> list[Session]:
        search = search.strip() if search else None
        filters = SessionFilters(search=search or None, date_from=date_from, date_to=date_to, limit=limit)
        return await self._repository.list_all(filters)

    async def recent_sessions(self, limit: int = RECENT_SESSIONS_LIMIT) -> list[Session]:
        return await self._repository.list_all(SessionFilters(limit=limit))

    async def get_session(self, session_id: str) -> Session:
        session = await self._repository.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def create_session(self, title: str | None = None) -> Session:
        return await self._repository.create(title)

    async def rename_session(self, session_id: str, title: str) -> Session:
        title = " ".join(title.split())
        if not title:
            raise ValueError("Title must not be blank")
        await self._repository.rename(session_id, title[: self._title_max_length])
        logger.info(f"Renamed session {session_id}")
        return await self.get_session(session_id)

    async def delete_session(self, session_id: str) -> None:
        deleted = await self._repository.delete(session_id)
        if not deleted:
            raise SessionNotFoundError(session_id)
        logger.info(f"Deleted session {session_id}")

    async def count(self) -> int:
        return await self._repository.count()
