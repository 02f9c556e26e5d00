"""SQLAlchemy-backed session repository."""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from centralia.protocol.elements import InteractiveElement, dump_elements, parse_elements
from centralia_chat.domain.entities.message import Message, MessageRole
from centralia_chat.domain.entities.session import Session
from centralia_chat.domain.errors import PersistenceError, SessionNotFoundError
from centralia_chat.domain.repositories.session_repository import (
    PREVIEW_MAX_LENGTH,
    SessionFilters,
    SessionRepository,
    make_preview,
)
from centralia_chat.infrastructure.persistence.models import ChatMessageModel, ChatSessionModel


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise PersistenceError(f"{operation} failed: {type(e).__name__}: {e}") from e


def _parse_id(session_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(session_id)
    except (ValueError, TypeError):
        return None


class SqlAlchemySessionRepository(SessionRepository):
    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        preview_max_length: int = PREVIEW_MAX_LENGTH,
    ):
        self._sessionmaker = sessionmaker
        self._preview_max_length = preview_max_length

    def _message_count(self) -> Any:
        return (
            select(func.count(ChatMessageModel.id))
            .where(ChatMessageModel.session_id == ChatSessionModel.id)
            .scalar_subquery()
        )

    async def create(self, title: str | None = None) -> Session:
        with _translate_errors("create session"):
            async with self._sessionmaker() as db:
                model = ChatSessionModel(id=uuid.uuid4(), title=title)
                db.add(model)
                await db.commit()
                await db.refresh(model)
                return _map_session(model, message_count=0)

    async def get(self, session_id: str) -> Session | None:
        target_id = _parse_id(session_id)
        if target_id is None:
            return None
        with _translate_errors("get session"):
            async with self._sessionmaker() as db:
                result = await db.execute(
                    select(ChatSessionModel, self._message_count().label("message_count")).where(
                        ChatSessionModel.id == target_id
                    )
                )
                row = result.one_or_none()
                if row is None:
                    return None
                return _map_session(row[0], message_count=int(row[1] or 0))

    async def list_all(self, filters: SessionFilters | None = None) -> list[Session]:
        filters = filters or SessionFilters()
        query = select(ChatSessionModel, self._message_count().label("message_count"))

        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(
                or_(
                    ChatSessionModel.title.ilike(pattern),
                    ChatSessionModel.last_message_preview.ilike(pattern),
                )
            )
        if filters.date_from:
            query = query.where(ChatSessionModel.created_at >= filters.date_from)
        if filters.date_to:
            query = query.where(ChatSessionModel.created_at <= filters.date_to)

        query = query.order_by(ChatSessionModel.updated_at.desc())
        if filters.limit is not None:
            query = query.limit(filters.limit)

        with _translate_errors("list sessions"):
            async with self._sessionmaker() as db:
                result = await db.execute(query)
                return [_map_session(row[0], message_count=int(row[1] or 0)) for row in result.all()]

    async def get_messages(self, session_id: str) -> list[Message]:
        target_id = _parse_id(session_id)
        if target_id is None:
            raise SessionNotFoundError(session_id)
        with _translate_errors("get messages"):
            async with self._sessionmaker() as db:
                exists = await db.scalar(
                    select(func.count()).select_from(ChatSessionModel).where(ChatSessionModel.id == target_id)
                )
                if not exists:
                    raise SessionNotFoundError(session_id)
                result = await db.execute(
                    select(ChatMessageModel)
                    .where(ChatMessageModel.session_id == target_id)
                    .order_by(ChatMessageModel.position.asc(), ChatMessageModel.created_at.asc())
                )
                return [_map_message(m) for m in result.scalars().all()]

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
        target_id = _parse_id(session_id)
        if target_id is None:
            raise SessionNotFoundError(session_id)

        with _translate_errors("append message"):
            async with self._sessionmaker() as db:
                session_row = await db.execute(
                    select(ChatSessionModel.id).where(ChatSessionModel.id == target_id).with_for_update()
                )
                if session_row.scalar_one_or_none() is None:
                    raise SessionNotFoundError(session_id)

                position = await db.scalar(
                    select(func.count(ChatMessageModel.id)).where(ChatMessageModel.session_id == target_id)
                )
                model = ChatMessageModel(
                    id=uuid.uuid4(),
                    session_id=target_id,
                    position=int(position or 0),
                    role=role.value,
                    content=content,
                    tool_calls=tool_calls,
                    interactive=dump_elements(interactive) if interactive else None,
                )
                db.add(model)
                await db.execute(
                    update(ChatSessionModel)
                    .where(ChatSessionModel.id == target_id)
                    .values(
                        last_message_preview=make_preview(content, self._preview_max_length),
                        updated_at=_utc_now(),
                    )
                )
                await db.commit()
                await db.refresh(model)
                return _map_message(model)

    async def rename(self, session_id: str, title: str) -> None:
        target_id = _parse_id(session_id)
        if target_id is None:
            raise SessionNotFoundError(session_id)
        with _translate_errors("rename session"):
            async with self._sessionmaker() as db:
                result = await db.execute(
                    update(ChatSessionModel)
                    .where(ChatSessionModel.id == target_id)
                    .values(title=title, updated_at=_utc_now())
                )
                await db.commit()
                if result.rowcount == 0:
                    raise SessionNotFoundError(session_id)

    async def delete(self, session_id: str) -> bool:
        target_id = _parse_id(session_id)
        if target_id is None:
            return False
        with _translate_errors("delete session"):
            async with self._sessionmaker() as db:
                result = await db.execute(delete(ChatSessionModel).where(ChatSessionModel.id == target_id))
                await db.commit()
                return bool(result.rowcount)

    async def count(self) -> int:
        with _translate_errors("count sessions"):
            async with self._sessionmaker() as db:
                result = await db.execute(select(func.count()).select_from(ChatSessionModel))
                return int(result.scalar_one())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _map_session(model: ChatSessionModel, message_count: int) -> Session:
    return Session(
        session_id=str(model.id),
        title=model.title,
        last_message_preview=model.last_message_preview,
        message_count=message_count,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _map_message(model: ChatMessageModel) -> Message:
    return Message(
        role=MessageRole(model.role),
        content=model.content or "",
        tool_calls=model.tool_calls,
        interactive=parse_elements(model.interactive or []),
        message_id=str(model.id),
        session_id=str(model.session_id),
        created_at=model.created_at,
    )
