from __future__ import annotations

from centralia.config import Settings, get_settings
from centralia.transport.http import HttpStreamingTransport
from centralia_chat.domain.repositories.session_repository import SessionRepository
from centralia_chat.infrastructure.db import init_engine
from centralia_chat.infrastructure.persistence.session_repository import SqlAlchemySessionRepository
from centralia_chat.services.conversation_engine import ConversationEngine
from centralia_chat.services.session_service import SessionService
from centralia_chat.services.session_store import SessionStore

_pg_repository: SqlAlchemySessionRepository | None = None
_memory_repository: SessionStore | None = None


def get_session_repository(settings: Settings | None = None) -> SessionRepository:
    global _pg_repository, _memory_repository
    settings = settings or get_settings()
    store_config = settings.session_store

    if store_config.is_postgres():
        if not store_config.postgres_uri:
            raise RuntimeError("SESSION_POSTGRES_URI is required when SESSION_BACKEND=postgres.")
        if _pg_repository is None:
            _pg_repository = SqlAlchemySessionRepository(
                init_engine(
                    store_config.postgres_uri,
                    pool_size=store_config.pool_size,
                    echo=store_config.echo_sql,
                ),
                preview_max_length=settings.chat.preview_max_length,
            )
        return _pg_repository

    if _memory_repository is None:
        _memory_repository = SessionStore(
            max_sessions=store_config.max_sessions,
            preview_max_length=settings.chat.preview_max_length,
        )
    return _memory_repository


def clear_session_repository() -> None:
    global _pg_repository, _memory_repository
    _pg_repository = None
    _memory_repository = None


def get_transport(settings: Settings | None = None) -> HttpStreamingTransport:
    settings = settings or get_settings()
    config = settings.transport
    return HttpStreamingTransport(
        url=config.url,
        auth_token=config.auth_token,
        timeout=config.timeout,
        connect_timeout=config.connect_timeout,
    )


def get_conversation_engine(
    settings: Settings | None = None,
    transport: HttpStreamingTransport | None = None,
) -> ConversationEngine:
    settings = settings or get_settings()
    return ConversationEngine(
        transport or get_transport(settings),
        get_session_repository(settings),
        default_title=settings.chat.default_title,
        cancel_message=settings.chat.cancel_message,
        title_max_length=settings.chat.title_max_length,
    )


def get_session_service(settings: Settings | None = None) -> SessionService:
    settings = settings or get_settings()
    return SessionService(
        get_session_repository(settings),
        title_max_length=settings.chat.title_max_length,
    )
