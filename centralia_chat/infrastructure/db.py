"""Async SQLAlchemy engine for the PostgreSQL session store."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from centralia.utils.logger import get_logger

logger = get_logger(__name__)

_POSTGRES_DRIVERS = {"postgres", "postgresql", "postgresql+psycopg2", "postgresql+psycopg"}

_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


def normalize_async_uri(uri: str) -> str:
    """Point any PostgreSQL URI at the asyncpg driver."""
    url = make_url(uri)
    if url.drivername in _POSTGRES_DRIVERS:
        url = url.set(drivername="postgresql+asyncpg")
    return url.render_as_string(hide_password=False)


def init_engine(uri: str, *, pool_size: int = 5, echo: bool = False) -> async_sessionmaker[AsyncSession]:
    global _engine, _sessionmaker
    if _engine is None:
        normalized = normalize_async_uri(uri)
        _engine = create_async_engine(normalized, pool_pre_ping=True, pool_size=pool_size, echo=echo)
        _sessionmaker = async_sessionmaker(_engine, expire_on_commit=False)
        logger.info(f"Session database: {make_url(normalized).render_as_string(hide_password=True)}")
    return get_sessionmaker()


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    if _sessionmaker is None:
        raise RuntimeError("Database engine not initialized. Call init_engine() first.")
    return _sessionmaker


async def dispose_engine() -> None:
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None
