"""Database connection and session management."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.services.config import get_settings

settings = get_settings()


def engine_options(database_url: str) -> dict:
    """Engine keyword arguments for a database URL.

    In-memory SQLite lives inside a single connection, so it gets a
    StaticPool. File-backed SQLite and server databases keep a normal pool,
    giving each session its own connection and transaction.
    """
    options: dict = {"echo": settings.database_echo}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.split("://", 1)[-1] in ("", "/"):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return options


async_engine = create_async_engine(
    settings.async_database_url,
    **engine_options(settings.async_database_url),
)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Get async database session."""
    async with AsyncSessionLocal() as session:
        yield session


async def init_models() -> None:
    """Create any missing tables."""
    from src.models import Base

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = [
    "AsyncSessionLocal",
    "get_async_session",
    "async_engine",
    "engine_options",
    "init_models",
]
