"""
Database Base Configuration

Sets up the async SQLAlchemy engine and session management.
The default URL points at a local SQLite file via aiosqlite.

Usage:
    from neurolex.db.base import async_session_maker, Base

    async with async_session_maker() as session:
        result = await session.execute(...)
"""

from collections.abc import AsyncGenerator
from typing import Any, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from neurolex.config import settings, yaml_config


db_config: dict[str, Any] = yaml_config.get("database", {})


def create_engine_for_url(url: str, echo: bool = False, **kwargs: Any) -> AsyncEngine:
    """
    Create an async engine, enabling foreign keys for SQLite.

    SQLite ignores ON DELETE CASCADE unless the pragma is set per connection.
    Extra keyword arguments go to create_async_engine (e.g. poolclass).
    """
    engine = create_async_engine(url, echo=echo, **kwargs)

    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


# Create async engine
engine: AsyncEngine = create_engine_for_url(
    settings.DATABASE_URL,
    echo=settings.DEBUG or db_config.get("echo", False),
)

# Create async session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


# Import models AFTER Base is defined to avoid circular imports.
# This ensures all models are registered with Base.metadata.
from neurolex.db import models  # noqa: F401, E402


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database sessions in FastAPI routes.

    Usage:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(target: Optional[AsyncEngine] = None) -> None:
    """
    Initialize database tables.

    Called on application startup to create tables that don't exist.
    """
    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
