"""
SQLAlchemy Base Configuration and Mixins.

This module provides:
- Lazily constructed async engine and session factory
- Base declarative class for all models
- Reusable mixins (UUID primary key, timestamps)

The engine is never created at import time. A process without
DATABASE_URL imports every model and serves demo content without ever
touching a database; the first live-store access builds the pool, which
is then reused for the life of the process.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, MetaData, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from uuid6 import uuid7

from finhistory.core.config import settings
from finhistory.core.errors import DatabaseNotConfiguredError

# =============================================================================
# DATABASE ENGINE CONFIGURATION
# =============================================================================

NAMING_CONVENTION: dict[str, str] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Return the process-wide async engine, creating it on first use.

    - pool_pre_ping: Validates connections before use (handles stale connections)
    - pool_size + max_overflow: at most 10 connections in total
    - pool_recycle: idle connections are recycled after db_pool_recycle seconds
    - connect_args.timeout: bounded asyncpg connect wait, after which the attempt
      fails with a TimeoutError the availability classifier recognises

    Raises:
        DatabaseNotConfiguredError: if DATABASE_URL is not set.
    """
    global _engine
    if _engine is None:
        if not settings.has_database_config:
            raise DatabaseNotConfiguredError()
        _engine = create_async_engine(
            settings.db_url,
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            connect_args={"timeout": settings.db_connect_timeout},
        )
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """
    Return the process-wide session factory.

    - expire_on_commit=False: objects remain readable after commit
    - autoflush=False: writes happen when we say so
    """
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(
            bind=get_engine(),
            expire_on_commit=False,
            autoflush=False,
        )
    return _sessionmaker


# =============================================================================
# BASE CLASS
# =============================================================================

class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Table names are generated from the class name (CamelCase -> snake_case,
    pluralised), which matches the established schema:
    - Event -> events
    - EventSource -> event_sources
    - IngestionJob -> ingestion_jobs
    """

    metadata = metadata

    __name__: str

    @declared_attr.directive
    def __tablename__(cls) -> str:
        name = cls.__name__
        snake_case = "".join(
            f"_{char.lower()}" if char.isupper() and i > 0 else char.lower()
            for i, char in enumerate(name)
        )
        if snake_case.endswith("y"):
            return snake_case[:-1] + "ies"
        elif snake_case.endswith("s"):
            return snake_case + "es"
        else:
            return snake_case + "s"


# =============================================================================
# MIXINS
# =============================================================================

class UUIDMixin:
    """
    Mixin that provides a UUID primary key.

    The store generates ids itself (gen_random_uuid()); uuid7 is the
    client-side default for rows built through the ORM.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid7,
        server_default=func.gen_random_uuid(),
        sort_order=-100,
    )


class CreatedAtMixin:
    """Mixin that provides only a created_at timestamp (append-only rows)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        sort_order=100,
    )


class TimestampMixin(CreatedAtMixin):
    """
    Mixin that provides created_at and updated_at timestamps.

    Note: updated_at uses 'onupdate=func.now()' which triggers on ORM UPDATE;
    bulk statements set it explicitly.
    """

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        sort_order=101,
    )


# =============================================================================
# DATABASE LIFECYCLE UTILITIES
# =============================================================================

async def init_db() -> None:
    """
    Create all tables.

    The production schema is managed outside this service; this is for
    tests and local development against an empty database.
    """
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db() -> None:
    """Drop all tables. Warning: destructive, only use in testing."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def dispose_engine() -> None:
    """
    Dispose of the engine (if one was ever created) and forget it.

    Called at application shutdown, and by tests that point the service at
    a different database.
    """
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None
