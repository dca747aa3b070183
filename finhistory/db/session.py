"""
Database session management for services and scripts.

This module provides:
- A session context manager for services and scripts
- A commit-or-rollback transaction helper

Sessions are opened from the lazily built factory in `finhistory.db.base`;
opening one while DATABASE_URL is unset raises DatabaseNotConfiguredError.

Usage in services/scripts:
    async with get_db_context() as db:
        result = await db.execute(select(Event))
        events = result.scalars().all()
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from finhistory.db.base import get_sessionmaker


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Open a session on the live store.

    Every read and write path goes through here, so tests substitute this
    function to simulate an unreachable store. The session is closed on
    exit whether or not the body raised.
    """
    async with get_sessionmaker()() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for explicit transaction control.

    - Commits on successful completion
    - Rolls back on any exception, then re-raises

    Usage:
        async with get_db_context() as db:
            async with transaction(db):
                db.add(source)
                db.add(event)
                # Both are committed or neither is committed
    """
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
