"""
Dual-path access to the live store and the demo dataset.

Reads go through `read_with_fallback`:

1. No DATABASE_URL: serve the demo dataset, no connection attempt.
2. Otherwise run the live query in a fresh session.
3. A failure the availability classifier recognises: log it and serve the
   demo dataset instead.
4. Any other failure propagates unchanged.

Writes go through `write_session`, which never falls back: an unconfigured
or unreachable store surfaces as `ServiceUnavailableError`, and integrity
violations are translated into conflict / not-found errors.

Usage:
    result = await read_with_fallback(
        "list_published_events",
        lambda reader: reader.list_published(filters),
        live=LiveEventReader,
        demo=DemoEventReader,
    )

    async with write_session(conflict_message="event slug already exists") as db:
        db.add(event)
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finhistory.core.config import settings
from finhistory.core.errors import (
    ConflictError,
    DatabaseNotConfiguredError,
    FinHistoryError,
    NotFoundError,
    ServiceUnavailableError,
)
from finhistory.core.logging import get_logger
from finhistory.db.session import get_db_context, transaction
from finhistory.services.availability import StoreFailure, classify_failure, is_store_unavailable
from finhistory.services.demo_store import DemoDataset, get_demo_dataset

logger = get_logger(__name__)

R = TypeVar("R")

# PostgreSQL SQLSTATE codes
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


# =============================================================================
# Reads
# =============================================================================


async def read_with_fallback(
    operation: str,
    call: Callable[[Any], Awaitable[R]],
    *,
    live: Callable[[AsyncSession], Any],
    demo: Callable[[DemoDataset], Any],
) -> R:
    """
    Run one read against the live store, or the demo dataset when it is
    unconfigured or unreachable.

    Args:
        operation: Name used in the fallback log line
        call: Receives a reader and performs the query; the live and demo
            readers expose the same async methods
        live: Builds the live reader from a session
        demo: Builds the demo reader from the dataset

    Seed failures (`SeedDataError`) raised while serving the demo path are
    never treated as unavailability and always propagate.
    """
    if not settings.has_database_config:
        return await call(demo(await get_demo_dataset()))

    try:
        async with get_db_context() as db:
            return await call(live(db))
    except Exception as exc:
        failure = classify_failure(exc)
        if failure is StoreFailure.UNKNOWN:
            raise
        logger.warning(
            "Live store unavailable, serving demo dataset",
            operation=operation,
            failure=failure.value,
            error=str(exc) or type(exc).__name__,
        )

    return await call(demo(await get_demo_dataset()))


# =============================================================================
# Writes
# =============================================================================


def integrity_sqlstate(exc: IntegrityError) -> str | None:
    """SQLSTATE of a wrapped driver error, looked up on the adapter and its cause."""
    candidates = [exc.orig, getattr(exc.orig, "__cause__", None)]
    for candidate in candidates:
        for attr in ("sqlstate", "pgcode"):
            code = getattr(candidate, attr, None)
            if isinstance(code, str):
                return code
    return None


@asynccontextmanager
async def write_session(
    *,
    conflict_message: str = "Conflict",
    not_found_message: str = "Not found",
) -> AsyncGenerator[AsyncSession, None]:
    """
    Transactional session for live-only writes.

    - Raises DatabaseNotConfiguredError before any work when DATABASE_URL is unset
    - Commits on success, rolls back on any exception
    - Unique violations become ConflictError(conflict_message)
    - Foreign-key violations become NotFoundError(not_found_message)
    - Classified unavailability becomes ServiceUnavailableError
    """
    if not settings.has_database_config:
        raise DatabaseNotConfiguredError()

    try:
        async with get_db_context() as db:
            async with transaction(db):
                yield db
    except FinHistoryError:
        raise
    except IntegrityError as exc:
        sqlstate = integrity_sqlstate(exc)
        if sqlstate == UNIQUE_VIOLATION:
            raise ConflictError(conflict_message) from exc
        if sqlstate == FOREIGN_KEY_VIOLATION:
            raise NotFoundError(not_found_message) from exc
        raise
    except Exception as exc:
        if is_store_unavailable(exc):
            raise ServiceUnavailableError.from_exception(exc) from exc
        raise
