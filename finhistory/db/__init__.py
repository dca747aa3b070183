"""
Database package - SQLAlchemy models, session management, and utilities.

Usage:
    from finhistory.db import Base, get_db_context, transaction
    from finhistory.db import Event, Source, EventSource
    from finhistory.db import EventStatus, SourceType, JobStatus
"""

from finhistory.db.base import (
    Base,
    CreatedAtMixin,
    TimestampMixin,
    UUIDMixin,
    dispose_engine,
    drop_db,
    get_engine,
    get_sessionmaker,
    init_db,
    metadata,
)
from finhistory.db.enums import EventSort, EventStatus, JobStatus, SourceType
from finhistory.db.models import (
    Event,
    EventSource,
    EventTag,
    IngestionJob,
    Source,
    Tag,
    Timeline,
    TimelineEvent,
)
from finhistory.db.session import get_db_context, transaction

__all__ = [
    # Base classes
    "Base",
    # Mixins
    "UUIDMixin",
    "TimestampMixin",
    "CreatedAtMixin",
    # Enums
    "EventSort",
    "EventStatus",
    "JobStatus",
    "SourceType",
    # Models
    "Event",
    "EventSource",
    "EventTag",
    "IngestionJob",
    "Source",
    "Tag",
    "Timeline",
    "TimelineEvent",
    # Engine and factory
    "get_engine",
    "get_sessionmaker",
    "metadata",
    # Session utilities
    "get_db_context",
    "transaction",
    # Lifecycle
    "init_db",
    "drop_db",
    "dispose_engine",
]
