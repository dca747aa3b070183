"""SQLAlchemy models for the financial history store."""

from finhistory.db.models.event import Event
from finhistory.db.models.event_source import EventSource
from finhistory.db.models.ingestion_job import IngestionJob
from finhistory.db.models.source import Source
from finhistory.db.models.tag import EventTag, Tag
from finhistory.db.models.timeline import Timeline, TimelineEvent

__all__ = [
    "Event",
    "EventSource",
    "EventTag",
    "IngestionJob",
    "Source",
    "Tag",
    "Timeline",
    "TimelineEvent",
]
