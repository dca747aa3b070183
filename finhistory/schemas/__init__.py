"""Pydantic schemas for API request/response models."""

from finhistory.schemas.common import (
    DataResponse,
    ErrorBody,
    ErrorResponse,
    Pagination,
)
from finhistory.schemas.events import (
    EventCreate,
    EventDetail,
    EventListFilters,
    EventListItem,
    EventListResult,
    EventRecord,
    EventSourceItem,
    EventTimelineRef,
    EventUpdate,
    MonthDayResult,
)
from finhistory.schemas.ingestion import (
    ImportEventItem,
    ImportEventSourceItem,
    ImportSourceItem,
    IngestionImportPayload,
    IngestionImportResult,
    IngestionJobCreate,
    IngestionJobRecord,
    IngestionJobUpdate,
)
from finhistory.schemas.seed import SeedEvent, SeedEventSource, SeedPayload, SeedSource
from finhistory.schemas.sources import (
    EventSourceLink,
    SourceAttach,
    SourceCreate,
    SourceDetail,
    SourceLinkedEvent,
    SourceRecord,
)
from finhistory.schemas.tags import EventTagLink, TagCreate, TagRecord
from finhistory.schemas.timelines import (
    SequenceInput,
    TimelineCreate,
    TimelineDetail,
    TimelineEventItem,
    TimelineEventLink,
    TimelineListItem,
    TimelineListResult,
    TimelineRecord,
)

__all__ = [
    # Common
    "DataResponse",
    "ErrorBody",
    "ErrorResponse",
    "Pagination",
    # Events
    "EventCreate",
    "EventDetail",
    "EventListFilters",
    "EventListItem",
    "EventListResult",
    "EventRecord",
    "EventSourceItem",
    "EventTimelineRef",
    "EventUpdate",
    "MonthDayResult",
    # Sources
    "EventSourceLink",
    "SourceAttach",
    "SourceCreate",
    "SourceDetail",
    "SourceLinkedEvent",
    "SourceRecord",
    # Tags
    "EventTagLink",
    "TagCreate",
    "TagRecord",
    # Timelines
    "SequenceInput",
    "TimelineCreate",
    "TimelineDetail",
    "TimelineEventItem",
    "TimelineEventLink",
    "TimelineListItem",
    "TimelineListResult",
    "TimelineRecord",
    # Ingestion
    "ImportEventItem",
    "ImportEventSourceItem",
    "ImportSourceItem",
    "IngestionImportPayload",
    "IngestionImportResult",
    "IngestionJobCreate",
    "IngestionJobRecord",
    "IngestionJobUpdate",
    # Seed file
    "SeedEvent",
    "SeedEventSource",
    "SeedPayload",
    "SeedSource",
]
