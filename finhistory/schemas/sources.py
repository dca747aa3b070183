"""Pydantic schemas for source endpoints."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from finhistory.db.enums import SourceType
from finhistory.schemas.common import IsoDate, OptionalText, RelevanceRank, RequiredText, Timestamp


class SourceRecord(BaseModel):
    """Source row."""

    id: UUID
    source_name: str
    source_url: str
    source_type: SourceType
    publisher: str | None = None
    publication_or_snapshot_date: datetime | None = None
    access_date: date | None = None
    rights_note: str | None = None
    notes_on_reliability: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SourceLinkedEvent(BaseModel):
    """A published event citing the source, with that link's citation fields."""

    id: UUID
    slug: str
    title: str
    event_date: date
    region: str
    category: str
    summary: str
    relevance_rank: int
    quote_excerpt: str | None = None
    citation_note: str | None = None


class SourceDetail(SourceRecord):
    """Source with the published events that cite it."""

    linked_events: list[SourceLinkedEvent] = Field(
        description="Ordered by relevance rank descending, then event date descending"
    )


class SourceCreate(BaseModel):
    """Request body for creating a source."""

    source_name: RequiredText
    source_url: RequiredText
    source_type: SourceType = SourceType.OTHER
    publisher: OptionalText = None
    publication_or_snapshot_date: Timestamp = None
    access_date: IsoDate | None = None
    rights_note: OptionalText = None
    notes_on_reliability: OptionalText = None


class SourceAttach(BaseModel):
    """Citation fields for linking a source to an event."""

    quote_excerpt: OptionalText = None
    citation_note: OptionalText = None
    relevance_rank: RelevanceRank = 1


class EventSourceLink(BaseModel):
    """Result of attaching/detaching a source."""

    event_id: UUID
    source_id: UUID
    quote_excerpt: str | None = None
    citation_note: str | None = None
    relevance_rank: int | None = None

    model_config = ConfigDict(from_attributes=True)
