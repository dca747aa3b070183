"""Pydantic schemas for timeline endpoints."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from finhistory.schemas.common import OptionalText, RequiredText, TimelineSlug


class TimelineListItem(BaseModel):
    """Timeline with aggregate figures over its published members."""

    id: UUID
    title: str
    slug: str
    description: str | None = None
    event_count: int
    first_event_date: date | None = None
    last_event_date: date | None = None


class TimelineRecord(BaseModel):
    id: UUID
    title: str
    slug: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimelineEventItem(BaseModel):
    """A published event in timeline order."""

    id: UUID
    slug: str
    title: str
    event_date: date
    region: str
    category: str
    summary: str
    importance_score: int
    confidence_score: int
    sequence_no: int


class TimelineDetail(TimelineRecord):
    events: list[TimelineEventItem]


class TimelineCreate(BaseModel):
    title: RequiredText
    slug: TimelineSlug = None
    description: OptionalText = None


class SequenceInput(BaseModel):
    """Position of an event within a timeline."""

    sequence_no: int = Field(strict=True, ge=1, description="Display position (>= 1)")


class TimelineEventLink(BaseModel):
    timeline_id: UUID
    event_id: UUID
    sequence_no: int | None = None

    model_config = ConfigDict(from_attributes=True)


class TimelineListResult(BaseModel):
    """All timelines, by title."""

    total: int
    items: list[TimelineListItem]
