"""Pydantic schemas for event endpoints."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from finhistory.db.enums import EventSort, EventStatus, SourceType
from finhistory.schemas.common import (
    EventSlug,
    IsoDate,
    Pagination,
    RequiredText,
    Score,
)

# =============================================================================
# Query Filters
# =============================================================================


@dataclass(frozen=True)
class EventListFilters:
    """Filters for the public event listing. Validated at the API boundary."""

    event_date: date | None = None
    date_from: date | None = None
    date_to: date | None = None
    category: str | None = None
    region: str | None = None
    tag: str | None = None
    importance_min: int | None = None
    q: str | None = None
    page: int = 1
    page_size: int = 20
    sort: EventSort = EventSort.DATE_DESC

    @property
    def offset(self) -> int:
        """SQL offset for the requested page."""
        return (self.page - 1) * self.page_size


# =============================================================================
# Public Responses
# =============================================================================


class EventListItem(BaseModel):
    """Published event as shown in listings."""

    id: UUID
    slug: str
    title: str
    event_date: date
    region: str
    category: str
    summary: str
    importance_score: int
    confidence_score: int
    source_count: int = Field(description="Number of linked sources")
    tags: list[str] = Field(description="Tag slugs, sorted")


class EventListResult(BaseModel):
    """One page of published events."""

    items: list[EventListItem]
    pagination: Pagination


class EventSourceItem(BaseModel):
    """A source as cited by one event, with the citation fields of the link."""

    id: UUID
    source_name: str
    source_url: str
    source_type: SourceType
    publisher: str | None = None
    publication_or_snapshot_date: datetime | None = None
    access_date: date | None = None
    rights_note: str | None = None
    notes_on_reliability: str | None = None
    quote_excerpt: str | None = None
    citation_note: str | None = None
    relevance_rank: int


class EventTimelineRef(BaseModel):
    """Membership of an event in a timeline."""

    id: UUID
    title: str
    slug: str
    sequence_no: int


class EventDetail(BaseModel):
    """Published event with its sources, tags and timeline memberships."""

    id: UUID
    slug: str
    title: str
    event_date: date
    region: str
    category: str
    summary: str
    impact: str
    importance_score: int
    confidence_score: int
    published_at: datetime | None = None
    tags: list[str]
    sources: list[EventSourceItem]
    timelines: list[EventTimelineRef]


class MonthDayResult(BaseModel):
    """Published events falling on one month-day across all years."""

    month_day: str = Field(description="MM-DD")
    total: int
    items: list[EventListItem]


# =============================================================================
# Admin Requests / Responses
# =============================================================================


class EventRecord(BaseModel):
    """Full event row as returned by admin writes."""

    id: UUID
    slug: str
    title: str
    event_date: date
    region: str
    category: str
    summary: str
    impact: str
    importance_score: int
    confidence_score: int
    status: EventStatus
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventCreate(BaseModel):
    """
    Request body for creating a draft event.

    The slug is optional: when omitted it is derived from the title. Either
    way it is normalised and, on collision, suffixed (-2, -3, ...).
    """

    slug: EventSlug = None
    title: RequiredText
    event_date: IsoDate
    region: RequiredText
    category: RequiredText
    summary: RequiredText
    impact: RequiredText
    importance_score: Score
    confidence_score: Score = 3

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Black Thursday",
                "event_date": "1929-10-24",
                "region": "United States",
                "category": "Market Crash",
                "summary": "Panic selling on the NYSE.",
                "impact": "Opened the 1929 crash.",
                "importance_score": 5,
            }
        }
    )


class EventUpdate(BaseModel):
    """Partial update: every field optional, but at least one must be given."""

    slug: EventSlug = None
    title: RequiredText | None = None
    event_date: IsoDate | None = None
    region: RequiredText | None = None
    category: RequiredText | None = None
    summary: RequiredText | None = None
    impact: RequiredText | None = None
    importance_score: Score | None = None
    confidence_score: Score | None = None

    @model_validator(mode="after")
    def _check_fields(self) -> "EventUpdate":
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be empty")
        if not self.model_fields_set:
            raise ValueError("no updatable fields provided")
        return self

    def changes(self) -> dict[str, object]:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)
