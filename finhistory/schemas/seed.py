"""
Seed file shapes.

The seed file is the demo dataset's only input. These models are
deliberately lenient (unknown source types become "other", missing
optional fields default) because the file is curated by hand; only a
missing required field or a malformed value rejects the build.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from finhistory.db.enums import EventStatus, SourceType
from finhistory.schemas.common import IsoDate, RelevanceRank, Score, Timestamp


class SeedSource(BaseModel):
    source_name: str
    source_url: str
    source_type: SourceType = SourceType.OTHER
    publisher: str | None = None
    publication_or_snapshot_date: Timestamp = None
    access_date: IsoDate | None = None
    rights_note: str | None = None
    notes_on_reliability: str | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("source_type", mode="before")
    @classmethod
    def _lenient_type(cls, value: Any) -> SourceType:
        return SourceType.from_string(value if isinstance(value, str) else None)


class SeedEvent(BaseModel):
    slug: str | None = None
    title: str
    event_date: IsoDate
    region: str
    category: str
    summary: str
    impact: str
    importance_score: Score
    confidence_score: Score = 3
    status: EventStatus = EventStatus.DRAFT

    model_config = ConfigDict(extra="ignore")


class SeedEventSource(BaseModel):
    event_slug: str
    source_url: str
    relevance_rank: RelevanceRank = 1
    quote_excerpt: str | None = None
    citation_note: str | None = None

    model_config = ConfigDict(extra="ignore")


class SeedPayload(BaseModel):
    """Top-level seed document: three optional arrays."""

    sources: list[SeedSource] = []
    events: list[SeedEvent] = []
    event_sources: list[SeedEventSource] = []

    model_config = ConfigDict(extra="ignore")
