"""Pydantic schemas for the internal ingestion API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, NonNegativeInt, field_validator, model_validator

from finhistory.db.enums import EventStatus, JobStatus, SourceType
from finhistory.schemas.common import (
    EventSlug,
    IsoDate,
    OptionalText,
    RelevanceRank,
    RequiredText,
    Score,
    Timestamp,
)
from finhistory.services.slugs import slugify

# =============================================================================
# Jobs
# =============================================================================


class IngestionJobCreate(BaseModel):
    source_name: RequiredText
    job_type: RequiredText
    metadata: dict[str, Any] = Field(default_factory=dict)


class IngestionJobUpdate(BaseModel):
    """Partial job update reported by an ingester."""

    status: JobStatus | None = None
    started_at: Timestamp = None
    finished_at: Timestamp = None
    records_in: NonNegativeInt | None = Field(default=None, strict=True)
    records_out: NonNegativeInt | None = Field(default=None, strict=True)
    error_message: str | None = None
    metadata: dict[str, Any] | None = None

    @field_validator("error_message")
    @classmethod
    def _trim_error(cls, value: str | None) -> str:
        return (value or "").strip()

    @model_validator(mode="after")
    def _require_change(self) -> "IngestionJobUpdate":
        if not self.changes():
            raise ValueError("no updatable fields provided")
        return self

    def changes(self) -> dict[str, Any]:
        """Fields to write. error_message may be cleared to an empty string."""
        changes = {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }
        if "metadata" in changes:
            changes["job_metadata"] = changes.pop("metadata")
        return changes


class IngestionJobRecord(BaseModel):
    id: UUID
    source_name: str
    job_type: str
    status: JobStatus
    started_at: datetime | None = None
    finished_at: datetime | None = None
    records_in: int
    records_out: int
    error_message: str | None = None
    metadata: dict[str, Any] = Field(validation_alias=AliasChoices("job_metadata", "metadata"))
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Bulk Import
# =============================================================================


class ImportSourceItem(BaseModel):
    source_name: RequiredText
    source_url: RequiredText
    source_type: SourceType = SourceType.OTHER
    publisher: OptionalText = None
    publication_or_snapshot_date: Timestamp = None
    access_date: IsoDate | None = None
    rights_note: OptionalText = None
    notes_on_reliability: OptionalText = None

    @field_validator("source_type", mode="before")
    @classmethod
    def _lenient_type(cls, value: Any) -> SourceType:
        # Same leniency as the seed file, so every seed the demo builder accepts also imports.
        return SourceType.from_string(value if isinstance(value, str) else None)


class ImportEventItem(BaseModel):
    """Event keyed by slug; the slug falls back to the slugified title."""

    slug: EventSlug = None
    title: RequiredText
    event_date: IsoDate
    region: RequiredText
    category: RequiredText
    summary: RequiredText
    impact: RequiredText
    importance_score: Score
    confidence_score: Score = 3
    status: EventStatus = EventStatus.DRAFT

    @model_validator(mode="after")
    def _default_slug(self) -> "ImportEventItem":
        if self.slug is None:
            self.slug = slugify(self.title, default="event")
        return self


class ImportEventSourceItem(BaseModel):
    """Citation link keyed by (event slug, source URL)."""

    event_slug: RequiredText
    source_url: RequiredText
    relevance_rank: RelevanceRank = 1
    quote_excerpt: OptionalText = None
    citation_note: OptionalText = None

    @field_validator("event_slug")
    @classmethod
    def _normalize_event_slug(cls, value: str) -> str:
        return slugify(value, default="event")


class IngestionImportPayload(BaseModel):
    """Same three-array shape as the seed file; at least one array required."""

    sources: list[ImportSourceItem] | None = None
    events: list[ImportEventItem] | None = None
    event_sources: list[ImportEventSourceItem] | None = None

    @model_validator(mode="after")
    def _require_one(self) -> "IngestionImportPayload":
        if self.sources is None and self.events is None and self.event_sources is None:
            raise ValueError("at least one of sources, events, event_sources is required")
        return self


class IngestionImportResult(BaseModel):
    sources_upserted: int = 0
    events_upserted: int = 0
    event_source_links_upserted: int = 0
    errors: list[str] = Field(
        default_factory=list,
        description="Skipped-link notices, plus the failure reason when the batch rolled back",
    )
    rolled_back: bool = False
