"""
Controlled vocabulary enums for the financial history store.

This module defines the allowed values for:
- Event lifecycle status
- Source categories
- Ingestion job states
- Public event list sort orders

The first three mirror native PostgreSQL enum types in the established
schema (event_status, source_type, job_status).
"""

from enum import Enum


class EventStatus(str, Enum):
    """
    Editorial lifecycle of an event.

    Lifecycle::

        DRAFT -> REVIEW -> PUBLISHED -> ARCHIVED

    Only PUBLISHED events are visible through public read paths.
    `published_at` is set on the first transition into PUBLISHED and is
    never cleared afterwards (archiving keeps it).
    """

    DRAFT = "draft"
    REVIEW = "review"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class SourceType(str, Enum):
    """Closed category of a citation source."""

    ARCHIVE = "archive"
    OFFICIAL = "official"
    NEWS = "news"
    RESEARCH = "research"
    DATASET = "dataset"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str | None) -> "SourceType":
        """
        Lenient conversion used for seed data: unknown or missing values map
        to OTHER instead of failing.

        Examples:
            SourceType.from_string("news")     -> SourceType.NEWS
            SourceType.from_string(" Archive") -> SourceType.ARCHIVE
            SourceType.from_string("blog")     -> SourceType.OTHER
            SourceType.from_string(None)       -> SourceType.OTHER
        """
        if not value:
            return cls.OTHER
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return cls.OTHER


class JobStatus(str, Enum):
    """
    Status values for ingestion job bookkeeping.

    Job lifecycle::

        QUEUED -> RUNNING -> SUCCEEDED
                          |-> FAILED

    Jobs are tracked, not orchestrated: an external ingester reports its
    own progress through the internal API.
    """

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class EventSort(str, Enum):
    """Sort orders accepted by the public event listing."""

    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    IMPORTANCE_DESC = "importance_desc"
