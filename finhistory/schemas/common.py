"""Common Pydantic schemas used across API endpoints."""

import math
import re
from datetime import date, datetime, timezone
from typing import Annotated, Any, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field

from finhistory.services.slugs import is_valid_slug, slugify

T = TypeVar("T")


# =============================================================================
# Envelopes
# =============================================================================


class DataResponse(BaseModel, Generic[T]):
    """Success envelope: every public, admin and internal response is `{data: ...}`."""

    data: T


class ErrorBody(BaseModel):
    """Machine-readable error description."""

    code: str = Field(description="Error code (VALIDATION_ERROR, NOT_FOUND, ...)")
    message: str = Field(description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional context")


class ErrorResponse(BaseModel):
    """Error envelope: `{error: {code, message, details}}`."""

    error: ErrorBody


# =============================================================================
# Pagination
# =============================================================================


class Pagination(BaseModel):
    """Page metadata returned alongside list results."""

    page: int = Field(description="Current page number (1-indexed)")
    page_size: int = Field(description="Items per page")
    total: int = Field(description="Total number of matching items")
    total_pages: int = Field(description="Total number of pages (0 when nothing matches)")

    @classmethod
    def create(cls, page: int, page_size: int, total: int) -> "Pagination":
        """Factory computing total_pages = ceil(total / page_size)."""
        total_pages = 0 if total == 0 else math.ceil(total / page_size)
        return cls(page=page, page_size=page_size, total=total, total_pages=total_pages)


# =============================================================================
# Reusable field types
# =============================================================================


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _slug_factory(default: str):
    def normalize(value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None
        slug = slugify(value, default=default)
        if not is_valid_slug(slug):
            raise ValueError("slug is invalid")
        return slug

    return normalize


# Trimmed string that must contain something.
RequiredText = Annotated[str, AfterValidator(_strip_required)]

# Trimmed string; blank becomes None.
OptionalText = Annotated[str | None, AfterValidator(_strip_optional)]

EventSlug = Annotated[str | None, AfterValidator(_slug_factory("event"))]
TagSlug = Annotated[str | None, AfterValidator(_slug_factory("tag"))]
TimelineSlug = Annotated[str | None, AfterValidator(_slug_factory("timeline"))]


_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: Any) -> date:
    """Accept a `date` or a strict YYYY-MM-DD string."""
    if isinstance(value, datetime):
        raise ValueError("must be YYYY-MM-DD")
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _ISO_DATE.match(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValueError("must be YYYY-MM-DD")


def parse_timestamp(value: Any) -> datetime | None:
    """
    Accept a datetime or an ISO-8601 string (date-only allowed), always
    returning an aware datetime; naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError("must be a valid datetime") from None
    else:
        raise ValueError("must be a valid datetime")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


IsoDate = Annotated[date, BeforeValidator(parse_iso_date)]
Timestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]

# 1..5 editorial scores and 1..10 relevance ranks must be JSON integers.
Score = Annotated[int, Field(strict=True, ge=1, le=5)]
RelevanceRank = Annotated[int, Field(strict=True, ge=1, le=10)]
