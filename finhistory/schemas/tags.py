"""Pydantic schemas for tag endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from finhistory.schemas.common import RequiredText, TagSlug


class TagCreate(BaseModel):
    """Tag name, plus an optional slug (derived from the name when omitted)."""

    name: RequiredText
    slug: TagSlug = None


class TagRecord(BaseModel):
    id: UUID
    name: str
    slug: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventTagLink(BaseModel):
    event_id: UUID
    tag_id: UUID

    model_config = ConfigDict(from_attributes=True)
