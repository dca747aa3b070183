"""
Tag and EventTag models.

Tags are unique by name and by slug, and relate many-to-many to events
through event_tags (composite primary key, so attaching twice is a no-op).
"""

import uuid

from sqlalchemy import ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from finhistory.db.base import Base, CreatedAtMixin, UUIDMixin


class Tag(UUIDMixin, CreatedAtMixin, Base):
    """A label attached to events, addressed publicly by slug."""

    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Tag(slug={self.slug!r})>"


class EventTag(CreatedAtMixin, Base):
    """Join row between an event and a tag."""

    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        primary_key=True,
    )

    tag_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    )

    def __repr__(self) -> str:
        return f"<EventTag(event_id={self.event_id}, tag_id={self.tag_id})>"
