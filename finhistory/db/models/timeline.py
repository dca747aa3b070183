"""
Timeline and TimelineEvent models.

In the live store a timeline is a persisted, curated sequence: each
member row carries a sequence_no that is unique within its timeline.
(In demo mode timelines are derived instead; see
`finhistory.services.timelines`.)
"""

import uuid

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from finhistory.db.base import Base, CreatedAtMixin, TimestampMixin, UUIDMixin


class Timeline(UUIDMixin, TimestampMixin, Base):
    """A named, curated sequence of events."""

    title: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Timeline(slug={self.slug!r})>"


class TimelineEvent(CreatedAtMixin, Base):
    """
    Membership of an event in a timeline.

    Constraints:
        - (timeline_id, event_id) primary key: an event appears once per timeline
        - (timeline_id, sequence_no) unique: duplicate positions are a conflict
    """

    timeline_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("timelines.id", ondelete="CASCADE"),
        primary_key=True,
    )

    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        primary_key=True,
    )

    sequence_no: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "timeline_id",
            "sequence_no",
            name="timeline_events_timeline_id_sequence_no_key",
        ),
    )

    def __repr__(self) -> str:
        return f"<TimelineEvent(timeline_id={self.timeline_id}, event_id={self.event_id}, seq={self.sequence_no})>"
