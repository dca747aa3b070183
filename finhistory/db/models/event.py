"""
Event model: one dated financial-history occurrence.

Key features:
- Unique slug, the natural key used by import and public URLs
- Importance/confidence scores constrained to 1..5
- Editorial status (draft, review, published, archived)
- published_at set once on first publish, never cleared
"""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, DateTime, Enum, Index, SmallInteger, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finhistory.db.base import Base, TimestampMixin, UUIDMixin
from finhistory.db.enums import EventStatus

if TYPE_CHECKING:
    from finhistory.db.models.event_source import EventSource


class Event(UUIDMixin, TimestampMixin, Base):
    """
    A curated financial-history event.

    Attributes:
        id: UUID primary key
        slug: Unique URL-safe identifier (lowercase, hyphen-separated)
        title: Display title
        event_date: Calendar date of the event
        region: Geographic scope ("United States", "Global", ...)
        category: Free-form category; demo mode derives tags from it
        summary: Short description
        impact: Narrative of consequences
        importance_score: Editorial importance (1-5)
        confidence_score: Confidence in dating/attribution (1-5, default 3)
        status: Editorial lifecycle status
        published_at: First publish timestamp
        created_at / updated_at: Row timestamps

    Constraints:
        - slug is unique
        - importance_score and confidence_score BETWEEN 1 AND 5
    """

    slug: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        comment="Unique URL-safe identifier",
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    event_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Calendar date of the event",
    )

    region: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    impact: Mapped[str] = mapped_column(Text, nullable=False)

    importance_score: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        comment="Editorial importance 1-5",
    )

    confidence_score: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        default=3,
        server_default="3",
        comment="Confidence 1-5",
    )

    status: Mapped[EventStatus] = mapped_column(
        Enum(
            EventStatus,
            name="event_status",
            native_enum=True,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=EventStatus.DRAFT,
        server_default=EventStatus.DRAFT.value,
    )

    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Set on first publish, never cleared",
    )

    # === Relationships ===
    source_links: Mapped[list["EventSource"]] = relationship(
        "EventSource",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        CheckConstraint("importance_score BETWEEN 1 AND 5", name="importance_score_range"),
        CheckConstraint("confidence_score BETWEEN 1 AND 5", name="confidence_score_range"),
    )

    def __repr__(self) -> str:
        return f"<Event(slug={self.slug!r}, date={self.event_date}, status={self.status.value})>"

    @property
    def is_published(self) -> bool:
        return self.status == EventStatus.PUBLISHED


# === Indexes ===
Index("idx_events_event_date", Event.event_date.desc())
Index("idx_events_status", Event.status)
Index("idx_events_category_date", Event.category, Event.event_date.desc())
Index("idx_events_importance", Event.importance_score.desc(), Event.event_date.desc())
