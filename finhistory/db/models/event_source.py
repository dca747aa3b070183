"""
EventSource model: the citation link between an event and a source.

One row per (event, source) pair. Re-attaching the same pair updates the
citation fields (quote, note, relevance) instead of creating a duplicate.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, SmallInteger, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finhistory.db.base import Base, CreatedAtMixin, UUIDMixin

if TYPE_CHECKING:
    from finhistory.db.models.event import Event
    from finhistory.db.models.source import Source


class EventSource(UUIDMixin, CreatedAtMixin, Base):
    """
    Attributes:
        event_id: FK to events (cascade on delete)
        source_id: FK to sources (cascade on delete)
        quote_excerpt: Quoted passage supporting the event
        citation_note: Free-form citation note
        relevance_rank: 1 = most relevant ... 10 = least relevant (default 1)
    """

    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )

    source_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sources.id", ondelete="CASCADE"),
        nullable=False,
    )

    quote_excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    citation_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    relevance_rank: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        default=1,
        server_default="1",
        comment="1 (most relevant) to 10",
    )

    event: Mapped["Event"] = relationship("Event", back_populates="source_links", lazy="raise")
    source: Mapped["Source"] = relationship("Source", back_populates="event_links", lazy="raise")

    __table_args__ = (
        UniqueConstraint("event_id", "source_id", name="event_sources_event_id_source_id_key"),
        CheckConstraint("relevance_rank BETWEEN 1 AND 10", name="relevance_rank_range"),
    )

    def __repr__(self) -> str:
        return f"<EventSource(event_id={self.event_id}, source_id={self.source_id}, rank={self.relevance_rank})>"


Index("idx_event_sources_event", EventSource.event_id, EventSource.relevance_rank)
Index("idx_event_sources_source", EventSource.source_id)
