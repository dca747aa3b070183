"""
Source model: a citation (archive, official release, news, research, dataset).

Sources are identified externally by their canonical URL, which is unique
and serves as the natural key for idempotent imports.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Enum, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finhistory.db.base import Base, TimestampMixin, UUIDMixin
from finhistory.db.enums import SourceType

if TYPE_CHECKING:
    from finhistory.db.models.event_source import EventSource


class Source(UUIDMixin, TimestampMixin, Base):
    """
    A citation source.

    Attributes:
        id: UUID primary key
        source_name: Display name
        source_url: Canonical URL (unique natural key)
        source_type: Closed category (archive|official|news|research|dataset|other)
        publisher: Publishing organisation
        publication_or_snapshot_date: When published, or when the snapshot was taken
        access_date: When the source was last accessed
        rights_note: Licensing / reuse notes
        notes_on_reliability: Editorial reliability notes
    """

    source_name: Mapped[str] = mapped_column(Text, nullable=False)

    source_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        comment="Canonical URL (natural key)",
    )

    source_type: Mapped[SourceType] = mapped_column(
        Enum(
            SourceType,
            name="source_type",
            native_enum=True,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=SourceType.OTHER,
        server_default=SourceType.OTHER.value,
    )

    publisher: Mapped[str | None] = mapped_column(Text, nullable=True)
    publication_or_snapshot_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    access_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    rights_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes_on_reliability: Mapped[str | None] = mapped_column(Text, nullable=True)

    event_links: Mapped[list["EventSource"]] = relationship(
        "EventSource",
        back_populates="source",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Source(url={self.source_url!r}, type={self.source_type.value})>"


Index("idx_sources_type", Source.source_type)
Index("idx_sources_pubdate", Source.publication_or_snapshot_date.desc())
