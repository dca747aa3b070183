"""
IngestionJob model for bulk-ingestion bookkeeping.

Jobs record what an external ingester did (records in/out, timings, error
text, arbitrary metadata). They are tracked here but do not orchestrate work.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, Index, Integer, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from finhistory.db.base import Base, CreatedAtMixin, UUIDMixin
from finhistory.db.enums import JobStatus


class IngestionJob(UUIDMixin, CreatedAtMixin, Base):
    """
    Attributes:
        id: UUID primary key
        source_name: Upstream feed/source being ingested
        job_type: Kind of job ("daily_import", "backfill", ...)
        status: queued | running | succeeded | failed
        started_at / finished_at: Reported timings
        records_in / records_out: Reported counters (>= 0)
        error_message: Failure text, if any
        job_metadata: Arbitrary JSON object (column "metadata")

    Example:
        job = IngestionJob(source_name="fred", job_type="daily_import")
        job.status = JobStatus.RUNNING
        job.records_in = 120
    """

    source_name: Mapped[str] = mapped_column(Text, nullable=False)
    job_type: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[JobStatus] = mapped_column(
        Enum(
            JobStatus,
            name="job_status",
            native_enum=True,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=JobStatus.QUEUED,
        server_default=JobStatus.QUEUED.value,
    )

    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    records_in: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    records_out: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # "metadata" is reserved on declarative classes, so the attribute is renamed.
    job_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )

    def __repr__(self) -> str:
        return f"<IngestionJob(source={self.source_name!r}, type={self.job_type!r}, status={self.status.value})>"


Index("idx_ingestion_jobs_status_created", IngestionJob.status, IngestionJob.created_at.desc())
Index("idx_ingestion_jobs_source_created", IngestionJob.source_name, IngestionJob.created_at.desc())
