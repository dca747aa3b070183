"""
Ingestion: job bookkeeping and bulk import.

Jobs are records an external ingester reports into; nothing here runs
them. The bulk import upserts sources, events and event-source links by
natural key in a single transaction:

- sources by source_url
- events by slug (published_at set on the first publish, never cleared)
- links by (event slug, source URL), resolved against the live store;
  unresolvable links are skipped and reported, not fatal

A failure mid-batch rolls every upsert back and is reported in the
result. An unreachable store raises ServiceUnavailableError; the seed
file import (`import_seed_file`) then falls back to merging the file
into the main seed.
"""

import asyncio
from pathlib import Path
from typing import Any
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from finhistory.core.config import settings
from finhistory.core.errors import DatabaseNotConfiguredError, NotFoundError, ServiceUnavailableError
from finhistory.core.logging import get_logger
from finhistory.db.enums import EventStatus, JobStatus
from finhistory.db.models import Event, EventSource, IngestionJob, Source
from finhistory.db.session import get_db_context, transaction
from finhistory.schemas.ingestion import (
    ImportEventItem,
    ImportEventSourceItem,
    ImportSourceItem,
    IngestionImportPayload,
    IngestionImportResult,
    IngestionJobCreate,
    IngestionJobRecord,
    IngestionJobUpdate,
)
from finhistory.services.availability import is_store_unavailable
from finhistory.services.dual_path import write_session
from finhistory.services.seed_merge import apply_seed_merge_fallback, read_seed_document

logger = get_logger(__name__)


# =============================================================================
# Jobs
# =============================================================================


async def create_job(payload: IngestionJobCreate) -> IngestionJobRecord:
    async with write_session() as db:
        job = IngestionJob(
            source_name=payload.source_name,
            job_type=payload.job_type,
            status=JobStatus.QUEUED,
            job_metadata=payload.metadata,
        )
        db.add(job)
        await db.flush()
        await db.refresh(job)
        record = IngestionJobRecord.model_validate(job)

    logger.info("Ingestion job created", job_id=str(record.id), source_name=record.source_name)
    return record


async def update_job(job_id: UUID, payload: IngestionJobUpdate) -> IngestionJobRecord:
    async with write_session() as db:
        job = (
            await db.execute(
                update(IngestionJob)
                .where(IngestionJob.id == job_id)
                .values(**payload.changes())
                .returning(IngestionJob)
            )
        ).scalar_one_or_none()
        if job is None:
            raise NotFoundError("Ingestion job not found", details={"job_id": str(job_id)})
        record = IngestionJobRecord.model_validate(job)

    logger.info("Ingestion job updated", job_id=str(job_id), status=record.status.value)
    return record


async def get_job(job_id: UUID) -> IngestionJobRecord:
    async with write_session() as db:
        job = await db.get(IngestionJob, job_id)
        if job is None:
            raise NotFoundError("Ingestion job not found", details={"job_id": str(job_id)})
        return IngestionJobRecord.model_validate(job)


# =============================================================================
# Bulk Import
# =============================================================================


async def _upsert_sources(db: AsyncSession, items: list[ImportSourceItem]) -> int:
    for item in items:
        stmt = insert(Source).values(**item.model_dump())
        stmt = stmt.on_conflict_do_update(
            index_elements=[Source.source_url],
            set_={
                "source_name": stmt.excluded.source_name,
                "source_type": stmt.excluded.source_type,
                "publisher": stmt.excluded.publisher,
                "publication_or_snapshot_date": stmt.excluded.publication_or_snapshot_date,
                "access_date": stmt.excluded.access_date,
                "rights_note": stmt.excluded.rights_note,
                "notes_on_reliability": stmt.excluded.notes_on_reliability,
                "updated_at": func.now(),
            },
        )
        await db.execute(stmt)
    return len(items)


async def _upsert_events(db: AsyncSession, items: list[ImportEventItem]) -> int:
    for item in items:
        published = item.status == EventStatus.PUBLISHED
        stmt = insert(Event).values(
            **item.model_dump(),
            published_at=func.now() if published else None,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Event.slug],
            set_={
                "title": stmt.excluded.title,
                "event_date": stmt.excluded.event_date,
                "region": stmt.excluded.region,
                "category": stmt.excluded.category,
                "summary": stmt.excluded.summary,
                "impact": stmt.excluded.impact,
                "importance_score": stmt.excluded.importance_score,
                "confidence_score": stmt.excluded.confidence_score,
                "status": stmt.excluded.status,
                "published_at": case(
                    (
                        stmt.excluded.status == EventStatus.PUBLISHED,
                        func.coalesce(Event.published_at, func.now()),
                    ),
                    else_=Event.published_at,
                ),
                "updated_at": func.now(),
            },
        )
        await db.execute(stmt)
    return len(items)


async def _upsert_links(db: AsyncSession, items: list[ImportEventSourceItem], skipped: list[str]) -> int:
    if not items:
        return 0

    slugs = {item.event_slug for item in items}
    urls = {item.source_url for item in items}
    event_ids = dict((await db.execute(select(Event.slug, Event.id).where(Event.slug.in_(slugs)))).all())
    source_ids = dict(
        (await db.execute(select(Source.source_url, Source.id).where(Source.source_url.in_(urls)))).all()
    )

    upserted = 0
    for item in items:
        event_id = event_ids.get(item.event_slug)
        source_id = source_ids.get(item.source_url)
        if event_id is None or source_id is None:
            skipped.append(
                f"event_sources link skipped: event_slug={item.event_slug}, source_url={item.source_url}"
            )
            continue

        stmt = insert(EventSource).values(
            event_id=event_id,
            source_id=source_id,
            quote_excerpt=item.quote_excerpt,
            citation_note=item.citation_note,
            relevance_rank=item.relevance_rank,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[EventSource.event_id, EventSource.source_id],
            set_={
                "quote_excerpt": stmt.excluded.quote_excerpt,
                "citation_note": stmt.excluded.citation_note,
                "relevance_rank": stmt.excluded.relevance_rank,
            },
        )
        await db.execute(stmt)
        upserted += 1
    return upserted


async def run_ingestion_import(payload: IngestionImportPayload) -> IngestionImportResult:
    """
    Upsert a batch into the live store, all or nothing.

    Returns:
        Counts of upserted records and the skipped-link notices. When the
        batch failed and was rolled back, counts are zero, `rolled_back`
        is set and the last entry of `errors` is the failure reason.

    Raises:
        ServiceUnavailableError: the store is unconfigured or unreachable
    """
    if not settings.has_database_config:
        raise DatabaseNotConfiguredError()

    skipped: list[str] = []
    try:
        async with get_db_context() as db:
            async with transaction(db):
                sources = await _upsert_sources(db, payload.sources or [])
                events = await _upsert_events(db, payload.events or [])
                links = await _upsert_links(db, payload.event_sources or [], skipped)
    except Exception as exc:
        if is_store_unavailable(exc):
            raise ServiceUnavailableError.from_exception(exc) from exc
        reason = str(exc) or type(exc).__name__
        logger.error("Ingestion import rolled back", error=reason, skipped=len(skipped))
        return IngestionImportResult(errors=[*skipped, reason], rolled_back=True)

    logger.info(
        "Ingestion import committed",
        sources=sources,
        events=events,
        event_sources=links,
        skipped=len(skipped),
    )
    return IngestionImportResult(
        sources_upserted=sources,
        events_upserted=events,
        event_source_links_upserted=links,
        errors=skipped,
    )


async def import_seed_file(path: Path, main_seed: Path | None = None) -> dict[str, Any]:
    """
    Import a seed-shaped file, falling back to a seed merge when the live
    store is unavailable.

    Returns a report dict: ``{"mode": "imported", ...}`` with the import
    result, or the merge fallback report (``main-seed-noop`` /
    ``merged-into-main-seed``).
    """
    document = await asyncio.to_thread(read_seed_document, path)
    payload = IngestionImportPayload.model_validate(document)

    try:
        result = await run_ingestion_import(payload)
    except ServiceUnavailableError as exc:
        logger.warning("Import could not reach the live store", file=str(path), error=exc.details)
        report = await apply_seed_merge_fallback(path, document, main_seed=main_seed)
        return report.to_dict()

    return {"mode": "imported", "file": str(path.resolve()), "result": result.model_dump()}
