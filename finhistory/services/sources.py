"""
Source queries (dual-path) and source admin writes (live-only).

A source's detail lists the published events citing it, most relevant
link first (relevance rank descending), then newest event first. Note
this is the opposite rank direction from the per-event source list.
"""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from finhistory.core.errors import NotFoundError
from finhistory.core.logging import get_logger
from finhistory.db.enums import EventStatus
from finhistory.db.models import Event, EventSource, Source
from finhistory.schemas.sources import (
    EventSourceLink,
    SourceAttach,
    SourceCreate,
    SourceDetail,
    SourceLinkedEvent,
    SourceRecord,
)
from finhistory.services.demo_store import DemoDataset
from finhistory.services.dual_path import read_with_fallback, write_session

logger = get_logger(__name__)


def _linked_event(event, link) -> SourceLinkedEvent:
    return SourceLinkedEvent(
        id=event.id,
        slug=event.slug,
        title=event.title,
        event_date=event.event_date,
        region=event.region,
        category=event.category,
        summary=event.summary,
        relevance_rank=link.relevance_rank,
        quote_excerpt=link.quote_excerpt,
        citation_note=link.citation_note,
    )


def _detail(source, linked_events: list[SourceLinkedEvent]) -> SourceDetail:
    return SourceDetail(
        id=source.id,
        source_name=source.source_name,
        source_url=source.source_url,
        source_type=source.source_type,
        publisher=source.publisher,
        publication_or_snapshot_date=source.publication_or_snapshot_date,
        access_date=source.access_date,
        rights_note=source.rights_note,
        notes_on_reliability=source.notes_on_reliability,
        created_at=source.created_at,
        updated_at=source.updated_at,
        linked_events=linked_events,
    )


# =============================================================================
# Readers
# =============================================================================


class LiveSourceReader:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_source(self, source_id: UUID) -> SourceDetail | None:
        source = await self.db.get(Source, source_id)
        if source is None:
            return None

        rows = await self.db.execute(
            select(Event, EventSource)
            .join(EventSource, EventSource.event_id == Event.id)
            .where(EventSource.source_id == source_id, Event.status == EventStatus.PUBLISHED)
            .order_by(
                EventSource.relevance_rank.desc(),
                Event.event_date.desc(),
                Event.slug.collate("C").asc(),
            )
        )
        return _detail(source, [_linked_event(event, link) for event, link in rows.all()])


class DemoSourceReader:
    def __init__(self, dataset: DemoDataset):
        self.dataset = dataset

    async def get_source(self, source_id: UUID) -> SourceDetail | None:
        source = self.dataset.source_by_id.get(source_id)
        if source is None:
            return None

        pairs = [
            (self.dataset.event_by_id[link.event_id], link)
            for link in self.dataset.links_by_source.get(source_id, ())
        ]
        pairs = [(event, link) for event, link in pairs if event.is_published]
        pairs.sort(key=lambda pair: pair[0].slug)
        pairs.sort(key=lambda pair: (pair[1].relevance_rank, pair[0].event_date), reverse=True)
        return _detail(source, [_linked_event(event, link) for event, link in pairs])


async def get_source(source_id: UUID) -> SourceDetail:
    """Source by id with the published events citing it."""
    detail = await read_with_fallback(
        "get_source",
        lambda reader: reader.get_source(source_id),
        live=LiveSourceReader,
        demo=DemoSourceReader,
    )
    if detail is None:
        raise NotFoundError("Source not found", details={"source_id": str(source_id)})
    return detail


# =============================================================================
# Admin Writes
# =============================================================================


async def create_source(payload: SourceCreate) -> SourceRecord:
    async with write_session(conflict_message="source_url already exists") as db:
        source = Source(**payload.model_dump())
        db.add(source)
        await db.flush()
        await db.refresh(source)
        record = SourceRecord.model_validate(source)

    logger.info("Source created", source_id=str(record.id), source_url=record.source_url)
    return record


async def attach_source(event_id: UUID, source_id: UUID, payload: SourceAttach) -> EventSourceLink:
    """
    Link a source to an event, or update the citation fields of an
    existing link (one row per pair).
    """
    stmt = insert(EventSource).values(
        event_id=event_id,
        source_id=source_id,
        quote_excerpt=payload.quote_excerpt,
        citation_note=payload.citation_note,
        relevance_rank=payload.relevance_rank,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[EventSource.event_id, EventSource.source_id],
        set_={
            "quote_excerpt": stmt.excluded.quote_excerpt,
            "citation_note": stmt.excluded.citation_note,
            "relevance_rank": stmt.excluded.relevance_rank,
        },
    ).returning(
        EventSource.event_id,
        EventSource.source_id,
        EventSource.quote_excerpt,
        EventSource.citation_note,
        EventSource.relevance_rank,
    )

    async with write_session(not_found_message="Event or source not found") as db:
        row = (await db.execute(stmt)).one()
        link = EventSourceLink.model_validate(row)

    logger.info("Source attached", event_id=str(event_id), source_id=str(source_id), rank=link.relevance_rank)
    return link


async def detach_source(event_id: UUID, source_id: UUID) -> EventSourceLink:
    async with write_session() as db:
        row = (
            await db.execute(
                delete(EventSource)
                .where(EventSource.event_id == event_id, EventSource.source_id == source_id)
                .returning(EventSource.event_id, EventSource.source_id)
            )
        ).one_or_none()
        if row is None:
            raise NotFoundError(
                "Event/source link not found",
                details={"event_id": str(event_id), "source_id": str(source_id)},
            )

    logger.info("Source detached", event_id=str(event_id), source_id=str(source_id))
    return EventSourceLink(event_id=row.event_id, source_id=row.source_id)
