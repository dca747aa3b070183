"""
Timelines: one read interface, two providers.

- StoredTimelineProvider: curated timelines persisted in the live store
  (timelines + timeline_events rows, explicit sequence numbers)
- DerivedTimelineProvider: timelines computed by the demo dataset builder
  from slug prefixes and category keywords

Callers use `list_timelines()` / `get_timeline()` and never see which
provider answered. Admin writes touch stored timelines only.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar
from uuid import UUID

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from finhistory.core.errors import NotFoundError
from finhistory.core.logging import get_logger
from finhistory.db.enums import EventStatus
from finhistory.db.models import Event, Timeline, TimelineEvent
from finhistory.schemas.timelines import (
    TimelineCreate,
    TimelineDetail,
    TimelineEventItem,
    TimelineEventLink,
    TimelineListItem,
    TimelineRecord,
)
from finhistory.services.demo_store import DemoDataset
from finhistory.services.dual_path import read_with_fallback, write_session
from finhistory.services.slugs import slugify

logger = get_logger(__name__)

R = TypeVar("R")

SEQUENCE_CONFLICT_MESSAGE = "sequence_no already used in this timeline"


class TimelineProvider(Protocol):
    """Read interface shared by stored and derived timelines."""

    async def list_timelines(self) -> list[TimelineListItem]: ...

    async def get_timeline(self, slug: str) -> TimelineDetail | None: ...


def _event_item(event, sequence_no: int) -> TimelineEventItem:
    return TimelineEventItem(
        id=event.id,
        slug=event.slug,
        title=event.title,
        event_date=event.event_date,
        region=event.region,
        category=event.category,
        summary=event.summary,
        importance_score=event.importance_score,
        confidence_score=event.confidence_score,
        sequence_no=sequence_no,
    )


def _detail(timeline, events: list[TimelineEventItem]) -> TimelineDetail:
    return TimelineDetail(
        id=timeline.id,
        title=timeline.title,
        slug=timeline.slug,
        description=timeline.description,
        created_at=timeline.created_at,
        updated_at=timeline.updated_at,
        events=events,
    )


# =============================================================================
# Providers
# =============================================================================


class StoredTimelineProvider:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_timelines(self) -> list[TimelineListItem]:
        published = and_(Event.id == TimelineEvent.event_id, Event.status == EventStatus.PUBLISHED)
        rows = await self.db.execute(
            select(
                Timeline,
                func.count(Event.id).label("event_count"),
                func.min(Event.event_date).label("first_event_date"),
                func.max(Event.event_date).label("last_event_date"),
            )
            .outerjoin(TimelineEvent, TimelineEvent.timeline_id == Timeline.id)
            .outerjoin(Event, published)
            .group_by(Timeline.id)
            .order_by(Timeline.title.collate("C").asc(), Timeline.slug.collate("C").asc())
        )
        return [
            TimelineListItem(
                id=timeline.id,
                title=timeline.title,
                slug=timeline.slug,
                description=timeline.description,
                event_count=event_count,
                first_event_date=first_date,
                last_event_date=last_date,
            )
            for timeline, event_count, first_date, last_date in rows.all()
        ]

    async def get_timeline(self, slug: str) -> TimelineDetail | None:
        timeline = (
            await self.db.execute(select(Timeline).where(Timeline.slug == slug))
        ).scalar_one_or_none()
        if timeline is None:
            return None

        rows = await self.db.execute(
            select(Event, TimelineEvent.sequence_no)
            .join(TimelineEvent, TimelineEvent.event_id == Event.id)
            .where(TimelineEvent.timeline_id == timeline.id, Event.status == EventStatus.PUBLISHED)
            .order_by(TimelineEvent.sequence_no.asc(), Event.event_date.desc())
        )
        return _detail(timeline, [_event_item(event, seq) for event, seq in rows.all()])


class DerivedTimelineProvider:
    def __init__(self, dataset: DemoDataset):
        self.dataset = dataset

    def _published_members(self, timeline_id: UUID):
        for member in self.dataset.members_by_timeline.get(timeline_id, ()):
            event = self.dataset.event_by_id.get(member.event_id)
            if event is not None and event.is_published:
                yield event, member.sequence_no

    async def list_timelines(self) -> list[TimelineListItem]:
        items = []
        for timeline in self.dataset.timelines:
            dates = sorted(event.event_date for event, _ in self._published_members(timeline.id))
            items.append(
                TimelineListItem(
                    id=timeline.id,
                    title=timeline.title,
                    slug=timeline.slug,
                    description=timeline.description,
                    event_count=len(dates),
                    first_event_date=dates[0] if dates else None,
                    last_event_date=dates[-1] if dates else None,
                )
            )
        items.sort(key=lambda item: (item.title, item.slug))
        return items

    async def get_timeline(self, slug: str) -> TimelineDetail | None:
        timeline = self.dataset.timeline_by_slug.get(slug)
        if timeline is None:
            return None

        members = sorted(self._published_members(timeline.id), key=lambda pair: pair[0].event_date, reverse=True)
        members.sort(key=lambda pair: pair[1])
        return _detail(timeline, [_event_item(event, seq) for event, seq in members])


# =============================================================================
# Public Operations
# =============================================================================


async def _read(operation: str, call: Callable[[TimelineProvider], Awaitable[R]]) -> R:
    return await read_with_fallback(operation, call, live=StoredTimelineProvider, demo=DerivedTimelineProvider)


async def list_timelines() -> list[TimelineListItem]:
    """All timelines with published-event counts and date span, by title."""
    return await _read("list_timelines", lambda provider: provider.list_timelines())


async def get_timeline(slug: str) -> TimelineDetail:
    """Timeline by slug with its published events in sequence order."""
    detail = await _read("get_timeline", lambda provider: provider.get_timeline(slug))
    if detail is None:
        raise NotFoundError("Timeline not found", details={"slug": slug})
    return detail


# =============================================================================
# Admin Writes
# =============================================================================


async def create_timeline(payload: TimelineCreate) -> TimelineRecord:
    """Create a timeline; the slug defaults to the slugified title."""
    slug = payload.slug or slugify(payload.title, default="timeline")
    async with write_session(conflict_message="timeline slug already exists") as db:
        timeline = Timeline(title=payload.title, slug=slug, description=payload.description)
        db.add(timeline)
        await db.flush()
        await db.refresh(timeline)
        record = TimelineRecord.model_validate(timeline)

    logger.info("Timeline created", timeline_id=str(record.id), slug=record.slug)
    return record


async def attach_event_to_timeline(timeline_id: UUID, event_id: UUID, sequence_no: int) -> TimelineEventLink:
    """Add an event at `sequence_no`, or move it there if already a member."""
    stmt = insert(TimelineEvent).values(timeline_id=timeline_id, event_id=event_id, sequence_no=sequence_no)
    stmt = stmt.on_conflict_do_update(
        index_elements=[TimelineEvent.timeline_id, TimelineEvent.event_id],
        set_={"sequence_no": stmt.excluded.sequence_no},
    ).returning(TimelineEvent.timeline_id, TimelineEvent.event_id, TimelineEvent.sequence_no)

    async with write_session(
        conflict_message=SEQUENCE_CONFLICT_MESSAGE,
        not_found_message="Timeline or event not found",
    ) as db:
        row = (await db.execute(stmt)).one()

    logger.info("Timeline event attached", timeline_id=str(timeline_id), event_id=str(event_id), sequence_no=sequence_no)
    return TimelineEventLink.model_validate(row)


async def update_timeline_event_sequence(timeline_id: UUID, event_id: UUID, sequence_no: int) -> TimelineEventLink:
    async with write_session(conflict_message=SEQUENCE_CONFLICT_MESSAGE) as db:
        row = (
            await db.execute(
                update(TimelineEvent)
                .where(TimelineEvent.timeline_id == timeline_id, TimelineEvent.event_id == event_id)
                .values(sequence_no=sequence_no)
                .returning(TimelineEvent.timeline_id, TimelineEvent.event_id, TimelineEvent.sequence_no)
            )
        ).one_or_none()
        if row is None:
            raise NotFoundError(
                "Timeline-event link not found",
                details={"timeline_id": str(timeline_id), "event_id": str(event_id)},
            )

    logger.info("Timeline event moved", timeline_id=str(timeline_id), event_id=str(event_id), sequence_no=sequence_no)
    return TimelineEventLink.model_validate(row)


async def detach_event_from_timeline(timeline_id: UUID, event_id: UUID) -> TimelineEventLink:
    async with write_session() as db:
        row = (
            await db.execute(
                delete(TimelineEvent)
                .where(TimelineEvent.timeline_id == timeline_id, TimelineEvent.event_id == event_id)
                .returning(TimelineEvent.timeline_id, TimelineEvent.event_id)
            )
        ).one_or_none()
        if row is None:
            raise NotFoundError(
                "Timeline-event link not found",
                details={"timeline_id": str(timeline_id), "event_id": str(event_id)},
            )

    logger.info("Timeline event detached", timeline_id=str(timeline_id), event_id=str(event_id))
    return TimelineEventLink(timeline_id=row.timeline_id, event_id=row.event_id)
