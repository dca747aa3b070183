"""
Event queries (dual-path) and event admin writes (live-only).

Readers:
- LiveEventReader: SQLAlchemy queries against the live store
- DemoEventReader: the same operations computed over the demo dataset

Both apply the same filters and the same total ordering, so a request
returns identical content and order whichever path served it. String
tie-breaks use the "C" collation on the live path to match Python's
code-point ordering.
"""

from collections.abc import Iterable
from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy import ColumnElement, exists, extract, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from finhistory.core.errors import NotFoundError
from finhistory.core.logging import get_logger
from finhistory.db.enums import EventSort, EventStatus
from finhistory.db.models import Event, EventSource, EventTag, Source, Tag, Timeline, TimelineEvent
from finhistory.schemas.common import Pagination
from finhistory.schemas.events import (
    EventCreate,
    EventDetail,
    EventListFilters,
    EventListItem,
    EventListResult,
    EventRecord,
    EventSourceItem,
    EventTimelineRef,
    EventUpdate,
    MonthDayResult,
)
from finhistory.services.demo_store import DemoDataset, DemoEvent
from finhistory.services.dual_path import read_with_fallback, write_session
from finhistory.services.slugs import choose_available_slug, slugify

logger = get_logger(__name__)

# Sorts before any real timestamp when ordering "nulls last" descending.
_NO_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)


# =============================================================================
# Shared Helpers
# =============================================================================


def keyword_haystack(title: str, summary: str, category: str, region: str) -> str:
    """Text searched by the `q` filter."""
    return f"{title} {summary} {category} {region}".lower()


def parse_month_day(month_day: str) -> tuple[int, int]:
    """Split an already validated MM-DD string."""
    month, day = month_day.split("-")
    return int(month), int(day)


class EventFilterBuilder:
    """
    Accumulates bound SQLAlchemy predicates for the public event listing.

    Every value becomes a bound parameter; nothing is interpolated into SQL.
    The predicate list always starts with the published-only condition.

    Example:
        clauses = EventFilterBuilder().from_filters(filters).build()
        select(Event).where(*clauses)
    """

    def __init__(self) -> None:
        self._clauses: list[ColumnElement[bool]] = [Event.status == EventStatus.PUBLISHED]

    def on_date(self, value: date | None) -> "EventFilterBuilder":
        if value is not None:
            self._clauses.append(Event.event_date == value)
        return self

    def date_range(self, start: date | None, end: date | None) -> "EventFilterBuilder":
        if start is not None:
            self._clauses.append(Event.event_date >= start)
        if end is not None:
            self._clauses.append(Event.event_date <= end)
        return self

    def equals(self, column, value: str | None) -> "EventFilterBuilder":
        if value:
            self._clauses.append(column == value)
        return self

    def tagged(self, tag_slug: str | None) -> "EventFilterBuilder":
        if tag_slug:
            self._clauses.append(
                exists()
                .where(EventTag.event_id == Event.id)
                .where(EventTag.tag_id == Tag.id)
                .where(Tag.slug == tag_slug)
            )
        return self

    def min_importance(self, value: int | None) -> "EventFilterBuilder":
        if value is not None:
            self._clauses.append(Event.importance_score >= value)
        return self

    def keyword(self, q: str | None) -> "EventFilterBuilder":
        if q:
            haystack = func.lower(
                func.concat_ws(" ", Event.title, Event.summary, Event.category, Event.region)
            )
            self._clauses.append(haystack.contains(q.lower(), autoescape=True))
        return self

    def from_filters(self, filters: EventListFilters) -> "EventFilterBuilder":
        return (
            self.on_date(filters.event_date)
            .date_range(filters.date_from, filters.date_to)
            .equals(Event.category, filters.category)
            .equals(Event.region, filters.region)
            .tagged(filters.tag)
            .min_importance(filters.importance_min)
            .keyword(filters.q)
        )

    def build(self) -> list[ColumnElement[bool]]:
        return list(self._clauses)


def _live_order(sort: EventSort) -> list:
    slug = Event.slug.collate("C").asc()
    if sort == EventSort.DATE_ASC:
        return [Event.event_date.asc(), slug]
    if sort == EventSort.IMPORTANCE_DESC:
        return [Event.importance_score.desc(), Event.event_date.desc(), slug]
    return [Event.event_date.desc(), slug]


def _sort_demo(events: Iterable[DemoEvent], sort: EventSort) -> list[DemoEvent]:
    # Stable multi-pass sort: least significant key first.
    ordered = sorted(events, key=lambda event: event.slug)
    if sort == EventSort.DATE_ASC:
        ordered.sort(key=lambda event: event.event_date)
    elif sort == EventSort.IMPORTANCE_DESC:
        ordered.sort(key=lambda event: (event.importance_score, event.event_date), reverse=True)
    else:
        ordered.sort(key=lambda event: event.event_date, reverse=True)
    return ordered


def _list_item(event: Event | DemoEvent, source_count: int, tags: list[str]) -> EventListItem:
    return EventListItem(
        id=event.id,
        slug=event.slug,
        title=event.title,
        event_date=event.event_date,
        region=event.region,
        category=event.category,
        summary=event.summary,
        importance_score=event.importance_score,
        confidence_score=event.confidence_score,
        source_count=source_count,
        tags=tags,
    )


def _detail(
    event: Event | DemoEvent,
    tags: list[str],
    sources: list[EventSourceItem],
    timelines: list[EventTimelineRef],
) -> EventDetail:
    return EventDetail(
        id=event.id,
        slug=event.slug,
        title=event.title,
        event_date=event.event_date,
        region=event.region,
        category=event.category,
        summary=event.summary,
        impact=event.impact,
        importance_score=event.importance_score,
        confidence_score=event.confidence_score,
        published_at=event.published_at,
        tags=tags,
        sources=sources,
        timelines=timelines,
    )


def _source_item(source, link) -> EventSourceItem:
    return EventSourceItem(
        id=source.id,
        source_name=source.source_name,
        source_url=source.source_url,
        source_type=source.source_type,
        publisher=source.publisher,
        publication_or_snapshot_date=source.publication_or_snapshot_date,
        access_date=source.access_date,
        rights_note=source.rights_note,
        notes_on_reliability=source.notes_on_reliability,
        quote_excerpt=link.quote_excerpt,
        citation_note=link.citation_note,
        relevance_rank=link.relevance_rank,
    )


# =============================================================================
# Live Reader
# =============================================================================


class LiveEventReader:
    """Published-event queries against the live store."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _tags_for(self, event_ids: list[UUID]) -> dict[UUID, list[str]]:
        if not event_ids:
            return {}
        result = await self.db.execute(
            select(EventTag.event_id, Tag.slug)
            .join(Tag, Tag.id == EventTag.tag_id)
            .where(EventTag.event_id.in_(event_ids))
            .order_by(Tag.slug.collate("C"))
        )
        tags: dict[UUID, list[str]] = {event_id: [] for event_id in event_ids}
        for event_id, slug in result.all():
            tags[event_id].append(slug)
        return tags

    @staticmethod
    def _source_count():
        return (
            select(func.count(EventSource.id))
            .where(EventSource.event_id == Event.id)
            .correlate(Event)
            .scalar_subquery()
        )

    async def _list_items(self, stmt) -> list[EventListItem]:
        rows = (await self.db.execute(stmt)).all()
        tags = await self._tags_for([event.id for event, _ in rows])
        return [_list_item(event, count, tags[event.id]) for event, count in rows]

    async def list_published(self, filters: EventListFilters) -> EventListResult:
        clauses = EventFilterBuilder().from_filters(filters).build()

        total = (
            await self.db.execute(select(func.count()).select_from(Event).where(*clauses))
        ).scalar_one()

        stmt = (
            select(Event, self._source_count().label("source_count"))
            .where(*clauses)
            .order_by(*_live_order(filters.sort))
            .offset(filters.offset)
            .limit(filters.page_size)
        )
        items = await self._list_items(stmt)

        return EventListResult(
            items=items,
            pagination=Pagination.create(filters.page, filters.page_size, total),
        )

    async def get_published(self, slug: str) -> EventDetail | None:
        event = (
            await self.db.execute(
                select(Event).where(Event.slug == slug, Event.status == EventStatus.PUBLISHED)
            )
        ).scalar_one_or_none()
        if event is None:
            return None

        tags = await self._tags_for([event.id])

        source_rows = await self.db.execute(
            select(Source, EventSource)
            .join(EventSource, EventSource.source_id == Source.id)
            .where(EventSource.event_id == event.id)
            .order_by(
                EventSource.relevance_rank.asc(),
                Source.publication_or_snapshot_date.desc().nulls_last(),
                Source.source_url.collate("C").asc(),
            )
        )
        sources = [_source_item(source, link) for source, link in source_rows.all()]

        timeline_rows = await self.db.execute(
            select(Timeline, TimelineEvent.sequence_no)
            .join(TimelineEvent, TimelineEvent.timeline_id == Timeline.id)
            .where(TimelineEvent.event_id == event.id)
            .order_by(TimelineEvent.sequence_no.asc(), Timeline.title.collate("C").asc())
        )
        timelines = [
            EventTimelineRef(id=timeline.id, title=timeline.title, slug=timeline.slug, sequence_no=sequence_no)
            for timeline, sequence_no in timeline_rows.all()
        ]

        return _detail(event, tags[event.id], sources, timelines)

    async def list_by_month_day(self, month: int, day: int) -> list[EventListItem]:
        stmt = (
            select(Event, self._source_count().label("source_count"))
            .where(
                Event.status == EventStatus.PUBLISHED,
                extract("month", Event.event_date) == month,
                extract("day", Event.event_date) == day,
            )
            .order_by(
                Event.event_date.desc(),
                Event.importance_score.desc(),
                Event.slug.collate("C").asc(),
            )
        )
        return await self._list_items(stmt)


# =============================================================================
# Demo Reader
# =============================================================================


class DemoEventReader:
    """Published-event queries over the demo dataset."""

    def __init__(self, dataset: DemoDataset):
        self.dataset = dataset

    def _item(self, event: DemoEvent) -> EventListItem:
        return _list_item(event, self.dataset.source_count(event.id), self.dataset.tag_slugs(event.id))

    def _matches(self, event: DemoEvent, filters: EventListFilters) -> bool:
        if filters.event_date is not None and event.event_date != filters.event_date:
            return False
        if filters.date_from is not None and event.event_date < filters.date_from:
            return False
        if filters.date_to is not None and event.event_date > filters.date_to:
            return False
        if filters.category and event.category != filters.category:
            return False
        if filters.region and event.region != filters.region:
            return False
        if filters.tag and filters.tag not in self.dataset.tag_slugs(event.id):
            return False
        if filters.importance_min is not None and event.importance_score < filters.importance_min:
            return False
        if filters.q:
            haystack = keyword_haystack(event.title, event.summary, event.category, event.region)
            if filters.q.lower() not in haystack:
                return False
        return True

    async def list_published(self, filters: EventListFilters) -> EventListResult:
        matching = [event for event in self.dataset.published_events if self._matches(event, filters)]
        ordered = _sort_demo(matching, filters.sort)
        page = ordered[filters.offset : filters.offset + filters.page_size]
        return EventListResult(
            items=[self._item(event) for event in page],
            pagination=Pagination.create(filters.page, filters.page_size, len(ordered)),
        )

    async def get_published(self, slug: str) -> EventDetail | None:
        event = self.dataset.event_by_slug.get(slug)
        if event is None or not event.is_published:
            return None

        pairs = [
            (self.dataset.source_by_id[link.source_id], link)
            for link in self.dataset.links_by_event.get(event.id, ())
        ]
        pairs.sort(key=lambda pair: pair[0].source_url)
        pairs.sort(
            key=lambda pair: (
                pair[0].publication_or_snapshot_date is not None,
                pair[0].publication_or_snapshot_date or _NO_TIMESTAMP,
            ),
            reverse=True,
        )
        pairs.sort(key=lambda pair: pair[1].relevance_rank)
        sources = [_source_item(source, link) for source, link in pairs]

        refs = []
        for member in self.dataset.memberships_by_event.get(event.id, ()):
            timeline = self.dataset.timeline_by_id[member.timeline_id]
            refs.append(
                EventTimelineRef(
                    id=timeline.id,
                    title=timeline.title,
                    slug=timeline.slug,
                    sequence_no=member.sequence_no,
                )
            )
        refs.sort(key=lambda ref: (ref.sequence_no, ref.title))

        return _detail(event, self.dataset.tag_slugs(event.id), sources, refs)

    async def list_by_month_day(self, month: int, day: int) -> list[EventListItem]:
        matching = sorted(
            (
                event
                for event in self.dataset.published_events
                if event.event_date.month == month and event.event_date.day == day
            ),
            key=lambda event: event.slug,
        )
        matching.sort(key=lambda event: (event.event_date, event.importance_score), reverse=True)
        return [self._item(event) for event in matching]


# =============================================================================
# Public Operations
# =============================================================================


async def list_published_events(filters: EventListFilters) -> EventListResult:
    """One page of published events matching `filters`."""
    return await read_with_fallback(
        "list_published_events",
        lambda reader: reader.list_published(filters),
        live=LiveEventReader,
        demo=DemoEventReader,
    )


async def get_published_event(slug: str) -> EventDetail:
    """Published event by slug, with sources, tags and timelines."""
    detail = await read_with_fallback(
        "get_published_event",
        lambda reader: reader.get_published(slug),
        live=LiveEventReader,
        demo=DemoEventReader,
    )
    if detail is None:
        raise NotFoundError("Event not found", details={"slug": slug})
    return detail


async def list_events_by_month_day(month_day: str) -> MonthDayResult:
    """Published events on MM-DD across all years, newest first."""
    month, day = parse_month_day(month_day)
    items = await read_with_fallback(
        "list_events_by_month_day",
        lambda reader: reader.list_by_month_day(month, day),
        live=LiveEventReader,
        demo=DemoEventReader,
    )
    return MonthDayResult(month_day=month_day, total=len(items), items=items)


# =============================================================================
# Admin Writes
# =============================================================================


async def _get_event_for_update(db: AsyncSession, event_id: UUID) -> Event:
    event = (
        await db.execute(select(Event).where(Event.id == event_id).with_for_update())
    ).scalar_one_or_none()
    if event is None:
        raise NotFoundError("Event not found", details={"event_id": str(event_id)})
    return event


async def create_event(payload: EventCreate) -> EventRecord:
    """
    Insert a draft event.

    The slug (given, or derived from the title) is suffixed -2, -3, ... when
    taken. Concurrent creators racing for the same slug are not guarded
    against; the loser gets a conflict from the unique constraint.
    """
    base = payload.slug or slugify(payload.title, default="event")

    async with write_session(conflict_message="event slug already exists") as db:
        existing = await db.scalars(
            select(Event.slug).where(or_(Event.slug == base, Event.slug.like(f"{base}-%")))
        )
        slug = choose_available_slug(base, existing)

        event = Event(
            slug=slug,
            title=payload.title,
            event_date=payload.event_date,
            region=payload.region,
            category=payload.category,
            summary=payload.summary,
            impact=payload.impact,
            importance_score=payload.importance_score,
            confidence_score=payload.confidence_score,
            status=EventStatus.DRAFT,
        )
        db.add(event)
        await db.flush()
        await db.refresh(event)
        record = EventRecord.model_validate(event)

    logger.info("Event created", event_id=str(record.id), slug=record.slug)
    return record


async def update_event(event_id: UUID, payload: EventUpdate) -> EventRecord:
    """Apply a partial update; a duplicate slug is a conflict."""
    async with write_session(conflict_message="event slug already exists") as db:
        event = await _get_event_for_update(db, event_id)
        for field, value in payload.changes().items():
            setattr(event, field, value)
        await db.flush()
        await db.refresh(event)
        record = EventRecord.model_validate(event)

    logger.info("Event updated", event_id=str(event_id), fields=sorted(payload.changes()))
    return record


async def _set_status(event_id: UUID, values: dict) -> EventRecord:
    async with write_session() as db:
        event = (
            await db.execute(
                update(Event)
                .where(Event.id == event_id)
                .values(**values, updated_at=func.now())
                .returning(Event)
            )
        ).scalar_one_or_none()
        if event is None:
            raise NotFoundError("Event not found", details={"event_id": str(event_id)})
        return EventRecord.model_validate(event)


async def publish_event(event_id: UUID) -> EventRecord:
    """Mark published; `published_at` is set on the first publish only."""
    record = await _set_status(
        event_id,
        {
            "status": EventStatus.PUBLISHED,
            "published_at": func.coalesce(Event.published_at, func.now()),
        },
    )
    logger.info("Event published", event_id=str(event_id), published_at=str(record.published_at))
    return record


async def archive_event(event_id: UUID) -> EventRecord:
    """Mark archived; `published_at` is kept."""
    record = await _set_status(event_id, {"status": EventStatus.ARCHIVED})
    logger.info("Event archived", event_id=str(event_id))
    return record
