"""
Demo dataset built from the seed file.

The demo dataset is a read-only, fully cross-referenced in-memory snapshot
standing in for the live store when it is unconfigured or unreachable.

Features:
- Stable identifiers: every record id is derived from its natural key
  (`stable_uuid("source:<url>")`, `stable_uuid("event:<slug>")`, ...), so a
  rebuild from the same seed reproduces the same ids
- Referential closure: links whose event slug or source URL cannot be
  resolved are dropped at build time
- Derived tags (one per published category) and derived timelines
  (the all-events timeline, a crisis keyword timeline and slug-prefix timelines)
- Single-flight memoisation: concurrent first readers share one build

Only published events are cross-referenced by tags and timelines.
"""

import asyncio
import re
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from functools import cached_property
from pathlib import Path
from uuid import UUID

from pydantic import ValidationError

from finhistory.core.config import settings
from finhistory.core.errors import SeedDataError
from finhistory.core.logging import get_logger
from finhistory.db.enums import EventStatus, SourceType
from finhistory.schemas.seed import SeedPayload
from finhistory.services.slugs import slugify, stable_uuid

logger = get_logger(__name__)


# =============================================================================
# Snapshot Records
# =============================================================================


@dataclass(frozen=True)
class DemoSource:
    id: UUID
    source_name: str
    source_url: str
    source_type: SourceType
    publisher: str | None
    publication_or_snapshot_date: datetime | None
    access_date: date | None
    rights_note: str | None
    notes_on_reliability: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class DemoEvent:
    id: UUID
    slug: str
    title: str
    event_date: date
    region: str
    category: str
    summary: str
    impact: str
    importance_score: int
    confidence_score: int
    status: EventStatus
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @property
    def is_published(self) -> bool:
        return self.status == EventStatus.PUBLISHED


@dataclass(frozen=True)
class DemoEventSource:
    event_id: UUID
    source_id: UUID
    quote_excerpt: str | None
    citation_note: str | None
    relevance_rank: int


@dataclass(frozen=True)
class DemoTag:
    id: UUID
    slug: str
    name: str


@dataclass(frozen=True)
class DemoEventTag:
    event_id: UUID
    tag_id: UUID


@dataclass(frozen=True)
class DemoTimeline:
    id: UUID
    title: str
    slug: str
    description: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class DemoTimelineEvent:
    timeline_id: UUID
    event_id: UUID
    sequence_no: int


@dataclass(frozen=True)
class DemoDataset:
    """
    Immutable snapshot plus lazily computed lookup indexes.

    The tuples hold records in build order; the cached properties are the
    joins the readers need (ids, slugs, per-event and per-source links).
    """

    sources: tuple[DemoSource, ...]
    events: tuple[DemoEvent, ...]
    event_sources: tuple[DemoEventSource, ...]
    tags: tuple[DemoTag, ...]
    event_tags: tuple[DemoEventTag, ...]
    timelines: tuple[DemoTimeline, ...]
    timeline_events: tuple[DemoTimelineEvent, ...]

    @cached_property
    def source_by_id(self) -> dict[UUID, DemoSource]:
        return {source.id: source for source in self.sources}

    @cached_property
    def event_by_id(self) -> dict[UUID, DemoEvent]:
        return {event.id: event for event in self.events}

    @cached_property
    def event_by_slug(self) -> dict[str, DemoEvent]:
        return {event.slug: event for event in self.events}

    @cached_property
    def published_events(self) -> tuple[DemoEvent, ...]:
        return tuple(event for event in self.events if event.is_published)

    @cached_property
    def tag_by_id(self) -> dict[UUID, DemoTag]:
        return {tag.id: tag for tag in self.tags}

    @cached_property
    def timeline_by_id(self) -> dict[UUID, DemoTimeline]:
        return {timeline.id: timeline for timeline in self.timelines}

    @cached_property
    def timeline_by_slug(self) -> dict[str, DemoTimeline]:
        return {timeline.slug: timeline for timeline in self.timelines}

    @cached_property
    def links_by_event(self) -> dict[UUID, list[DemoEventSource]]:
        index: dict[UUID, list[DemoEventSource]] = defaultdict(list)
        for link in self.event_sources:
            index[link.event_id].append(link)
        return dict(index)

    @cached_property
    def links_by_source(self) -> dict[UUID, list[DemoEventSource]]:
        index: dict[UUID, list[DemoEventSource]] = defaultdict(list)
        for link in self.event_sources:
            index[link.source_id].append(link)
        return dict(index)

    @cached_property
    def tag_slugs_by_event(self) -> dict[UUID, list[str]]:
        """Sorted tag slugs per event id."""
        index: dict[UUID, list[str]] = defaultdict(list)
        for event_tag in self.event_tags:
            tag = self.tag_by_id.get(event_tag.tag_id)
            if tag is not None:
                index[event_tag.event_id].append(tag.slug)
        return {event_id: sorted(slugs) for event_id, slugs in index.items()}

    @cached_property
    def memberships_by_event(self) -> dict[UUID, list[DemoTimelineEvent]]:
        index: dict[UUID, list[DemoTimelineEvent]] = defaultdict(list)
        for member in self.timeline_events:
            index[member.event_id].append(member)
        return dict(index)

    @cached_property
    def members_by_timeline(self) -> dict[UUID, list[DemoTimelineEvent]]:
        index: dict[UUID, list[DemoTimelineEvent]] = defaultdict(list)
        for member in self.timeline_events:
            index[member.timeline_id].append(member)
        return dict(index)

    def source_count(self, event_id: UUID) -> int:
        return len(self.links_by_event.get(event_id, ()))

    def tag_slugs(self, event_id: UUID) -> list[str]:
        return list(self.tag_slugs_by_event.get(event_id, ()))

    def counts(self) -> dict[str, int]:
        """Record counts, for logging."""
        return {
            "sources": len(self.sources),
            "events": len(self.events),
            "event_sources": len(self.event_sources),
            "tags": len(self.tags),
            "timelines": len(self.timelines),
            "timeline_events": len(self.timeline_events),
        }


# =============================================================================
# Derived Timelines
# =============================================================================


CRISIS_PATTERN = re.compile(r"crash|crisis|stress|banking|default|rescue|failure")


@dataclass(frozen=True)
class TimelineRule:
    """A derived timeline: fixed metadata plus a membership predicate."""

    slug: str
    title: str
    description: str
    matches: Callable[[DemoEvent], bool]


def _every_event(event: DemoEvent) -> bool:
    return True


def _is_crisis(event: DemoEvent) -> bool:
    return bool(CRISIS_PATTERN.search(f"{event.title} {event.category}".lower()))


def _slug_prefix(prefix: str) -> Callable[[DemoEvent], bool]:
    def matches(event: DemoEvent) -> bool:
        return event.slug.startswith(prefix)

    return matches


TIMELINE_RULES: tuple[TimelineRule, ...] = (
    TimelineRule(
        "global-financial-turning-points",
        "Global Financial Turning Points",
        "Major events that reshaped financial markets and policy regimes.",
        _every_event,
    ),
    TimelineRule(
        "crisis-and-stabilization",
        "Crisis and Stabilization Cycle",
        "Episodes of stress and the policy responses that followed.",
        _is_crisis,
    ),
    TimelineRule(
        "us-soviet-cold-war",
        "US-Soviet Cold War (1946-1991)",
        "Key geopolitical, military, and policy milestones in the U.S.-Soviet Cold War.",
        _slug_prefix("cold-war-"),
    ),
    TimelineRule(
        "china-us-since-1900",
        "China-U.S. Relations Since 1900",
        "Major diplomatic, military, trade, and technology turning points in China-U.S. relations.",
        _slug_prefix("china-us-"),
    ),
    TimelineRule(
        "china-soviet-relations",
        "China-Soviet Relations (1949-1991)",
        "Alliance, split, border crises, and normalization milestones in China-Soviet relations.",
        _slug_prefix("china-soviet-"),
    ),
    TimelineRule(
        "china-wars-since-1900",
        "Wars Involving China Since 1900",
        "Major interstate and cross-strait conflict milestones involving China after 1900.",
        _slug_prefix("china-war-"),
    ),
    TimelineRule(
        "us-wars-since-1900",
        "Wars Involving the United States Since 1900",
        "Major war-entry, escalation, intervention, and withdrawal milestones involving the United States.",
        _slug_prefix("us-war-"),
    ),
    TimelineRule(
        "ccp-history-since-1921",
        "CPC-Centered Timeline Since 1921",
        "Major organizational, political, and policy milestones centered on the Communist Party of China.",
        _slug_prefix("ccp-"),
    ),
    TimelineRule(
        "world-war-ii",
        "World War II Timeline (1939-1945)",
        "Key military, diplomatic, and war-ending milestones in World War II.",
        _slug_prefix("wwii-"),
    ),
)


def derive_timelines(
    events: tuple[DemoEvent, ...], now: datetime
) -> tuple[tuple[DemoTimeline, ...], tuple[DemoTimelineEvent, ...]]:
    """
    Build every derived timeline over the published events.

    Members are taken in (event_date, slug) order and numbered 1..k per
    timeline; numbering is recomputed from scratch on every build.
    """
    published = sorted(
        (event for event in events if event.is_published),
        key=lambda event: (event.event_date, event.slug),
    )

    timelines: list[DemoTimeline] = []
    members: list[DemoTimelineEvent] = []
    for rule in TIMELINE_RULES:
        timeline = DemoTimeline(
            id=stable_uuid(f"timeline:{rule.slug}"),
            title=rule.title,
            slug=rule.slug,
            description=rule.description,
            created_at=now,
            updated_at=now,
        )
        timelines.append(timeline)
        matching = [event for event in published if rule.matches(event)]
        for sequence_no, event in enumerate(matching, start=1):
            members.append(DemoTimelineEvent(timeline.id, event.id, sequence_no))

    return tuple(timelines), tuple(members)


def derive_tags(events: tuple[DemoEvent, ...]) -> tuple[tuple[DemoTag, ...], tuple[DemoEventTag, ...]]:
    """One tag per distinct (slugified) published category; the first spelling seen names it."""
    tags: dict[str, DemoTag] = {}
    event_tags: list[DemoEventTag] = []
    for event in events:
        if not event.is_published:
            continue
        slug = slugify(event.category, default="tag")
        tag = tags.get(slug)
        if tag is None:
            tag = DemoTag(id=stable_uuid(f"tag:{slug}"), slug=slug, name=event.category)
            tags[slug] = tag
        event_tags.append(DemoEventTag(event_id=event.id, tag_id=tag.id))
    return tuple(tags.values()), tuple(event_tags)


# =============================================================================
# Builder
# =============================================================================


def build_dataset(payload: SeedPayload, now: datetime | None = None) -> DemoDataset:
    """
    Derive the demo dataset from a parsed seed payload.

    Duplicate natural keys resolve last-wins (the record keeps the position
    of its first occurrence). Pure apart from `now`, which only feeds the
    created_at/updated_at display fields.
    """
    now = now or datetime.now(timezone.utc)

    sources: dict[str, DemoSource] = {}
    for item in payload.sources:
        url = item.source_url.strip()
        sources[url] = DemoSource(
            id=stable_uuid(f"source:{url}"),
            source_name=item.source_name,
            source_url=url,
            source_type=item.source_type,
            publisher=item.publisher,
            publication_or_snapshot_date=item.publication_or_snapshot_date,
            access_date=item.access_date,
            rights_note=item.rights_note,
            notes_on_reliability=item.notes_on_reliability,
            created_at=now,
            updated_at=now,
        )

    events: dict[str, DemoEvent] = {}
    for item in payload.events:
        slug = slugify(item.slug or item.title, default="event")
        published = item.status == EventStatus.PUBLISHED
        events[slug] = DemoEvent(
            id=stable_uuid(f"event:{slug}"),
            slug=slug,
            title=item.title,
            event_date=item.event_date,
            region=item.region,
            category=item.category,
            summary=item.summary,
            impact=item.impact,
            importance_score=item.importance_score,
            confidence_score=item.confidence_score,
            status=item.status,
            published_at=datetime.combine(item.event_date, time.min, tzinfo=timezone.utc) if published else None,
            created_at=now,
            updated_at=now,
        )

    links: dict[tuple[UUID, UUID], DemoEventSource] = {}
    for item in payload.event_sources:
        event = events.get(slugify(item.event_slug, default="event"))
        source = sources.get(item.source_url.strip())
        if event is None or source is None:
            continue
        links[(event.id, source.id)] = DemoEventSource(
            event_id=event.id,
            source_id=source.id,
            quote_excerpt=item.quote_excerpt,
            citation_note=item.citation_note,
            relevance_rank=item.relevance_rank,
        )

    event_records = tuple(events.values())
    tags, event_tags = derive_tags(event_records)
    timelines, timeline_events = derive_timelines(event_records, now)

    return DemoDataset(
        sources=tuple(sources.values()),
        events=event_records,
        event_sources=tuple(links.values()),
        tags=tags,
        event_tags=event_tags,
        timelines=timelines,
        timeline_events=timeline_events,
    )


def load_seed_payload(path: Path) -> SeedPayload:
    """Read and validate the seed file (blocking; run it in a worker thread)."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SeedDataError(
            f"Seed file could not be read: {path}",
            details={"path": str(path), "reason": str(exc)},
        ) from exc

    try:
        return SeedPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise SeedDataError(
            f"Seed file is malformed: {path}",
            details={"path": str(path), "errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


# =============================================================================
# Process-wide Store
# =============================================================================


class DemoDatasetStore:
    """
    Memoised, single-flight owner of the demo dataset.

    The first caller starts the build; callers arriving while it runs await
    the same task. A failed build is not cached, so the next call retries.
    The seed file is read at most once per successful build: later changes
    to the file are picked up only after `reset()` or a restart.
    """

    def __init__(self, seed_path: Path | None = None):
        self._seed_path = seed_path
        self._dataset: DemoDataset | None = None
        self._pending: asyncio.Future[DemoDataset] | None = None

    @property
    def seed_path(self) -> Path:
        return self._seed_path or settings.seed_file

    async def get(self) -> DemoDataset:
        if self._dataset is not None:
            return self._dataset
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._build())
            self._pending.add_done_callback(self._clear_pending)
        # Shielded so one cancelled caller does not abort the shared build.
        return await asyncio.shield(self._pending)

    def reset(self) -> None:
        """Forget the cached dataset; the next `get()` rebuilds from disk."""
        self._dataset = None
        self._pending = None

    def _clear_pending(self, future: asyncio.Future[DemoDataset]) -> None:
        if self._pending is future:
            self._pending = None

    async def _build(self) -> DemoDataset:
        path = self.seed_path
        payload = await asyncio.to_thread(load_seed_payload, path)
        dataset = build_dataset(payload)
        # A reset() while this build ran makes it stale: hand it to the waiting callers only.
        if asyncio.current_task() is self._pending:
            self._dataset = dataset
        logger.info("Demo dataset built", seed_path=str(path), **dataset.counts())
        return dataset


_store = DemoDatasetStore()


async def get_demo_dataset() -> DemoDataset:
    """Return the process-wide demo dataset, building it on first use."""
    return await _store.get()


def reset_demo_dataset() -> None:
    """Drop the cached demo dataset (tests, and after a seed merge if desired)."""
    _store.reset()
