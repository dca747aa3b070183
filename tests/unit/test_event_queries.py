"""Unit tests for event, source and timeline reads served from the demo dataset."""

from datetime import date
from typing import Any

import pytest
from sqlalchemy.dialects import postgresql

from finhistory.core.errors import NotFoundError
from finhistory.db.enums import EventSort
from finhistory.schemas import EventListFilters
from finhistory.services import events as event_service
from finhistory.services import sources as source_service
from finhistory.services import timelines as timeline_service
from finhistory.services.events import EventFilterBuilder, keyword_haystack
from finhistory.services.slugs import stable_uuid

pytestmark = pytest.mark.asyncio


def _slugs(items: list[Any]) -> list[str]:
    return [item.slug for item in items]


# =============================================================================
# Event Listing
# =============================================================================


class TestListPublishedEvents:
    """Tests for the public event listing."""

    async def test_scenario_from_date_ascending(self) -> None:
        """Test from=1970-01-01 with date_asc returns the two later events in order."""
        result = await event_service.list_published_events(
            EventListFilters(date_from=date(1970, 1, 1), sort=EventSort.DATE_ASC)
        )
        assert [item.event_date for item in result.items] == [date(1971, 8, 15), date(2008, 9, 15)]
        assert result.pagination.total == 2

    async def test_default_order_date_desc_slug_tiebreak(self) -> None:
        result = await event_service.list_published_events(EventListFilters())
        assert _slugs(result.items) == [
            "lehman-collapse",
            "nixon-shock",
            "cold-war-marshall-plan",
            "un-charter-enters-into-force",
            "wwii-bretton-woods",
            "black-thursday-london",
            "crash-of-1929",
        ]

    async def test_drafts_never_listed(self) -> None:
        result = await event_service.list_published_events(EventListFilters(page_size=100))
        assert "plaza-accord" not in _slugs(result.items)
        assert result.pagination.total == 7

    async def test_importance_desc(self) -> None:
        result = await event_service.list_published_events(EventListFilters(sort=EventSort.IMPORTANCE_DESC))
        assert _slugs(result.items) == [
            "lehman-collapse",
            "crash-of-1929",
            "nixon-shock",
            "wwii-bretton-woods",
            "cold-war-marshall-plan",
            "un-charter-enters-into-force",
            "black-thursday-london",
        ]

    async def test_keyword_is_case_insensitive_substring(self) -> None:
        result = await event_service.list_published_events(EventListFilters(q="gold"))
        assert _slugs(result.items) == ["nixon-shock"]

    async def test_keyword_matches_region(self) -> None:
        result = await event_service.list_published_events(EventListFilters(q="united kingdom"))
        assert _slugs(result.items) == ["black-thursday-london"]

    async def test_tag_filter(self) -> None:
        result = await event_service.list_published_events(EventListFilters(tag="market-crash"))
        assert _slugs(result.items) == ["black-thursday-london", "crash-of-1929"]

    async def test_exact_category_region_and_importance(self) -> None:
        result = await event_service.list_published_events(
            EventListFilters(category="Monetary Policy", region="United States", importance_min=4)
        )
        assert _slugs(result.items) == ["nixon-shock"]

    async def test_exact_date(self) -> None:
        result = await event_service.list_published_events(EventListFilters(event_date=date(1929, 10, 24)))
        assert _slugs(result.items) == ["black-thursday-london", "crash-of-1929"]

    async def test_pagination(self) -> None:
        result = await event_service.list_published_events(EventListFilters(page=2, page_size=2))
        assert _slugs(result.items) == ["cold-war-marshall-plan", "un-charter-enters-into-force"]
        assert result.pagination.total == 7
        assert result.pagination.total_pages == 4

    async def test_page_past_end_is_empty(self) -> None:
        result = await event_service.list_published_events(EventListFilters(page=9, page_size=20))
        assert result.items == []
        assert result.pagination.total == 7

    async def test_no_match_has_zero_pages(self) -> None:
        result = await event_service.list_published_events(EventListFilters(q="tulip"))
        assert result.pagination.total == 0
        assert result.pagination.total_pages == 0

    async def test_list_item_counts_sources_and_tags(self) -> None:
        result = await event_service.list_published_events(EventListFilters(event_date=date(1929, 10, 24)))
        crash = next(item for item in result.items if item.slug == "crash-of-1929")
        assert crash.source_count == 3
        assert crash.tags == ["market-crash"]


# =============================================================================
# Event Detail and Month-Day
# =============================================================================


class TestEventDetail:
    """Tests for the event detail read."""

    async def test_sources_ordered_by_relevance_then_publication(self) -> None:
        detail = await event_service.get_published_event("crash-of-1929")
        assert [source.source_url for source in detail.sources] == [
            "https://example.org/news/general",
            "https://example.org/fed/crash-1929",
            "https://example.org/archive/nixon",
        ]
        assert [source.relevance_rank for source in detail.sources] == [1, 1, 2]

    async def test_timelines_ordered_by_sequence_then_title(self) -> None:
        detail = await event_service.get_published_event("crash-of-1929")
        assert [(ref.title, ref.sequence_no) for ref in detail.timelines] == [
            ("Crisis and Stabilization Cycle", 2),
            ("Global Financial Turning Points", 2),
        ]

    async def test_published_at_present(self) -> None:
        detail = await event_service.get_published_event("lehman-collapse")
        assert detail.published_at is not None
        assert detail.tags == ["banking-crisis"]

    async def test_draft_is_not_found(self) -> None:
        with pytest.raises(NotFoundError):
            await event_service.get_published_event("plaza-accord")

    async def test_unknown_slug_is_not_found(self) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await event_service.get_published_event("tulip-mania")
        assert exc_info.value.message == "Event not found"


class TestMonthDay:
    """Tests for the on-this-day read."""

    async def test_across_years_date_desc_then_importance(self) -> None:
        result = await event_service.list_events_by_month_day("10-24")
        assert result.month_day == "10-24"
        assert result.total == 3
        assert _slugs(result.items) == [
            "un-charter-enters-into-force",
            "crash-of-1929",
            "black-thursday-london",
        ]

    async def test_empty_day(self) -> None:
        result = await event_service.list_events_by_month_day("02-29")
        assert result.total == 0
        assert result.items == []


# =============================================================================
# Sources and Timelines
# =============================================================================


class TestSourceDetail:
    """Tests for the source detail read."""

    async def test_linked_events_relevance_desc(self) -> None:
        source_id = stable_uuid("source:https://example.org/archive/nixon")
        detail = await source_service.get_source(source_id)
        assert detail.source_type.value == "archive"
        assert [(e.slug, e.relevance_rank) for e in detail.linked_events] == [
            ("crash-of-1929", 2),
            ("nixon-shock", 1),
        ]

    async def test_draft_events_hidden(self) -> None:
        detail = await source_service.get_source(stable_uuid("source:https://example.org/news/general"))
        assert [e.slug for e in detail.linked_events] == ["crash-of-1929"]

    async def test_unknown_source(self) -> None:
        with pytest.raises(NotFoundError):
            await source_service.get_source(stable_uuid("source:https://example.org/unknown"))


class TestTimelines:
    """Tests for derived timelines."""

    async def test_list_sorted_by_title(self) -> None:
        items = await timeline_service.list_timelines()
        titles = [item.title for item in items]
        assert len(items) == 9
        assert titles == sorted(titles)

    async def test_list_counts_and_span(self) -> None:
        items = {item.slug: item for item in await timeline_service.list_timelines()}
        crisis = items["crisis-and-stabilization"]
        assert crisis.event_count == 3
        assert crisis.first_event_date == date(1929, 10, 24)
        assert crisis.last_event_date == date(2008, 9, 15)
        empty = items["ccp-history-since-1921"]
        assert empty.event_count == 0
        assert empty.first_event_date is None

    async def test_detail_in_sequence_order(self) -> None:
        detail = await timeline_service.get_timeline("global-financial-turning-points")
        assert [event.slug for event in detail.events] == [
            "black-thursday-london",
            "crash-of-1929",
            "wwii-bretton-woods",
            "un-charter-enters-into-force",
            "cold-war-marshall-plan",
            "nixon-shock",
            "lehman-collapse",
        ]
        assert [event.sequence_no for event in detail.events] == list(range(1, 8))

    async def test_unknown_timeline(self) -> None:
        with pytest.raises(NotFoundError):
            await timeline_service.get_timeline("tulip-mania")


# =============================================================================
# Filter Builder
# =============================================================================


class TestEventFilterBuilder:
    """Tests for the live-path predicate builder."""

    def _sql(self, clauses: list) -> str:
        return " AND ".join(
            str(clause.compile(dialect=postgresql.dialect())) for clause in clauses
        )

    async def test_published_only_by_default(self) -> None:
        clauses = EventFilterBuilder().build()
        assert len(clauses) == 1
        assert "events.status" in self._sql(clauses)

    async def test_values_are_bound_parameters(self) -> None:
        """Test user input never appears inline in SQL."""
        filters = EventListFilters(category="Market'; DROP TABLE events;--", q="100%_off")
        sql = self._sql(EventFilterBuilder().from_filters(filters).build())
        assert "DROP TABLE" not in sql
        assert "100%_off" not in sql

    async def test_one_clause_per_filter(self) -> None:
        filters = EventListFilters(
            event_date=date(2008, 9, 15),
            date_from=date(2000, 1, 1),
            date_to=date(2010, 1, 1),
            category="Banking Crisis",
            region="United States",
            tag="banking-crisis",
            importance_min=4,
            q="lehman",
        )
        clauses = EventFilterBuilder().from_filters(filters).build()
        assert len(clauses) == 9

    async def test_keyword_haystack(self) -> None:
        assert keyword_haystack("A", "B", "C", "D") == "a b c d"
