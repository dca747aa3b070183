"""Public event endpoints."""

from datetime import date

from fastapi import APIRouter, Query

from finhistory.core.errors import RequestValidationFailed
from finhistory.db.enums import EventSort
from finhistory.schemas import DataResponse, EventDetail, EventListFilters, EventListResult
from finhistory.schemas.common import parse_iso_date
from finhistory.services import events as event_service

router = APIRouter()


# =============================================================================
# Helper Functions
# =============================================================================


def _date_param(name: str, value: str | None) -> date | None:
    if value is None or not value.strip():
        return None
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise RequestValidationFailed(f"{name} must be YYYY-MM-DD", details={name: value}) from exc


def _text_param(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


# =============================================================================
# Endpoints
# =============================================================================


@router.get(
    "",
    response_model=DataResponse[EventListResult],
    summary="List published events",
    description="Filter, search and page through published events.",
)
async def list_events(
    event_date: str | None = Query(None, alias="date", description="Exact date (YYYY-MM-DD)"),
    date_from: str | None = Query(None, alias="from", description="Inclusive lower bound (YYYY-MM-DD)"),
    date_to: str | None = Query(None, alias="to", description="Inclusive upper bound (YYYY-MM-DD)"),
    category: str | None = Query(None, description="Exact category"),
    region: str | None = Query(None, description="Exact region"),
    tag: str | None = Query(None, description="Tag slug"),
    importance_min: int | None = Query(None, ge=1, le=5, description="Minimum importance"),
    q: str | None = Query(None, description="Case-insensitive keyword"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    sort: EventSort = Query(EventSort.DATE_DESC, description="Sort order"),
) -> DataResponse[EventListResult]:
    filters = EventListFilters(
        event_date=_date_param("date", event_date),
        date_from=_date_param("from", date_from),
        date_to=_date_param("to", date_to),
        category=_text_param(category),
        region=_text_param(region),
        tag=_text_param(tag),
        importance_min=importance_min,
        q=_text_param(q),
        page=page,
        page_size=page_size,
        sort=sort,
    )
    return DataResponse(data=await event_service.list_published_events(filters))


@router.get(
    "/{slug}",
    response_model=DataResponse[EventDetail],
    summary="Get a published event",
    description="Event detail with its cited sources, tags and timelines.",
)
async def get_event(slug: str) -> DataResponse[EventDetail]:
    return DataResponse(data=await event_service.get_published_event(slug))
