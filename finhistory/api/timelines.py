"""Public timeline endpoints."""

from fastapi import APIRouter

from finhistory.schemas import DataResponse, TimelineDetail, TimelineListResult
from finhistory.services import timelines as timeline_service

router = APIRouter()


@router.get(
    "",
    response_model=DataResponse[TimelineListResult],
    summary="List timelines",
)
async def list_timelines() -> DataResponse[TimelineListResult]:
    items = await timeline_service.list_timelines()
    return DataResponse(data=TimelineListResult(total=len(items), items=items))


@router.get(
    "/{slug}",
    response_model=DataResponse[TimelineDetail],
    summary="Get a timeline",
    description="Timeline with its published events in sequence order.",
)
async def get_timeline(slug: str) -> DataResponse[TimelineDetail]:
    return DataResponse(data=await timeline_service.get_timeline(slug))
