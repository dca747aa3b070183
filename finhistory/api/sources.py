"""Public source endpoints."""

from uuid import UUID

from fastapi import APIRouter

from finhistory.schemas import DataResponse, SourceDetail
from finhistory.services import sources as source_service

router = APIRouter()


@router.get(
    "/{source_id}",
    response_model=DataResponse[SourceDetail],
    summary="Get a source",
    description="Source metadata with the published events citing it.",
)
async def get_source(source_id: UUID) -> DataResponse[SourceDetail]:
    return DataResponse(data=await source_service.get_source(source_id))
