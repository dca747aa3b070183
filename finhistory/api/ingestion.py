"""Internal ingestion endpoints, guarded by the shared service token."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from finhistory.api.deps import require_service_token
from finhistory.schemas import (
    DataResponse,
    IngestionImportPayload,
    IngestionImportResult,
    IngestionJobCreate,
    IngestionJobRecord,
    IngestionJobUpdate,
)
from finhistory.services import ingestion as ingestion_service

router = APIRouter(dependencies=[Depends(require_service_token)])


@router.post(
    "/jobs",
    response_model=DataResponse[IngestionJobRecord],
    status_code=status.HTTP_201_CREATED,
    summary="Register an ingestion job",
)
async def create_job(payload: IngestionJobCreate) -> DataResponse[IngestionJobRecord]:
    return DataResponse(data=await ingestion_service.create_job(payload))


@router.get(
    "/jobs/{job_id}",
    response_model=DataResponse[IngestionJobRecord],
    summary="Get an ingestion job",
)
async def get_job(job_id: UUID) -> DataResponse[IngestionJobRecord]:
    return DataResponse(data=await ingestion_service.get_job(job_id))


@router.patch(
    "/jobs/{job_id}",
    response_model=DataResponse[IngestionJobRecord],
    summary="Report ingestion job progress",
)
async def update_job(job_id: UUID, payload: IngestionJobUpdate) -> DataResponse[IngestionJobRecord]:
    return DataResponse(data=await ingestion_service.update_job(job_id, payload))


@router.post(
    "/import",
    response_model=DataResponse[IngestionImportResult],
    summary="Bulk upsert sources, events and links",
    description=(
        "Upserts by natural key in one transaction. Unresolvable links are skipped "
        "and listed in `errors`; a failed batch is rolled back and reported."
    ),
)
async def import_batch(payload: IngestionImportPayload) -> DataResponse[IngestionImportResult]:
    return DataResponse(data=await ingestion_service.run_ingestion_import(payload))
