"""
Admin endpoints for curating events, sources, tags and timelines.

Every route requires an `x-role` header of admin or editor and writes to
the live store only; without one they answer 503.
"""

from uuid import UUID

from fastapi import APIRouter, Body, Depends, status

from finhistory.api.deps import require_admin
from finhistory.schemas import (
    DataResponse,
    EventCreate,
    EventRecord,
    EventSourceLink,
    EventTagLink,
    EventUpdate,
    SequenceInput,
    SourceAttach,
    SourceCreate,
    SourceRecord,
    TagCreate,
    TagRecord,
    TimelineCreate,
    TimelineEventLink,
    TimelineRecord,
)
from finhistory.services import events as event_service
from finhistory.services import sources as source_service
from finhistory.services import tags as tag_service
from finhistory.services import timelines as timeline_service

router = APIRouter(dependencies=[Depends(require_admin)])


# =============================================================================
# Events
# =============================================================================


@router.post(
    "/events",
    response_model=DataResponse[EventRecord],
    status_code=status.HTTP_201_CREATED,
    summary="Create a draft event",
)
async def create_event(payload: EventCreate) -> DataResponse[EventRecord]:
    return DataResponse(data=await event_service.create_event(payload))


@router.patch(
    "/events/{event_id}",
    response_model=DataResponse[EventRecord],
    summary="Update an event",
)
async def update_event(event_id: UUID, payload: EventUpdate) -> DataResponse[EventRecord]:
    return DataResponse(data=await event_service.update_event(event_id, payload))


@router.post(
    "/events/{event_id}/publish",
    response_model=DataResponse[EventRecord],
    summary="Publish an event",
    description="Sets status to published; published_at is kept if already set.",
)
async def publish_event(event_id: UUID) -> DataResponse[EventRecord]:
    return DataResponse(data=await event_service.publish_event(event_id))


@router.post(
    "/events/{event_id}/archive",
    response_model=DataResponse[EventRecord],
    summary="Archive an event",
)
async def archive_event(event_id: UUID) -> DataResponse[EventRecord]:
    return DataResponse(data=await event_service.archive_event(event_id))


@router.post(
    "/events/{event_id}/sources/{source_id}",
    response_model=DataResponse[EventSourceLink],
    summary="Attach a source to an event",
)
async def attach_source(
    event_id: UUID,
    source_id: UUID,
    payload: SourceAttach | None = Body(default=None),
) -> DataResponse[EventSourceLink]:
    link = await source_service.attach_source(event_id, source_id, payload or SourceAttach())
    return DataResponse(data=link)


@router.delete(
    "/events/{event_id}/sources/{source_id}",
    response_model=DataResponse[EventSourceLink],
    summary="Detach a source from an event",
)
async def detach_source(event_id: UUID, source_id: UUID) -> DataResponse[EventSourceLink]:
    return DataResponse(data=await source_service.detach_source(event_id, source_id))


@router.post(
    "/events/{event_id}/tags/{tag_id}",
    response_model=DataResponse[EventTagLink],
    summary="Tag an event",
)
async def attach_tag(event_id: UUID, tag_id: UUID) -> DataResponse[EventTagLink]:
    return DataResponse(data=await tag_service.attach_tag(event_id, tag_id))


@router.delete(
    "/events/{event_id}/tags/{tag_id}",
    response_model=DataResponse[EventTagLink],
    summary="Untag an event",
)
async def detach_tag(event_id: UUID, tag_id: UUID) -> DataResponse[EventTagLink]:
    return DataResponse(data=await tag_service.detach_tag(event_id, tag_id))


# =============================================================================
# Sources and Tags
# =============================================================================


@router.post(
    "/sources",
    response_model=DataResponse[SourceRecord],
    status_code=status.HTTP_201_CREATED,
    summary="Create a source",
)
async def create_source(payload: SourceCreate) -> DataResponse[SourceRecord]:
    return DataResponse(data=await source_service.create_source(payload))


@router.post(
    "/tags",
    response_model=DataResponse[TagRecord],
    status_code=status.HTTP_201_CREATED,
    summary="Create a tag",
)
async def create_tag(payload: TagCreate) -> DataResponse[TagRecord]:
    return DataResponse(data=await tag_service.create_tag(payload))


# =============================================================================
# Timelines
# =============================================================================


@router.post(
    "/timelines",
    response_model=DataResponse[TimelineRecord],
    status_code=status.HTTP_201_CREATED,
    summary="Create a timeline",
)
async def create_timeline(payload: TimelineCreate) -> DataResponse[TimelineRecord]:
    return DataResponse(data=await timeline_service.create_timeline(payload))


@router.post(
    "/timelines/{timeline_id}/events/{event_id}",
    response_model=DataResponse[TimelineEventLink],
    summary="Add an event to a timeline",
)
async def attach_timeline_event(
    timeline_id: UUID,
    event_id: UUID,
    payload: SequenceInput,
) -> DataResponse[TimelineEventLink]:
    link = await timeline_service.attach_event_to_timeline(timeline_id, event_id, payload.sequence_no)
    return DataResponse(data=link)


@router.patch(
    "/timelines/{timeline_id}/events/{event_id}",
    response_model=DataResponse[TimelineEventLink],
    summary="Move an event within a timeline",
)
async def move_timeline_event(
    timeline_id: UUID,
    event_id: UUID,
    payload: SequenceInput,
) -> DataResponse[TimelineEventLink]:
    link = await timeline_service.update_timeline_event_sequence(timeline_id, event_id, payload.sequence_no)
    return DataResponse(data=link)


@router.delete(
    "/timelines/{timeline_id}/events/{event_id}",
    response_model=DataResponse[TimelineEventLink],
    summary="Remove an event from a timeline",
)
async def detach_timeline_event(timeline_id: UUID, event_id: UUID) -> DataResponse[TimelineEventLink]:
    return DataResponse(data=await timeline_service.detach_event_from_timeline(timeline_id, event_id))
