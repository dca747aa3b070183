"""Tag admin writes (live-only). Tags are read through event queries."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert

from finhistory.core.errors import NotFoundError
from finhistory.core.logging import get_logger
from finhistory.db.models import EventTag, Tag
from finhistory.schemas.tags import EventTagLink, TagCreate, TagRecord
from finhistory.services.dual_path import write_session
from finhistory.services.slugs import slugify

logger = get_logger(__name__)


async def create_tag(payload: TagCreate) -> TagRecord:
    """Create a tag; the slug defaults to the slugified name."""
    slug = payload.slug or slugify(payload.name, default="tag")
    async with write_session(conflict_message="tag name or slug already exists") as db:
        tag = Tag(name=payload.name, slug=slug)
        db.add(tag)
        await db.flush()
        await db.refresh(tag)
        record = TagRecord.model_validate(tag)

    logger.info("Tag created", tag_id=str(record.id), slug=record.slug)
    return record


async def attach_tag(event_id: UUID, tag_id: UUID) -> EventTagLink:
    """Tag an event. Attaching an existing pair is a no-op."""
    async with write_session(not_found_message="Event or tag not found") as db:
        await db.execute(
            insert(EventTag)
            .values(event_id=event_id, tag_id=tag_id)
            .on_conflict_do_nothing(index_elements=[EventTag.event_id, EventTag.tag_id])
        )
        link = (
            await db.execute(
                select(EventTag).where(EventTag.event_id == event_id, EventTag.tag_id == tag_id)
            )
        ).scalar_one()
        result = EventTagLink.model_validate(link)

    logger.info("Tag attached", event_id=str(event_id), tag_id=str(tag_id))
    return result


async def detach_tag(event_id: UUID, tag_id: UUID) -> EventTagLink:
    async with write_session() as db:
        row = (
            await db.execute(
                delete(EventTag)
                .where(EventTag.event_id == event_id, EventTag.tag_id == tag_id)
                .returning(EventTag.event_id, EventTag.tag_id)
            )
        ).one_or_none()
        if row is None:
            raise NotFoundError(
                "Event/tag link not found",
                details={"event_id": str(event_id), "tag_id": str(tag_id)},
            )

    logger.info("Tag detached", event_id=str(event_id), tag_id=str(tag_id))
    return EventTagLink(event_id=row.event_id, tag_id=row.tag_id)
