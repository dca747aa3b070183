"""API routers for the Financial History Chronicle service."""

from finhistory.api.admin import router as admin_router
from finhistory.api.calendar import router as calendar_router
from finhistory.api.events import router as events_router
from finhistory.api.ingestion import router as ingestion_router
from finhistory.api.sources import router as sources_router
from finhistory.api.timelines import router as timelines_router

__all__ = [
    "admin_router",
    "calendar_router",
    "events_router",
    "ingestion_router",
    "sources_router",
    "timelines_router",
]
