"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from finhistory import __version__
from finhistory.api import (
    admin_router,
    calendar_router,
    events_router,
    ingestion_router,
    sources_router,
    timelines_router,
)
from finhistory.api.errors import register_exception_handlers
from finhistory.core.config import settings
from finhistory.core.logging import bind_context, clear_context, get_logger, setup_logging
from finhistory.db import dispose_engine

logger = get_logger(__name__)

ROUTERS = (
    (events_router, "/events", "Events"),
    (calendar_router, "/calendar", "Calendar"),
    (timelines_router, "/timelines", "Timelines"),
    (sources_router, "/sources", "Sources"),
    (admin_router, "/admin", "Admin"),
    (ingestion_router, "/internal/ingestion", "Ingestion"),
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    setup_logging()
    logger.info("Starting service", mode=_mode(), version=__version__)
    yield
    # Shutdown
    await dispose_engine()


def _mode() -> str:
    return "live" if settings.has_database_config else "demo"


def create_app() -> FastAPI:
    """Application factory for creating the FastAPI instance."""
    app = FastAPI(
        title="Financial History Chronicle API",
        description=(
            "Curated timeline of financial history events, backed by Postgres "
            "or, when no database is reachable, a bundled demo dataset.\n\n"
            "## Features\n"
            "- **Events**: Filter, search and page through published events\n"
            "- **Calendar**: What happened on this day in financial history\n"
            "- **Timelines**: Themed, ordered event collections\n"
            "- **Sources**: Citations behind each event\n"
            "- **Admin**: Curate events, sources, tags and timelines\n"
            "- **Ingestion**: Internal bulk import and job bookkeeping\n"
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid4())
        clear_context()
        bind_context(request_id=request_id, path=request.url.path)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app)

    for router, prefix, tag in ROUTERS:
        app.include_router(router, prefix=f"/api/v1{prefix}", tags=[tag])

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Health check; `mode` tells whether a live store is configured."""
        return {"status": "healthy", "version": __version__, "mode": _mode()}

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "service": "Financial History Chronicle API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# Create the app instance
app = create_app()


def run() -> None:
    """Serve the app with uvicorn using API_HOST, API_PORT and API_RELOAD."""
    import uvicorn

    uvicorn.run(
        "finhistory.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


if __name__ == "__main__":
    run()
