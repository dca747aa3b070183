"""Pytest configuration and shared fixtures."""

import json
from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from finhistory.core.config import settings
from finhistory.main import app
from finhistory.services.demo_store import reset_demo_dataset

SERVICE_TOKEN = "test-service-token"
ADMIN_HEADERS = {"x-role": "admin"}
SERVICE_HEADERS = {"x-service-token": SERVICE_TOKEN}


@pytest.fixture
def sample_seed() -> dict[str, Any]:
    """
    Seed document used by most tests.

    Seven published events (two on 1929-10-24, one on 1945-10-24), one
    draft, four sources and two links that cannot be resolved.
    """
    return {
        "sources": [
            {
                "source_name": "Federal Reserve History: Crash of 1929",
                "source_url": "https://example.org/fed/crash-1929",
                "source_type": "official",
                "publisher": "Federal Reserve",
                "publication_or_snapshot_date": "2013-11-22",
                "access_date": "2025-01-15",
            },
            {
                "source_name": "Federal Reserve History: Lehman Brothers",
                "source_url": "https://example.org/fed/lehman",
                "source_type": "official",
            },
            {
                "source_name": "Gold Window Archive",
                "source_url": "https://example.org/archive/nixon",
                "source_type": "archive",
                "publication_or_snapshot_date": "1971-08-16",
            },
            {
                "source_name": "Newswire Retrospective",
                "source_url": "  https://example.org/news/general  ",
                "source_type": "newswire",
                "publication_or_snapshot_date": "2020-01-01T00:00:00Z",
            },
        ],
        "events": [
            {
                "slug": "crash-of-1929",
                "title": "Crash of 1929",
                "event_date": "1929-10-24",
                "region": "United States",
                "category": "Market Crash",
                "summary": "Panic selling on the New York Stock Exchange.",
                "impact": "Opened the Great Depression.",
                "importance_score": 5,
                "confidence_score": 5,
                "status": "published",
            },
            {
                "slug": "black-thursday-london",
                "title": "Black Thursday in London",
                "event_date": "1929-10-24",
                "region": "United Kingdom",
                "category": "Market Crash",
                "summary": "London follows New York lower.",
                "impact": "Spread the sell-off to Europe.",
                "importance_score": 3,
                "status": "published",
            },
            {
                "slug": "lehman-collapse",
                "title": "Lehman Brothers Collapse",
                "event_date": "2008-09-15",
                "region": "United States",
                "category": "Banking Crisis",
                "summary": "Lehman Brothers files for bankruptcy.",
                "impact": "Froze funding markets worldwide.",
                "importance_score": 5,
                "status": "published",
            },
            {
                "slug": "nixon-shock",
                "title": "Nixon Shock",
                "event_date": "1971-08-15",
                "region": "United States",
                "category": "Monetary Policy",
                "summary": "The dollar's convertibility into GOLD is suspended.",
                "impact": "Ended Bretton Woods.",
                "importance_score": 4,
                "status": "published",
            },
            {
                "slug": "wwii-bretton-woods",
                "title": "Bretton Woods Agreement",
                "event_date": "1944-07-22",
                "region": "Global",
                "category": "Monetary Policy",
                "summary": "A postwar monetary order is agreed.",
                "impact": "Dollar pegged to gold.",
                "importance_score": 4,
                "status": "published",
            },
            {
                "slug": "cold-war-marshall-plan",
                "title": "Marshall Plan Enacted",
                "event_date": "1948-04-03",
                "region": "Europe",
                "category": "Reconstruction",
                "summary": "Reconstruction aid for Western Europe.",
                "impact": "Anchored the European recovery.",
                "importance_score": 3,
                "status": "published",
            },
            {
                "title": "UN Charter Enters into Force",
                "event_date": "1945-10-24",
                "region": "Global",
                "category": "Institutions",
                "summary": "The United Nations is founded.",
                "impact": "Framework for postwar institutions.",
                "importance_score": 3,
                "status": "published",
            },
            {
                "slug": "plaza-accord",
                "title": "Plaza Accord",
                "event_date": "1985-09-22",
                "region": "Global",
                "category": "Currency Policy",
                "summary": "G5 agree to weaken the dollar.",
                "impact": "Draft pending review.",
                "importance_score": 3,
            },
        ],
        "event_sources": [
            {"event_slug": "crash-of-1929", "source_url": "https://example.org/fed/crash-1929"},
            {"event_slug": "crash-of-1929", "source_url": "https://example.org/news/general"},
            {"event_slug": "crash-of-1929", "source_url": "https://example.org/archive/nixon", "relevance_rank": 2},
            {"event_slug": "lehman-collapse", "source_url": "https://example.org/fed/lehman"},
            {
                "event_slug": "Nixon Shock",
                "source_url": "https://example.org/archive/nixon",
                "quote_excerpt": "closing the gold window",
            },
            {"event_slug": "plaza-accord", "source_url": "https://example.org/news/general", "relevance_rank": 3},
            {"event_slug": "missing-event", "source_url": "https://example.org/fed/crash-1929"},
            {"event_slug": "lehman-collapse", "source_url": "https://example.org/missing"},
        ],
    }


@pytest.fixture
def seed_file(tmp_path: Path, sample_seed: dict[str, Any]) -> Path:
    """Write the sample seed to a temporary main seed file."""
    path = tmp_path / "main.seed.json"
    path.write_text(json.dumps(sample_seed, indent=2), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def demo_mode(monkeypatch: pytest.MonkeyPatch, seed_file: Path) -> Generator[None, None, None]:
    """Run every test without a database, against the temporary seed."""
    monkeypatch.setattr(settings, "database_url", None)
    monkeypatch.setattr(settings, "seed_path", str(seed_file))
    monkeypatch.setattr(settings, "service_token", SERVICE_TOKEN)
    reset_demo_dataset()
    yield
    reset_demo_dataset()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a synchronous test client for FastAPI."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def unsafe_client() -> Generator[TestClient, None, None]:
    """Test client returning 500 responses instead of re-raising server errors."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest_asyncio.fixture(scope="function")
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create an asynchronous test client for FastAPI."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
