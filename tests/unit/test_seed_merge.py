"""Unit tests for the seed merge fallback and the seed file import."""

import json
from pathlib import Path
from typing import Any

import pytest

from finhistory.core.errors import DatabaseNotConfiguredError, SeedDataError
from finhistory.schemas import IngestionImportPayload
from finhistory.services.ingestion import import_seed_file, run_ingestion_import
from finhistory.services.seed_merge import (
    MODE_MAIN_SEED_NOOP,
    MODE_MERGED,
    apply_seed_merge_fallback,
    event_key,
    event_source_key,
    merge_by_key,
    merge_seed_payloads,
    read_seed_document,
    source_key,
    summarize,
)


@pytest.fixture
def incoming() -> dict[str, Any]:
    """A batch with one new and one replacing record per array."""
    return {
        "sources": [
            {"source_name": "Updated Fed Essay", "source_url": " https://example.org/fed/crash-1929 "},
            {"source_name": "BIS Annual Report", "source_url": "https://example.org/bis/1931"},
        ],
        "events": [
            {
                "slug": "Crash of 1929",
                "title": "Crash of 1929 (revised)",
                "event_date": "1929-10-24",
                "region": "United States",
                "category": "Market Crash",
                "summary": "Revised summary.",
                "impact": "Depression.",
                "importance_score": 5,
                "status": "published",
            },
            {
                "title": "Creditanstalt Failure",
                "event_date": "1931-05-11",
                "region": "Austria",
                "category": "Banking Crisis",
                "summary": "Austria's largest bank fails.",
                "impact": "Spread the banking panic across Europe.",
                "importance_score": 4,
                "status": "published",
            },
        ],
        "event_sources": [
            {"event_slug": "crash-of-1929", "source_url": "https://example.org/fed/crash-1929", "relevance_rank": 2},
            {"event_slug": "creditanstalt-failure", "source_url": "https://example.org/bis/1931"},
        ],
    }


# =============================================================================
# Keys and Pure Merge
# =============================================================================


class TestNaturalKeys:
    """Tests for merge keys."""

    def test_source_key_trims(self) -> None:
        assert source_key({"source_url": "  https://a.example  "}) == "https://a.example"

    def test_event_key_normalises_slug_or_title(self) -> None:
        assert event_key({"slug": "Crash of 1929"}) == "crash-of-1929"
        assert event_key({"title": "Black Monday"}) == "black-monday"

    def test_event_source_key(self) -> None:
        item = {"event_slug": "Nixon Shock", "source_url": "https://a.example "}
        assert event_source_key(item) == "nixon-shock||https://a.example"


class TestMergeByKey:
    """Tests for last-wins, first-position merging."""

    def test_replacement_keeps_position(self) -> None:
        base = [{"k": "a", "v": 1}, {"k": "b", "v": 2}]
        incoming = [{"k": "a", "v": 3}, {"k": "c", "v": 4}]
        merged = merge_by_key(base, incoming, key=lambda item: item["k"])
        assert merged == [{"k": "a", "v": 3}, {"k": "b", "v": 2}, {"k": "c", "v": 4}]

    def test_missing_arrays_treated_as_empty(self) -> None:
        merged = merge_seed_payloads({"events": [{"slug": "a"}]}, {})
        assert summarize(merged) == {"sources": 0, "events": 1, "event_sources": 0}

    def test_other_top_level_keys_preserved(self) -> None:
        merged = merge_seed_payloads({"version": 2, "events": []}, {"events": [{"slug": "a"}]})
        assert merged["version"] == 2


# =============================================================================
# File Fallback
# =============================================================================


@pytest.mark.asyncio
class TestApplySeedMergeFallback:
    """Tests for merging into the main seed file."""

    async def test_main_seed_is_noop(self, seed_file: Path, sample_seed: dict[str, Any]) -> None:
        before = seed_file.read_bytes()
        report = await apply_seed_merge_fallback(seed_file, sample_seed, main_seed=seed_file)
        assert report.mode == MODE_MAIN_SEED_NOOP
        assert report.to_dict()["stats"] == {"sources": 4, "events": 8, "event_sources": 8}
        assert seed_file.read_bytes() == before

    async def test_merge_counts(self, seed_file: Path, tmp_path: Path, incoming: dict[str, Any]) -> None:
        other = tmp_path / "batch.json"
        report = await apply_seed_merge_fallback(other, incoming, main_seed=seed_file)

        assert report.mode == MODE_MERGED
        assert report.before == {"sources": 4, "events": 8, "event_sources": 8}
        assert report.after == {"sources": 5, "events": 9, "event_sources": 9}
        assert report.delta == {"sources": 1, "events": 1, "event_sources": 1}

    async def test_merge_writes_formatted_utf8(self, seed_file: Path, tmp_path: Path, incoming: dict[str, Any]) -> None:
        incoming["events"][1]["region"] = "Österreich"
        await apply_seed_merge_fallback(tmp_path / "batch.json", incoming, main_seed=seed_file)

        text = seed_file.read_text(encoding="utf-8")
        assert text.endswith("}\n")
        assert '\n  "sources": [' in text
        assert "Österreich" in text

        document = json.loads(text)
        crash = next(e for e in document["events"] if event_key(e) == "crash-of-1929")
        assert crash["title"] == "Crash of 1929 (revised)"
        assert document["events"].index(crash) == 0

    async def test_merging_twice_is_stable(self, seed_file: Path, tmp_path: Path, incoming: dict[str, Any]) -> None:
        other = tmp_path / "batch.json"
        await apply_seed_merge_fallback(other, incoming, main_seed=seed_file)
        first = seed_file.read_text(encoding="utf-8")

        report = await apply_seed_merge_fallback(other, incoming, main_seed=seed_file)
        assert report.delta == {"sources": 0, "events": 0, "event_sources": 0}
        assert seed_file.read_text(encoding="utf-8") == first

    async def test_unreadable_target(self, tmp_path: Path, incoming: dict[str, Any]) -> None:
        with pytest.raises(SeedDataError):
            await apply_seed_merge_fallback(tmp_path / "batch.json", incoming, main_seed=tmp_path / "missing.json")


# =============================================================================
# Seed File Import
# =============================================================================


@pytest.mark.asyncio
class TestImportSeedFile:
    """Tests for import_seed_file without a live store."""

    async def test_main_seed_noop_when_unconfigured(self, seed_file: Path) -> None:
        report = await import_seed_file(seed_file, main_seed=seed_file)
        assert report["mode"] == MODE_MAIN_SEED_NOOP

    async def test_other_file_merged_when_unconfigured(
        self, seed_file: Path, tmp_path: Path, incoming: dict[str, Any]
    ) -> None:
        other = tmp_path / "batch.json"
        other.write_text(json.dumps(incoming), encoding="utf-8")

        report = await import_seed_file(other, main_seed=seed_file)

        assert report["mode"] == MODE_MERGED
        assert report["from_file"] == str(other.resolve())
        assert summarize(read_seed_document(seed_file))["events"] == 9

    async def test_invalid_file_rejected_before_merge(self, seed_file: Path, tmp_path: Path) -> None:
        other = tmp_path / "empty.json"
        other.write_text("{}", encoding="utf-8")
        before = seed_file.read_bytes()

        with pytest.raises(ValueError):
            await import_seed_file(other, main_seed=seed_file)
        assert seed_file.read_bytes() == before

    async def test_run_import_requires_database(self, incoming: dict[str, Any]) -> None:
        with pytest.raises(DatabaseNotConfiguredError):
            await run_ingestion_import(IngestionImportPayload.model_validate(incoming))
