"""
Seed merge fallback.

When a bulk import cannot reach the live store, its records are merged
into the main seed file instead, so the next demo dataset build serves
them. Records are deduplicated by natural key, last write wins, and a
record replacing an existing one keeps the existing record's position:

- sources:       source_url (trimmed)
- events:        normalised slug (or slugified title)
- event_sources: normalised event slug + "||" + source_url

Merging the same payload twice leaves the file unchanged the second time.

The read-modify-write of the seed file is not locked; concurrent merges
into the same file can lose updates.
"""

import asyncio
import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from finhistory.core.config import settings
from finhistory.core.errors import SeedDataError
from finhistory.core.logging import get_logger
from finhistory.services.slugs import slugify

logger = get_logger(__name__)

SEED_ARRAYS = ("sources", "events", "event_sources")

MODE_MAIN_SEED_NOOP = "main-seed-noop"
MODE_MERGED = "merged-into-main-seed"


# =============================================================================
# Natural Keys
# =============================================================================


def _text(item: dict[str, Any], name: str) -> str:
    value = item.get(name)
    return str(value).strip() if value is not None else ""


def source_key(item: dict[str, Any]) -> str:
    return _text(item, "source_url")


def event_key(item: dict[str, Any]) -> str:
    return slugify(_text(item, "slug") or _text(item, "title"), default="event")


def event_source_key(item: dict[str, Any]) -> str:
    return f"{slugify(_text(item, 'event_slug'), default='event')}||{_text(item, 'source_url')}"


KEY_FUNCTIONS: dict[str, Callable[[dict[str, Any]], str]] = {
    "sources": source_key,
    "events": event_key,
    "event_sources": event_source_key,
}


# =============================================================================
# Pure Merge
# =============================================================================


def _records(payload: dict[str, Any], name: str) -> list[dict[str, Any]]:
    value = payload.get(name)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def summarize(payload: dict[str, Any]) -> dict[str, int]:
    """Length of each seed array (missing arrays count as 0)."""
    return {name: len(_records(payload, name)) for name in SEED_ARRAYS}


def merge_by_key(
    base: Iterable[dict[str, Any]],
    incoming: Iterable[dict[str, Any]],
    key: Callable[[dict[str, Any]], str],
) -> list[dict[str, Any]]:
    """
    Merge two record lists by natural key.

    Example:
        merge_by_key([{"k": 1, "v": "a"}], [{"k": 1, "v": "b"}, {"k": 2}], ...)
        -> [{"k": 1, "v": "b"}, {"k": 2}]
    """
    merged: dict[str, dict[str, Any]] = {}
    for item in base:
        merged[key(item)] = item
    for item in incoming:
        merged[key(item)] = item
    return list(merged.values())


def merge_seed_payloads(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    """Return a new seed document: `base` with `incoming` merged into its three arrays."""
    merged = dict(base)
    for name in SEED_ARRAYS:
        merged[name] = merge_by_key(_records(base, name), _records(incoming, name), KEY_FUNCTIONS[name])
    return merged


# =============================================================================
# File Fallback
# =============================================================================


@dataclass
class SeedMergeReport:
    """Outcome of the merge fallback."""

    mode: str
    target: Path
    from_file: Path | None = None
    stats: dict[str, int] = field(default_factory=dict)
    before: dict[str, int] = field(default_factory=dict)
    after: dict[str, int] = field(default_factory=dict)

    @property
    def delta(self) -> dict[str, int]:
        return {name: self.after.get(name, 0) - self.before.get(name, 0) for name in SEED_ARRAYS}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        if self.mode == MODE_MAIN_SEED_NOOP:
            return {"mode": self.mode, "target": str(self.target), "stats": self.stats}
        return {
            "mode": self.mode,
            "target": str(self.target),
            "from_file": str(self.from_file),
            "before": self.before,
            "after": self.after,
            "delta": self.delta,
        }


def read_seed_document(path: Path) -> dict[str, Any]:
    """Read a seed-shaped JSON object from disk (blocking)."""
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise SeedDataError(
            f"Seed file could not be read: {path}",
            details={"path": str(path), "reason": str(exc)},
        ) from exc
    if not isinstance(document, dict):
        raise SeedDataError(
            f"Seed file must contain a JSON object: {path}",
            details={"path": str(path)},
        )
    return document


def write_seed_document(path: Path, document: dict[str, Any]) -> None:
    """Write a seed document as two-space indented UTF-8 JSON with a trailing newline."""
    path.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


async def apply_seed_merge_fallback(
    file_path: Path,
    payload: dict[str, Any],
    main_seed: Path | None = None,
) -> SeedMergeReport:
    """
    Fallback for an import that could not reach the live store.

    Importing the main seed itself is a no-op (the demo dataset already
    serves it). Any other file is merged into the main seed on disk.
    """
    target = (main_seed or settings.seed_file).resolve()
    source = file_path.resolve()

    if source == target:
        report = SeedMergeReport(mode=MODE_MAIN_SEED_NOOP, target=target, stats=summarize(payload))
        logger.warning("Live store unavailable, main seed import skipped", target=str(target), **report.stats)
        return report

    current = await asyncio.to_thread(read_seed_document, target)
    merged = merge_seed_payloads(current, payload)
    await asyncio.to_thread(write_seed_document, target, merged)

    report = SeedMergeReport(
        mode=MODE_MERGED,
        target=target,
        from_file=source,
        before=summarize(current),
        after=summarize(merged),
    )
    logger.warning(
        "Live store unavailable, merged import into main seed",
        target=str(target),
        from_file=str(source),
        before=report.before,
        after=report.after,
    )
    return report
