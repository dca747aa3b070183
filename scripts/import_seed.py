#!/usr/bin/env python3
"""
Import a seed-shaped JSON file into the live store.

When the live store is unconfigured or unreachable the file is merged
into the main seed instead (a no-op when the file *is* the main seed),
so the demo dataset picks the records up on its next build.

Usage:
    # Import the main seed
    python scripts/import_seed.py

    # Import another file (merged into the main seed if the store is down)
    python scripts/import_seed.py --file seeds/extra.seed.json

    # Validate and count records without touching the store or the seed
    python scripts/import_seed.py --file seeds/extra.seed.json --dry-run

Requirements:
    - DATABASE_URL configured in .env for a live import
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pydantic import ValidationError  # noqa: E402

from finhistory.core.config import settings  # noqa: E402
from finhistory.core.errors import FinHistoryError  # noqa: E402
from finhistory.core.logging import get_logger, setup_logging  # noqa: E402
from finhistory.db import dispose_engine  # noqa: E402
from finhistory.schemas import IngestionImportPayload  # noqa: E402
from finhistory.services.ingestion import import_seed_file  # noqa: E402
from finhistory.services.seed_merge import read_seed_document, summarize  # noqa: E402

logger = get_logger(__name__)


def dry_run(path: Path) -> dict:
    """Validate the file and report its record counts."""
    document = read_seed_document(path)
    IngestionImportPayload.model_validate(document)
    return {"mode": "dry-run", "file": str(path), "stats": summarize(document)}


async def run(path: Path) -> dict:
    try:
        return await import_seed_file(path)
    finally:
        await dispose_engine()


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Import a seed file into the live store, or merge it into the main seed",
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=settings.seed_file,
        help="Seed-shaped JSON file (default: the main seed)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and count records only",
    )
    args = parser.parse_args()

    setup_logging()
    path = args.file.resolve()

    try:
        report = dry_run(path) if args.dry_run else asyncio.run(run(path))
    except (FinHistoryError, ValidationError) as e:
        logger.error("Seed import failed", file=str(path), error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(report, indent=2, ensure_ascii=False))
    result = report.get("result") or {}
    return 1 if result.get("rolled_back") else 0


if __name__ == "__main__":
    sys.exit(main())
