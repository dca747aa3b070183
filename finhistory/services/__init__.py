"""
Services package - business logic for the chronicle.

This package contains:
- Availability classifier deciding when the live store is unreachable
- Demo dataset built from the seed file
- Dual-path readers (live store or demo dataset) for events, sources, timelines
- Live-only admin writes and ingestion (bulk import, seed merge fallback)

Modules are imported directly (``from finhistory.services.events import ...``);
the schemas package depends on ``finhistory.services.slugs``, so nothing is
re-exported here.
"""
