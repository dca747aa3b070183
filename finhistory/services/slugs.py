"""
Slug normalisation, validation, stable identifiers and collision suffixing.

These helpers are pure and shared by the demo dataset builder, the request
schemas, the import path and the seed merge, so every path agrees on what
a record's natural key is.
"""

import hashlib
import re
import unicodedata
import uuid
from collections.abc import Iterable

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str, default: str = "record") -> str:
    """
    Normalise free text into a slug.

    Unicode-decompose, strip combining marks, lowercase, collapse every run
    of non-alphanumerics to one hyphen and trim hyphens. An empty result
    falls back to `default` ("event", "tag", "timeline", ...).

    Examples:
        slugify("Crash of 1929")        -> "crash-of-1929"
        slugify("Crédit Anstalt  Fail") -> "credit-anstalt-fail"
        slugify("!!!", default="tag")   -> "tag"
    """
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    normalized = _NON_ALNUM.sub("-", stripped.lower()).strip("-")
    return normalized or default


def is_valid_slug(value: str) -> bool:
    """Check a slug is lowercase alphanumeric words joined by single hyphens."""
    return bool(SLUG_PATTERN.match(value))


def stable_uuid(seed: str) -> uuid.UUID:
    """
    Derive a deterministic, version-4-shaped UUID from a seed string.

    The SHA-256 hex digest is laid out as
    ``hhhhhhhh-hhhh-4hhh-ahhh-hhhhhhhhhhhh``; the same seed always yields the
    same identifier, across processes and restarts.

    Seeds are namespaced by kind: ``source:<url>``, ``event:<slug>``,
    ``tag:<slug>``, ``timeline:<slug>``.
    """
    h = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    return uuid.UUID(f"{h[0:8]}-{h[8:12]}-4{h[13:16]}-a{h[17:20]}-{h[20:32]}")


def choose_available_slug(base: str, existing: Iterable[str]) -> str:
    """
    Pick `base` if free, else the smallest unused ``base-N`` for N >= 2.

    Example:
        choose_available_slug("crash-of-1929", {"crash-of-1929", "crash-of-1929-2"})
        -> "crash-of-1929-3"
    """
    taken = set(existing)
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"
