"""Unit tests for slug helpers and stable identifiers."""

import re

import pytest

from finhistory.services.slugs import choose_available_slug, is_valid_slug, slugify, stable_uuid


class TestSlugify:
    """Tests for slug normalisation."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Crash of 1929", "crash-of-1929"),
            ("  Black   Monday!! ", "black-monday"),
            ("Crédit Anstalt Failure", "credit-anstalt-failure"),
            ("--already-a-slug--", "already-a-slug"),
            ("S&P 500 / Dow", "s-p-500-dow"),
        ],
    )
    def test_normalises(self, value: str, expected: str) -> None:
        """Test free text becomes a lowercase hyphenated slug."""
        assert slugify(value) == expected

    def test_empty_result_uses_default(self) -> None:
        """Test text without alphanumerics falls back to the default."""
        assert slugify("!!!", default="tag") == "tag"
        assert slugify("", default="event") == "event"

    def test_output_is_valid(self) -> None:
        """Test slugify output always passes validation."""
        for value in ("Ünïcödé Crisis", "a--b", "1997 Asian Crisis"):
            assert is_valid_slug(slugify(value))


class TestIsValidSlug:
    """Tests for slug validation."""

    @pytest.mark.parametrize("value", ["crash-of-1929", "a", "2008"])
    def test_valid(self, value: str) -> None:
        assert is_valid_slug(value)

    @pytest.mark.parametrize("value", ["", "Crash", "a--b", "-a", "a-", "a_b", "a b"])
    def test_invalid(self, value: str) -> None:
        assert not is_valid_slug(value)


class TestStableUuid:
    """Tests for deterministic identifiers."""

    def test_deterministic(self) -> None:
        """Test the same seed always yields the same id."""
        assert stable_uuid("event:crash-of-1929") == stable_uuid("event:crash-of-1929")

    def test_distinct_per_kind(self) -> None:
        """Test the kind prefix separates namespaces."""
        assert stable_uuid("event:crisis") != stable_uuid("tag:crisis")

    def test_version_four_shape(self) -> None:
        """Test the layout hhhhhhhh-hhhh-4hhh-ahhh-hhhhhhhhhhhh."""
        value = str(stable_uuid("source:https://example.org"))
        assert re.fullmatch(r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-a[0-9a-f]{3}-[0-9a-f]{12}", value)


class TestChooseAvailableSlug:
    """Tests for collision suffixing."""

    def test_free_base_kept(self) -> None:
        assert choose_available_slug("crash-of-1929", []) == "crash-of-1929"

    def test_lowest_unused_suffix(self) -> None:
        """Test existing base and -2 resolve to -3."""
        existing = {"crash-of-1929", "crash-of-1929-2"}
        assert choose_available_slug("crash-of-1929", existing) == "crash-of-1929-3"

    def test_gap_is_filled(self) -> None:
        """Test a missing -2 is reused before -4."""
        existing = ["panic", "panic-3"]
        assert choose_available_slug("panic", existing) == "panic-2"
