"""Tests for slug helpers."""

import pytest

from toolforge.services.slug import is_valid_slug, to_slug, unique_slug


class TestToSlug:
    """Test slug conversion."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Orders By Status", "orders-by-status"),
            ("find_orders__by_status", "find-orders-by-status"),
            ("  --Leading and trailing--  ", "leading-and-trailing"),
            ("Top 10 orders!", "top-10-orders"),
            ("a - b", "a-b"),
            ("already-a-slug", "already-a-slug"),
        ],
    )
    def test_to_slug(self, value, expected):
        assert to_slug(value) == expected

    def test_non_ascii_characters_are_dropped(self):
        assert to_slug("café orders") == "caf-orders"

    @pytest.mark.parametrize("space", ["\u00a0", "\u2003", "\t"])
    def test_any_whitespace_becomes_hyphen(self, space):
        assert to_slug(f"orders{space}status") == "orders-status"

    def test_only_punctuation_gives_empty_slug(self):
        assert to_slug("!!!") == ""
        assert not is_valid_slug(to_slug("!!!"))

    @pytest.mark.parametrize("value", ["Orders By Status", "x__y", "Hello, World", "a--b", "ÜBER tool 2"])
    def test_idempotent(self, value):
        once = to_slug(value)
        assert to_slug(once) == once

    @pytest.mark.parametrize("value", ["Orders By Status", "find_orders", "Q3 revenue (EU)", "v2.0 release"])
    def test_non_empty_result_is_valid(self, value):
        slug = to_slug(value)
        assert slug
        assert is_valid_slug(slug)


class TestIsValidSlug:
    """Test slug validation."""

    @pytest.mark.parametrize("value", ["orders", "orders-by-status", "top-10", "a1-b2-c3"])
    def test_valid(self, value):
        assert is_valid_slug(value)

    @pytest.mark.parametrize(
        "value",
        ["", "Orders", "orders_by_status", "-orders", "orders-", "orders--status", "orders status", "orders\n"],
    )
    def test_invalid(self, value):
        assert not is_valid_slug(value)


class TestUniqueSlug:
    """Test suffixing against taken names."""

    def test_free_base_is_kept(self):
        assert unique_slug("orders", ["events"]) == "orders"

    def test_first_free_suffix_is_used(self):
        assert unique_slug("orders", ["orders", "orders-2", "orders-4"]) == "orders-3"
