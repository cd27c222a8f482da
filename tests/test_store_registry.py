"""Unit tests for the store base-URL registry."""

import pytest

from deal_aggregator.components.store_registry import (
    FALLBACK_BASE_URL,
    StoreRegistry,
    normalize_store_id,
)
from deal_aggregator.models.config import StoreConfig


class TestNormalizeStoreId:
    """Test cases for store id normalization."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Luke's Locker", "luke s locker"),
            ("  REI Co-op ", "rei co op"),
            ("ROAD_RUNNER sports", "road runner sports"),
            (None, ""),
        ],
    )
    def test_normalize(self, name, expected):
        assert normalize_store_id(name) == expected


class TestStoreRegistry:
    """Test cases for StoreRegistry."""

    def test_exact_match(self):
        registry = StoreRegistry()

        assert registry.base_url_for("Holabird Sports") == "https://www.holabirdsports.com"
        assert registry.base_url_for("luke's locker") == "https://lukeslocker.com"

    def test_alias_containment(self):
        registry = StoreRegistry()

        assert registry.base_url_for("Holabird Outlet") == "https://www.holabirdsports.com"
        assert registry.base_url_for("REI Co-op") == "https://www.rei.com"
        assert registry.base_url_for("Road Runner") == "https://www.roadrunnersports.com"

    def test_alias_matches_whole_words_only(self):
        registry = StoreRegistry()

        # "rei" must not match inside another word
        assert registry.base_url_for("Direi Shoes") == FALLBACK_BASE_URL

    def test_unknown_store_uses_fallback(self):
        registry = StoreRegistry(fallback_base_url="https://shoes.example.org/")

        assert registry.base_url_for("Somewhere Else") == "https://shoes.example.org"
        assert registry.base_url_for("") == "https://shoes.example.org"
        assert registry.base_url_for(None) == "https://shoes.example.org"

    def test_configured_store_registered(self):
        registry = StoreRegistry(
            [StoreConfig("Running United", "https://rununited.com/", ["rununited"])]
        )

        assert registry.base_url_for("Running United") == "https://rununited.com"
        assert registry.base_url_for("RunUnited") == "https://rununited.com"

    def test_configured_store_overrides_default(self):
        registry = StoreRegistry([StoreConfig("ASICS", "https://www.asics.com/us/en-us")])

        assert registry.base_url_for("ASICS") == "https://www.asics.com/us/en-us"

    def test_without_defaults(self):
        registry = StoreRegistry(include_defaults=False)

        assert registry.base_url_for("Holabird Sports") == FALLBACK_BASE_URL


class TestAbsolutize:
    """Test cases for URL absolutization."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://www.rei.com/product/1", "https://www.rei.com/product/1"),
            ("HTTP://www.rei.com/product/1", "HTTP://www.rei.com/product/1"),
            ("//cdn.rei.com/a.jpg", "https://cdn.rei.com/a.jpg"),
            ("/product/1", "https://www.rei.com/product/1"),
            ("product/1", "https://www.rei.com/product/1"),
            ("  /product/1  ", "https://www.rei.com/product/1"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_absolutize(self, url, expected):
        assert StoreRegistry().absolutize(url, "REI") == expected
