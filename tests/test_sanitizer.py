"""Unit tests for record sanitization."""

import math

import pytest

from deal_aggregator.components.sanitizer import (
    Sanitizer,
    clean_text,
    clean_title,
    looks_like_markup_or_junk,
    remove_style_rules,
    strip_html,
    strip_promotional_prefix,
    to_number,
)
from deal_aggregator.components.store_registry import StoreRegistry
from deal_aggregator.models.deal import CandidateRecord

from conftest import make_payload


def sanitize(**overrides):
    return Sanitizer(StoreRegistry()).sanitize(
        CandidateRecord.from_payload(make_payload(**overrides))
    )


class TestTextCleaning:
    """Test cases for the text cleaning helpers."""

    def test_strip_html(self):
        assert strip_html("<b>Nike</b> Pegasus <i>41</i>") == "Nike Pegasus 41"

    def test_strip_html_plain_text(self):
        assert strip_html("  Hoka   Clifton 9 ") == "Hoka Clifton 9"
        assert strip_html(None) == ""

    def test_remove_style_rule_with_selector(self):
        text = "Hoka Clifton 9 #review-stars-123 .oke-stars{color:red;} Men's"

        assert " ".join(remove_style_rules(text).split()) == "Hoka Clifton 9 Men's"

    def test_remove_nested_style_block(self):
        text = "Saucony Ride 17 @media (max-width: 600px){.oke{display:none}} Sale"

        cleaned = clean_text(text)

        assert "{" not in cleaned
        assert cleaned.startswith("Saucony Ride 17")

    def test_braces_without_declarations_are_kept(self):
        assert remove_style_rules("Pack {2 pairs}") == "Pack {2 pairs}"

    def test_widget_junk_removed(self):
        assert clean_text("ASICS Novablast 4 oke-sr-count-5") == "ASICS Novablast 4"

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Sale Brooks Ghost 16", "Brooks Ghost 16"),
            ("Clearance: Hoka Bondi 8", "Hoka Bondi 8"),
            ("Extra 20% off Clearance Nike Pegasus 41", "Nike Pegasus 41"),
            ("Closeout - Saucony Kinvara 14", "Saucony Kinvara 14"),
            ("Salem Runner", "Salem Runner"),
        ],
    )
    def test_promotional_prefixes(self, raw, expected):
        assert strip_promotional_prefix(raw) == expected

    @pytest.mark.parametrize(
        "text",
        ["", "ab", "#review-stars-1", "a{color:red}", "@media print", ":root", "<div>x</div>"],
    )
    def test_looks_like_markup_or_junk(self, text):
        assert looks_like_markup_or_junk(text) is True

    def test_real_title_is_not_junk(self):
        assert looks_like_markup_or_junk("New Balance 1080v13") is False

    def test_short_text_allowed_with_lower_minimum(self):
        assert looks_like_markup_or_junk("On", min_length=2) is False
        assert clean_text("On", min_length=2) == "On"

    def test_clean_title_of_pure_css_is_empty(self):
        assert clean_title("#review-stars-9 .oke{color:#000;font-size:12px}") == ""


class TestToNumber:
    """Test cases for currency coercion."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("$1,019.99", 1019.99),
            ("USD 20", 20.0),
            ("129.95", 129.95),
            (" $89 ", 89.0),
            ("89 USD", 89.0),
            (74, 74.0),
            (74.5, 74.5),
        ],
    )
    def test_numeric_values(self, value, expected):
        assert to_number(value) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "value", ["", "free", None, True, False, math.nan, math.inf, [], {"a": 1}]
    )
    def test_non_numeric_values(self, value):
        assert to_number(value) is None


class TestSanitizer:
    """Test cases for Sanitizer."""

    def test_clean_record_passes_through(self):
        entry = sanitize()

        assert entry.title == "Brooks Ghost 16"
        assert entry.brand == "Brooks"
        assert entry.model == "Ghost 16"
        assert entry.sale_price == 99.95
        assert entry.price == 140.0
        assert entry.gender == "mens"
        assert entry.shoe_type == "road"

    def test_title_with_leaked_css_is_recovered(self):
        entry = sanitize(
            title="Hoka Clifton 9 #review-stars-123 .oke-stars{color:red;} Men's"
        )

        assert entry.title == "Hoka Clifton 9 Men's"

    def test_empty_title_falls_back_to_brand_and_model(self):
        entry = sanitize(title="<span></span>")

        assert entry.title == "Brooks Ghost 16"

    def test_unknown_brand_not_used_in_fallback_title(self):
        entry = sanitize(title="", brand=None, model="Clifton 9")

        assert entry.brand == "Unknown"
        assert entry.title == "Clifton 9"

    def test_unrecoverable_record_rejected(self):
        assert sanitize(title="{color:red}", brand="", model="") is None

    def test_none_record_rejected(self):
        assert Sanitizer().sanitize(None) is None

    def test_short_brand_survives(self):
        entry = sanitize(brand="On", model="Cloudmonster", title="On Cloudmonster")

        assert entry.brand == "On"

    def test_markup_brand_becomes_unknown(self):
        entry = sanitize(brand="#review-stars-5")

        assert entry.brand == "Unknown"

    def test_missing_model_is_empty(self):
        assert sanitize(model=None).model == ""

    def test_relative_url_resolved_against_store(self):
        entry = sanitize(url="/products/ghost-16", image="images/ghost.jpg")

        assert entry.url == "https://www.holabirdsports.com/products/ghost-16"
        assert entry.image == "https://www.holabirdsports.com/images/ghost.jpg"

    def test_protocol_relative_url(self):
        entry = sanitize(image="//cdn.shopify.com/ghost.jpg")

        assert entry.image == "https://cdn.shopify.com/ghost.jpg"

    def test_unknown_store_uses_fallback(self):
        entry = sanitize(store="Tiny Running Shop", url="p/1")

        assert entry.url == "https://example.com/p/1"

    def test_blank_image_is_none(self):
        assert sanitize(image="  ").image is None

    def test_defaults_for_missing_attributes(self):
        entry = sanitize(store=None, gender=None, shoeType=42)

        assert entry.store == "Unknown"
        assert entry.gender == "unknown"
        assert entry.shoe_type == "unknown"

    def test_currency_strings_coerced(self):
        entry = sanitize(salePrice="$89.99", price="USD 120")

        assert entry.sale_price == 89.99
        assert entry.price == 120.0

    def test_non_numeric_prices_become_none(self):
        entry = sanitize(salePrice="call for price", price=True)

        assert entry.sale_price is None
        assert entry.price is None
