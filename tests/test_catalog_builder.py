"""Tests for the catalog building service."""

import random

from deal_aggregator.components.filter_engine import FilterEngine
from deal_aggregator.components.sanitizer import Sanitizer
from deal_aggregator.components.store_registry import StoreRegistry
from deal_aggregator.services.catalog_builder import CatalogBuilder, order_catalog

from conftest import make_entry, make_payload


def builder():
    return CatalogBuilder(Sanitizer(StoreRegistry()), FilterEngine())


def mixed_records():
    return [
        make_payload(),
        make_payload(title="Brooks Ghost 16 (again)"),
        make_payload(url="https://a.com/tiny", salePrice=19.99, price=20.0),
        make_payload(url="https://a.com/socks", title="Balega Running Socks"),
        make_payload(title="{color:red}", brand="", model="", store="REI"),
        "not a record",
        make_payload(url="https://a.com/half", salePrice=70.0, price=140.0),
    ]


class TestCatalogBuilder:
    """Test cases for CatalogBuilder."""

    def test_build_counts_every_rejection(self):
        entries, counter = builder().build(mixed_records())

        assert [e.url for e in entries] == [
            "https://www.holabirdsports.com/products/ghost-16",
            "https://a.com/half",
        ]
        assert counter.by_reason == {
            "unrecoverable": 2,
            "discount_out_of_range": 1,
            "excluded_category": 1,
            "duplicate": 1,
        }
        assert counter.by_store == {"REI": 1, "Unknown": 1, "Holabird Sports": 3}
        assert counter.to_dict()["total"] == 5

    def test_legacy_price_naming(self):
        legacy = {
            "title": "Hoka Clifton 9",
            "brand": "Hoka",
            "model": "Clifton 9",
            "price": 109.99,
            "originalPrice": 145.0,
            "store": "Running Warehouse",
            "url": "/p/clifton-9",
        }

        entries, _ = builder().build([legacy])

        assert entries[0].sale_price == 109.99
        assert entries[0].price == 145.0
        assert entries[0].url == "https://www.runningwarehouse.com/p/clifton-9"

    def test_empty_input(self):
        entries, counter = builder().build([])

        assert entries == []
        assert counter.total == 0

    def test_currency_strings_with_tiny_discount_rejected(self):
        record = make_payload(
            title="Brand Shoe", brand="Brand", model="Shoe",
            salePrice="$19.99", price="$20.00",
        )

        entries, counter = builder().build([record])

        assert entries == []
        assert counter.by_reason == {"discount_out_of_range": 1}

    def test_rebuild_is_idempotent(self):
        first, _ = builder().build(mixed_records())
        second, _ = builder().build(mixed_records())

        assert order_catalog(first, random.Random(42)) == order_catalog(
            second, random.Random(42)
        )


class TestOrderCatalog:
    """Test cases for catalog ordering."""

    def test_sorted_by_discount_descending(self):
        entries = [
            make_entry(url="https://a.com/1", sale_price=90.0, price=100.0),
            make_entry(url="https://a.com/2", sale_price=40.0, price=100.0),
            make_entry(url="https://a.com/3", sale_price=70.0, price=100.0),
        ]

        ordered = order_catalog(entries, random.Random(1))

        assert [e.url for e in ordered] == [
            "https://a.com/2",
            "https://a.com/3",
            "https://a.com/1",
        ]

    def test_ties_keep_every_entry(self):
        entries = [make_entry(url=f"https://a.com/{i}") for i in range(10)]

        ordered = order_catalog(entries)

        assert sorted(e.url for e in ordered) == sorted(e.url for e in entries)

    def test_input_not_mutated(self):
        entries = [make_entry(url=f"https://a.com/{i}") for i in range(5)]
        original = list(entries)

        order_catalog(entries, random.Random(3))

        assert entries == original
