"""Unit tests for the FilterEngine and PriceFilter components."""

import pytest

from deal_aggregator.components.filter_engine import FilterEngine, PriceFilter
from deal_aggregator.models.config import ValidityRules
from deal_aggregator.models.filter import RejectionCounter
from deal_aggregator.utils.error_handling import RecordRejected

from conftest import make_entry


def rejection_reason(engine, entry):
    with pytest.raises(RecordRejected) as exc_info:
        engine.check(entry)
    return exc_info.value.reason


class TestPriceFilter:
    """Test cases for PriceFilter class."""

    def test_price_band(self):
        price_filter = PriceFilter(ValidityRules())

        assert price_filter.check_price_band(make_entry(sale_price=10.0, price=20.0))
        assert price_filter.check_price_band(make_entry(sale_price=1000.0, price=1200.0))
        assert not price_filter.check_price_band(make_entry(sale_price=9.99, price=20.0))
        assert not price_filter.check_price_band(
            make_entry(sale_price=1000.01, price=1200.0)
        )

    def test_discount_band(self):
        price_filter = PriceFilter(ValidityRules())

        assert price_filter.check_discount_band(make_entry(sale_price=95.0, price=100.0))
        assert price_filter.check_discount_band(make_entry(sale_price=10.0, price=100.0))
        assert not price_filter.check_discount_band(
            make_entry(sale_price=96.0, price=100.0)
        )
        assert not price_filter.check_discount_band(
            make_entry(sale_price=10.0, price=101.0)
        )


class TestFilterEngine:
    """Test cases for FilterEngine class."""

    def test_valid_entry(self, sample_entry):
        engine = FilterEngine()

        assert engine.is_valid(sample_entry) is True
        engine.check(sample_entry)

    def test_tiny_discount_rejected(self):
        """$19.99 against $20.00 is a 0.05% discount."""
        engine = FilterEngine()
        entry = make_entry(sale_price=19.99, price=20.00)

        assert engine.is_valid(entry) is False
        assert rejection_reason(engine, entry) == "discount_out_of_range"

    def test_missing_url(self):
        assert rejection_reason(FilterEngine(), make_entry(url="  ")) == "missing_fields"

    def test_missing_title(self):
        assert rejection_reason(FilterEngine(), make_entry(title="")) == "missing_fields"

    def test_non_numeric_price(self):
        engine = FilterEngine()

        assert rejection_reason(engine, make_entry(price=None)) == "non_numeric_price"
        assert rejection_reason(engine, make_entry(sale_price=None)) == "non_numeric_price"

    def test_not_discounted(self):
        engine = FilterEngine()

        assert rejection_reason(engine, make_entry(sale_price=140.0)) == "not_discounted"
        assert (
            rejection_reason(engine, make_entry(sale_price=150.0, price=140.0))
            == "not_discounted"
        )

    def test_price_out_of_range(self):
        engine = FilterEngine()

        assert (
            rejection_reason(engine, make_entry(sale_price=5.0, price=10.0))
            == "price_out_of_range"
        )
        assert (
            rejection_reason(engine, make_entry(sale_price=1200.0, price=2000.0))
            == "price_out_of_range"
        )

    def test_excessive_discount(self):
        entry = make_entry(sale_price=10.0, price=250.0)

        assert rejection_reason(FilterEngine(), entry) == "discount_out_of_range"

    @pytest.mark.parametrize(
        "title",
        [
            "Balega Hidden Comfort Running Socks",
            "Nike Pegasus 41 Kids",
            "Brooks Run Visor Cap",
            "Hoka Clifton 9 - Out of Stock",
            "Saucony Compression Sleeve Set",
            "Salomon Trail Running VEST 5",
        ],
    )
    def test_excluded_categories(self, title):
        entry = make_entry(title=title)

        assert rejection_reason(FilterEngine(), entry) == "excluded_category"

    @pytest.mark.parametrize(
        "title",
        [
            "Hoka Speedgoat 5 Backpacker Edition",
            "Brooks Caldera 7",
            "Saucony Endorphin Speed 4",
        ],
    )
    def test_exclusion_is_whole_word(self, title):
        assert FilterEngine().is_valid(make_entry(title=title)) is True

    def test_excluded_term_reports_match(self):
        assert FilterEngine().excluded_term("Trail Gloves Pro") == "Gloves"
        assert FilterEngine().excluded_term("Hoka Mach 6") is None

    def test_custom_rules(self):
        engine = FilterEngine(
            ValidityRules(min_discount_percent=30, excluded_terms=["spikes"])
        )

        # 28.6% off is below the tightened band
        assert engine.is_valid(make_entry()) is False
        assert engine.is_valid(make_entry(sale_price=70.0)) is True
        assert engine.is_valid(make_entry(sale_price=70.0, title="Nike Zoom Spikes")) is False
        # Default terms no longer apply
        assert engine.is_valid(make_entry(sale_price=70.0, title="Pegasus Kids")) is True

    def test_filter_entries_counts_rejections(self):
        engine = FilterEngine()
        counter = RejectionCounter()
        entries = [
            make_entry(url="https://a.com/1"),
            make_entry(url="https://a.com/2", sale_price=19.99, price=20.0),
            make_entry(url="https://a.com/3", title="Running Socks", store="REI"),
            make_entry(url="https://a.com/4"),
        ]

        kept = engine.filter_entries(entries, counter)

        assert [e.url for e in kept] == ["https://a.com/1", "https://a.com/4"]
        assert counter.by_reason == {"discount_out_of_range": 1, "excluded_category": 1}
        assert counter.by_store == {"Holabird Sports": 1, "REI": 1}
