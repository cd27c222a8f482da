"""Validity filter applying price, discount and category rules to catalog entries."""

import logging
import re
from typing import List, Optional

from ..models.config import ValidityRules
from ..models.deal import CatalogEntry
from ..models.filter import (
    REASON_DISCOUNT_OUT_OF_RANGE,
    REASON_EXCLUDED_CATEGORY,
    REASON_MISSING_FIELDS,
    REASON_NON_NUMERIC_PRICE,
    REASON_NOT_DISCOUNTED,
    REASON_PRICE_OUT_OF_RANGE,
    RejectionCounter,
)
from ..utils.error_handling import RecordRejected

logger = logging.getLogger(__name__)


class PriceFilter:
    """Handles price and discount band checks."""

    def __init__(self, rules: ValidityRules):
        self.rules = rules

    def check_price_band(self, entry: CatalogEntry) -> bool:
        """Check the sale price falls inside the configured band."""
        return self.rules.min_sale_price <= entry.sale_price <= self.rules.max_sale_price

    def check_discount_band(self, entry: CatalogEntry) -> bool:
        """Check the discount percentage falls inside the configured band."""
        discount = entry.discount_percent
        return (
            self.rules.min_discount_percent
            <= discount
            <= self.rules.max_discount_percent
        )


class FilterEngine:
    """Decides whether a sanitized entry belongs in the catalog."""

    def __init__(self, rules: Optional[ValidityRules] = None):
        self.rules = rules or ValidityRules()
        self.price_filter = PriceFilter(self.rules)

        # Whole-word matches only, so "backpacker" does not hit "pack"
        self.exclusion_regexes = [
            re.compile(rf"\b{re.escape(term.strip())}\b", re.IGNORECASE)
            for term in self.rules.excluded_terms
        ]

        logger.info(
            f"FilterEngine initialized with sale_price=[{self.rules.min_sale_price}, "
            f"{self.rules.max_sale_price}], discount=[{self.rules.min_discount_percent}, "
            f"{self.rules.max_discount_percent}], {len(self.exclusion_regexes)} excluded terms"
        )

    def check(self, entry: CatalogEntry) -> None:
        """
        Validate an entry against every rule.

        Raises:
            RecordRejected: With the reason of the first rule that fails.
        """
        if not entry.url or not entry.url.strip() or not entry.title:
            raise RecordRejected(REASON_MISSING_FIELDS)

        if not _is_number(entry.sale_price) or not _is_number(entry.price):
            raise RecordRejected(REASON_NON_NUMERIC_PRICE)

        if not entry.sale_price < entry.price:
            raise RecordRejected(REASON_NOT_DISCOUNTED)

        if not self.price_filter.check_price_band(entry):
            raise RecordRejected(REASON_PRICE_OUT_OF_RANGE)

        if not self.price_filter.check_discount_band(entry):
            raise RecordRejected(REASON_DISCOUNT_OUT_OF_RANGE)

        term = self.excluded_term(entry.title)
        if term is not None:
            raise RecordRejected(REASON_EXCLUDED_CATEGORY)

    def is_valid(self, entry: CatalogEntry) -> bool:
        try:
            self.check(entry)
        except RecordRejected:
            return False
        return True

    def excluded_term(self, title: str) -> Optional[str]:
        """Return the first exclusion term found in the title, if any."""
        for regex in self.exclusion_regexes:
            match = regex.search(title or "")
            if match:
                return match.group(0)
        return None

    def filter_entries(
        self,
        entries: List[CatalogEntry],
        counter: Optional[RejectionCounter] = None,
    ) -> List[CatalogEntry]:
        """Keep valid entries in order, counting each rejection."""
        kept = []
        for entry in entries:
            try:
                self.check(entry)
            except RecordRejected as e:
                logger.debug(f"Rejected '{entry.title}' from {entry.store}: {e.reason}")
                if counter is not None:
                    counter.record(e.reason, entry.store)
                continue
            kept.append(entry)
        return kept


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
