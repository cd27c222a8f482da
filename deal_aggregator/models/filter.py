"""
Rejection bookkeeping for the catalog builder.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

REASON_UNRECOVERABLE = "unrecoverable"
REASON_MISSING_FIELDS = "missing_fields"
REASON_NON_NUMERIC_PRICE = "non_numeric_price"
REASON_NOT_DISCOUNTED = "not_discounted"
REASON_PRICE_OUT_OF_RANGE = "price_out_of_range"
REASON_DISCOUNT_OUT_OF_RANGE = "discount_out_of_range"
REASON_EXCLUDED_CATEGORY = "excluded_category"
REASON_DUPLICATE = "duplicate"


@dataclass
class RejectionCounter:
    """Counts dropped records by reason and by store."""

    by_reason: Dict[str, int] = field(default_factory=dict)
    by_store: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.by_reason.values())

    def record(self, reason: str, store: str = "Unknown") -> None:
        self.by_reason[reason] = self.by_reason.get(reason, 0) + 1
        self.by_store[store] = self.by_store.get(store, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "byReason": dict(sorted(self.by_reason.items())),
            "byStore": dict(sorted(self.by_store.items())),
        }
