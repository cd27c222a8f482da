"""
Catalog building service.

Runs the raw union of collector records through sanitization, validity
filtering and deduplication, and orders the survivors for publication.
"""

import random
from typing import Any, List, Optional, Tuple

from ..components.deduplicator import deduplicate
from ..components.filter_engine import FilterEngine
from ..components.sanitizer import Sanitizer
from ..models.deal import UNKNOWN_STORE, CandidateRecord, CatalogEntry
from ..models.filter import REASON_UNRECOVERABLE, RejectionCounter
from ..utils.logging import get_logger


def _record_store(raw: Any) -> str:
    if isinstance(raw, dict) and isinstance(raw.get("store"), str):
        return raw["store"].strip() or UNKNOWN_STORE
    return UNKNOWN_STORE


def order_catalog(
    entries: List[CatalogEntry], rng: Optional[random.Random] = None
) -> List[CatalogEntry]:
    """
    Shuffle once, then stable-sort by discount percent descending.

    The shuffle only decides the order among entries with equal discounts,
    so no collector is systematically listed first.
    """
    ordered = list(entries)
    (rng or random.Random()).shuffle(ordered)
    ordered.sort(key=lambda entry: entry.discount_percent, reverse=True)
    return ordered


class CatalogBuilder:
    """Sanitize, filter and deduplicate raw collector records."""

    def __init__(self, sanitizer: Sanitizer, filter_engine: FilterEngine):
        self.sanitizer = sanitizer
        self.filter_engine = filter_engine
        self.logger = get_logger("catalog.builder")

    def sanitize_all(
        self, raw_records: List[Any], counter: RejectionCounter
    ) -> List[CatalogEntry]:
        sanitized = []
        for raw in raw_records:
            entry = self.sanitizer.sanitize(CandidateRecord.from_payload(raw))
            if entry is None:
                counter.record(REASON_UNRECOVERABLE, _record_store(raw))
                continue
            sanitized.append(entry)
        return sanitized

    def build(self, raw_records: List[Any]) -> Tuple[List[CatalogEntry], RejectionCounter]:
        """
        Turn raw records into catalog entries.

        Args:
            raw_records: Union of every source's records, in source order

        Returns:
            Tuple of (entries in input order, rejection counters)
        """
        counter = RejectionCounter()

        sanitized = self.sanitize_all(raw_records, counter)
        valid = self.filter_engine.filter_entries(sanitized, counter)
        unique = deduplicate(valid, counter)

        self.logger.info(
            f"Built catalog of {len(unique)} entries from {len(raw_records)} records",
            extra={
                "raw": len(raw_records),
                "sanitized": len(sanitized),
                "valid": len(valid),
                "unique": len(unique),
                "rejected": counter.total,
            },
        )
        return unique, counter
