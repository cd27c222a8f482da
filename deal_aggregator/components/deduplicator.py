"""
Removal of repeated listings from the merged catalog.
"""

import logging
from typing import List, Optional, Set, Tuple

from ..models.deal import CatalogEntry
from ..models.filter import REASON_DUPLICATE, RejectionCounter

logger = logging.getLogger(__name__)


def dedup_key(entry: CatalogEntry) -> Tuple[str, str]:
    """Identity of a listing: its store and its trimmed url, compared literally."""
    return (entry.store, (entry.url or "").strip())


def deduplicate(
    entries: List[CatalogEntry], counter: Optional[RejectionCounter] = None
) -> List[CatalogEntry]:
    """
    Drop later entries sharing a store and url with an earlier one.

    The first occurrence wins and input order is preserved. Entries without a
    url are never merged with each other.
    """
    seen: Set[Tuple[str, str]] = set()
    unique = []

    for entry in entries:
        key = dedup_key(entry)
        if not key[1]:
            unique.append(entry)
            continue

        if key in seen:
            if counter is not None:
                counter.record(REASON_DUPLICATE, entry.store)
            continue

        seen.add(key)
        unique.append(entry)

    dropped = len(entries) - len(unique)
    if dropped:
        logger.debug(f"Dropped {dropped} duplicate entries")

    return unique
