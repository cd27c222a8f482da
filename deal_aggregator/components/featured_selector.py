"""
Deterministic daily selection of featured catalog entries.

The same catalog and UTC date always produce the same featured set in the
same order, without persisting any selection state between runs.
"""

import math
from typing import List, Optional, Set

from ..models.config import FeaturedConfig
from ..models.deal import CatalogEntry
from ..models.snapshot import FeaturedSet
from ..utils.logging import get_logger
from .stats_engine import has_usable_image

# Salts separating the display-order seed from the selection seed
SHUFFLE_SEED_MULTIPLIER = 31
SHUFFLE_SEED_OFFSET = 1009

# Index offsets so each group draws from its own stretch of the sequence
GROUP_A_OFFSET = 0
GROUP_B_OFFSET = 100
GROUP_C_OFFSET = 200


def selection_seed(day: str) -> int:
    """Seed used for sampling: the sum of the date string's character codes."""
    return sum(ord(char) for char in day)


def shuffle_seed(day: str) -> int:
    """Seed used for the final display order, salted from the selection seed."""
    return selection_seed(day) * SHUFFLE_SEED_MULTIPLIER + SHUFFLE_SEED_OFFSET


def seeded_random(seed: int, index: int) -> float:
    """Fractional part of sin(seed + index) * 10000, in [0, 1)."""
    value = math.sin(seed + index) * 10000
    return value - math.floor(value)


def seeded_sample(
    entries: List[CatalogEntry], count: int, seed: int, offset: int = 0
) -> List[CatalogEntry]:
    """Pick up to ``count`` entries without replacement."""
    working = list(entries)
    picked = []
    for i in range(min(count, len(working))):
        index = int(seeded_random(seed, offset + i) * len(working))
        picked.append(working.pop(min(index, len(working) - 1)))
    return picked


def seeded_shuffle(entries: List[CatalogEntry], seed: int) -> List[CatalogEntry]:
    """Fisher-Yates shuffle driven by the seeded sequence."""
    shuffled = list(entries)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(seeded_random(seed, i) * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _without_urls(entries: List[CatalogEntry], urls: Set[str]) -> List[CatalogEntry]:
    return [entry for entry in entries if entry.url not in urls]


class FeaturedSelector:
    """Selects strong-by-discount, strong-by-savings and discovery picks."""

    def __init__(self, config: Optional[FeaturedConfig] = None):
        self.config = config or FeaturedConfig()
        self.logger = get_logger("featured.selector")

    def quality_pool(self, entries: List[CatalogEntry]) -> List[CatalogEntry]:
        """Entries with a usable image, preferring genuine discounts."""
        with_images = [entry for entry in entries if has_usable_image(entry)]
        discounted = [entry for entry in with_images if entry.has_discount]
        if len(discounted) >= self.config.size:
            return discounted
        return with_images

    def select(self, entries: List[CatalogEntry], day: str) -> List[CatalogEntry]:
        """
        Choose the featured entries for a UTC day.

        Args:
            entries: Catalog entries in catalog order
            day: UTC date string (YYYY-MM-DD)

        Returns:
            At most ``config.size`` entries with unique urls.
        """
        size = self.config.size
        picks = self.config.picks_per_group
        strong = self.config.strong_pool_size
        seed = selection_seed(day)

        pool = self.quality_pool(entries)

        if len(pool) < size:
            sampled = seeded_sample(pool, size, seed)
            return seeded_shuffle(sampled, shuffle_seed(day))

        by_discount = sorted(pool, key=lambda e: e.discount_percent, reverse=True)
        group_a = seeded_sample(by_discount[:strong], picks, seed, GROUP_A_OFFSET)

        remaining = _without_urls(pool, {entry.url for entry in group_a})
        by_savings = sorted(remaining, key=lambda e: e.dollar_savings, reverse=True)
        group_b = seeded_sample(by_savings[:strong], picks, seed, GROUP_B_OFFSET)

        remaining = _without_urls(remaining, {entry.url for entry in group_b})
        discovery = size - len(group_a) - len(group_b)
        group_c = seeded_sample(remaining, discovery, seed, GROUP_C_OFFSET)

        self.logger.debug(
            "Featured groups selected",
            extra={
                "day": day,
                "pool": len(pool),
                "groups": [len(group_a), len(group_b), len(group_c)],
            },
        )

        return seeded_shuffle(group_a + group_b + group_c, shuffle_seed(day))

    def build(self, entries: List[CatalogEntry], day: str, generated_at: str) -> FeaturedSet:
        """Select the day's entries and wrap them in the artifact model."""
        return FeaturedSet(
            last_updated=generated_at, day=day, deals=self.select(entries, day)
        )
