"""
Catalog and featured-set snapshot models.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .deal import UNKNOWN_STORE, CatalogEntry


@dataclass
class CatalogSnapshot:
    """Complete catalog produced by one run."""

    last_updated: str
    deals: List[CatalogEntry] = field(default_factory=list)
    scraper_results: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def total_deals(self) -> int:
        return len(self.deals)

    @property
    def deals_by_store(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for deal in self.deals:
            store = deal.store or UNKNOWN_STORE
            counts[store] = counts.get(store, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastUpdated": self.last_updated,
            "totalDeals": self.total_deals,
            "dealsByStore": self.deals_by_store,
            "scraperResults": self.scraper_results,
            "deals": [deal.to_dict() for deal in self.deals],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogSnapshot":
        deals = data.get("deals") if isinstance(data, dict) else None
        if not isinstance(deals, list):
            raise ValueError("Catalog payload has no deals list")

        return cls(
            last_updated=data.get("lastUpdated") or "",
            deals=[CatalogEntry.from_dict(d) for d in deals if isinstance(d, dict)],
            scraper_results=data.get("scraperResults") or {},
        )


@dataclass
class FeaturedSet:
    """Deterministic daily selection of catalog entries."""

    last_updated: str
    day: str
    deals: List[CatalogEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastUpdated": self.last_updated,
            "daySeedUTC": self.day,
            "total": len(self.deals),
            "deals": [deal.to_dict() for deal in self.deals],
        }
