"""
Aggregate statistics models derived from a catalog snapshot.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .deal import CatalogEntry

STATS_VERSION = 1


class HealthStatus(Enum):
    """Store health classification, ordered by severity."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        return {"healthy": 0, "warning": 1, "critical": 2}[self.value]

    def escalate(self, other: "HealthStatus") -> "HealthStatus":
        """Return the more severe of two statuses."""
        return other if other.severity > self.severity else self


@dataclass
class StoreRollup:
    """Per-store aggregates and data-quality counters."""

    store: str
    count: int = 0
    avg_discount: float = 0.0
    avg_savings: float = 0.0
    unknown_brand_count: int = 0
    unknown_brand_pct: float = 0.0
    missing_image_count: int = 0
    missing_url_count: int = 0
    missing_model_count: int = 0
    missing_price_count: int = 0
    status: HealthStatus = HealthStatus.HEALTHY
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "store": self.store,
            "count": self.count,
            "avgDiscount": self.avg_discount,
            "avgSavings": self.avg_savings,
            "unknownBrandCount": self.unknown_brand_count,
            "unknownBrandPct": self.unknown_brand_pct,
            "missingImageCount": self.missing_image_count,
            "missingUrlCount": self.missing_url_count,
            "missingModelCount": self.missing_model_count,
            "missingPriceCount": self.missing_price_count,
            "health": {"status": self.status.value, "issues": list(self.issues)},
        }


@dataclass
class BrandRollup:
    """Per-brand aggregates."""

    brand: str
    count: int = 0
    avg_discount: float = 0.0
    min_price: float = 0.0
    max_price: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "brand": self.brand,
            "count": self.count,
            "avgDiscount": self.avg_discount,
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
        }


def deal_summary(entry: Optional[CatalogEntry]) -> Optional[Dict[str, Any]]:
    """Card-ready summary of a single deal."""
    if entry is None:
        return None
    summary = entry.to_dict()
    summary["percentOff"] = entry.discount_percent
    summary["dollarSavings"] = entry.dollar_savings
    return summary


@dataclass
class StatsSnapshot:
    """Catalog-wide statistics and store health."""

    generated_at: str
    total_deals: int = 0
    total_stores: int = 0
    total_brands: int = 0
    avg_discount: float = 0.0
    deals_with_images: int = 0
    discount_thresholds: Dict[str, int] = field(default_factory=dict)
    top_percent: Optional[CatalogEntry] = None
    top_dollar: Optional[CatalogEntry] = None
    lowest_price: Optional[CatalogEntry] = None
    best_value: Optional[CatalogEntry] = None
    stores: List[StoreRollup] = field(default_factory=list)
    brands_top: List[BrandRollup] = field(default_factory=list)
    price_buckets: Dict[str, int] = field(default_factory=dict)
    rejections: Dict[str, Any] = field(default_factory=dict)
    scraper_metadata: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    last_updated: Optional[str] = None
    version: int = STATS_VERSION

    def health_summary(self) -> Dict[str, int]:
        summary = {status.value: 0 for status in HealthStatus}
        for rollup in self.stores:
            summary[rollup.status.value] += 1
        return summary

    def store(self, name: str) -> Optional[StoreRollup]:
        for rollup in self.stores:
            if rollup.store == name:
                return rollup
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generatedAt": self.generated_at,
            "lastUpdated": self.last_updated or self.generated_at,
            "totalDeals": self.total_deals,
            "totalStores": self.total_stores,
            "totalBrands": self.total_brands,
            "avgDiscount": self.avg_discount,
            "dealsWithImages": self.deals_with_images,
            "discountThresholds": self.discount_thresholds,
            "topDeals": {
                "topPercent": deal_summary(self.top_percent),
                "topDollar": deal_summary(self.top_dollar),
                "lowestPrice": deal_summary(self.lowest_price),
                "bestValue": deal_summary(self.best_value),
            },
            "storesTable": [rollup.to_dict() for rollup in self.stores],
            "brandsTop": [rollup.to_dict() for rollup in self.brands_top],
            "unknownByStore": {
                rollup.store: {
                    "unknownCount": rollup.unknown_brand_count,
                    "total": rollup.count,
                    "pct": rollup.unknown_brand_pct,
                }
                for rollup in self.stores
            },
            "priceBuckets": self.price_buckets,
            "health": {
                "summary": self.health_summary(),
                "stores": [
                    {
                        "store": rollup.store,
                        "status": rollup.status.value,
                        "issues": list(rollup.issues),
                        "count": rollup.count,
                        "unknownBrandPct": rollup.unknown_brand_pct,
                    }
                    for rollup in self.stores
                ],
            },
            "rejections": self.rejections,
            "scraperMetadata": self.scraper_metadata,
        }
