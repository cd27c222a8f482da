"""
Configuration models for the deal aggregation pipeline.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse

PAYLOAD_SHAPES = ["auto", "array", "deals", "items", "output.deals", "data.deals"]

DEFAULT_EXCLUDED_TERMS = [
    "sock", "socks",
    "apparel", "shirt", "shorts", "tights", "pants",
    "hat", "cap", "beanie",
    "insole", "insoles",
    "laces", "lace",
    "accessories", "accessory",
    "hydration", "bottle", "flask",
    "watch", "watches",
    "gear", "equipment",
    "bag", "bags", "pack", "backpack",
    "vest", "vests",
    "jacket", "jackets",
    "bra", "bras",
    "underwear", "brief",
    "glove", "gloves", "mitt",
    "compression sleeve",
    "arm warmer", "leg warmer",
    "headband", "wristband",
    "sunglasses", "eyewear",
    "sleeve", "sleeves",
    "throw", "throws",
    "yaktrax",
    "out of stock",
    "kids", "kid",
    "youth",
    "junior", "juniors",
]


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass
class SourceConfig:
    """One collector the pipeline reads from."""

    name: str
    artifact_url: Optional[str] = None
    endpoint_url: Optional[str] = None
    store: Optional[str] = None
    payload_shape: str = "auto"
    timeout: int = 30

    def validate(self) -> bool:
        """Validate source configuration."""
        if not self.name or not self.name.strip():
            raise ValueError("Source name cannot be empty")

        if not self.artifact_url and not self.endpoint_url:
            raise ValueError(
                f"Source '{self.name}' needs an artifact_url or an endpoint_url"
            )

        for url in (self.artifact_url, self.endpoint_url):
            if url and not _is_http_url(url):
                raise ValueError(f"Source '{self.name}' URL must use HTTP or HTTPS: {url}")

        if self.payload_shape not in PAYLOAD_SHAPES:
            raise ValueError(f"Payload shape must be one of: {PAYLOAD_SHAPES}")

        if not isinstance(self.timeout, int) or self.timeout <= 0:
            raise ValueError("Source timeout must be a positive integer")

        return True


@dataclass
class StoreConfig:
    """Base URL used to absolutize a store's relative links."""

    name: str
    base_url: str
    aliases: List[str] = field(default_factory=list)

    def validate(self) -> bool:
        if not self.name or not self.name.strip():
            raise ValueError("Store name cannot be empty")

        if not _is_http_url(self.base_url):
            raise ValueError(f"Store '{self.name}' base URL is invalid: {self.base_url}")

        return True


@dataclass
class ValidityRules:
    """Tunable acceptance rules for catalog entries."""

    min_sale_price: float = 10.0
    max_sale_price: float = 1000.0
    min_discount_percent: float = 5.0
    max_discount_percent: float = 90.0
    excluded_terms: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_TERMS))

    def validate(self) -> bool:
        if self.min_sale_price < 0 or self.min_sale_price > self.max_sale_price:
            raise ValueError("Sale price band is invalid")

        if not (
            0 <= self.min_discount_percent <= self.max_discount_percent <= 100
        ):
            raise ValueError("Discount band must satisfy 0 <= min <= max <= 100")

        for term in self.excluded_terms:
            if not isinstance(term, str) or not term.strip():
                raise ValueError("All excluded terms must be non-empty strings")

        return True


@dataclass
class HealthThresholds:
    """Percent thresholds used to classify store health."""

    warning_unknown_brand_pct: float = 20.0
    critical_unknown_brand_pct: float = 50.0
    warning_missing_image_pct: float = 30.0
    warning_missing_url_pct: float = 10.0
    warning_missing_model_pct: float = 30.0
    min_deal_count: int = 5

    def validate(self) -> bool:
        if self.warning_unknown_brand_pct > self.critical_unknown_brand_pct:
            raise ValueError("Unknown-brand warning threshold exceeds critical threshold")

        for pct in (
            self.warning_unknown_brand_pct,
            self.critical_unknown_brand_pct,
            self.warning_missing_image_pct,
            self.warning_missing_url_pct,
            self.warning_missing_model_pct,
        ):
            if not (0 <= pct <= 100):
                raise ValueError("Health thresholds must be between 0 and 100")

        if self.min_deal_count < 0:
            raise ValueError("Minimum deal count cannot be negative")

        return True


@dataclass
class FeaturedConfig:
    """Sizes used by the daily featured selector."""

    size: int = 12
    strong_pool_size: int = 20
    picks_per_group: int = 4

    def validate(self) -> bool:
        if self.size <= 0:
            raise ValueError("Featured size must be positive")

        if self.picks_per_group <= 0 or self.picks_per_group * 3 > self.size:
            raise ValueError("Featured picks per group must fit three groups into size")

        if self.strong_pool_size < self.picks_per_group:
            raise ValueError("Strong pool must hold at least one group of picks")

        return True


@dataclass
class HistoryConfig:
    """History ledger settings."""

    max_days: int = 30
    # Key the prior ledger is read from; None restarts history every run
    prior_key: Optional[str] = "scraper-history.json"

    def validate(self) -> bool:
        if not isinstance(self.max_days, int) or self.max_days <= 0:
            raise ValueError("History max_days must be a positive integer")
        return True


@dataclass
class StorageConfig:
    """Artifact store backend and the fixed keys artifacts are written to."""

    backend: str = "file"
    directory: str = "artifacts"
    catalog_key: str = "deals.json"
    raw_key: str = "deals-raw.json"
    stats_key: str = "stats.json"
    featured_key: str = "daily-deals.json"
    history_key: str = "scraper-history.json"

    def keys(self) -> List[str]:
        return [
            self.raw_key,
            self.catalog_key,
            self.stats_key,
            self.featured_key,
            self.history_key,
        ]

    def validate(self) -> bool:
        if self.backend not in ("file", "memory"):
            raise ValueError("Storage backend must be 'file' or 'memory'")

        if self.backend == "file" and not self.directory:
            raise ValueError("File storage requires a directory")

        keys = self.keys()
        if any(not key or not key.strip() for key in keys):
            raise ValueError("Artifact keys cannot be empty")

        if len(set(keys)) != len(keys):
            raise ValueError("Artifact keys must be distinct")

        return True


@dataclass
class Configuration:
    """System configuration."""

    sources: List[SourceConfig]
    stores: List[StoreConfig] = field(default_factory=list)
    validity: ValidityRules = field(default_factory=ValidityRules)
    health: HealthThresholds = field(default_factory=HealthThresholds)
    featured: FeaturedConfig = field(default_factory=FeaturedConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    fallback_base_url: str = "https://example.com"
    brands_top_n: int = 25
    user_agent: str = "Deal-Aggregator/1.0 (Catalog Merge)"

    def validate(self) -> bool:
        """Validate system configuration."""
        if not isinstance(self.sources, list) or not self.sources:
            raise ValueError("At least one source must be configured")

        names = [source.name for source in self.sources]
        if len(set(names)) != len(names):
            raise ValueError("Source names must be unique")

        if not _is_http_url(self.fallback_base_url):
            raise ValueError("Fallback base URL must use HTTP or HTTPS")

        if not isinstance(self.brands_top_n, int) or self.brands_top_n <= 0:
            raise ValueError("brands_top_n must be a positive integer")

        for source in self.sources:
            source.validate()
        for store in self.stores:
            store.validate()

        self.validity.validate()
        self.health.validate()
        self.featured.validate()
        self.history.validate()
        self.storage.validate()

        return True
