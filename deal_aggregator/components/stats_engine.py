"""
Statistics engine deriving aggregate metrics and store health from a catalog.

Stats are precomputed once per run so dashboards can load a small
``stats.json`` instead of the whole catalog.
"""

from typing import Any, Dict, Iterable, List, Optional

from ..models.config import HealthThresholds
from ..models.deal import UNKNOWN_BRAND, UNKNOWN_STORE, CatalogEntry
from ..models.stats import BrandRollup, HealthStatus, StatsSnapshot, StoreRollup
from ..utils.logging import get_logger

PRICE_BUCKETS = ["$0-50", "$50-75", "$75-100", "$100-125", "$125-150", "$150+"]

DISCOUNT_THRESHOLDS = {"off10OrMore": 10, "off25OrMore": 25, "off50OrMore": 50}

PLACEHOLDER_IMAGE_HOST = "placehold.co"

ZERO_RESULTS_ISSUE = "ZERO RESULTS"


def bucket_label(sale_price: float) -> str:
    """Histogram band for a positive sale price."""
    if sale_price < 50:
        return "$0-50"
    if sale_price < 75:
        return "$50-75"
    if sale_price < 100:
        return "$75-100"
    if sale_price < 125:
        return "$100-125"
    if sale_price < 150:
        return "$125-150"
    return "$150+"


def has_usable_image(entry: CatalogEntry) -> bool:
    image = entry.image if isinstance(entry.image, str) else ""
    return bool(image.strip()) and PLACEHOLDER_IMAGE_HOST not in image


def _has_url(entry: CatalogEntry) -> bool:
    url = entry.url if isinstance(entry.url, str) else ""
    return bool(url) and url != "#"


def _valid_price(value: Optional[float]) -> bool:
    return isinstance(value, (int, float)) and value > 0


def _pct(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


class _StoreAccumulator:
    def __init__(self, store: str):
        self.rollup = StoreRollup(store=store)
        self.discount_sum = 0.0
        self.discount_count = 0
        self.savings_sum = 0.0


class _BrandAccumulator:
    def __init__(self, brand: str):
        self.rollup = BrandRollup(brand=brand, min_price=float("inf"))
        self.discount_sum = 0.0
        self.discount_count = 0


def classify_store(rollup: StoreRollup, thresholds: HealthThresholds) -> None:
    """Set status and issues on a store rollup from its counters."""
    status = HealthStatus.HEALTHY
    issues: List[str] = []

    if rollup.count == 0:
        status = HealthStatus.CRITICAL
        issues.append(ZERO_RESULTS_ISSUE)

    unknown_pct = rollup.unknown_brand_pct
    if unknown_pct > thresholds.critical_unknown_brand_pct:
        status = status.escalate(HealthStatus.CRITICAL)
        issues.append(f"{unknown_pct:.0f}% Unknown Brands")
    elif unknown_pct > thresholds.warning_unknown_brand_pct:
        status = status.escalate(HealthStatus.WARNING)
        issues.append(f"{unknown_pct:.0f}% Unknown Brands")

    missing_images_pct = _pct(rollup.missing_image_count, rollup.count)
    if missing_images_pct > thresholds.warning_missing_image_pct:
        status = status.escalate(HealthStatus.WARNING)
        issues.append(f"{missing_images_pct:.0f}% Missing Images")

    missing_urls_pct = _pct(rollup.missing_url_count, rollup.count)
    if missing_urls_pct > thresholds.warning_missing_url_pct:
        status = status.escalate(HealthStatus.WARNING)
        issues.append(f"{missing_urls_pct:.0f}% Missing URLs")

    missing_models_pct = _pct(rollup.missing_model_count, rollup.count)
    if missing_models_pct > thresholds.warning_missing_model_pct:
        status = status.escalate(HealthStatus.WARNING)
        issues.append(f"{missing_models_pct:.0f}% Missing Models")

    if 0 < rollup.count < thresholds.min_deal_count:
        status = status.escalate(HealthStatus.WARNING)
        issues.append(f"Low Deal Count ({rollup.count})")

    rollup.status = status
    rollup.issues = issues


def compute_stats(
    entries: List[CatalogEntry],
    scraper_metadata: Optional[Dict[str, Dict[str, Any]]] = None,
    expected_stores: Optional[Iterable[str]] = None,
    rejections: Optional[Dict[str, Any]] = None,
    generated_at: str = "",
    thresholds: Optional[HealthThresholds] = None,
    brands_top_n: int = 25,
) -> StatsSnapshot:
    """
    Compute catalog statistics in a single pass.

    Args:
        entries: Final catalog entries
        scraper_metadata: Per-source metadata keyed by source name
        expected_stores: Stores configured sources are expected to produce;
            any absent from the catalog is reported with zero results
        rejections: Rejection counters from the catalog builder
        generated_at: Timestamp stamped on the snapshot
        thresholds: Health thresholds
        brands_top_n: Number of brands kept in the brand table

    Returns:
        StatsSnapshot; the same inputs always yield the same snapshot.
    """
    thresholds = thresholds or HealthThresholds()

    stores: Dict[str, _StoreAccumulator] = {}
    brands: Dict[str, _BrandAccumulator] = {}

    discount_sum = 0.0
    discount_count = 0
    deals_with_images = 0
    discount_thresholds = {label: 0 for label in DISCOUNT_THRESHOLDS}
    price_buckets = {label: 0 for label in PRICE_BUCKETS}

    top_percent = top_dollar = lowest_price = best_value = None
    top_percent_value = top_dollar_value = lowest_price_value = best_value_score = 0.0

    for entry in entries:
        store = (entry.store or "").strip() or UNKNOWN_STORE
        brand = (entry.brand or "").strip() or UNKNOWN_BRAND

        acc = stores.get(store)
        if acc is None:
            acc = stores[store] = _StoreAccumulator(store)
        rollup = acc.rollup
        rollup.count += 1

        if brand == UNKNOWN_BRAND:
            rollup.unknown_brand_count += 1
        if has_usable_image(entry):
            deals_with_images += 1
        else:
            rollup.missing_image_count += 1
        if not _has_url(entry):
            rollup.missing_url_count += 1
        if not (entry.model or "").strip():
            rollup.missing_model_count += 1
        if not _valid_price(entry.sale_price):
            rollup.missing_price_count += 1

        percent_off = entry.discount_percent
        savings = entry.dollar_savings

        if percent_off > 0:
            acc.discount_sum += percent_off
            acc.discount_count += 1
            acc.savings_sum += savings
            discount_sum += percent_off
            discount_count += 1

            for label, minimum in DISCOUNT_THRESHOLDS.items():
                if percent_off >= minimum:
                    discount_thresholds[label] += 1

            # Strict comparisons keep the first maximal entry
            if top_percent is None or percent_off > top_percent_value:
                top_percent, top_percent_value = entry, percent_off
            if top_dollar is None or savings > top_dollar_value:
                top_dollar, top_dollar_value = entry, savings
            if lowest_price is None or entry.sale_price < lowest_price_value:
                lowest_price, lowest_price_value = entry, entry.sale_price
            score = percent_off + savings * 0.5
            if best_value is None or score > best_value_score:
                best_value, best_value_score = entry, score

        if _valid_price(entry.sale_price):
            price_buckets[bucket_label(entry.sale_price)] += 1

        brand_acc = brands.get(brand)
        if brand_acc is None:
            brand_acc = brands[brand] = _BrandAccumulator(brand)
        brand_acc.rollup.count += 1
        if percent_off > 0:
            brand_acc.discount_sum += percent_off
            brand_acc.discount_count += 1
        if _valid_price(entry.sale_price):
            brand_acc.rollup.min_price = min(brand_acc.rollup.min_price, entry.sale_price)
            brand_acc.rollup.max_price = max(brand_acc.rollup.max_price, entry.sale_price)

    total_stores = len(stores)

    for store in expected_stores or []:
        if store and store not in stores:
            stores[store] = _StoreAccumulator(store)

    store_rollups = []
    for acc in stores.values():
        rollup = acc.rollup
        if acc.discount_count:
            rollup.avg_discount = acc.discount_sum / acc.discount_count
            rollup.avg_savings = acc.savings_sum / acc.discount_count
        rollup.unknown_brand_pct = _pct(rollup.unknown_brand_count, rollup.count)
        classify_store(rollup, thresholds)
        store_rollups.append(rollup)
    store_rollups.sort(key=lambda r: r.count, reverse=True)

    brand_rollups = []
    for brand, brand_acc in brands.items():
        if brand == UNKNOWN_BRAND:
            continue
        rollup = brand_acc.rollup
        if rollup.min_price == float("inf"):
            rollup.min_price = 0.0
        if brand_acc.discount_count:
            rollup.avg_discount = brand_acc.discount_sum / brand_acc.discount_count
        brand_rollups.append(rollup)
    brand_rollups.sort(key=lambda r: r.count, reverse=True)

    snapshot = StatsSnapshot(
        generated_at=generated_at,
        total_deals=len(entries),
        total_stores=total_stores,
        total_brands=len(brands),
        avg_discount=discount_sum / discount_count if discount_count else 0.0,
        deals_with_images=deals_with_images,
        discount_thresholds=discount_thresholds,
        top_percent=top_percent,
        top_dollar=top_dollar,
        lowest_price=lowest_price,
        best_value=best_value,
        stores=store_rollups,
        brands_top=brand_rollups[:brands_top_n],
        price_buckets=price_buckets,
        rejections=rejections or {},
        scraper_metadata=scraper_metadata or {},
        last_updated=generated_at,
    )

    summary = snapshot.health_summary()
    if summary[HealthStatus.CRITICAL.value]:
        get_logger("stats.engine").warning(
            "Critical store health detected",
            extra={
                "critical_stores": [
                    r.store for r in store_rollups if r.status == HealthStatus.CRITICAL
                ]
            },
        )

    return snapshot
