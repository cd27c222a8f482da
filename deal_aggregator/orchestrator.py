"""
Pipeline orchestrator for the deal aggregation system.

One invocation fetches every collector, rebuilds the catalog and its derived
artifacts from scratch, merges today's collector outcomes into the history
ledger and persists everything as a single batch.
"""

import random
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .components.featured_selector import FeaturedSelector
from .components.filter_engine import FilterEngine
from .components.history_tracker import update_history
from .components.sanitizer import Sanitizer
from .components.source_loader import SourceLoader
from .components.stats_engine import compute_stats
from .components.store_registry import StoreRegistry
from .interfaces import IArtifactStore, ISourceLoader
from .models.config import Configuration
from .models.deal import UNKNOWN_STORE
from .models.history import DAY_PATTERN, HistoryLedger
from .models.run import RunSummary, SourceBatch
from .models.snapshot import CatalogSnapshot
from .services.artifact_store import create_artifact_store
from .services.catalog_builder import CatalogBuilder, order_catalog
from .utils.error_handling import (
    ArtifactStoreError,
    ErrorCategory,
    ErrorSeverity,
    HistoryReadError,
    PipelineFatalError,
    get_degradation_manager,
    get_error_tracker,
    with_error_handling,
)
from .utils.logging import get_logger

HISTORY_COMPONENT = "history.tracker"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO 8601 UTC timestamp with millisecond precision and a Z suffix."""
    return (
        moment.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def _raw_snapshot(
    records: List[Any], timestamp: str, scraper_results: Dict[str, Dict[str, Any]]
) -> Dict[str, Any]:
    deals_by_store: Dict[str, int] = {}
    for record in records:
        store = UNKNOWN_STORE
        if isinstance(record, dict) and isinstance(record.get("store"), str):
            store = record["store"].strip() or UNKNOWN_STORE
        deals_by_store[store] = deals_by_store.get(store, 0) + 1

    return {
        "lastUpdated": timestamp,
        "totalDeals": len(records),
        "dealsByStore": deals_by_store,
        "scraperResults": scraper_results,
        "deals": records,
    }


class PipelineOrchestrator:
    """
    Coordinates one run of the aggregation pipeline.

    Per-source failures are isolated and reported; a prior-history read
    failure degrades to an empty ledger; only compute or persist failures
    fail the run, in which case nothing is written.
    """

    def __init__(
        self,
        config: Configuration,
        store: Optional[IArtifactStore] = None,
        loader: Optional[ISourceLoader] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Validated configuration
            store: Artifact store; defaults to the configured backend
            loader: Source loader; defaults to an aiohttp-backed SourceLoader
            rng: Random source for the tie-breaking shuffle
            clock: Returns the current UTC time
        """
        self.config = config
        self.store = store or create_artifact_store(config.storage)
        self.loader = loader or SourceLoader(user_agent=config.user_agent)
        self.rng = rng or random.Random()
        self.clock = clock or utc_now

        registry = StoreRegistry(config.stores, config.fallback_base_url)
        self.catalog_builder = CatalogBuilder(
            Sanitizer(registry), FilterEngine(config.validity)
        )
        self.featured_selector = FeaturedSelector(config.featured)

        self.logger = get_logger("orchestrator")
        self.error_tracker = get_error_tracker()
        self.degradation_manager = get_degradation_manager()

    async def run(self, day: Optional[str] = None) -> RunSummary:
        """
        Execute one pipeline run.

        Args:
            day: UTC date (YYYY-MM-DD) used for the featured seed and history
                entry; defaults to today

        Returns:
            RunSummary; ``success`` is False when artifacts were not persisted.
        """
        started = time.monotonic()
        now = self.clock()
        timestamp = format_timestamp(now)
        day = day or now.astimezone(timezone.utc).strftime("%Y-%m-%d")

        self.logger.info("Starting pipeline run", extra={"day": day})

        async with self.loader as loader:
            batches = await loader.load_all(self.config.sources)

        scraper_results = {batch.run.name: batch.run.to_result() for batch in batches}

        try:
            if not DAY_PATTERN.match(day):
                raise PipelineFatalError(f"Run day must be YYYY-MM-DD: {day!r}")

            artifacts, catalog = self._compute(batches, day, timestamp, scraper_results)
            versions = self._persist(artifacts)

        except PipelineFatalError as e:
            self.error_tracker.record_error(
                component="orchestrator",
                category=ErrorCategory.SYSTEM,
                severity=ErrorSeverity.CRITICAL,
                message=f"Pipeline run failed: {e}",
                exception=e,
                context={"day": day},
            )
            self.logger.error(f"Pipeline run failed: {e}", exc_info=True)
            return RunSummary(
                success=False,
                timestamp=timestamp,
                duration_ms=self._elapsed_ms(started),
                scraper_results=scraper_results,
                degraded=self.degradation_manager.get_all_degraded(),
                error=str(e),
            )

        summary = RunSummary(
            success=True,
            timestamp=timestamp,
            duration_ms=self._elapsed_ms(started),
            total_deals=catalog.total_deals,
            deals_by_store=catalog.deals_by_store,
            scraper_results=scraper_results,
            artifacts=versions,
            degraded=self.degradation_manager.get_all_degraded(),
        )
        self.logger.info(
            f"Pipeline run complete: {summary.total_deals} deals",
            extra={
                "duration_ms": summary.duration_ms,
                "day": day,
                "errors": self.error_tracker.get_error_stats()["component_error_counts"],
            },
        )
        return summary

    def _compute(
        self,
        batches: List[SourceBatch],
        day: str,
        timestamp: str,
        scraper_results: Dict[str, Dict[str, Any]],
    ):
        """Build every artifact payload, keyed by its storage key."""
        keys = self.config.storage
        raw_records = [record for batch in batches for record in batch.records]
        runs = [batch.run for batch in batches]

        try:
            entries, rejections = self.catalog_builder.build(raw_records)
            entries = order_catalog(entries, self.rng)

            catalog = CatalogSnapshot(
                last_updated=timestamp, deals=entries, scraper_results=scraper_results
            )

            stats = compute_stats(
                entries,
                scraper_metadata={run.name: run.to_metadata() for run in runs},
                expected_stores=[s.store for s in self.config.sources if s.store],
                rejections=rejections.to_dict(),
                generated_at=timestamp,
                thresholds=self.config.health,
                brands_top_n=self.config.brands_top_n,
            )

            featured = self.featured_selector.build(entries, day, timestamp)

            history = update_history(
                self._read_prior_history(),
                runs,
                day,
                timestamp,
                max_days=self.config.history.max_days,
            )

            artifacts = {
                keys.raw_key: _raw_snapshot(raw_records, timestamp, scraper_results),
                keys.catalog_key: catalog.to_dict(),
                keys.stats_key: stats.to_dict(),
                keys.featured_key: featured.to_dict(),
                keys.history_key: history.to_dict(),
            }
        except PipelineFatalError:
            raise
        except Exception as e:
            raise PipelineFatalError(f"Failed to compute artifacts: {e}") from e

        return artifacts, catalog

    def _persist(self, artifacts: Dict[str, Dict[str, Any]]) -> Dict[str, str]:
        try:
            return self.store.put_batch(artifacts)
        except ArtifactStoreError as e:
            raise PipelineFatalError(f"Failed to persist artifacts: {e}") from e

    def _read_prior_history(self) -> HistoryLedger:
        """Prior ledger, or an empty one when unset or unreadable."""
        key = self.config.history.prior_key
        if not key:
            self.logger.info("No history pointer configured, history restarts")
            self.degradation_manager.restore_component(HISTORY_COMPONENT)
            return HistoryLedger()

        ledger = self._load_history(key)
        if ledger is None:
            self.degradation_manager.degrade_component(
                HISTORY_COMPONENT,
                reason=f"Prior history at '{key}' could not be read",
                fallback_behavior="History restarts from an empty ledger",
                severity=ErrorSeverity.LOW,
            )
            return HistoryLedger()

        self.degradation_manager.restore_component(HISTORY_COMPONENT)
        return ledger

    @with_error_handling(
        component=HISTORY_COMPONENT,
        category=ErrorCategory.STORAGE,
        severity=ErrorSeverity.LOW,
        fallback_value=None,
        suppress_exceptions=True,
    )
    def _load_history(self, key: str) -> HistoryLedger:
        payload = self.store.get(key)
        if payload is None:
            return HistoryLedger()
        try:
            return HistoryLedger.from_dict(payload)
        except ValueError as e:
            raise HistoryReadError(f"Malformed history at '{key}': {e}") from e

    def _elapsed_ms(self, started: float) -> int:
        return int((time.monotonic() - started) * 1000)
