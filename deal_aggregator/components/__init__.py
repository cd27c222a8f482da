"""
Core components for the deal aggregation pipeline.

This module contains the components that load collector output, sanitize,
filter and deduplicate records, and derive statistics, the daily featured
set and the collector history.
"""

from .deduplicator import deduplicate
from .featured_selector import FeaturedSelector
from .filter_engine import FilterEngine, PriceFilter
from .history_tracker import build_entries, update_history
from .sanitizer import Sanitizer
from .source_loader import SourceLoader, extract_records
from .stats_engine import compute_stats
from .store_registry import StoreRegistry

__all__ = [
    "Sanitizer",
    "StoreRegistry",
    "FilterEngine",
    "PriceFilter",
    "deduplicate",
    "compute_stats",
    "FeaturedSelector",
    "build_entries",
    "update_history",
    "SourceLoader",
    "extract_records",
]
