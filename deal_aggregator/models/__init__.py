"""
Data models for the deal aggregation pipeline.

This module contains the data classes used to represent candidate records,
catalog entries, derived artifacts and configuration.
"""

from .config import (
    Configuration,
    FeaturedConfig,
    HealthThresholds,
    HistoryConfig,
    SourceConfig,
    StorageConfig,
    StoreConfig,
    ValidityRules,
)
from .deal import CandidateRecord, CatalogEntry
from .filter import RejectionCounter
from .history import HistoryDay, HistoryEntry, HistoryLedger
from .run import RunSummary, SourceBatch, SourceRun
from .snapshot import CatalogSnapshot, FeaturedSet
from .stats import BrandRollup, HealthStatus, StatsSnapshot, StoreRollup

__all__ = [
    "CandidateRecord",
    "CatalogEntry",
    "CatalogSnapshot",
    "FeaturedSet",
    "StatsSnapshot",
    "StoreRollup",
    "BrandRollup",
    "HealthStatus",
    "HistoryLedger",
    "HistoryDay",
    "HistoryEntry",
    "SourceRun",
    "SourceBatch",
    "RunSummary",
    "RejectionCounter",
    "Configuration",
    "SourceConfig",
    "StoreConfig",
    "ValidityRules",
    "HealthThresholds",
    "FeaturedConfig",
    "HistoryConfig",
    "StorageConfig",
]
