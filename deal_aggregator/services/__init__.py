"""
Service layer for the deal aggregation pipeline.

This module contains the services that build the catalog, persist
artifacts and load configuration.
"""

from .artifact_store import (
    FileArtifactStore,
    InMemoryArtifactStore,
    create_artifact_store,
    load_catalog,
)
from .catalog_builder import CatalogBuilder, order_catalog
from .config_manager import ConfigurationManager

__all__ = [
    "CatalogBuilder",
    "order_catalog",
    "ConfigurationManager",
    "FileArtifactStore",
    "InMemoryArtifactStore",
    "create_artifact_store",
    "load_catalog",
]
