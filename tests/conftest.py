"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Deal Aggregator test suite.
"""

import logging

import pytest
from datetime import datetime, timezone
from pathlib import Path
import tempfile

import yaml

from deal_aggregator.models.config import (
    Configuration,
    HistoryConfig,
    SourceConfig,
    StorageConfig,
)
from deal_aggregator.models.deal import CatalogEntry
from deal_aggregator.models.run import VIA_BLOB, SourceBatch, SourceRun
from deal_aggregator.services.artifact_store import InMemoryArtifactStore
from deal_aggregator.utils.error_handling import get_degradation_manager
from deal_aggregator.utils import logging as logging_utils
from deal_aggregator.utils.logging import COMPONENTS, ROOT_LOGGER_NAME

LOGGER_NAMES = [ROOT_LOGGER_NAME] + [f"{ROOT_LOGGER_NAME}.{c}" for c in COMPONENTS]


def make_payload(**overrides):
    """Collector record as it arrives over the wire."""
    payload = {
        "title": "Brooks Ghost 16",
        "brand": "Brooks",
        "model": "Ghost 16",
        "salePrice": 99.95,
        "price": 140.0,
        "store": "Holabird Sports",
        "url": "https://www.holabirdsports.com/products/ghost-16",
        "image": "https://cdn.example.com/ghost-16.jpg",
        "gender": "mens",
        "shoeType": "road",
    }
    payload.update(overrides)
    return payload


def make_entry(**overrides):
    """Catalog entry that passes every validity rule."""
    fields = {
        "title": "Brooks Ghost 16",
        "brand": "Brooks",
        "model": "Ghost 16",
        "sale_price": 99.95,
        "price": 140.0,
        "store": "Holabird Sports",
        "url": "https://www.holabirdsports.com/products/ghost-16",
        "image": "https://cdn.example.com/ghost-16.jpg",
        "gender": "mens",
        "shoe_type": "road",
    }
    fields.update(overrides)
    return CatalogEntry(**fields)


class FakeSourceLoader:
    """Source loader returning canned batches without any network access."""

    def __init__(self, batches):
        self.batches = batches
        self.entered = False
        self.requested = None

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.entered = False

    async def load_all(self, sources):
        self.requested = [source.name for source in sources]
        return list(self.batches)


def ok_batch(name, records, store=None, **run_fields):
    """SourceBatch for a successful blob read."""
    run = SourceRun(
        name=name,
        ok=True,
        count=len(records),
        duration_ms=run_fields.pop("duration_ms", 120),
        timestamp=run_fields.pop("timestamp", "2024-06-01T06:00:00+00:00"),
        via=run_fields.pop("via", VIA_BLOB),
        blob_url=run_fields.pop("blob_url", f"https://blob.example.com/{name}.json"),
        store=store,
        **run_fields,
    )
    return SourceBatch(run=run, records=list(records))


def failed_batch(name, error="timed out after 30s", store=None):
    return SourceBatch(run=SourceRun(name=name, ok=False, error=error, store=store))


@pytest.fixture
def sample_payload():
    """Create a sample collector record for testing."""
    return make_payload()


@pytest.fixture
def sample_entry():
    """Create a sample CatalogEntry for testing."""
    return make_entry()


@pytest.fixture
def sample_configuration():
    """Create a sample Configuration with three sources."""
    return Configuration(
        sources=[
            SourceConfig(
                name="holabird",
                artifact_url="https://blob.example.com/holabird.json",
                store="Holabird Sports",
            ),
            SourceConfig(
                name="brooks",
                endpoint_url="https://collectors.example.com/api/brooks",
                store="Brooks Running",
            ),
            SourceConfig(
                name="asics",
                endpoint_url="https://collectors.example.com/api/asics",
                store="ASICS",
            ),
        ],
        history=HistoryConfig(max_days=30, prior_key="scraper-history.json"),
        storage=StorageConfig(backend="memory"),
    )


@pytest.fixture
def memory_store():
    """Create an empty in-memory artifact store."""
    return InMemoryArtifactStore()


@pytest.fixture
def fixed_clock():
    """Clock frozen at 2024-06-01 12:00 UTC."""
    return lambda: datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def temp_config_file(temp_dir):
    """Create a temporary YAML configuration file."""
    config_file = temp_dir / "config.yaml"
    config_data = {
        "sources": [
            {
                "name": "holabird",
                "artifact_url": "https://blob.example.com/holabird.json",
                "store": "Holabird Sports",
                "payload_shape": "deals",
            },
            {
                "name": "brooks",
                "endpoint_url": "https://collectors.example.com/api/brooks",
                "store": "Brooks Running",
                "timeout": 45,
            },
        ],
        "stores": [
            {"name": "Running United", "base_url": "https://rununited.com"}
        ],
        "validity": {"min_discount_percent": 10},
        "storage": {"backend": "file", "directory": str(temp_dir / "artifacts")},
    }
    with open(config_file, "w") as f:
        yaml.dump(config_data, f)
    return config_file


@pytest.fixture(autouse=True)
def reset_degradation_state():
    """Clear process-wide degradation state between tests."""
    get_degradation_manager().degraded_components.clear()
    yield
    get_degradation_manager().degraded_components.clear()


@pytest.fixture(autouse=True)
def restore_logging_state():
    """Put back logger handlers and the global logging manager after each test."""
    saved_manager = logging_utils._logging_manager
    saved = {}
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        saved[name] = (list(logger.handlers), logger.level)

    yield

    for name, (handlers, level) in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers[:] = handlers
        logger.setLevel(level)
    logging_utils._logging_manager = saved_manager


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to tests not marked integration or slow."""
    for item in items:
        if not any(
            marker.name in ["integration", "slow"] for marker in item.iter_markers()
        ):
            item.add_marker(pytest.mark.unit)
