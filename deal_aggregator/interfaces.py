"""
Protocol interfaces for the deal aggregation pipeline.

These protocols mark the seams where the orchestrator accepts injected
collaborators, so tests can substitute in-memory fakes.
"""

from typing import Any, Dict, List, Optional, Protocol

from .models.config import SourceConfig
from .models.run import SourceBatch


class ISourceLoader(Protocol):
    """Protocol for fetching collector output."""

    async def __aenter__(self) -> "ISourceLoader":
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        ...

    async def load_all(self, sources: List[SourceConfig]) -> List[SourceBatch]:
        """Load every source, capturing each failure individually."""
        ...


class IArtifactStore(Protocol):
    """Protocol for the key/value store artifacts are persisted in."""

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Read an artifact, None when the key was never written."""
        ...

    def put(self, key: str, payload: Dict[str, Any]) -> str:
        """Write one artifact and return its version id."""
        ...

    def put_batch(self, artifacts: Dict[str, Dict[str, Any]]) -> Dict[str, str]:
        """Write all artifacts or none, returning version ids by key."""
        ...
