"""
Source ingestion and run result models.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

VIA_BLOB = "blob"
VIA_ENDPOINT = "endpoint"


@dataclass
class SourceRun:
    """Outcome of ingesting one source during a run."""

    name: str
    ok: bool
    count: int = 0
    duration_ms: Optional[int] = None
    timestamp: Optional[str] = None
    via: Optional[str] = None
    blob_url: Optional[str] = None
    error: Optional[str] = None
    store: Optional[str] = None
    # Per-sub-collector results reported by aggregate sources
    breakdown: Optional[Dict[str, Dict[str, Any]]] = None

    def validate(self) -> bool:
        """Validate source run data."""
        if not self.name or not self.name.strip():
            raise ValueError("Source name cannot be empty")

        if self.count < 0:
            raise ValueError("Record count cannot be negative")

        if self.via is not None and self.via not in (VIA_BLOB, VIA_ENDPOINT):
            raise ValueError(f"Unknown source origin: {self.via}")

        if not self.ok and not self.error:
            raise ValueError("error should be provided when ok is False")

        return True

    def to_result(self) -> Dict[str, Any]:
        """Per-source entry of the catalog's scraperResults map."""
        if self.ok:
            return {"ok": True, "via": self.via, "count": self.count}
        return {"ok": False, "error": self.error}

    def to_metadata(self) -> Dict[str, Any]:
        """Per-source entry of the stats artifact's scraperMetadata map."""
        if not self.ok:
            return {"error": self.error}
        return {
            "blobUrl": self.blob_url,
            "timestamp": self.timestamp,
            "duration": self.duration_ms,
            "count": self.count,
        }


@dataclass
class SourceBatch:
    """A source run together with the raw records it produced."""

    run: SourceRun
    records: List[Any] = field(default_factory=list)


@dataclass
class RunSummary:
    """Result of one pipeline invocation."""

    success: bool
    timestamp: str
    duration_ms: int
    total_deals: int = 0
    deals_by_store: Dict[str, int] = field(default_factory=dict)
    scraper_results: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    artifacts: Dict[str, str] = field(default_factory=dict)
    degraded: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the trigger response shape."""
        data = {
            "success": self.success,
            "totalDeals": self.total_deals,
            "dealsByStore": self.deals_by_store,
            "scraperResults": self.scraper_results,
            "artifacts": self.artifacts,
            "duration": f"{self.duration_ms}ms",
            "timestamp": self.timestamp,
        }
        if self.degraded:
            data["degraded"] = self.degraded
        if self.error:
            data["error"] = self.error
        return data
