"""
Collector history ledger models.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

HISTORY_VERSION = 1

DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class HistoryEntry:
    """One collector's outcome on a given day."""

    scraper: str
    ok: bool
    count: int = 0
    duration_ms: Optional[int] = None
    timestamp: Optional[str] = None
    via: Optional[str] = None
    blob_url: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "scraper": self.scraper,
            "ok": self.ok,
            "count": self.count,
            "durationMs": self.duration_ms,
            "timestamp": self.timestamp,
            "via": self.via,
            "blobUrl": self.blob_url,
        }
        if self.error:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        count = data.get("count")
        return cls(
            scraper=str(data.get("scraper") or "unknown"),
            ok=bool(data.get("ok")),
            count=count if isinstance(count, int) and count >= 0 else 0,
            duration_ms=data.get("durationMs"),
            timestamp=data.get("timestamp"),
            via=data.get("via"),
            blob_url=data.get("blobUrl"),
            error=data.get("error"),
        )


@dataclass
class HistoryDay:
    """All collector outcomes recorded for one UTC day."""

    day: str
    generated_at: str
    scrapers: List[HistoryEntry] = field(default_factory=list)

    def validate(self) -> bool:
        if not DAY_PATTERN.match(self.day or ""):
            raise ValueError(f"History day must be YYYY-MM-DD: {self.day!r}")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dayUTC": self.day,
            "generatedAt": self.generated_at,
            "scrapers": [entry.to_dict() for entry in self.scrapers],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryDay":
        scrapers = data.get("scrapers")
        if not isinstance(scrapers, list):
            scrapers = []

        day = cls(
            day=str(data.get("dayUTC") or ""),
            generated_at=str(data.get("generatedAt") or ""),
            scrapers=[HistoryEntry.from_dict(s) for s in scrapers if isinstance(s, dict)],
        )
        day.validate()
        return day


@dataclass
class HistoryLedger:
    """Rolling per-day log of collector outcomes."""

    days: List[HistoryDay] = field(default_factory=list)
    last_updated: Optional[str] = None
    version: int = HISTORY_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "lastUpdated": self.last_updated,
            "days": [day.to_dict() for day in self.days],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryLedger":
        """
        Parse a persisted ledger, skipping malformed days.

        Raises:
            ValueError: If the payload is not a ledger object at all.
        """
        if not isinstance(data, dict):
            raise ValueError("History payload must be an object")

        raw_days = data.get("days")
        if not isinstance(raw_days, list):
            raise ValueError("History payload has no days list")

        # A repeated day keeps its last entry
        by_day = {}
        for raw_day in raw_days:
            if not isinstance(raw_day, dict):
                continue
            try:
                history_day = HistoryDay.from_dict(raw_day)
            except ValueError:
                continue
            by_day.pop(history_day.day, None)
            by_day[history_day.day] = history_day

        return cls(days=list(by_day.values()), last_updated=data.get("lastUpdated"))
