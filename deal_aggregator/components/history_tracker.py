"""
Rolling history of collector outcomes, one entry per UTC day.
"""

from typing import Any, Dict, List, Optional

from ..models.history import HistoryDay, HistoryEntry, HistoryLedger
from ..models.run import SourceRun
from ..utils.logging import get_logger

logger = get_logger("history.tracker")


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return None


def _breakdown_entries(run: SourceRun) -> List[HistoryEntry]:
    entries = []
    for name, result in run.breakdown.items():
        if not isinstance(result, dict):
            continue
        count = _int_or_none(result.get("count"))
        error = result.get("error")
        entries.append(
            HistoryEntry(
                scraper=str(name),
                ok=bool(result.get("ok", error is None)),
                count=count if count is not None and count >= 0 else 0,
                duration_ms=_int_or_none(
                    result.get("durationMs", result.get("duration"))
                ),
                timestamp=result.get("timestamp") or run.timestamp,
                via=run.via,
                blob_url=result.get("blobUrl"),
                error=str(error) if error else None,
            )
        )
    return entries


def _has_metadata(run: SourceRun) -> bool:
    return any(
        value is not None
        for value in (run.duration_ms, run.timestamp, run.via, run.blob_url, run.error)
    )


def build_entries(runs: List[SourceRun]) -> List[HistoryEntry]:
    """
    Turn today's source runs into history entries.

    A run reporting per-collector results expands into one entry per
    collector. Otherwise it becomes a single aggregate line, or a count-only
    line when the run carries no metadata at all.
    """
    entries: List[HistoryEntry] = []

    for run in runs:
        if run.breakdown:
            expanded = _breakdown_entries(run)
            if expanded:
                entries.extend(expanded)
                continue

        if _has_metadata(run):
            entries.append(
                HistoryEntry(
                    scraper=run.name,
                    ok=run.ok,
                    count=run.count,
                    duration_ms=run.duration_ms,
                    timestamp=run.timestamp,
                    via=run.via,
                    blob_url=run.blob_url,
                    error=run.error,
                )
            )
        else:
            entries.append(HistoryEntry(scraper=run.name, ok=run.ok, count=run.count))

    return entries


def update_history(
    prior: Optional[HistoryLedger],
    runs: List[SourceRun],
    day: str,
    generated_at: str,
    max_days: int = 30,
) -> HistoryLedger:
    """
    Merge today's outcomes into the ledger.

    Any existing entry for ``day`` is replaced, days are kept in ascending
    order and only the most recent ``max_days`` survive.
    """
    today = HistoryDay(day=day, generated_at=generated_at, scrapers=build_entries(runs))
    today.validate()

    by_day = {d.day: d for d in (prior.days if prior else [])}
    by_day[day] = today
    days = sorted(by_day.values(), key=lambda d: d.day)

    evicted = max(0, len(days) - max_days)
    if evicted:
        logger.debug(
            "Evicting old history days",
            extra={"evicted": [d.day for d in days[:evicted]]},
        )

    return HistoryLedger(days=days[evicted:], last_updated=generated_at)
