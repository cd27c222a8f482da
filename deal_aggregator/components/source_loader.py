"""
Source loader for collector artifacts and endpoints.

Each configured source is read either from a precomputed JSON artifact or by
calling its endpoint directly. Endpoint responses that only point at an
artifact (``blobUrl``) are followed one level. All sources are fetched
concurrently and a failing source never affects the others.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import aiohttp
from aiohttp import ClientTimeout
from dateutil import parser as date_parser

from ..models.config import SourceConfig
from ..models.run import VIA_BLOB, VIA_ENDPOINT, SourceBatch, SourceRun
from ..utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    SourceFetchError,
    get_error_tracker,
)
from ..utils.logging import get_logger

logger = get_logger("source.loader")

DEFAULT_USER_AGENT = "Deal-Aggregator/1.0 (Catalog Merge)"


def _path_adapter(*path: str) -> Callable[[Any], Optional[List[Any]]]:
    def adapter(payload: Any) -> Optional[List[Any]]:
        value = payload
        for key in path:
            if not isinstance(value, dict):
                return None
            value = value.get(key)
        return value if isinstance(value, list) else None

    return adapter


def _array_adapter(payload: Any) -> Optional[List[Any]]:
    return payload if isinstance(payload, list) else None


PAYLOAD_ADAPTERS: Dict[str, Callable[[Any], Optional[List[Any]]]] = {
    "array": _array_adapter,
    "deals": _path_adapter("deals"),
    "items": _path_adapter("items"),
    "output.deals": _path_adapter("output", "deals"),
    "data.deals": _path_adapter("data", "deals"),
}


def extract_records(payload: Any, shape: str = "auto") -> List[Any]:
    """
    Pull the candidate record array out of a collector payload.

    Args:
        payload: Decoded JSON response
        shape: Named payload shape, or "auto" to try every known shape in order

    Returns:
        The record list, or an empty list when no known shape matches.
    """
    if shape != "auto":
        adapter = PAYLOAD_ADAPTERS.get(shape)
        if adapter is None:
            raise ValueError(f"Unknown payload shape: {shape}")
        return adapter(payload) or []

    for adapter in PAYLOAD_ADAPTERS.values():
        records = adapter(payload)
        if records is not None:
            return records
    return []


def normalize_timestamp(value: Any) -> Optional[str]:
    """Normalize a collector timestamp to ISO 8601 in UTC, or None."""
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, (int, float)):
            # Epoch milliseconds are far larger than any epoch seconds value
            seconds = value / 1000 if value > 1e11 else value
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        elif isinstance(value, str) and value.strip():
            parsed = date_parser.parse(value)
        else:
            return None
    except (ValueError, OverflowError, OSError) as e:
        logger.debug(f"Unparseable source timestamp {value!r}: {e}")
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


def parse_duration_ms(value: Any) -> Optional[int]:
    """Read a duration reported as a number or a string such as "1234ms"."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        digits = value.strip().lower().removesuffix("ms").strip()
        try:
            return int(float(digits))
        except ValueError:
            return None
    return None


def _payload_timestamp(payload: Any) -> Any:
    if not isinstance(payload, dict):
        return None
    return payload.get("lastUpdated") or payload.get("timestamp")


def _payload_breakdown(payload: Any) -> Optional[Dict[str, Dict[str, Any]]]:
    if not isinstance(payload, dict):
        return None
    breakdown = payload.get("scraperResults")
    if isinstance(breakdown, dict) and breakdown:
        return {str(k): v for k, v in breakdown.items() if isinstance(v, dict)}
    return None


class SourceLoader:
    """Fetches candidate records from every configured source."""

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT):
        self.user_agent = user_agent
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/json,text/plain,*/*",
                },
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.session:
            await self.session.close()
            self.session = None

    async def _fetch_json(self, url: str, timeout: int) -> Any:
        """
        GET a URL and decode its JSON body.

        Raises:
            aiohttp.ClientError: On transport or HTTP status errors
            asyncio.TimeoutError: When the source exceeds its timeout
        """
        async with self.session.get(url, timeout=ClientTimeout(total=timeout)) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def _load(self, source: SourceConfig) -> Tuple[SourceRun, List[Any]]:
        if source.artifact_url:
            payload = await self._fetch_json(source.artifact_url, source.timeout)
            records = extract_records(payload, source.payload_shape)
            run = SourceRun(
                name=source.name,
                ok=True,
                count=len(records),
                timestamp=normalize_timestamp(_payload_timestamp(payload)),
                via=VIA_BLOB,
                blob_url=source.artifact_url,
                store=source.store,
                breakdown=_payload_breakdown(payload),
            )
            return run, records

        payload = await self._fetch_json(source.endpoint_url, source.timeout)
        records = extract_records(payload, source.payload_shape)
        blob_url = payload.get("blobUrl") if isinstance(payload, dict) else None
        timestamp = _payload_timestamp(payload)
        breakdown = _payload_breakdown(payload)

        if not records and isinstance(blob_url, str) and blob_url:
            logger.debug(f"Following artifact pointer for {source.name}: {blob_url}")
            pointed = await self._fetch_json(blob_url, source.timeout)
            records = extract_records(pointed, source.payload_shape)
            timestamp = _payload_timestamp(pointed) or timestamp
            breakdown = _payload_breakdown(pointed) or breakdown

        run = SourceRun(
            name=source.name,
            ok=True,
            count=len(records),
            duration_ms=parse_duration_ms(
                payload.get("duration") if isinstance(payload, dict) else None
            ),
            timestamp=normalize_timestamp(timestamp),
            via=VIA_ENDPOINT,
            blob_url=blob_url if isinstance(blob_url, str) else None,
            store=source.store,
            breakdown=breakdown,
        )
        return run, records

    async def load_source(self, source: SourceConfig) -> SourceBatch:
        """
        Load one source.

        Raises:
            SourceFetchError: If the source cannot be fetched or decoded
        """
        if self.session is None:
            raise RuntimeError("SourceLoader must be used as an async context manager")

        started = time.monotonic()
        try:
            run, records = await self._load(source)
        except asyncio.TimeoutError as e:
            raise SourceFetchError(source.name, f"timed out after {source.timeout}s") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise SourceFetchError(source.name, str(e) or type(e).__name__) from e

        if run.duration_ms is None:
            run.duration_ms = int((time.monotonic() - started) * 1000)

        logger.info(
            f"Loaded {run.count} records from {source.name}",
            extra={"source": source.name, "via": run.via, "count": run.count},
        )
        return SourceBatch(run=run, records=records)

    async def load_all(self, sources: List[SourceConfig]) -> List[SourceBatch]:
        """
        Load every source concurrently as independent settled operations.

        Failed sources yield a failed SourceRun with no records; the returned
        list follows the order of ``sources``.
        """
        results = await asyncio.gather(
            *(self.load_source(source) for source in sources), return_exceptions=True
        )

        batches = []
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                reason = result.reason if isinstance(result, SourceFetchError) else str(result)
                get_error_tracker().record_error(
                    component="source.loader",
                    category=ErrorCategory.NETWORK,
                    severity=ErrorSeverity.MEDIUM,
                    message=f"Source {source.name} failed: {reason}",
                    exception=result,
                    context={"source": source.name},
                )
                batches.append(
                    SourceBatch(
                        run=SourceRun(
                            name=source.name, ok=False, error=reason, store=source.store
                        ),
                        records=[],
                    )
                )
                continue
            batches.append(result)

        ok_count = sum(1 for batch in batches if batch.run.ok)
        logger.info(
            f"Loaded {ok_count}/{len(sources)} sources",
            extra={"records": sum(len(batch.records) for batch in batches)},
        )
        return batches
