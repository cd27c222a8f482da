"""
Store base-URL registry used to absolutize collector links.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from ..models.config import StoreConfig

FALLBACK_BASE_URL = "https://example.com"

DEFAULT_STORES = [
    StoreConfig("Holabird Sports", "https://www.holabirdsports.com", ["holabird"]),
    StoreConfig("Brooks Running", "https://www.brooksrunning.com", ["brooks"]),
    StoreConfig("ASICS", "https://www.asics.com", ["asics"]),
    StoreConfig("Running Warehouse", "https://www.runningwarehouse.com", []),
    StoreConfig("Fleet Feet", "https://www.fleetfeet.com", []),
    StoreConfig("Luke's Locker", "https://lukeslocker.com", ["luke"]),
    StoreConfig("Marathon Sports", "https://www.marathonsports.com", []),
    StoreConfig("REI", "https://www.rei.com", ["rei"]),
    StoreConfig("Zappos", "https://www.zappos.com", ["zappos"]),
    StoreConfig("Road Runner Sports", "https://www.roadrunnersports.com", ["road runner"]),
]


def normalize_store_id(name: Optional[str]) -> str:
    """Lowercase and collapse punctuation/whitespace into single spaces."""
    return re.sub(r"[^a-z0-9]+", " ", str(name or "").lower()).strip()


class StoreRegistry:
    """Maps normalized store ids to base URLs, with one explicit fallback."""

    def __init__(
        self,
        stores: Optional[Iterable[StoreConfig]] = None,
        fallback_base_url: str = FALLBACK_BASE_URL,
        include_defaults: bool = True,
    ):
        self.fallback_base_url = fallback_base_url.rstrip("/")
        self._base_urls: Dict[str, str] = {}
        self._aliases: List[Tuple[str, str]] = []

        if include_defaults:
            for store in DEFAULT_STORES:
                self.register(store)
        for store in stores or []:
            self.register(store)

    def register(self, store: StoreConfig) -> None:
        """Add or replace a store; later registrations take precedence."""
        store_id = normalize_store_id(store.name)
        base_url = store.base_url.rstrip("/")
        self._base_urls[store_id] = base_url

        for alias in [store.name, *store.aliases]:
            alias_id = normalize_store_id(alias)
            if not alias_id:
                continue
            self._aliases = [(a, b) for a, b in self._aliases if a != alias_id]
            self._aliases.append((alias_id, base_url))

    def base_url_for(self, store: Optional[str]) -> str:
        """
        Resolve the base URL for a store name.

        Exact normalized ids win; otherwise the first alias contained in the
        store name matches, then the fallback applies.
        """
        store_id = normalize_store_id(store)
        if not store_id:
            return self.fallback_base_url

        if store_id in self._base_urls:
            return self._base_urls[store_id]

        padded = f" {store_id} "
        for alias_id, base_url in self._aliases:
            if f" {alias_id} " in padded:
                return base_url

        return self.fallback_base_url

    def absolutize(self, url: Optional[str], store: Optional[str]) -> str:
        """Resolve relative and protocol-relative URLs for a store."""
        value = str(url or "").strip()
        if not value:
            return ""

        if re.match(r"^https?://", value, re.IGNORECASE):
            return value
        if value.startswith("//"):
            return "https:" + value

        base = self.base_url_for(store)
        if value.startswith("/"):
            return base + value
        return base + "/" + value.lstrip("/")
