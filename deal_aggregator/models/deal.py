"""
Deal data models for the deal aggregation pipeline.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse

UNKNOWN_BRAND = "Unknown"
UNKNOWN_STORE = "Unknown"
UNKNOWN_ATTRIBUTE = "unknown"


@dataclass
class CandidateRecord:
    """Untrusted listing as produced by a collector."""

    title: Any = None
    brand: Any = None
    model: Any = None
    sale_price: Any = None
    price: Any = None
    store: Any = None
    url: Any = None
    image: Any = None
    gender: Any = None
    shoe_type: Any = None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["CandidateRecord"]:
        """
        Build a candidate from a collector JSON object.

        Collectors that predate the salePrice/price naming report the sale
        price as ``price`` and the reference price as ``originalPrice``.

        Returns:
            CandidateRecord, or None when the payload is not an object.
        """
        if not isinstance(payload, dict):
            return None

        if "salePrice" not in payload and "originalPrice" in payload:
            sale_price = payload.get("price")
            price = payload.get("originalPrice")
        else:
            sale_price = payload.get("salePrice")
            price = payload.get("price")

        return cls(
            title=payload.get("title"),
            brand=payload.get("brand"),
            model=payload.get("model"),
            sale_price=sale_price,
            price=price,
            store=payload.get("store"),
            url=payload.get("url"),
            image=payload.get("image"),
            gender=payload.get("gender"),
            shoe_type=payload.get("shoeType"),
        )


@dataclass
class CatalogEntry:
    """Normalized deal as published in the catalog."""

    title: str
    brand: str
    model: str
    sale_price: Optional[float]
    price: Optional[float]
    store: str
    url: str
    image: Optional[str] = None
    gender: str = UNKNOWN_ATTRIBUTE
    shoe_type: str = UNKNOWN_ATTRIBUTE

    @property
    def has_discount(self) -> bool:
        """True when both prices are known and the sale price is lower."""
        return (
            self.sale_price is not None
            and self.price is not None
            and self.sale_price > 0
            and self.price > 0
            and self.sale_price < self.price
        )

    @property
    def discount_percent(self) -> float:
        """Percent off the reference price, 0 when not discounted."""
        if not self.has_discount:
            return 0.0
        return (self.price - self.sale_price) / self.price * 100

    @property
    def dollar_savings(self) -> float:
        """Absolute savings, 0 when not discounted."""
        if not self.has_discount:
            return 0.0
        return self.price - self.sale_price

    def validate(self) -> bool:
        """Validate catalog invariants."""
        if not self.title or not self.title.strip():
            raise ValueError("Deal title cannot be empty")

        if not self.url or not self.url.strip():
            raise ValueError("Deal URL cannot be empty")

        parsed_url = urlparse(self.url)
        if not parsed_url.scheme or not parsed_url.netloc:
            raise ValueError(f"Deal URL must be absolute: {self.url}")

        if self.sale_price is None:
            raise ValueError("Sale price is required")

        if not (10 <= self.sale_price <= 1000):
            raise ValueError("Sale price must be between 10 and 1000")

        if self.price is not None:
            if self.price <= self.sale_price:
                raise ValueError("Reference price must be above the sale price")

            if not (5 <= self.discount_percent <= 90):
                raise ValueError("Discount percentage must be between 5 and 90")

        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the catalog wire shape."""
        return {
            "title": self.title,
            "brand": self.brand,
            "model": self.model,
            "salePrice": self.sale_price,
            "price": self.price,
            "store": self.store,
            "url": self.url,
            "image": self.image,
            "gender": self.gender,
            "shoeType": self.shoe_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogEntry":
        """Rebuild an entry from a persisted catalog."""
        return cls(
            title=data.get("title") or "",
            brand=data.get("brand") or UNKNOWN_BRAND,
            model=data.get("model") or "",
            sale_price=data.get("salePrice"),
            price=data.get("price"),
            store=data.get("store") or UNKNOWN_STORE,
            url=data.get("url") or "",
            image=data.get("image"),
            gender=data.get("gender") or UNKNOWN_ATTRIBUTE,
            shoe_type=data.get("shoeType") or UNKNOWN_ATTRIBUTE,
        )
