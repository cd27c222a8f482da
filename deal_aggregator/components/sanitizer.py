"""
Sanitization and normalization of collector records.

Collector output regularly carries leaked theme CSS and review-widget
markup inside titles. This module removes those fragments surgically so the
surrounding product text survives, and rejects records that cannot be
recovered.
"""

import logging
import math
import re
from typing import Any, Optional

from bs4 import BeautifulSoup

from ..models.deal import (
    UNKNOWN_ATTRIBUTE,
    UNKNOWN_BRAND,
    UNKNOWN_STORE,
    CandidateRecord,
    CatalogEntry,
)
from .store_registry import StoreRegistry

logger = logging.getLogger(__name__)

# Selector text directly in front of a style block, e.g. "#review-stars-1 .oke "
SELECTOR_TAIL = re.compile(
    r"(?:[@#.:][-\w]+(?:[\s>+~,]+[@#.:]?[-\w()\[\]=\"']+)*\s*)$"
)

WIDGET_JUNK_PATTERNS = [
    r"#review-stars-[-\w]*",
    r"\boke-sr-count[-\w]*",
    r"@media\b[^{]*",
    r":root\b",
]

PROMO_PREFIX_PATTERNS = [
    r"^extra\s*\d+\s*%\s*off\s+",
    r"^(?:sale|clearance|closeout)\s*[:\-]?\s+",
]

PRICE_PATTERN = re.compile(r"-?\d[\d,]*(?:\.\d+)?|-?\.\d+")


def normalize_whitespace(text: Any) -> str:
    """Collapse runs of whitespace into single spaces."""
    return re.sub(r"\s+", " ", str(text or "")).strip()


def strip_html(text: Any) -> str:
    """Drop markup tags, keeping their text content."""
    value = str(text or "")
    if not value:
        return ""

    if "<" in value and ">" in value:
        value = BeautifulSoup(value, "html.parser").get_text(" ")

    return normalize_whitespace(value)


def _matching_brace(text: str, open_index: int) -> int:
    """Index of the brace closing ``text[open_index]``, or -1."""
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1


def remove_style_rules(text: str) -> str:
    """
    Remove brace-balanced style rules and their selectors.

    A block is treated as a style rule only when its body contains a colon
    or semicolon; other braces are left alone.
    """
    result = text
    search_from = 0

    while True:
        open_index = result.find("{", search_from)
        if open_index == -1:
            break

        close_index = _matching_brace(result, open_index)
        if close_index == -1:
            break

        body = result[open_index + 1 : close_index]
        if ":" not in body and ";" not in body:
            search_from = open_index + 1
            continue

        prefix = result[:open_index]
        selector = SELECTOR_TAIL.search(prefix)
        start = selector.start() if selector else open_index

        result = result[:start] + " " + result[close_index + 1 :]
        search_from = start

    return result


def remove_widget_junk(text: str) -> str:
    for pattern in WIDGET_JUNK_PATTERNS:
        text = re.sub(pattern, " ", text, flags=re.IGNORECASE)
    return text


def strip_promotional_prefix(title: str) -> str:
    """Strip leading "Sale"/"Clearance"/"Extra N% off" boilerplate."""
    previous = None
    while previous != title:
        previous = title
        for pattern in PROMO_PREFIX_PATTERNS:
            title = re.sub(pattern, "", title, flags=re.IGNORECASE)
    return title.strip()


def looks_like_markup_or_junk(text: str, min_length: int = 3) -> bool:
    """Heuristic check for text that is still CSS, markup or too short."""
    value = normalize_whitespace(text)
    if len(value) < min_length:
        return True
    if re.match(r"^#[-_a-z0-9]+", value, re.IGNORECASE):
        return True
    if "{" in value and "}" in value and ":" in value:
        return True
    if value.startswith("@media") or value.startswith(":root"):
        return True
    if re.search(r"<[a-z/][^>]*>", value, re.IGNORECASE):
        return True
    return False


def clean_text(raw: Any, min_length: int = 3) -> str:
    """Clean a free-text field, returning "" when nothing usable is left."""
    text = strip_html(raw)
    text = remove_style_rules(text)
    text = remove_widget_junk(text)
    text = normalize_whitespace(text)

    if looks_like_markup_or_junk(text, min_length):
        return ""
    return text


def clean_title(raw: Any) -> str:
    """Clean a title and strip promotional prefixes."""
    text = strip_html(raw)
    text = remove_style_rules(text)
    text = remove_widget_junk(text)
    text = strip_promotional_prefix(normalize_whitespace(text))

    if looks_like_markup_or_junk(text):
        return ""
    return text


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a currency-like value to float.

    Returns:
        The number, or None for booleans, non-numeric strings, NaN and
        infinities.
    """
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = PRICE_PATTERN.search(value.replace("\u00a0", " "))
        if not match:
            return None
        try:
            number = float(match.group(0).replace(",", ""))
        except ValueError:
            return None
    else:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _clean_attribute(value: Any, default: str) -> str:
    if not isinstance(value, str):
        return default
    return normalize_whitespace(value) or default


class Sanitizer:
    """Turns candidate records into normalized, not yet validated, entries."""

    def __init__(self, registry: Optional[StoreRegistry] = None):
        self.registry = registry or StoreRegistry()

    def sanitize(self, record: Optional[CandidateRecord]) -> Optional[CatalogEntry]:
        """
        Clean a candidate record.

        Returns:
            CatalogEntry with cleaned fields, or None when the record has no
            recoverable title.
        """
        if record is None:
            return None

        store = _clean_attribute(record.store, UNKNOWN_STORE)

        # Brands such as "On" are legitimately shorter than a title
        brand = clean_text(record.brand, min_length=2) or UNKNOWN_BRAND
        model = clean_text(record.model, min_length=1)

        title = clean_title(record.title)
        if not title:
            known_brand = "" if brand == UNKNOWN_BRAND else brand
            title = normalize_whitespace(f"{known_brand} {model}")
        if looks_like_markup_or_junk(title):
            logger.debug(f"Rejecting unrecoverable record from {store}")
            return None

        url = self.registry.absolutize(
            record.url if isinstance(record.url, str) else "", store
        )

        image = None
        if isinstance(record.image, str) and record.image.strip():
            image = self.registry.absolutize(record.image, store)

        return CatalogEntry(
            title=title,
            brand=brand,
            model=model,
            sale_price=to_number(record.sale_price),
            price=to_number(record.price),
            store=store,
            url=url,
            image=image,
            gender=_clean_attribute(record.gender, UNKNOWN_ATTRIBUTE),
            shoe_type=_clean_attribute(record.shoe_type, UNKNOWN_ATTRIBUTE),
        )
