# price_parsing.py
"""Turning scraped price text into numbers, plus on-page discount hints."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from pcparts_scraper.core.logger import get_logger

logger = get_logger(__name__)

_NON_PRICE_CHARS = re.compile(r"[^\d.]")
_TWO_DECIMALS = re.compile(r"^\d+\.\d{2}")
_MAX_CLEAN_LENGTH = 8

DISCOUNT_PATTERNS = (
    re.compile(r"(\d+)%\s*off", re.I),
    re.compile(r"save\s*\$(\d+(?:\.\d{2})?)", re.I),
    re.compile(r"was\s*\$(\d+(?:\.\d{2})?)\s*now\s*\$(\d+(?:\.\d{2})?)", re.I),
    re.compile(r"list\s*price:\s*\$(\d+(?:\.\d{2})?)", re.I),
    re.compile(r"typical\s*price:\s*\$(\d+(?:\.\d{2})?)", re.I),
    re.compile(r"-(\d+)%", re.I),
    re.compile(r"you\s*save", re.I),
)

STRIKETHROUGH_SELECTORS = (
    "s",
    "del",
    "strike",
    '[style*="line-through"]',
    ".a-text-strike",
    '[class*="strike"]',
    '[class*="was-price"]',
    '[class*="original-price"]',
)


def parse_price_text(text: Any) -> Optional[float]:
    """
    Parse a displayed price such as "$1,299.99" into a float.

    Everything but digits and dots is dropped. Amazon sometimes renders the
    same price twice in one node ("1699.991699.99"); long strings are cut
    back to the first number with two decimals.
    """
    if text is None:
        return None
    if isinstance(text, (int, float)):
        value = float(text)
        return value if value > 0 else None

    cleaned = _NON_PRICE_CHARS.sub("", str(text))
    if not cleaned or cleaned == "0" or len(cleaned) < 2:
        return None

    if len(cleaned) > _MAX_CLEAN_LENGTH:
        match = _TWO_DECIMALS.match(cleaned)
        if match:
            cleaned = match.group(0)

    # "12.34.56" style leftovers keep the first two parts
    if cleaned.count(".") > 1:
        head, tail = cleaned.split(".", 2)[:2]
        cleaned = f"{head}.{tail}"

    try:
        value = float(cleaned.strip("."))
    except ValueError:
        return None
    return value if value > 0 else None


def parse_dollar_price(text: Optional[str]) -> Optional[float]:
    """Like `parse_price_text`, but only for text that shows a dollar sign."""
    if not text or "$" not in text:
        return None
    return parse_price_text(text)


def in_range(price: Optional[float], low: float, high: float) -> bool:
    return price is not None and low <= price <= high


def join_whole_fraction(whole: str, fraction: Optional[str]) -> Optional[float]:
    """Rebuild a price split across `.a-price-whole` / `.a-price-fraction`."""
    whole_digits = re.sub(r"\D", "", whole or "")
    if not whole_digits:
        return None
    fraction_digits = re.sub(r"\D", "", fraction or "")[:2] or "00"
    return parse_price_text(f"{whole_digits}.{fraction_digits.ljust(2, '0')}")


def detect_discount(html: str) -> Dict[str, Any]:
    """
    Look for sale indicators on a page.

    Returns ``{"has_discount": bool, "indicators": [...], "strikethrough_prices": [...]}``.
    """
    soup = BeautifulSoup(html, "lxml")
    text = soup.get_text(" ", strip=True)

    indicators: List[Tuple[str, str]] = []
    for pattern in DISCOUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            indicators.append((pattern.pattern, match.group(0)))

    strikethrough: List[float] = []
    for selector in STRIKETHROUGH_SELECTORS:
        for node in soup.select(selector):
            value = parse_dollar_price(node.get_text(" ", strip=True))
            if value is not None:
                strikethrough.append(value)

    has_discount = bool(indicators) or bool(strikethrough)
    if has_discount:
        logger.debug(
            "Discount indicators found: %d patterns, %d strikethrough prices",
            len(indicators),
            len(strikethrough),
        )
    return {
        "has_discount": has_discount,
        "indicators": [match for _, match in indicators],
        "strikethrough_prices": strikethrough,
    }
