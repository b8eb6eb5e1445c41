# listing_extractor.py
"""Search-results parsing: product links and listing cards from result pages."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote_plus, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from pcparts_scraper.core.config import (
    AMAZON_BASE_URL,
    IMAGE_ATTRS,
    SEARCH_URL_TEMPLATES,
    SITE_SELECTORS,
)
from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.models.listing import RawListing
from pcparts_scraper.services.price_parsing import parse_dollar_price

logger = get_logger(__name__)

SEARCH_RESULT_SELECTOR = '[data-component-type="s-search-result"]'
_ASIN_PATH = re.compile(r"/(?:dp|gp/product)/([A-Z0-9]{10})", re.I)


@dataclass
class CardExtractionResult:
    listings: List[RawListing] = field(default_factory=list)
    container_selector: Optional[str] = None


def search_url(site: str, term: str) -> str:
    template = SEARCH_URL_TEMPLATES.get(site)
    if template is None:
        raise ValueError(f"No search URL known for site {site!r}")
    return template.format(query=quote_plus(term.strip()))


def detect_page_type(html: str) -> str:
    soup = BeautifulSoup(html, "lxml")
    if soup.select_one(SEARCH_RESULT_SELECTOR):
        return "search"
    if soup.select_one("#productTitle") or soup.select_one("#dp, #centerCol"):
        return "product"
    return "unknown"


def extract_asin(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    match = _ASIN_PATH.search(url)
    return match.group(1).upper() if match else None


def canonical_amazon_url(href: str) -> str:
    """Strip tracking params: `/Some-Title/dp/B0ABC12345/ref=...` -> `https://www.amazon.com/dp/B0ABC12345`."""
    asin = extract_asin(href)
    if asin:
        return f"{AMAZON_BASE_URL}/dp/{asin}"
    return urljoin(AMAZON_BASE_URL, href)


def extract_product_urls(html: str, limit: int = 25) -> List[str]:
    """Unique product-page URLs from an Amazon search result page, in page order."""
    soup = BeautifulSoup(html, "lxml")
    urls: List[str] = []
    seen = set()

    results = soup.select(SEARCH_RESULT_SELECTOR) or [soup]
    for result in results:
        for anchor in result.select("a[href]"):
            href = anchor.get("href") or ""
            if "/dp/" not in href:
                continue
            url = canonical_amazon_url(href)
            if url in seen:
                continue
            seen.add(url)
            urls.append(url)
            break
        if len(urls) >= limit:
            break

    logger.debug("Found %d product links on search page", len(urls))
    return urls


def _first_text(node: Tag, selectors: Sequence[str]) -> Optional[str]:
    for selector in selectors:
        found = node.select_one(selector)
        if found is None:
            continue
        text = found.get_text(" ", strip=True) or (found.get("title") or "").strip()
        if text:
            return text
    return None


def _first_price_text(node: Tag, selectors: Sequence[str]) -> Optional[str]:
    for selector in selectors:
        for found in node.select(selector):
            text = found.get_text(" ", strip=True)
            if not text and found.get("data-price"):
                text = f"${found['data-price']}"
            if parse_dollar_price(text) is not None:
                return text
    return None


def _first_link(node: Tag, selectors: Sequence[str], base_url: str) -> Optional[str]:
    for selector in selectors:
        found = node.select_one(selector)
        if found is not None and found.get("href"):
            return urljoin(base_url, found["href"])
    if node.name == "a" and node.get("href"):
        return urljoin(base_url, node["href"])
    return None


def _first_image(node: Tag, selectors: Sequence[str], base_url: str) -> Optional[str]:
    for selector in selectors:
        img = node.select_one(selector)
        if img is None:
            continue
        for attr in IMAGE_ATTRS:
            value = img.get(attr)
            if not value:
                continue
            if attr == "srcset":
                value = value.split()[0]
            value = value.strip()
            if value and not value.startswith("data:"):
                return urljoin(base_url, value)
    return None


def extract_cards(
    html: str,
    selectors: Dict[str, Any],
    base_url: str,
    *,
    source: Optional[str] = None,
    limit: int = 25,
) -> CardExtractionResult:
    """
    Read listing cards using a site selector table.

    Container selectors are tried in order; the first one whose cards yield
    at least one titled listing wins. Cards are deduped by link, else title.
    """
    soup = BeautifulSoup(html, "lxml")
    label = source or urlparse(base_url).netloc.replace("www.", "")

    for container in selectors.get("containers", ()):
        nodes = soup.select(container)
        if not nodes:
            continue

        listings: List[RawListing] = []
        seen = set()
        for node in nodes:
            title = _first_text(node, selectors.get("title", ()))
            if not title:
                continue
            url = _first_link(node, selectors.get("link", ()), base_url)
            key = url or title.lower()
            if key in seen:
                continue
            seen.add(key)
            listings.append(
                RawListing(
                    title=title,
                    price_text=_first_price_text(node, selectors.get("price", ())),
                    url=url,
                    image_url=_first_image(node, selectors.get("image", ()), base_url),
                    source=label,
                    price_source=container,
                    detection_method="listing_card",
                )
            )
            if len(listings) >= limit:
                break

        if listings:
            logger.info("Extracted %d cards with container %s", len(listings), container)
            return CardExtractionResult(listings=listings, container_selector=container)

    logger.warning("No listing cards found on %s", base_url)
    return CardExtractionResult()


def extract_site_cards(html: str, site: str, base_url: str, *, limit: int = 25) -> CardExtractionResult:
    selectors = SITE_SELECTORS.get(site) or SITE_SELECTORS["generic"]
    return extract_cards(html, selectors, base_url, source=selectors.get("label"), limit=limit)
