from __future__ import annotations

from typing import Callable, Dict
from urllib.parse import urlparse

from pcparts_scraper.strategies.amazon import AmazonScraper
from pcparts_scraper.strategies.base import BaseScraper
from pcparts_scraper.strategies.retail import (
    BestBuyScraper,
    GenericScraper,
    MicrocenterScraper,
    NeweggScraper,
)

SCRAPERS: Dict[str, Callable[[], BaseScraper]] = {
    "amazon": AmazonScraper,
    "newegg": NeweggScraper,
    "bestbuy": BestBuyScraper,
    "microcenter": MicrocenterScraper,
    "generic": GenericScraper,
}

_HOST_SITES = (
    ("amazon.", "amazon"),
    ("newegg.", "newegg"),
    ("bestbuy.", "bestbuy"),
    ("microcenter.", "microcenter"),
)


def detect_site(url_or_site: str) -> str:
    """Site key for a URL or a bare site name; unknown hosts map to `generic`."""
    value = url_or_site.strip().lower()
    if value in SCRAPERS:
        return value
    host = urlparse(value).netloc or value
    for marker, site in _HOST_SITES:
        if marker in host:
            return site
    return "generic"


def get_scraper(url_or_site: str) -> BaseScraper:
    return SCRAPERS[detect_site(url_or_site)]()
