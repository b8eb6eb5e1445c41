"""Shared shape of a site scraper."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from pcparts_scraper.models.listing import RawListing


class PageSession(Protocol):
    async def fetch_html(self, url: str, *, wait_ms: Optional[int] = None, wait_for: Optional[str] = None) -> str:
        ...

    async def pause(self, ms: int) -> None:
        ...


@dataclass
class ScrapeContext:
    term: str
    category: str
    search_url: Optional[str] = None
    product_urls: List[str] = field(default_factory=list)
    listings: List[RawListing] = field(default_factory=list)
    failed_urls: List[str] = field(default_factory=list)
    blocked: bool = False


class BaseScraper:
    site: str = "generic"
    label: Optional[str] = None

    async def scrape(self, session: PageSession, term: str, category: str, *, max_products: int) -> ScrapeContext:
        raise NotImplementedError
