from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict

from pcparts_scraper.models.listing import ProductListing, RawListing


class ScrapeRunState(TypedDict, total=False):
    # Inputs
    term: str
    category: str
    site: str
    max_products: int

    # Scrape output
    raw_listings: List[RawListing]
    accepted: List[RawListing]
    rejected: int
    listings: List[ProductListing]

    # Persistence
    stats: Dict[str, int]
    collections: Dict[str, int]

    # Diagnostics
    errors: List[str]
    metadata: Dict[str, Any]


def initial_state(
    term: str,
    category: str,
    *,
    site: str = "amazon",
    max_products: Optional[int] = None,
) -> ScrapeRunState:
    state: ScrapeRunState = {
        "term": term,
        "category": category,
        "site": site,
        "errors": [],
        "metadata": {},
    }
    if max_products is not None:
        state["max_products"] = max_products
    return state
