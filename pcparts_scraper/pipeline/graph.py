from __future__ import annotations

from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional

from langgraph.graph import END, StateGraph

from pcparts_scraper.core.config import MAX_PRODUCTS_PER_SEARCH
from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.models.listing import ProductListing, UpsertStats
from pcparts_scraper.models.search_term import SearchTerm
from pcparts_scraper.models.state import initial_state
from pcparts_scraper.services.normalizer import collection_for, collection_for_term, normalize_listing
from pcparts_scraper.services.product_filters import get_filter
from pcparts_scraper.services.storage import CatalogRepository
from pcparts_scraper.strategies.base import BaseScraper, PageSession
from pcparts_scraper.strategies.registry import get_scraper

logger = get_logger(__name__)


def _errors(state: Dict[str, Any]) -> list[str]:
    state.setdefault("errors", [])
    return state["errors"]


def _metadata(state: Dict[str, Any]) -> Dict[str, Any]:
    state.setdefault("metadata", {})
    return state["metadata"]


def _routing_decision(state: Dict[str, Any]) -> Literal["filter", "end"]:
    if state.get("raw_listings"):
        return "filter"
    return "end"


def filter_node(state: Dict[str, Any]) -> Dict[str, Any]:
    product_filter = get_filter(state["category"])
    accepted = [raw for raw in state.get("raw_listings", []) if product_filter.accept(raw, state["term"])]
    state["accepted"] = accepted
    state["rejected"] = len(state.get("raw_listings", [])) - len(accepted)
    logger.info(
        "Filter kept %d of %d %s listings for %r",
        len(accepted),
        len(state.get("raw_listings", [])),
        state["category"],
        state["term"],
    )
    return state


def normalize_node(state: Dict[str, Any]) -> Dict[str, Any]:
    listings: List[ProductListing] = []
    for raw in state.get("accepted", []):
        try:
            listings.append(normalize_listing(raw, state["category"], search_term=state["term"]))
        except ValueError as exc:
            logger.warning("Could not normalize %s: %s", raw.url or raw.title, exc)
            _errors(state).append(f"normalize_error: {exc}")
    state["listings"] = listings
    return state


def build_scrape_graph(
    session: PageSession,
    repository: Optional[CatalogRepository] = None,
    scraper: Optional[BaseScraper] = None,
):
    """
    scrape -> filter -> normalize -> persist, for one search term.

    Without a repository the run stops after normalize (dry run).
    """

    async def scrape_node(state: Dict[str, Any]) -> Dict[str, Any]:
        term = state["term"]
        site_scraper = scraper or get_scraper(state.get("site", "amazon"))
        logger.info("Scraping %s for %r (%s)", site_scraper.site, term, state["category"])
        try:
            ctx = await site_scraper.scrape(
                session,
                term,
                state["category"],
                max_products=state.get("max_products", MAX_PRODUCTS_PER_SEARCH),
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Scrape failed for %r", term)
            _errors(state).append(f"scrape_error: {exc}")
            state["raw_listings"] = []
            return state

        state["raw_listings"] = ctx.listings
        meta = _metadata(state)
        meta["search_url"] = ctx.search_url
        meta["product_urls"] = len(ctx.product_urls)
        meta["failed_urls"] = list(ctx.failed_urls)
        meta["blocked"] = ctx.blocked
        if ctx.blocked:
            _errors(state).append(f"blocked: {ctx.search_url}")
        return state

    def persist_node(state: Dict[str, Any]) -> Dict[str, Any]:
        if repository is None:
            _metadata(state)["dry_run"] = True
            return state

        grouped: Dict[str, List[ProductListing]] = defaultdict(list)
        for listing in state.get("listings", []):
            grouped[collection_for(listing)].append(listing)

        total = UpsertStats()
        collections: Dict[str, int] = {}
        for name, listings in grouped.items():
            try:
                repository.ensure_indexes(name)
                stats = repository.upsert_listings(name, listings)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Persisting to %s failed", name)
                _errors(state).append(f"persist_error[{name}]: {exc}")
                total = total.merge(UpsertStats(failed=len(listings)))
                continue
            total = total.merge(stats)
            collections[name] = len(listings)

        state["stats"] = total.summary()
        state["collections"] = collections
        return state

    graph = StateGraph(dict)

    graph.add_node("scrape", scrape_node)
    graph.add_node("filter", filter_node)
    graph.add_node("normalize", normalize_node)
    graph.add_node("persist", persist_node)
    graph.set_entry_point("scrape")

    graph.add_conditional_edges(
        "scrape",
        _routing_decision,
        {
            "filter": "filter",
            "end": END,
        },
    )
    graph.add_edge("filter", "normalize")
    graph.add_edge("normalize", "persist")
    graph.add_edge("persist", END)
    return graph.compile()


async def run_search_term(
    term: str,
    category: str,
    session: PageSession,
    repository: Optional[CatalogRepository] = None,
    *,
    site: str = "amazon",
    max_products: Optional[int] = None,
    scraper: Optional[BaseScraper] = None,
) -> Dict[str, Any]:
    graph = build_scrape_graph(session, repository, scraper)
    state = initial_state(term, category, site=site, max_products=max_products)
    result = await graph.ainvoke(dict(state))
    result.setdefault("stats", UpsertStats().summary())
    return result


async def run_model(
    session: PageSession,
    search_term: SearchTerm,
    repository: Optional[CatalogRepository] = None,
    *,
    site: str = "amazon",
    max_products: Optional[int] = None,
) -> Dict[str, Any]:
    """Run every query string of one model and fold the results together."""
    totals = UpsertStats()
    errors: List[str] = []
    scraped = 0
    for query in search_term.search_terms or [search_term.model]:
        result = await run_search_term(
            query,
            search_term.category,
            session,
            repository,
            site=site,
            max_products=max_products,
        )
        scraped += len(result.get("listings", []))
        errors.extend(result.get("errors", []))
        stats = result["stats"]
        totals = totals.merge(
            UpsertStats(
                new=stats.get("new", 0),
                duplicate=stats.get("duplicate", 0),
                updated=stats.get("updated", 0),
                failed=stats.get("failed", 0),
            )
        )

    summary = totals.summary()
    # dry runs count normalized listings as saved
    saved = summary["new"] + summary["updated"] + summary["duplicate"] if repository is not None else scraped
    return {
        "saved": saved,
        "listings": scraped,
        "stats": summary,
        "errors": errors,
        # None when the target depends on each listing title
        "collection": collection_for_term(search_term.category, search_term.primary_term),
    }


def make_model_runner(
    repository: Optional[CatalogRepository] = None,
    *,
    site: str = "amazon",
    max_products: Optional[int] = None,
) -> Callable[[PageSession, SearchTerm], Awaitable[Dict[str, Any]]]:
    async def runner(session: PageSession, search_term: SearchTerm) -> Dict[str, Any]:
        return await run_model(session, search_term, repository, site=site, max_products=max_products)

    return runner
