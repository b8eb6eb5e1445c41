import asyncio

from pcparts_scraper.core.logger import get_logger, setup_logging
from pcparts_scraper.interface.cli import app
from pcparts_scraper.pipeline.graph import run_search_term
from pcparts_scraper.services.fetcher import BrowserSession
from pcparts_scraper.services.storage import CatalogRepository, get_database

logger = get_logger(__name__)


async def _run(term: str, category: str, save: bool) -> dict:
    repository = CatalogRepository(get_database()) if save else None
    async with BrowserSession() as session:
        return await run_search_term(term, category, session, repository)


def run_term(term: str, category: str, *, save: bool = True, log_level: str = "INFO") -> None:
    setup_logging(log_level=log_level.upper())

    logger.info("Starting scrape run for %r (%s)", term, category)
    result = asyncio.run(_run(term, category, save))

    listings = result.get("listings") or []
    logger.info(
        "Run finished with %d raw, %d kept, stats=%s",
        len(result.get("raw_listings") or []),
        len(listings),
        result.get("stats"),
    )
    for name, count in (result.get("collections") or {}).items():
        logger.info("Saved %d listings to %s", count, name)

    for err in result.get("errors", []):
        logger.error("Error: %s", err)


if __name__ == "__main__":
    app()
