"""Sites whose result cards already carry title, price and link."""

from __future__ import annotations

from urllib.parse import quote_plus

from pcparts_scraper.core.config import MAX_PRODUCTS_PER_SEARCH, SITE_SELECTORS
from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.services.captcha_manager import CaptchaDetected
from pcparts_scraper.services.fetcher import ScrapeError
from pcparts_scraper.services.listing_extractor import extract_site_cards, search_url
from pcparts_scraper.strategies.base import BaseScraper, PageSession, ScrapeContext

logger = get_logger(__name__)


class CardSiteScraper(BaseScraper):
    """Reads one search page and keeps the cards that show a dollar price."""

    def __init__(self, site: str, *, search_template: str | None = None) -> None:
        self.site = site
        self.selectors = SITE_SELECTORS.get(site) or SITE_SELECTORS["generic"]
        self.label = self.selectors.get("label")
        self.search_template = search_template

    def build_search_url(self, term: str) -> str:
        if term.startswith("http"):
            return term
        if self.search_template:
            return self.search_template.format(query=quote_plus(term))
        return search_url(self.site, term)

    async def scrape(
        self,
        session: PageSession,
        term: str,
        category: str,
        *,
        max_products: int = MAX_PRODUCTS_PER_SEARCH,
    ) -> ScrapeContext:
        ctx = ScrapeContext(term=term, category=category, search_url=self.build_search_url(term))
        try:
            html = await session.fetch_html(ctx.search_url, wait_for=self.selectors["containers"][0])
        except CaptchaDetected as exc:
            logger.warning("%s blocked search for %r: %s", self.site, term, exc.signature)
            ctx.blocked = True
            return ctx
        except ScrapeError as exc:
            logger.error("%s search failed for %r: %s", self.site, term, exc)
            ctx.failed_urls.append(ctx.search_url)
            return ctx

        result = extract_site_cards(html, self.site, ctx.search_url, limit=max_products)
        ctx.listings = [listing for listing in result.listings if listing.price_text]
        dropped = len(result.listings) - len(ctx.listings)
        if dropped:
            logger.debug("%s: dropped %d cards without a dollar price", self.site, dropped)
        return ctx


class NeweggScraper(CardSiteScraper):
    def __init__(self) -> None:
        super().__init__("newegg")


class BestBuyScraper(CardSiteScraper):
    def __init__(self) -> None:
        super().__init__("bestbuy")


class MicrocenterScraper(CardSiteScraper):
    def __init__(self) -> None:
        super().__init__("microcenter")


class GenericScraper(CardSiteScraper):
    """Any other shop; `term` must be a full search-results URL."""

    def __init__(self) -> None:
        super().__init__("generic")

    def build_search_url(self, term: str) -> str:
        if not term.startswith("http"):
            raise ValueError("Generic scraping needs a full search-results URL")
        return term
