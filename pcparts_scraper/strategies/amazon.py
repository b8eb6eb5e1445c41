"""Amazon search -> product pages -> price cascade."""

from __future__ import annotations

from typing import Optional

from pcparts_scraper.core.config import (
    MAX_PRODUCTS_PER_SEARCH,
    PRICE_RANGES,
    PRODUCT_PRICE_RANGE,
    REQUEST_DELAY_MS,
)
from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.models.listing import RawListing
from pcparts_scraper.services.captcha_manager import CaptchaDetected
from pcparts_scraper.services.fetcher import ScrapeError
from pcparts_scraper.services.listing_extractor import (
    SEARCH_RESULT_SELECTOR,
    canonical_amazon_url,
    detect_page_type,
    extract_product_urls,
    search_url,
)
from pcparts_scraper.services.price_extractor import PriceExtractor
from pcparts_scraper.strategies.base import BaseScraper, PageSession, ScrapeContext

logger = get_logger(__name__)


class AmazonScraper(BaseScraper):
    """
    Scrapes Amazon one product page at a time.

    The search page only supplies `/dp/` links; title, price, image and
    availability come from each product page, where the price cascade can
    tell the buy-box price from list prices and fees.
    """

    site = "amazon"
    label = "Amazon"

    def __init__(
        self,
        extractor: PriceExtractor | None = None,
        *,
        delay_ms: int = REQUEST_DELAY_MS,
    ) -> None:
        self.extractor = extractor
        self.delay_ms = delay_ms

    async def scrape(
        self,
        session: PageSession,
        term: str,
        category: str,
        *,
        max_products: int = MAX_PRODUCTS_PER_SEARCH,
    ) -> ScrapeContext:
        if term.startswith("http") and "/dp/" in term:
            ctx = ScrapeContext(term=term, category=category, product_urls=[canonical_amazon_url(term)])
        else:
            ctx = ScrapeContext(term=term, category=category, search_url=search_url(self.site, term))
            await self._collect_product_urls(session, ctx, max_products)

        extractor = self.extractor_for(category)

        for index, url in enumerate(ctx.product_urls, start=1):
            if index > 1:
                await session.pause(self.delay_ms)
            logger.info("[%d/%d] %s", index, len(ctx.product_urls), url)
            listing = await self.scrape_product(session, url, extractor=extractor)
            if listing is None:
                ctx.failed_urls.append(url)
                continue
            ctx.listings.append(listing)

        logger.info(
            "Amazon %r: %d listings, %d failed pages",
            term,
            len(ctx.listings),
            len(ctx.failed_urls),
        )
        return ctx

    async def _collect_product_urls(self, session: PageSession, ctx: ScrapeContext, max_products: int) -> None:
        try:
            html = await session.fetch_html(ctx.search_url, wait_for=SEARCH_RESULT_SELECTOR)
        except CaptchaDetected as exc:
            logger.warning("Search page blocked for %r: %s", ctx.term, exc.signature)
            ctx.blocked = True
            return
        except ScrapeError as exc:
            logger.error("Search page failed for %r: %s", ctx.term, exc)
            return

        page_type = detect_page_type(html)
        if page_type != "search":
            logger.warning("Expected a search page for %r, got %s", ctx.term, page_type)
            return
        ctx.product_urls = extract_product_urls(html, limit=max_products)

    def extractor_for(self, category: str) -> PriceExtractor:
        if self.extractor is not None:
            return self.extractor
        return PriceExtractor(price_range=PRICE_RANGES.get(category, PRODUCT_PRICE_RANGE))

    async def scrape_product(
        self, session: PageSession, url: str, *, extractor: Optional[PriceExtractor] = None
    ) -> Optional[RawListing]:
        """Fetch one product page; None when the page is blocked, broken or untitled."""
        try:
            html = await session.fetch_html(url, wait_for="#productTitle")
        except CaptchaDetected as exc:
            logger.warning("Skipping blocked product page %s (%s)", url, exc.signature)
            return None
        except ScrapeError as exc:
            logger.error("Skipping product page %s: %s", url, exc)
            return None

        result = (extractor or self.extractor_for("")).extract(html)
        if not result.title:
            logger.warning("No title on %s", url)
            return None

        return RawListing(
            title=result.title,
            base_price=result.base_price,
            sale_price=result.sale_price,
            url=url,
            image_url=result.image_url,
            source=self.label,
            is_available=result.is_available,
            price_source=result.price_source,
            detection_method=result.detection_method,
        )
