# price_updater.py
"""Re-scrape stored product URLs and refresh their prices in place."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pcparts_scraper.core.config import PRODUCT_PRICE_RANGE, REQUEST_DELAY_MS
from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.services.captcha_manager import CaptchaDetected
from pcparts_scraper.services.fetcher import ScrapeError
from pcparts_scraper.services.price_extractor import PriceExtractor
from pcparts_scraper.services.storage import CatalogRepository
from pcparts_scraper.strategies.base import PageSession

logger = get_logger(__name__)


@dataclass
class PriceUpdater:
    repository: CatalogRepository
    session_factory: Callable[[], Any]
    extractor: Optional[PriceExtractor] = None
    delay_ms: int = REQUEST_DELAY_MS

    def __post_init__(self) -> None:
        if self.extractor is None:
            self.extractor = PriceExtractor(price_range=PRODUCT_PRICE_RANGE)

    async def update_item(self, session: PageSession, collection: str, item: Dict[str, Any]) -> Dict[str, Any]:
        url = item.get("source_url")
        name = (item.get("name") or "")[:60]
        outcome: Dict[str, Any] = {"id": str(item.get("_id")), "name": name, "success": False}
        if not url:
            outcome["error"] = "no source_url"
            return outcome

        try:
            html = await session.fetch_html(url, wait_for="#productTitle")
        except (CaptchaDetected, ScrapeError) as exc:
            logger.warning("Price update skipped for %s: %s", name, exc)
            outcome["error"] = str(exc)
            return outcome

        result = self.extractor.extract(html)
        if not result.success:
            outcome["error"] = result.error or "no price found"
            logger.info("No price for %s (%s)", name, outcome["error"])
            return outcome

        self.repository.record_price(collection, item["_id"], result)
        old_price = item.get("current_price")
        outcome.update(
            success=True,
            old_price=old_price,
            new_price=result.current_price,
            is_available=result.is_available,
            detection_method=result.detection_method,
        )
        if result.is_available:
            logger.info("%s: %s -> %s", name, old_price, result.current_price)
        else:
            logger.info("%s: now unavailable (%s)", name, result.unavailability_reason)
        return outcome

    async def update_items(self, session: PageSession, collection: str, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        results = []
        for index, item in enumerate(items):
            if index:
                await session.pause(self.delay_ms)
            results.append(await self.update_item(session, collection, item))
        updated = sum(1 for r in results if r["success"])
        logger.info("Updated %d of %d items in %s", updated, len(results), collection)
        return results

    async def update_collection(
        self,
        collection: str,
        *,
        days_old: Optional[int] = None,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        """Refresh every item with a URL, or only those older than `days_old` days."""
        if days_old is None:
            items = self.repository.items_with_source_url(collection, limit=limit)
        else:
            items = self.repository.items_needing_update(collection, days_old=days_old, limit=limit)
        if not items:
            logger.info("Nothing to update in %s", collection)
            return []
        async with self.session_factory() as session:
            return await self.update_items(session, collection, items)
