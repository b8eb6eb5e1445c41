# fetcher.py

from __future__ import annotations

from typing import Any, Optional

from loguru import logger
from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from pcparts_scraper.core.config import (
    BROWSER_ARGS,
    CONTENT_WAIT_MS,
    HEADLESS,
    NAVIGATION_TIMEOUT_MS,
    USER_AGENT,
    VIEWPORT,
)
from pcparts_scraper.services.captcha_manager import CaptchaDetected, CaptchaManager

captcha_manager = CaptchaManager()


class ScrapeError(Exception):
    """A page could not be loaded or read."""


class BrowserSession:
    """
    One Chromium browser + context, reused for every page of a worker.

    Usage:
        async with BrowserSession() as session:
            html = await session.fetch_html(url)
    """

    def __init__(
        self,
        *,
        headless: bool = HEADLESS,
        timeout_ms: int = NAVIGATION_TIMEOUT_MS,
        wait_ms: int = CONTENT_WAIT_MS,
        captcha: Optional[CaptchaManager] = None,
    ) -> None:
        self.headless = headless
        self.timeout_ms = timeout_ms
        self.wait_ms = wait_ms
        self.captcha = captcha or captcha_manager
        self._playwright: Any = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=BROWSER_ARGS,
            )
            self._context = await self._browser.new_context(
                viewport=VIEWPORT,
                user_agent=USER_AGENT,
                locale="en-US",
            )
            self._page = await self._context.new_page()
        except Exception:
            # __aexit__ never runs when __aenter__ fails
            await self.close()
            raise
        logger.debug("Browser session started (headless={})", self.headless)

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self._context = None
        self._page = None

    async def fetch_html(
        self,
        url: str,
        *,
        wait_ms: Optional[int] = None,
        wait_for: Optional[str] = None,
    ) -> str:
        """
        Navigate and return the rendered HTML.

        Raises CaptchaDetected for robot-check pages and ScrapeError when
        navigation fails. No retries: the caller decides to skip.
        """
        if self._page is None:
            raise ScrapeError("browser session is not started")

        logger.info("Fetching {}", url)
        try:
            await self._page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            if wait_for:
                try:
                    await self._page.wait_for_selector(wait_for, timeout=self.timeout_ms // 3)
                except Exception as exc:  # noqa: BLE001
                    logger.debug("Selector {} not seen on {}: {}", wait_for, url, exc)
            await self._page.wait_for_timeout(self.wait_ms if wait_ms is None else wait_ms)
            html = await self._page.content()
        except Exception as exc:  # noqa: BLE001
            raise ScrapeError(f"Playwright fetch failed for {url}: {exc!r}") from exc

        self.captcha.handle(url, html)
        return html

    async def pause(self, ms: int) -> None:
        if self._page is not None and ms > 0:
            await self._page.wait_for_timeout(ms)


async def fetch_html(url: str, wait: int = CONTENT_WAIT_MS, *, wait_for: Optional[str] = None) -> str:
    """One-off fetch in a fresh browser. Returns "" when the page is blocked or fails."""
    try:
        async with BrowserSession(wait_ms=wait) as session:
            return await session.fetch_html(url, wait_for=wait_for)
    except CaptchaDetected as captcha_error:
        logger.warning(str(captcha_error))
    except ScrapeError as exc:
        logger.error(str(exc))
    return ""
