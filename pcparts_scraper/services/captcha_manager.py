from bs4 import BeautifulSoup
from dataclasses import dataclass, field
from typing import Sequence

from urllib.parse import urlparse

from pcparts_scraper.core.config import (
    CAPTCHA_SIGNATURES,
    SUSPECT_SELECTORS,
    SUSPECT_TEXT_KEYWORDS,
    SUSPECT_TITLE_PATTERNS,
)
from pcparts_scraper.core.logger import get_logger

logger = get_logger(__name__)


def heuristic_captcha_detect(url: str, html: str) -> str | None:
    soup = BeautifulSoup(html, "lxml")
    text = soup.get_text(" ", strip=True).lower()
    title = (soup.title.string or "").strip() if soup.title else ""
    netloc = urlparse(url).netloc.lower()
    domain = netloc.replace("www.", "")
    title_norm = title.lower().replace("www.", "")

    if len(html) < 4096:
        if (domain and title_norm.startswith(domain)) or not text:
            return "suspicious_small_response"

    for pat in SUSPECT_TITLE_PATTERNS:
        if pat.search(title):
            return pat.pattern

    if any(keyword in text for keyword in SUSPECT_TEXT_KEYWORDS):
        return "keyword_match"

    for selector in SUSPECT_SELECTORS:
        if soup.select_one(selector):
            return selector

    return None


class CaptchaDetected(Exception):
    def __init__(self, url: str, signature: str):
        super().__init__(f"Captcha detected for {url} via '{signature}'")
        self.url = url
        self.signature = signature


@dataclass
class CaptchaManager:
    """Recognises robot-check pages; the page is skipped, never solved."""

    signatures: Sequence[str] = field(default_factory=lambda: CAPTCHA_SIGNATURES)

    def detect(self, html: str) -> str | None:
        lowered = html.lower()
        for sig in self.signatures:
            if sig in lowered:
                return sig
        return None

    def handle(self, url: str, html: str) -> None:
        if not html or not html.strip():
            raise CaptchaDetected(url, "empty_response")

        signature = self.detect(html) or heuristic_captcha_detect(url, html)
        if not signature:
            return

        logger.warning("Blocked page for %s (%s)", url, signature)
        raise CaptchaDetected(url, signature)
