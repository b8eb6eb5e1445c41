# price_extractor.py
"""
Amazon product-page price detection.

A product page carries many price nodes: the buy-box price, the
strikethrough list price, shipping and import fees, prices of other
offers. `PriceExtractor` walks a fixed cascade of strategies, from the
machine-readable hidden inputs down to scored `.a-offscreen` candidates,
and stops at the first one that produces a price inside the configured
range.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from pcparts_scraper.core.config import PRODUCT_PRICE_RANGE
from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.models.listing import PriceCandidate, PriceResult
from pcparts_scraper.services.price_parsing import (
    in_range,
    join_whole_fraction,
    parse_price_text,
)

logger = get_logger(__name__)

MAIN_PRODUCT_AREA = "#centerCol, #dp, #dp-container, .dp-wrap"

HIDDEN_INPUT_SELECTORS = (
    "#twister-plus-price-data-price",
    "#attach-base-product-price",
    'input[id="items[0.base][customerVisiblePrice][amount]"]',
    'input[name*="customerVisiblePrice"][name*="amount"]',
    'input[id*="price-data-price"]',
)

JSON_BLOB_SELECTORS = (
    "#twisterPlusWWDesktop .twister-plus-buying-options-price-data",
    ".twister-plus-buying-options-price-data",
    '[class*="price-data"]',
)

PRIORITY_SELECTORS = (
    "#corePrice_feature_div .a-offscreen",
    "#corePriceDisplay_desktop_feature_div .aok-offscreen",
    "#tp_price_block_total_price_ww .a-offscreen",
    "#tp-tool-tip-subtotal-price-value .a-offscreen",
    "#buybox .a-price:not(.a-text-strike) .a-offscreen",
    "#price_inside_buybox .a-offscreen",
    '[data-feature-name="corePrice"] .a-offscreen',
    "#apex_offerDisplay_desktop .a-offscreen",
)

ENHANCED_SELECTORS = PRIORITY_SELECTORS + (
    "#priceblock_ourprice .a-offscreen",
    "#priceblock_dealprice .a-offscreen",
    ".a-price.a-price-current .a-offscreen",
)

DATA_ATTRIBUTE_SELECTOR = "[data-price], [data-amount], [data-cost], [data-value]"
DATA_ATTRIBUTES = ("data-price", "data-amount", "data-cost", "data-value")

SCRIPT_PATTERNS = (
    re.compile(r'"price":\s*([\d.]+)'),
    re.compile(r'"priceAmount":\s*([\d.]+)'),
    re.compile(r'"amount":\s*([\d.]+)'),
    re.compile(r"price[\"']:\s*[\"']?([\d.]+)"),
)

STRIKETHROUGH_SELECTORS = (
    ".a-price.a-text-strike .a-offscreen",
    ".a-price-original .a-offscreen",
    '[data-a-strike="true"] .a-offscreen',
)

IMAGE_SELECTORS = (
    "#landingImage",
    "#imgBlkFront",
    ".a-dynamic-image",
    'img[data-a-image-name="landingImage"]',
)

BAD_CONTEXT = ("shipping", "tax", "import", "handling", "fee")
BAD_CONTEXT_STRICT = BAD_CONTEXT + ("list price", "was")
# "was" needs word edges; the other words match as substrings
_WHOLE_WORD_CONTEXT = frozenset({"was"})

_SHIPPING_TAX = re.compile(r"shipping|tax", re.I)
_LIST_WAS = re.compile(r"\blist\b|\bwas\b", re.I)
_IMPORT_HANDLING = re.compile(r"import|handling", re.I)
_CENTS = re.compile(r"\.\d{2}\b")
_UNAVAILABLE = re.compile(r"currently unavailable", re.I)

# offscreen nodes win ties against split whole/fraction nodes
_KIND_RANK = {"offscreen": 0, "whole_fraction": 1}


def _parent(node: Tag) -> Optional[Tag]:
    parent = node.parent
    return parent if isinstance(parent, Tag) else None


def _classes(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return " ".join(node.get("class") or []).lower()


def _context_text(node: Tag) -> str:
    parent = _parent(node)
    return (parent.get_text(" ", strip=True) if parent else "").lower()


def _has_bad_context(node: Tag, words: Sequence[str]) -> bool:
    text = _context_text(node)
    for word in words:
        if word in _WHOLE_WORD_CONTEXT:
            if re.search(rf"\b{re.escape(word)}\b", text):
                return True
        elif word in text:
            return True
    return False


def _find_price_value(obj: Any) -> Optional[float]:
    """Depth-first search for `priceAmount`, then `price`, in decoded JSON."""
    if isinstance(obj, dict):
        for key in ("priceAmount", "price"):
            if key in obj:
                value = parse_price_text(obj[key])
                if value is not None:
                    return value
        for value in obj.values():
            found = _find_price_value(value)
            if found is not None:
                return found
    elif isinstance(obj, list):
        for item in obj:
            found = _find_price_value(item)
            if found is not None:
                return found
    return None


@dataclass
class _ScoredNode:
    candidate: PriceCandidate
    kind: str
    order: int


@dataclass
class PriceExtractor:
    """Runs the strategy cascade over one product page."""

    price_range: Tuple[float, float] = PRODUCT_PRICE_RANGE
    strategies: List[Tuple[str, Callable[[BeautifulSoup], Optional[PriceCandidate]]]] = field(
        init=False, repr=False
    )
    _last_candidates: List[PriceCandidate] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.strategies = [
            ("hidden_input", self._from_hidden_inputs),
            ("json_data", self._from_json_blobs),
            ("priority_selector", self._from_priority_selectors),
            ("enhanced_selector", self._from_enhanced_selectors),
            ("data_attribute", self._from_data_attributes),
            ("script_pattern", self._from_scripts),
            ("scored_candidates", self._from_scored_candidates),
        ]

    # ------------------------------------------------------------------ api

    def extract(self, html: str) -> PriceResult:
        soup = BeautifulSoup(html, "lxml")
        result = PriceResult(
            title=self.extract_title(soup),
            image_url=self.extract_image(soup),
        )

        reason = self.unavailability_reason(soup)
        if reason:
            result.is_available = False
            result.unavailability_reason = reason
            result.success = True
            result.detection_method = "unavailable"
            logger.info("Product marked unavailable: %s", reason)
            return result

        found: Optional[PriceCandidate] = None
        for name, strategy in self.strategies:
            candidate = strategy(soup)
            if candidate is not None:
                found = candidate
                result.detection_method = name
                break

        result.candidates = list(self._last_candidates)
        if found is None:
            result.error = "no price found"
            logger.debug("No in-range price found on page")
            return result

        if not result.candidates:
            result.candidates = [found]
        result.price_source = found.selector or found.strategy
        result.base_price = found.price

        strike = self._strikethrough_price(soup, above=found.price)
        if strike is not None:
            result.base_price = strike
            result.sale_price = found.price
            result.is_on_sale = True

        result.current_price = result.sale_price or result.base_price
        result.success = True
        return result

    def extract_title(self, soup: BeautifulSoup) -> Optional[str]:
        node = soup.select_one("#productTitle") or soup.select_one("#title")
        if not node:
            return None
        title = node.get_text(" ", strip=True)
        return title or None

    def extract_image(self, soup: BeautifulSoup) -> Optional[str]:
        for selector in IMAGE_SELECTORS:
            for img in soup.select(selector):
                for attr in ("src", "data-old-hires"):
                    src = (img.get(attr) or "").strip()
                    if src.startswith("http"):
                        return src
        return None

    def unavailability_reason(self, soup: BeautifulSoup) -> Optional[str]:
        area = soup.select_one("#availability") or soup.select_one("#outOfStock")
        if area is None:
            area = soup.select_one(MAIN_PRODUCT_AREA)
        if area is None:
            return None
        if _UNAVAILABLE.search(area.get_text(" ", strip=True)):
            return "Currently unavailable"
        return None

    # ----------------------------------------------------------- strategies

    def _accept(self, price: Optional[float]) -> bool:
        low, high = self.price_range
        return in_range(price, low, high)

    def _first_in_range(
        self,
        soup: BeautifulSoup,
        selectors: Iterable[str],
        strategy: str,
        *,
        read: Callable[[Tag], Optional[str]],
        bad_context: Sequence[str] = (),
    ) -> Optional[PriceCandidate]:
        self._last_candidates = []
        for selector in selectors:
            for node in soup.select(selector):
                if bad_context and _has_bad_context(node, bad_context):
                    continue
                raw = read(node)
                price = parse_price_text(raw)
                if self._accept(price):
                    return PriceCandidate(
                        price=price, text=raw or "", strategy=strategy, selector=selector
                    )
        return None

    def _from_hidden_inputs(self, soup: BeautifulSoup) -> Optional[PriceCandidate]:
        return self._first_in_range(
            soup,
            HIDDEN_INPUT_SELECTORS,
            "hidden_input",
            read=lambda node: node.get("value"),
        )

    def _from_json_blobs(self, soup: BeautifulSoup) -> Optional[PriceCandidate]:
        self._last_candidates = []
        for selector in JSON_BLOB_SELECTORS:
            for node in soup.select(selector):
                text = node.get_text(strip=True)
                if "priceAmount" not in text:
                    continue
                try:
                    payload = json.loads(text)
                except json.JSONDecodeError:
                    logger.debug("Unparseable price JSON under %s", selector)
                    continue
                price = _find_price_value(payload)
                if self._accept(price):
                    return PriceCandidate(
                        price=price, text=text[:120], strategy="json_data", selector=selector
                    )
        return None

    def _from_priority_selectors(self, soup: BeautifulSoup) -> Optional[PriceCandidate]:
        return self._first_in_range(
            soup,
            PRIORITY_SELECTORS,
            "priority_selector",
            read=lambda node: node.get_text(strip=True),
            bad_context=BAD_CONTEXT,
        )

    def _from_enhanced_selectors(self, soup: BeautifulSoup) -> Optional[PriceCandidate]:
        return self._first_in_range(
            soup,
            ENHANCED_SELECTORS,
            "enhanced_selector",
            read=lambda node: node.get_text(strip=True),
            bad_context=BAD_CONTEXT_STRICT,
        )

    def _from_data_attributes(self, soup: BeautifulSoup) -> Optional[PriceCandidate]:
        self._last_candidates = []
        scope = soup.select_one(MAIN_PRODUCT_AREA) or soup
        for node in scope.select(DATA_ATTRIBUTE_SELECTOR):
            for attr in DATA_ATTRIBUTES:
                raw = node.get(attr)
                if raw is None:
                    continue
                price = parse_price_text(raw)
                if self._accept(price):
                    return PriceCandidate(
                        price=price, text=str(raw), strategy="data_attribute", selector=f"[{attr}]"
                    )
        return None

    def _from_scripts(self, soup: BeautifulSoup) -> Optional[PriceCandidate]:
        self._last_candidates = []
        for script in soup.find_all("script"):
            content = script.string or script.get_text()
            if not content or "price" not in content:
                continue
            for pattern in SCRIPT_PATTERNS:
                for match in pattern.finditer(content):
                    price = parse_price_text(match.group(1))
                    if self._accept(price):
                        return PriceCandidate(
                            price=price,
                            text=match.group(0),
                            strategy="script_pattern",
                            selector=pattern.pattern,
                        )
        return None

    def _from_scored_candidates(self, soup: BeautifulSoup) -> Optional[PriceCandidate]:
        scope = soup.select_one(MAIN_PRODUCT_AREA) or soup
        scored = self.score_candidates(scope)
        self._last_candidates = [item.candidate for item in scored]
        if not scored:
            return None
        best = scored[0].candidate
        if best.score <= 0:
            logger.debug("Best scored candidate %.2f has score %d; rejecting", best.price, best.score)
            return None
        return best

    # -------------------------------------------------------------- scoring

    def score_candidates(self, scope: Tag) -> List[_ScoredNode]:
        """
        Score every offscreen and split whole/fraction price node in range.

        Sorted by score (desc), offscreen before whole/fraction on ties,
        then document order.
        """
        nodes: List[_ScoredNode] = []
        order = 0
        for node in scope.select(".aok-offscreen, .a-offscreen"):
            text = node.get_text(strip=True)
            price = parse_price_text(text)
            if not self._accept(price):
                continue
            nodes.append(
                _ScoredNode(
                    PriceCandidate(
                        price=price,
                        text=text,
                        strategy="scored_offscreen",
                        score=self._score_offscreen(node, text),
                    ),
                    "offscreen",
                    order,
                )
            )
            order += 1

        for whole in scope.select(".a-price-whole"):
            parent = _parent(whole)
            fraction = parent.select_one(".a-price-fraction") if parent else None
            price = join_whole_fraction(
                whole.get_text(strip=True), fraction.get_text(strip=True) if fraction else None
            )
            if not self._accept(price):
                continue
            nodes.append(
                _ScoredNode(
                    PriceCandidate(
                        price=price,
                        text=f"{whole.get_text(strip=True)}{fraction.get_text(strip=True) if fraction else ''}",
                        strategy="scored_whole_fraction",
                        score=self._score_whole_fraction(whole),
                    ),
                    "whole_fraction",
                    order,
                )
            )
            order += 1

        nodes.sort(key=lambda item: (-item.candidate.score, _KIND_RANK[item.kind], item.order))
        return nodes

    def _score_offscreen(self, node: Tag, text: str) -> int:
        score = 1
        parent = _parent(node)
        parent_id = ((parent.get("id") if parent else "") or "").lower()
        parent_class = _classes(parent)
        context = _context_text(node)

        if "price" in parent_id or "core" in parent_id:
            score += 10
        if "price" in parent_class and "original" not in parent_class:
            score += 8
        if "core" in parent_class:
            score += 9
        if _CENTS.search(text):
            score += 5

        if _SHIPPING_TAX.search(context):
            score -= 15
        if _LIST_WAS.search(context) or "strike" in parent_class or (
            parent is not None and parent.get("data-a-strike") == "true"
        ):
            score -= 10
        if _IMPORT_HANDLING.search(context):
            score -= 12
        return score

    def _score_whole_fraction(self, whole: Tag) -> int:
        score = 2
        price_node = whole.find_parent(class_="a-price")
        price_class = _classes(price_node)
        context = (
            _parent(price_node).get_text(" ", strip=True).lower()
            if price_node is not None and _parent(price_node) is not None
            else ""
        )

        if "a-text-strike" in price_class or _LIST_WAS.search(context):
            score -= 4
        if "a-price-current" in price_class:
            score += 3
        if _SHIPPING_TAX.search(context) or _IMPORT_HANDLING.search(context):
            score -= 4
        return score

    def _strikethrough_price(self, soup: BeautifulSoup, *, above: float) -> Optional[float]:
        scope = soup.select_one(MAIN_PRODUCT_AREA) or soup
        for selector in STRIKETHROUGH_SELECTORS:
            for node in scope.select(selector):
                price = parse_price_text(node.get_text(strip=True))
                if self._accept(price) and price > above:
                    return price
        return None


def extract_price(html: str, *, price_range: Tuple[float, float] = PRODUCT_PRICE_RANGE) -> PriceResult:
    """Run the full cascade over a product page's HTML."""
    return PriceExtractor(price_range=price_range).extract(html)
