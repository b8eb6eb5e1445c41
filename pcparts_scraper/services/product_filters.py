# product_filters.py
"""
Per-category acceptance rules for scraped listings.

Search results on retail sites mix the part we asked for with prebuilt
systems, laptops, accessories and neighbouring models. Each filter answers
two questions: does the title match the search (`matches_search`) and is
the listing a plausible product of this category (`validate`).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple, Type

from pcparts_scraper.core.config import PRICE_RANGES
from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.models.listing import RawListing
from pcparts_scraper.services.price_parsing import parse_price_text
from pcparts_scraper.services.spec_extractors import clean_title, extract_psu_specs

logger = get_logger(__name__)

SYSTEM_KEYWORDS = (
    "gaming pc", "gaming desktop", "workstation", "prebuilt", "pre-built",
    "gaming system", "computer system", "alienware", "dell optiplex",
    "hp pavilion", "asus rog desktop", "msi gaming desktop", "cyberpowerpc",
    "ibuypower", "origin pc", "maingear",
)

LAPTOP_KEYWORDS = (
    "laptop", "notebook", "gaming laptop", "ultrabook", "thinkpad", "macbook",
    "chromebook", "surface laptop", "asus rog laptop", "msi gaming laptop",
    "alienware laptop", "razer blade", "hp omen", "lenovo legion",
)

DESKTOP_KEYWORDS = (
    "desktop", "pc", "computer", "tower", "system", "dell",
) + SYSTEM_KEYWORDS

SYSTEM_PATTERNS = (
    re.compile(r"\b(intel|amd)\s+(core|ryzen).+processor\b", re.I),
    re.compile(r"\b\d+gb\s+(ram|memory)\b", re.I),
    re.compile(r"\b\d+tb\s+(ssd|hdd|storage)\b", re.I),
    re.compile(r"\bwin\s*\d+\s+(home|pro)\b", re.I),
    re.compile(r"\bliquid\s+cool(ed|ing)\b", re.I),
)

CPU_SYSTEM_PATTERNS = SYSTEM_PATTERNS[1:] + (
    re.compile(r"\b(nvidia|amd)\s+(geforce|radeon).+\b", re.I),
    re.compile(r"\bmotherboard\s+included\b", re.I),
    re.compile(r"\bready\s+to\s+game\b", re.I),
    re.compile(r"\bfully\s+assembled\b", re.I),
)


def contains_any(text: str, keywords: Sequence[str]) -> bool:
    """Whole-word (or whole-phrase) keyword test on lowercased text."""
    for keyword in keywords:
        if re.search(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", text):
            return True
    return False


def is_prebuilt_system(
    title: Optional[str],
    *,
    keywords: Sequence[str] = SYSTEM_KEYWORDS,
    patterns: Sequence[re.Pattern] = SYSTEM_PATTERNS,
) -> bool:
    """True for complete desktops and laptops that mention a part in the title."""
    lowered = clean_title(title).lower()
    if not lowered:
        return False
    if contains_any(lowered, keywords) or contains_any(lowered, LAPTOP_KEYWORDS):
        return True
    return any(pattern.search(lowered) for pattern in patterns)


def listing_price(raw: RawListing) -> Optional[float]:
    """The price a buyer pays: sale price when present, else base price."""
    return (
        parse_price_text(raw.sale_price)
        or parse_price_text(raw.base_price)
        or parse_price_text(raw.price_text)
    )


@dataclass
class ProductFilter:
    category: str = "generic"
    price_required: bool = True
    min_title_length: int = 5

    @property
    def price_range(self) -> Tuple[float, float]:
        return PRICE_RANGES.get(self.category, (0.01, 100000))

    def matches_search(self, title: Optional[str], term: str) -> bool:
        lowered = clean_title(title).lower()
        return bool(lowered) and clean_title(term).lower() in lowered

    def is_excluded(self, lowered_title: str) -> bool:
        return False

    def price_ok(self, price: Optional[float], lowered_title: str) -> bool:
        if price is None:
            return not self.price_required
        low, high = self.price_range
        return low <= price <= high

    def validate(self, raw: RawListing) -> bool:
        title = clean_title(raw.title)
        if len(title) < self.min_title_length:
            logger.debug("Rejected %s listing without usable title", self.category)
            return False

        lowered = title.lower()
        if self.is_excluded(lowered):
            logger.debug("Rejected %s listing: %s", self.category, title[:80])
            return False

        price = listing_price(raw)
        if not self.price_ok(price, lowered):
            logger.debug("Rejected %s listing on price %s: %s", self.category, price, title[:80])
            return False
        return True

    def accept(self, raw: RawListing, term: str) -> bool:
        return self.matches_search(raw.title, term) and self.validate(raw)


# GPU ----------------------------------------------------------------------

VARIANT_EXCLUSIONS: Dict[str, Tuple[re.Pattern, ...]] = {}


def _variant_exclusions(term: str) -> Tuple[re.Pattern, ...]:
    """
    Patterns that rule out sibling variants of a base-model search.

    "rtx 4070" must not match "4070 super" or "4070 ti"; "rtx 4070 ti"
    must not match "4070 ti super"; "rx 7900 xt" must not match "7900 xtx".
    """
    lowered = clean_title(term).lower()
    if lowered in VARIANT_EXCLUSIONS:
        return VARIANT_EXCLUSIONS[lowered]

    patterns = []
    match = re.search(r"(\d{4})\s*(ti\s*super|ti|super|xtx|xt|gre)?\s*$", lowered)
    if match:
        number, variant = match.group(1), (match.group(2) or "").replace(" ", "")
        if not variant:
            patterns.append(re.compile(rf"{number}\s*(ti|super|xtx|xt|gre)\b"))
        elif variant == "ti":
            patterns.append(re.compile(rf"{number}\s*ti\s*super\b"))
        elif variant == "xt":
            patterns.append(re.compile(rf"{number}\s*xtx\b"))
    VARIANT_EXCLUSIONS[lowered] = tuple(patterns)
    return VARIANT_EXCLUSIONS[lowered]


@dataclass
class GpuFilter(ProductFilter):
    category: str = "gpu"

    def matches_search(self, title: Optional[str], term: str) -> bool:
        if not super().matches_search(title, term):
            return False
        lowered = clean_title(title).lower()
        return not any(pattern.search(lowered) for pattern in _variant_exclusions(term))

    def is_excluded(self, lowered_title: str) -> bool:
        return is_prebuilt_system(lowered_title, keywords=DESKTOP_KEYWORDS)


# CPU ----------------------------------------------------------------------

@dataclass
class CpuFilter(ProductFilter):
    category: str = "cpu"

    def is_excluded(self, lowered_title: str) -> bool:
        return is_prebuilt_system(lowered_title, patterns=CPU_SYSTEM_PATTERNS)


# RAM ----------------------------------------------------------------------

RAM_KEYWORDS = (
    "memory", "ram", "ddr4", "ddr5", "dimm", "so-dimm", "corsair", "g.skill",
    "crucial", "kingston", "teamgroup", "adata", "patriot", "mushkin", "pny",
    "samsung", "vengeance", "trident", "ballistix", "fury", "ripjaws", "rgb",
    "pro", "lpx", "elite", "gaming",
)

RAM_EXCLUDE_KEYWORDS = (
    "laptop computer", "gaming pc", "gaming computer", "computer system",
    "pc system", "workstation", "motherboard", "gpu", "graphics card",
    "processor", "cpu", "ssd", "hard drive", "hdd", "power supply", "psu",
    "cooler", "keyboard", "mouse", "monitor", "webcam", "speaker", "cable",
    "adapter", "charger", "battery", "usb stick", "flash drive",
    "external drive", "smartphone", "tablet",
)

RAM_SYSTEM_PATTERNS = (
    re.compile(r"\b(gaming|laptop)\s+(pc|computer|system)\b", re.I),
    re.compile(r"\bdesktop\s+(pc|system)\b", re.I),
    re.compile(r"\bpre-?built\b", re.I),
    re.compile(r"\b(intel|amd)\s+(core|ryzen).+processor\b", re.I),
    re.compile(r"\b\d+tb\s+(ssd|hdd|storage)\b", re.I),
    re.compile(r"\bwin\s*\d+\s+(home|pro)\b", re.I),
    re.compile(r"\bcomplete\s+(system|pc|computer)\b", re.I),
    re.compile(r"\btower\s+(pc|computer|system)\b", re.I),
)

RAM_PRICE_CAPS = ((4, 100), (8, 200), (16, 400), (32, 800))

_RAM_CAPACITY = re.compile(r"\b(4|8|16|32|64|128)\s*gb\b")


@dataclass
class RamFilter(ProductFilter):
    category: str = "ram"

    def matches_search(self, title: Optional[str], term: str) -> bool:
        lowered = clean_title(title).lower()
        if not lowered or not any(keyword in lowered for keyword in RAM_KEYWORDS):
            return False
        if not _RAM_CAPACITY.search(lowered) or not re.search(r"ddr[45]", lowered):
            return False

        term_lower = term.lower()
        for ddr in ("ddr5", "ddr4"):
            if ddr in term_lower:
                if ddr not in lowered:
                    return False
                break

        speed = re.search(r"(\d{4})", term_lower)
        if speed and speed.group(1) not in lowered:
            return False

        capacity = re.search(r"(\d+)\s*gb", term_lower)
        if capacity and not re.search(rf"\b{capacity.group(1)}\s*gb", lowered):
            return False
        return True

    def is_excluded(self, lowered_title: str) -> bool:
        if contains_any(lowered_title, RAM_EXCLUDE_KEYWORDS):
            return True
        return any(pattern.search(lowered_title) for pattern in RAM_SYSTEM_PATTERNS)

    def price_ok(self, price: Optional[float], lowered_title: str) -> bool:
        if not super().price_ok(price, lowered_title):
            return False
        capacity = _RAM_CAPACITY.search(lowered_title)
        if capacity:
            size = int(capacity.group(1))
            for cap_size, cap_price in RAM_PRICE_CAPS:
                if size == cap_size and price > cap_price:
                    return False
        return True


# PSU ----------------------------------------------------------------------

PSU_KEYWORDS = (
    "power supply", "psu", "power unit", "atx power", "sfx power",
    "modular power", "80 plus", "80+", "watt power", "watts power",
    "bronze certified", "gold certified", "platinum certified",
    "titanium certified", "atx 12v", "eps 12v", "active pfc", "power supplies",
)

PSU_PATTERNS = (
    re.compile(r"\b\d{3,4}\s*w(att)?s?\b.*\b(power|psu|80\s*(\+|plus))"),
    re.compile(r"\b(power|psu)\b.*\b\d{3,4}\s*w(att)?s?\b"),
)

MIN_PSU_WATTAGE = 200


def is_power_supply(title: Optional[str]) -> bool:
    lowered = clean_title(title).lower()
    if any(keyword in lowered for keyword in PSU_KEYWORDS):
        return True
    return any(pattern.search(lowered) for pattern in PSU_PATTERNS)


@dataclass
class PsuFilter(ProductFilter):
    """Every real power supply is kept; the search term only drives the query."""

    category: str = "psu"
    price_required: bool = False

    def matches_search(self, title: Optional[str], term: str) -> bool:
        return is_power_supply(title)

    def is_excluded(self, lowered_title: str) -> bool:
        if is_prebuilt_system(lowered_title):
            return True
        wattage = extract_psu_specs(lowered_title)["wattage"]
        return wattage is not None and wattage < MIN_PSU_WATTAGE


# Cooler -------------------------------------------------------------------

COOLER_KEYWORDS = (
    "cooler", "cooling", "fan", "heatsink", "heat sink", "liquid", "water",
    "aio", "radiator", "pump", "thermal", "noctua", "corsair",
    "cooler master", "be quiet", "arctic", "deepcool", "scythe",
    "thermalright", "evga", "nzxt", "thermaltake", "fractal design",
)

COOLER_CPU_KEYWORDS = ("cpu", "processor", "intel", "amd", "ryzen", "core", "lga", "am4", "am5")

COOLER_EXCLUDE_KEYWORDS = (
    "laptop cooler", "laptop cooling pad", "notebook cooler", "graphics card",
    "gpu cooler", "vga cooler", "case fan", "chassis fan", "exhaust fan",
    "intake fan", "hard drive cooler", "ssd cooler", "nvme cooler",
    "router cooler", "phone cooler", "desk fan", "room cooler",
    "water bottle", "drink cooler", "beverage cooler", "car cooler",
    "portable cooler", "ice cooler", "thermal paste only",
    "thermal compound only", "mounting kit only", "bracket only",
)

COOLER_INDICATORS = (
    re.compile(r"cpu\s*(cooler|cooling|fan)", re.I),
    re.compile(r"processor\s*(cooler|cooling|fan)", re.I),
    re.compile(r"(liquid|water|aio)\s*(cooler|cooling)", re.I),
    re.compile(r"(air|tower)\s*(cooler|cooling)", re.I),
    re.compile(r"heat\s*sink", re.I),
    re.compile(r"radiator.*\d+\s*mm", re.I),
    re.compile(r"(lga|am4|am5).*cooler", re.I),
    re.compile(r"cooler.*(lga|am4|am5)", re.I),
)

_LIQUID_WORDS = ("liquid", "water", "aio", "all-in-one", "radiator")
_AIR_WORDS = ("air", "tower", "heatsink", "heat sink")


@dataclass
class CoolerFilter(ProductFilter):
    category: str = "cooler"
    price_required: bool = False

    def matches_search(self, title: Optional[str], term: str) -> bool:
        lowered = clean_title(title).lower()
        if not any(keyword in lowered for keyword in COOLER_KEYWORDS):
            return False
        if not any(keyword in lowered for keyword in COOLER_CPU_KEYWORDS):
            return False

        term_lower = term.lower()
        if any(word in term_lower for word in ("liquid", "water", "aio")):
            if not any(word in lowered for word in _LIQUID_WORDS):
                return False
        if any(word in term_lower for word in ("air", "tower")):
            has_air = any(word in lowered for word in _AIR_WORDS) or (
                "fan" in lowered and "liquid" not in lowered
            )
            if not has_air:
                return False
        return True

    def is_excluded(self, lowered_title: str) -> bool:
        if any(keyword in lowered_title for keyword in COOLER_EXCLUDE_KEYWORDS):
            return True
        return not any(pattern.search(lowered_title) for pattern in COOLER_INDICATORS)


# Motherboard --------------------------------------------------------------

MOTHERBOARD_TERMS = (
    "motherboard", "mobo", "mainboard", "atx", "micro-atx", "mini-itx", "am4",
    "am5", "lga1700", "lga1200", "lga1851", "lga1151", "socket", "chipset",
    "b550", "b650", "x570", "x670", "x870", "z690", "z790", "z890", "b760",
)

NON_MOTHERBOARD_KEYWORDS = (
    "graphics card", "video card", "memory stick", "ssd", "hard drive", "hdd",
    "power supply", "psu", "monitor", "keyboard", "mouse", "headset", "cooler",
)

# a board title names the CPU family it supports; these only count as a
# different product when no board term is present
NON_MOTHERBOARD_WEAK = ("cpu", "processor", "ram", "case", "tower", "fan", "cable", "adapter")

MOTHERBOARD_COMBO_PATTERNS = (
    re.compile(r"\b(cpu|processor)\s*(\+|and|&)\s*motherboard\b", re.I),
    re.compile(r"\bmotherboard\s*(\+|and|&)\s*(cpu|processor)\b", re.I),
    re.compile(r"\bcombo\b", re.I),
)


@dataclass
class MotherboardFilter(ProductFilter):
    """Any motherboard on the results page is kept, whatever was searched."""

    category: str = "motherboard"

    def matches_search(self, title: Optional[str], term: str) -> bool:
        lowered = clean_title(title).lower()
        if not any(board_term in lowered for board_term in MOTHERBOARD_TERMS):
            return False
        if clean_title(term).lower() not in lowered:
            logger.debug("Motherboard does not match %r, keeping it: %s", term, lowered[:60])
        return True

    def is_excluded(self, lowered_title: str) -> bool:
        if is_prebuilt_system(lowered_title, patterns=()):
            return True
        if contains_any(lowered_title, NON_MOTHERBOARD_KEYWORDS):
            return True
        if any(pattern.search(lowered_title) for pattern in MOTHERBOARD_COMBO_PATTERNS):
            return True
        has_board_term = contains_any(lowered_title, ("motherboard", "mobo", "mainboard"))
        return not has_board_term and contains_any(lowered_title, NON_MOTHERBOARD_WEAK)


FILTERS: Dict[str, Type[ProductFilter]] = {
    "gpu": GpuFilter,
    "cpu": CpuFilter,
    "ram": RamFilter,
    "psu": PsuFilter,
    "cooler": CoolerFilter,
    "motherboard": MotherboardFilter,
}


def get_filter(category: str) -> ProductFilter:
    try:
        return FILTERS[category]()
    except KeyError:
        raise ValueError(f"Unknown category: {category}") from None
