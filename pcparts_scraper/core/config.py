# config.py

from dotenv import load_dotenv
import os, re
from pathlib import Path
from typing import Dict, Tuple
# Load .env file
load_dotenv()

from pcparts_scraper.core.logger import get_logger
logger = get_logger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# Database
MONGODB_URI = os.getenv("MONGODB_URI", "").strip()
MONGODB_DB = os.getenv("MONGODB_DB", "pcbuilder").strip() or "pcbuilder"

if not MONGODB_URI:
    logger.warning("MONGODB_URI not found in .env, falling back to localhost")
    MONGODB_URI = "mongodb://localhost:27017"

# Scrape run settings
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "outputs").strip() or "outputs"
SEARCH_TERMS_DIR = Path(os.getenv("SEARCH_TERMS_DIR", "data/search_terms"))

HEADLESS = _env_bool("HEADLESS", True)
NAVIGATION_TIMEOUT_MS = _env_int("NAVIGATION_TIMEOUT_MS", 30000)
CONTENT_WAIT_MS = _env_int("CONTENT_WAIT_MS", 2000)
REQUEST_DELAY_MS = _env_int("REQUEST_DELAY_MS", 1000)
MAX_PRODUCTS_PER_SEARCH = _env_int("MAX_PRODUCTS_PER_SEARCH", 25)
MAX_WORKERS = _env_int("MAX_WORKERS", 3)
BATCH_SIZE = _env_int("BATCH_SIZE", 3)
WORKER_STAGGER_MS = _env_int("WORKER_STAGGER_MS", 2000)
MODEL_DELAY_RANGE_MS: Tuple[int, int] = (2000, 4000)
PRICE_HISTORY_LIMIT = 10

BROWSER_ARGS = [
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--disable-setuid-sandbox",
    "--no-sandbox",
    "--no-first-run",
    "--no-default-browser-check",
]

VIEWPORT = {"width": 1366, "height": 768}

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

SUSPECT_TEXT_KEYWORDS = (
    "enter the characters you see below",
    "sorry, we just need to make sure you're not a robot",
    "unusual traffic",
    "are you a robot",
    "checking your browser",
    "security check",
)

SUSPECT_SELECTORS = (
    "form[action*='validateCaptcha']",
    "#captchacharacters",
    "#cf-wrapper",
    ".g-recaptcha",
    "script[src*='cf/challenge']",
)

SUSPECT_TITLE_PATTERNS = (
    re.compile(r"robot check", re.I),
    re.compile(r"attention required", re.I),
    re.compile(r"cf[- ]?error", re.I),
)

CAPTCHA_SIGNATURES = (
    "/errors/validatecaptcha",
    "api-services-support@amazon.com",
    "detected unusual traffic",
    "cf-challenge",
    "recaptcha/api.js",
    'id="cf-wrapper"',
)

# Price bounds per category (inclusive)
PRICE_RANGES: Dict[str, Tuple[float, float]] = {
    "gpu": (200, 5000),
    "cpu": (50, 2000),
    "ram": (0.01, 2000),
    "psu": (30, 1000),
    "cooler": (10, 1000),
    "motherboard": (40, 1500),
}

# Product-page price cascade bounds
PRODUCT_PRICE_RANGE: Tuple[float, float] = (100, 5000)

CATEGORIES = tuple(PRICE_RANGES)

GPU_PARTNERS = (
    "ASUS", "MSI", "Gigabyte", "EVGA", "Sapphire", "PowerColor", "XFX",
    "ASRock", "Zotac", "PNY", "Palit", "Gainward", "Inno3D",
)

AMAZON_BASE_URL = "https://www.amazon.com"

SEARCH_URL_TEMPLATES = {
    "amazon": "https://www.amazon.com/s?k={query}&ref=nb_sb_noss",
    "newegg": "https://www.newegg.com/p/pl?d={query}",
    "bestbuy": "https://www.bestbuy.com/site/searchpage.jsp?st={query}",
    "microcenter": "https://www.microcenter.com/search/search_results.aspx?Ntt={query}",
}

# Listing-card selectors; each entry is tried in order
SITE_SELECTORS = {
    "amazon": {
        "label": "Amazon",
        "containers": [
            '[data-component-type="s-search-result"]',
            'div[data-asin]:not([data-asin=""])',
            ".s-result-item",
        ],
        "title": ["h2 span", "h2 a span", ".a-size-medium", ".a-text-normal"],
        "price": [".a-price .a-offscreen", ".a-price-whole", '[class*="price"]'],
        "link": ["h2 a", "a.a-link-normal[href*='/dp/']", "a[href*='/dp/']"],
        "image": [".s-image", "img[src*='images-amazon']"],
    },
    "newegg": {
        "label": "Newegg",
        "containers": [".item-container", ".item-cell"],
        "title": [".item-title", "a[title]"],
        "price": [".price-current strong", ".price-current", ".price", '[class*="price"]'],
        "link": ["a.item-title", "a[href]"],
        "image": [".item-img img", "img"],
    },
    "bestbuy": {
        "label": "Best Buy",
        "containers": [".sku-item", ".sr-item"],
        "title": [".sku-title a", ".sr-item-title a"],
        "price": [".priceView-customer-price span", ".pricing-price__range", ".sr-price"],
        "link": [".sku-title a", ".sr-item-title a"],
        "image": ["img.product-image", "img"],
    },
    "microcenter": {
        "label": "Micro Center",
        "containers": [".productlist li", ".product_wrapper"],
        "title": ["a[data-name]", ".pDescription a"],
        "price": [".price", "[data-price]"],
        "link": ["a[data-name]", ".pDescription a"],
        "image": ["img.SearchResultProductImage", "img"],
    },
    "generic": {
        "label": None,
        "containers": [
            "article",
            ".product",
            ".item",
            ".card",
            '[class*="product"]',
            '[class*="item"]',
            ".result",
            ".listing",
        ],
        "title": ["h1", "h2", "h3", '[class*="title"]', '[class*="name"]'],
        "price": ['[class*="price"]', '[class*="cost"]'],
        "link": ["a[href]"],
        "image": ["img"],
    },
}

IMAGE_ATTRS = (
    "data-src",
    "data-old-hires",
    "data-image-src",
    "data-lazy-src",
    "srcset",
    "src",
)
