# normalizer.py
"""RawListing -> ProductListing, plus the collection each listing lives in."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple

from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.models.listing import ProductListing, RawListing, utcnow
from pcparts_scraper.services import spec_extractors as specs
from pcparts_scraper.services.price_parsing import parse_price_text

logger = get_logger(__name__)

FIXED_COLLECTIONS = {
    "ram": "rams",
    "psu": "psus",
    "cooler": "coolers",
    "motherboard": "motherboards",
}


def _gpu_details(title: str) -> Tuple[str, Optional[str], Dict[str, Any]]:
    return (
        specs.detect_gpu_manufacturer(title),
        specs.detect_gpu_partner(title),
        specs.extract_gpu_specs(title),
    )


def _cpu_details(title: str) -> Tuple[str, Optional[str], Dict[str, Any]]:
    return specs.detect_cpu_manufacturer(title), None, specs.extract_cpu_specs(title)


def _ram_details(title: str) -> Tuple[str, Optional[str], Dict[str, Any]]:
    return specs.detect_ram_manufacturer(title), None, specs.extract_ram_specs(title)


def _psu_details(title: str) -> Tuple[str, Optional[str], Dict[str, Any]]:
    return specs.detect_psu_manufacturer(title), None, specs.extract_psu_specs(title)


def _cooler_details(title: str) -> Tuple[str, Optional[str], Dict[str, Any]]:
    return specs.detect_cooler_manufacturer(title), None, specs.extract_cooler_specs(title)


def _motherboard_details(title: str) -> Tuple[str, Optional[str], Dict[str, Any]]:
    return (
        specs.detect_motherboard_manufacturer(title),
        None,
        specs.extract_motherboard_specs(title),
    )


DETAIL_EXTRACTORS: Dict[str, Callable[[str], Tuple[str, Optional[str], Dict[str, Any]]]] = {
    "gpu": _gpu_details,
    "cpu": _cpu_details,
    "ram": _ram_details,
    "psu": _psu_details,
    "cooler": _cooler_details,
    "motherboard": _motherboard_details,
}


def normalize_prices(base: Any, sale: Any) -> Tuple[Optional[float], Optional[float], Optional[float], bool]:
    """
    Coerce scraped prices and derive (base, sale, current, is_on_sale).

    Non-positive or unparseable prices become None. A sale price that is not
    below the base price is not a sale; it is kept as the base price instead.
    """
    base_price = parse_price_text(base)
    sale_price = parse_price_text(sale)

    if sale_price is not None and base_price is not None and sale_price >= base_price:
        base_price, sale_price = sale_price, None
    elif sale_price is not None and base_price is None:
        base_price, sale_price = sale_price, None

    is_on_sale = sale_price is not None and base_price is not None and base_price > sale_price
    current = sale_price or base_price
    return base_price, sale_price, current, is_on_sale


def unique_id(title: str, manufacturer: Optional[str], category: str) -> str:
    return "|".join(part.strip().lower() for part in (title, manufacturer or "", category))


def normalize_listing(raw: RawListing, category: str, search_term: Optional[str] = None) -> ProductListing:
    """Clean the title, coerce prices, attach category specs."""
    title = specs.clean_title(raw.title)
    if not title:
        raise ValueError("listing has no title")

    base_price, sale_price, current, is_on_sale = normalize_prices(
        raw.base_price if raw.base_price is not None else raw.price_text,
        raw.sale_price,
    )

    extractor = DETAIL_EXTRACTORS.get(category)
    manufacturer, partner, details = extractor(title) if extractor else ("Unknown", None, {})

    listing = ProductListing(
        name=title,
        title=title,
        manufacturer=manufacturer,
        partner=partner,
        category=category,
        base_price=base_price,
        sale_price=sale_price,
        current_price=current,
        is_on_sale=is_on_sale,
        is_available=raw.is_available,
        source_url=raw.url,
        image_url=raw.image_url,
        source=raw.source,
        search_term=search_term,
        specs=details,
        price_source=raw.price_source,
        detection_method=raw.detection_method,
        unique_id=unique_id(title, manufacturer, category),
        scraped_at=utcnow(),
    )
    return listing


def collection_for(listing: ProductListing) -> str:
    """
    Target collection: `gpus_<model>`, `cpus_<family>`, or the fixed
    per-category collections.
    """
    if listing.category == "gpu":
        model = (listing.specs or {}).get("gpu_model") or specs.extract_gpu_model(listing.name)
        return f"gpus_{model}"
    if listing.category == "cpu":
        family = (listing.specs or {}).get("family") or specs.extract_cpu_family(listing.name)
        return f"cpus_{family}"
    try:
        return FIXED_COLLECTIONS[listing.category]
    except KeyError:
        raise ValueError(f"No collection for category {listing.category!r}") from None


def collection_for_term(category: str, term: str) -> Optional[str]:
    """Collection a whole search term maps to, when it can be known up front."""
    if category == "gpu":
        model = specs.extract_gpu_model(term)
        return None if model == "unknown" else f"gpus_{model}"
    if category == "cpu":
        return f"cpus_{specs.extract_cpu_family(term)}"
    return FIXED_COLLECTIONS.get(category)
