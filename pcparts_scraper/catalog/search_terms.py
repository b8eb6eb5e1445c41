"""
Search terms per category.

The defaults are a short starter list; a JSON file with the same record
shape (`model`, `searchTerms`, `manufacturer`, `priority`) replaces them.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from pcparts_scraper.core.config import CATEGORIES, SEARCH_TERMS_DIR
from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.models.search_term import SearchTerm

logger = get_logger(__name__)

DEFAULT_TERMS: Dict[str, List[dict]] = {
    "gpu": [
        {"model": "RTX 4090", "searchTerms": ["rtx 4090"], "manufacturer": "NVIDIA", "priority": 1},
        {"model": "RTX 4070 Ti SUPER", "searchTerms": ["rtx 4070 ti super"], "manufacturer": "NVIDIA", "priority": 1},
        {"model": "RTX 4070", "searchTerms": ["rtx 4070"], "manufacturer": "NVIDIA", "priority": 1},
        {"model": "RX 7900 XTX", "searchTerms": ["rx 7900 xtx"], "manufacturer": "AMD", "priority": 1},
        {"model": "RX 7800 XT", "searchTerms": ["rx 7800 xt"], "manufacturer": "AMD", "priority": 2},
        {"model": "Arc A770", "searchTerms": ["arc a770"], "manufacturer": "Intel", "priority": 3},
    ],
    "cpu": [
        {"model": "Core i9-14900K", "searchTerms": ["intel core i9-14900k"], "manufacturer": "Intel", "priority": 1},
        {"model": "Core i5-14600K", "searchTerms": ["intel core i5-14600k"], "manufacturer": "Intel", "priority": 1},
        {"model": "Core Ultra 7 265K", "searchTerms": ["intel core ultra 7 265k"], "manufacturer": "Intel", "priority": 2},
        {"model": "Ryzen 7 7800X3D", "searchTerms": ["amd ryzen 7 7800x3d"], "manufacturer": "AMD", "priority": 1},
        {"model": "Ryzen 5 7600X", "searchTerms": ["amd ryzen 5 7600x"], "manufacturer": "AMD", "priority": 2},
    ],
    "ram": [
        {"model": "DDR5 32GB 6000", "searchTerms": ["ddr5 32gb 6000"], "priority": 1},
        {"model": "DDR4 16GB 3200", "searchTerms": ["ddr4 16gb 3200"], "priority": 2},
    ],
    "psu": [
        {"model": "850W Gold", "searchTerms": ["850w 80 plus gold power supply"], "priority": 1},
        {"model": "750W Gold", "searchTerms": ["750w 80 plus gold power supply"], "priority": 2},
    ],
    "cooler": [
        {"model": "360mm AIO", "searchTerms": ["360mm aio liquid cpu cooler"], "priority": 1},
        {"model": "Air Tower", "searchTerms": ["cpu air cooler tower"], "priority": 1},
    ],
    "motherboard": [
        {"model": "B650", "searchTerms": ["b650 motherboard"], "manufacturer": "AMD", "priority": 1},
        {"model": "Z790", "searchTerms": ["z790 motherboard"], "manufacturer": "Intel", "priority": 1},
    ],
}


def _parse(records: List[dict], category: str, origin: str) -> List[SearchTerm]:
    terms: List[SearchTerm] = []
    for record in records:
        try:
            terms.append(SearchTerm(category=category, **record))
        except (TypeError, ValidationError) as exc:
            logger.warning("Skipping bad search term in %s: %s", origin, exc)
    return terms


def load_search_terms(category: str, path: Optional[Path | str] = None) -> List[SearchTerm]:
    """
    Terms for `category`, from `path`, else `<SEARCH_TERMS_DIR>/<category>.json`,
    else the built-in defaults.
    """
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category: {category}")

    source = Path(path) if path else SEARCH_TERMS_DIR / f"{category}.json"
    if source.exists():
        records = json.loads(source.read_text(encoding="utf-8"))
        if isinstance(records, dict):
            records = records.get(category, [])
        terms = _parse(records, category, str(source))
        logger.info("Loaded %d %s search terms from %s", len(terms), category, source)
        return terms

    if path:
        raise FileNotFoundError(source)
    return _parse(DEFAULT_TERMS[category], category, "defaults")


def terms_from_strings(category: str, queries: List[str]) -> List[SearchTerm]:
    """Ad-hoc terms from the command line."""
    return [SearchTerm(model=q, category=category, search_terms=[q]) for q in queries]
