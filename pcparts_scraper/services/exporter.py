# exporter.py

import json
import csv
from loguru import logger
from pathlib import Path
from typing import Any, Dict, List, Sequence

from pcparts_scraper.core.config import OUTPUT_DIR

CSV_FIELDS = (
    "name",
    "manufacturer",
    "category",
    "base_price",
    "sale_price",
    "current_price",
    "is_on_sale",
    "is_available",
    "source",
    "source_url",
    "image_url",
)


def export_listings(
    name: str,
    documents: List[Dict[str, Any]],
    output_dir: str = OUTPUT_DIR,
    formats: Sequence[str] = ("json", "csv"),
) -> List[Path]:
    """
    Export stored listing documents to JSON and/or CSV.
    Files are named after the collection: `<output_dir>/<name>.json|csv`.
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    if "json" in formats:
        json_path = Path(output_dir) / f"{name}.json"
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(documents, f, ensure_ascii=False, indent=2, default=str)
        logger.success(f"Exported {len(documents)} listings to {json_path}")
        written.append(json_path)

    if "csv" in formats:
        csv_path = Path(output_dir) / f"{name}.csv"
        with open(csv_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=list(CSV_FIELDS), extrasaction="ignore")
            writer.writeheader()
            for row in documents:
                writer.writerow({key: row.get(key, "") for key in CSV_FIELDS})
        logger.success(f"Exported {len(documents)} listings to {csv_path}")
        written.append(csv_path)

    return written
