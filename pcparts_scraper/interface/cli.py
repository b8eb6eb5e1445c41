# cli.py

import asyncio
import json
from typing import List, Optional

import typer
from loguru import logger

from pcparts_scraper.catalog.search_terms import load_search_terms, terms_from_strings
from pcparts_scraper.core.config import (
    BATCH_SIZE,
    CATEGORIES,
    LOG_LEVEL,
    MAX_PRODUCTS_PER_SEARCH,
    MAX_WORKERS,
    OUTPUT_DIR,
    PRODUCT_PRICE_RANGE,
)
from pcparts_scraper.core.logger import setup_logging
from pcparts_scraper.pipeline.graph import make_model_runner
from pcparts_scraper.services.exporter import export_listings
from pcparts_scraper.services.fetcher import BrowserSession, fetch_html
from pcparts_scraper.services.price_extractor import extract_price
from pcparts_scraper.services.price_updater import PriceUpdater
from pcparts_scraper.services.storage import CatalogRepository, StorageError, get_database
from pcparts_scraper.services.worker_pool import create_batches, run_worker_pool

app = typer.Typer(help="Scrape PC-part listings into MongoDB.")


@app.callback()
def main(log_level: str = typer.Option(LOG_LEVEL, "--log-level", help="Logging level")):
    setup_logging(log_level=log_level.upper())


def _repository() -> CatalogRepository:
    return CatalogRepository(get_database())


@app.command()
def scrape(
    category: str = typer.Argument(..., help=f"One of: {', '.join(CATEGORIES)}"),
    term: Optional[List[str]] = typer.Option(None, "--term", "-t", help="Search term (repeatable)"),
    terms_file: Optional[str] = typer.Option(None, "--terms-file", help="JSON file of search terms"),
    site: str = typer.Option("amazon", "--site", help="amazon, newegg, bestbuy, microcenter or generic"),
    workers: int = typer.Option(MAX_WORKERS, "--workers", "-w", help="Concurrent browser sessions"),
    batch_size: int = typer.Option(BATCH_SIZE, "--batch-size"),
    max_products: int = typer.Option(MAX_PRODUCTS_PER_SEARCH, "--max-products"),
    manufacturer: Optional[List[str]] = typer.Option(None, "--manufacturer", help="Only these manufacturers"),
    priority: Optional[List[int]] = typer.Option(None, "--priority", help="Only these priorities"),
    start_from: int = typer.Option(0, "--start-from"),
    max_models: Optional[int] = typer.Option(None, "--max-models"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Scrape and normalize without saving"),
):
    """
    Scrape one category and upsert the listings.
    Example:
        python main.py scrape gpu --term "rtx 4070" --workers 2
    """
    if category not in CATEGORIES:
        logger.error(f"Unknown category {category!r}")
        raise typer.Exit(1)

    search_terms = terms_from_strings(category, term) if term else load_search_terms(category, terms_file)
    batches = create_batches(
        search_terms,
        batch_size,
        manufacturers=manufacturer,
        priorities=priority,
        start_from=start_from,
        max_models=max_models,
    )
    if not batches:
        logger.warning("No search terms selected")
        raise typer.Exit(1)

    repository = None if dry_run else _repository()
    runner = make_model_runner(repository, site=site, max_products=max_products)
    logger.info(f"Scraping {sum(len(b) for b in batches)} {category} models with {workers} workers")

    summary = asyncio.run(run_worker_pool(batches, runner, BrowserSession, max_workers=workers))

    typer.echo(json.dumps(summary.as_dict(), indent=2, default=str))
    if summary.successful == 0:
        raise typer.Exit(1)


@app.command("price-url")
def price_url(url: str = typer.Argument(..., help="Product page URL")):
    """Run the price cascade on one product page and print the result."""
    html = asyncio.run(fetch_html(url, wait_for="#productTitle"))
    if not html:
        logger.error("failed to fetch HTML")
        raise typer.Exit(1)

    result = extract_price(html, price_range=PRODUCT_PRICE_RANGE)
    typer.echo(result.model_dump_json(indent=2, exclude={"candidates"}))
    if not result.success:
        raise typer.Exit(1)


@app.command("update-prices")
def update_prices(
    collection: str = typer.Argument(...),
    limit: int = typer.Option(0, "--limit", help="0 means no limit"),
    days_old: Optional[int] = typer.Option(None, "--days-old", help="Only items not updated for this many days"),
):
    """Re-scrape stored product URLs and record their current prices."""
    updater = PriceUpdater(_repository(), BrowserSession)
    results = asyncio.run(updater.update_collection(collection, days_old=days_old, limit=limit))
    updated = sum(1 for r in results if r["success"])
    logger.info(f"Updated {updated}/{len(results)} items in {collection}")
    for r in results:
        if not r["success"]:
            typer.echo(f"FAILED {r['name']}: {r.get('error')}")


@app.command()
def purge(
    collection: str = typer.Argument(...),
    without_price: bool = typer.Option(False, "--without-price", help="Only remove unpriced documents"),
    duplicates: bool = typer.Option(False, "--duplicates", help="Only remove duplicate URLs"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete documents from a collection."""
    repository = _repository()
    if without_price:
        removed = repository.remove_without_price(collection)
    elif duplicates:
        removed = repository.remove_duplicates(collection)
    else:
        if not yes:
            typer.confirm(f"Delete every document in {collection}?", abort=True)
        removed = repository.purge(collection)
    typer.echo(f"Removed {removed} documents from {collection}")


@app.command()
def stats(prefix: Optional[str] = typer.Option(None, "--prefix", help="e.g. gpus_")):
    """Per-collection counts and price ranges."""
    repository = _repository()
    try:
        names = repository.list_collections(prefix)
    except StorageError as exc:
        logger.error(str(exc))
        raise typer.Exit(1)

    for name in names:
        s = repository.collection_stats(name)
        typer.echo(
            f"{name:<28} {s['count']:>5} docs  {s['priced']:>5} priced  {s['on_sale']:>4} on sale  "
            f"min={s['min_price']} avg={s['avg_price']} max={s['max_price']}"
        )


@app.command()
def export(
    collection: str = typer.Argument(...),
    fmt: str = typer.Option("json", "--format", help="json, csv or both"),
    output_dir: str = typer.Option(OUTPUT_DIR, "--output-dir"),
):
    """Dump a collection to JSON and/or CSV."""
    formats = ("json", "csv") if fmt == "both" else (fmt,)
    if not set(formats) <= {"json", "csv"}:
        logger.error(f"Unsupported format {fmt!r}")
        raise typer.Exit(1)

    documents = _repository().documents(collection)
    if not documents:
        logger.warning(f"{collection} is empty")
        raise typer.Exit(1)
    for path in export_listings(collection, documents, output_dir=output_dir, formats=formats):
        typer.echo(str(path))
