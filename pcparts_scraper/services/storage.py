# storage.py
"""
MongoDB persistence for scraped listings.

Documents are loose: one collection per category (per model for GPUs and
CPUs), matched on `source_url` first and on (`name`, `current_price`) when
the URL is unknown or new.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from pcparts_scraper.core.config import MONGODB_DB, MONGODB_URI, PRICE_HISTORY_LIMIT
from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.models.listing import PriceResult, ProductListing, UpsertStats, utcnow

logger = get_logger(__name__)

PRICE_FIELDS = ("base_price", "sale_price", "current_price", "is_on_sale", "is_available")

INDEXED_FIELDS = (
    "name",
    "title",
    "base_price",
    "sale_price",
    "current_price",
    "is_on_sale",
    "manufacturer",
    "category",
)


class StorageError(Exception):
    """Raised when a repository operation fails at the database level."""


def get_database(uri: str = MONGODB_URI, name: str = MONGODB_DB) -> Database:
    client: MongoClient = MongoClient(uri, serverSelectionTimeoutMS=10000)
    return client[name]


def _prices_changed(existing: Dict[str, Any], incoming: Dict[str, Any]) -> bool:
    return any(existing.get(key) != incoming.get(key) for key in PRICE_FIELDS)


class CatalogRepository:
    """Collection-level operations used by scrape runs and maintenance commands."""

    def __init__(self, db: Database) -> None:
        self.db = db

    # ------------------------------------------------------------ upserts

    def find_existing(self, collection: str, doc: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Match by `source_url` first, then by name + price when no document has that URL."""
        coll = self.db[collection]
        if doc.get("source_url"):
            existing = coll.find_one({"source_url": doc["source_url"]})
            if existing is not None:
                return existing
        if doc.get("name"):
            return coll.find_one({"name": doc["name"], "current_price": doc.get("current_price")})
        return None

    def upsert_listing(self, collection: str, listing: ProductListing) -> str:
        """Insert or refresh one listing. Returns "new", "updated" or "duplicate"."""
        doc = listing.to_document()
        now = utcnow()
        coll = self.db[collection]

        existing = self.find_existing(collection, doc)
        if existing is None:
            doc["created_at"] = now
            doc["updated_at"] = now
            if doc.get("current_price") is not None:
                doc["price_history"] = [self._history_entry(doc, now)]
            coll.insert_one(doc)
            return "new"

        if not _prices_changed(existing, doc):
            return "duplicate"

        update: Dict[str, Any] = {key: doc.get(key) for key in PRICE_FIELDS}
        update.update(
            {
                "price_source": doc.get("price_source"),
                "detection_method": doc.get("detection_method"),
                "scraped_at": doc.get("scraped_at"),
                "updated_at": now,
            }
        )
        if doc.get("image_url") and not existing.get("image_url"):
            update["image_url"] = doc["image_url"]

        operation: Dict[str, Any] = {"$set": update}
        if doc.get("current_price") is not None:
            operation["$push"] = {
                "price_history": {
                    "$each": [self._history_entry(doc, now)],
                    "$slice": -PRICE_HISTORY_LIMIT,
                }
            }
        result = coll.update_one({"_id": existing["_id"]}, operation)
        return "updated" if result.modified_count else "duplicate"

    def upsert_listings(self, collection: str, listings: Iterable[ProductListing]) -> UpsertStats:
        stats = UpsertStats()
        for listing in listings:
            try:
                outcome = self.upsert_listing(collection, listing)
            except PyMongoError as exc:
                logger.error("Failed to save %s to %s: %s", listing.name[:60], collection, exc)
                stats.failed += 1
                continue
            setattr(stats, outcome, getattr(stats, outcome) + 1)

        logger.info(
            "Saved to %s: %d new, %d updated, %d duplicates, %d failed",
            collection,
            stats.new,
            stats.updated,
            stats.duplicate,
            stats.failed,
        )
        return stats

    @staticmethod
    def _history_entry(doc: Dict[str, Any], when: datetime) -> Dict[str, Any]:
        return {
            "price": doc.get("current_price"),
            "date": when,
            "source": doc.get("source"),
            "detection_method": doc.get("detection_method"),
            "is_available": doc.get("is_available", True),
        }

    # ------------------------------------------------------------ indexes

    def ensure_indexes(self, collection: str) -> None:
        coll = self.db[collection]
        try:
            for field_name in INDEXED_FIELDS:
                coll.create_index([(field_name, ASCENDING)])
            coll.create_index([("source_url", ASCENDING)], sparse=True)
            coll.create_index([("updated_at", DESCENDING)])
        except PyMongoError as exc:
            raise StorageError(f"Could not create indexes on {collection}: {exc}") from exc

    # ------------------------------------------------------- price updates

    def record_price(
        self, collection: str, doc_id: Any, result: PriceResult, *, source: str = "Amazon"
    ) -> bool:
        """Write a re-scraped price onto an existing document and append history."""
        now = utcnow()
        update = {
            "base_price": result.base_price,
            "sale_price": result.sale_price,
            "current_price": result.current_price,
            "is_on_sale": result.is_on_sale,
            "is_available": result.is_available,
            "unavailability_reason": result.unavailability_reason,
            "detection_method": result.detection_method,
            "price_source": result.price_source,
            "updated_at": now,
            "last_updated": now,
        }
        if result.image_url:
            update["image_url"] = result.image_url

        entry = {
            "price": result.current_price,
            "date": now,
            "source": source,
            "detection_method": result.detection_method,
            "is_available": result.is_available,
        }
        outcome = self.db[collection].update_one(
            {"_id": doc_id},
            {
                "$set": update,
                "$push": {"price_history": {"$each": [entry], "$slice": -PRICE_HISTORY_LIMIT}},
            },
        )
        return outcome.matched_count > 0

    def items_with_source_url(
        self,
        collection: str,
        *,
        query: Optional[Dict[str, Any]] = None,
        limit: int = 0,
        skip: int = 0,
    ) -> List[Dict[str, Any]]:
        criteria = {"source_url": {"$exists": True, "$nin": [None, ""]}}
        if query:
            criteria.update(query)
        cursor = self.db[collection].find(criteria).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def items_needing_update(self, collection: str, days_old: int = 1, limit: int = 0) -> List[Dict[str, Any]]:
        cutoff = utcnow() - timedelta(days=days_old)
        query = {"$or": [{"updated_at": {"$lt": cutoff}}, {"updated_at": {"$exists": False}}]}
        return self.items_with_source_url(collection, query=query, limit=limit)

    # -------------------------------------------------------------- purge

    def purge(self, collection: str) -> int:
        deleted = self.db[collection].delete_many({}).deleted_count
        logger.warning("Purged %d documents from %s", deleted, collection)
        return deleted

    def remove_without_price(self, collection: str) -> int:
        query = {
            "$or": [
                {"current_price": {"$exists": False}},
                {"current_price": None},
                {"current_price": {"$lte": 0}},
            ]
        }
        deleted = self.db[collection].delete_many(query).deleted_count
        logger.info("Removed %d unpriced documents from %s", deleted, collection)
        return deleted

    def remove_duplicates(self, collection: str) -> int:
        """Keep the most recently updated document per `source_url`."""
        coll = self.db[collection]
        seen: set[str] = set()
        stale: List[Any] = []
        cursor = coll.find({"source_url": {"$nin": [None, ""]}}).sort("updated_at", DESCENDING)
        for doc in cursor:
            url = doc.get("source_url")
            if url in seen:
                stale.append(doc["_id"])
            else:
                seen.add(url)
        if not stale:
            return 0
        deleted = coll.delete_many({"_id": {"$in": stale}}).deleted_count
        logger.info("Removed %d duplicate documents from %s", deleted, collection)
        return deleted

    # -------------------------------------------------------------- stats

    def list_collections(self, prefix: Optional[str] = None) -> List[str]:
        try:
            names = sorted(self.db.list_collection_names())
        except PyMongoError as exc:
            raise StorageError(f"Could not list collections: {exc}") from exc
        if prefix:
            names = [name for name in names if name.startswith(prefix)]
        return names

    def collection_stats(self, collection: str) -> Dict[str, Any]:
        coll = self.db[collection]
        prices = [
            doc["current_price"]
            for doc in coll.find({"current_price": {"$gt": 0}}, {"current_price": 1})
        ]
        manufacturers = sorted(m for m in coll.distinct("manufacturer") if m)
        return {
            "collection": collection,
            "count": coll.count_documents({}),
            "priced": len(prices),
            "on_sale": coll.count_documents({"is_on_sale": True}),
            "manufacturers": manufacturers,
            "avg_price": round(sum(prices) / len(prices), 2) if prices else None,
            "min_price": min(prices) if prices else None,
            "max_price": max(prices) if prices else None,
        }

    def documents(self, collection: str) -> List[Dict[str, Any]]:
        return list(self.db[collection].find({}, {"_id": 0}))

