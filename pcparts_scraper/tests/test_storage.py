"""CatalogRepository against an in-memory MongoDB."""
import unittest
from datetime import timedelta

import mongomock

from pcparts_scraper.models.listing import PriceResult, ProductListing, utcnow
from pcparts_scraper.services.storage import CatalogRepository


def listing(name="MSI GeForce RTX 4070 12GB", price=549.99, url="https://www.amazon.com/dp/B0BZB7DS7Q", **extra):
    return ProductListing(
        name=name,
        title=name,
        manufacturer=extra.pop("manufacturer", "NVIDIA"),
        category="gpu",
        base_price=price,
        current_price=price,
        source_url=url,
        source="Amazon",
        **extra,
    )


class TestUpserts(unittest.TestCase):

    def setUp(self):
        self.db = mongomock.MongoClient().db
        self.repo = CatalogRepository(self.db)
        self.coll = "gpus_4070"

    def test_insert_then_duplicate(self):
        self.assertEqual(self.repo.upsert_listing(self.coll, listing()), "new")
        self.assertEqual(self.repo.upsert_listing(self.coll, listing()), "duplicate")

        doc = self.db[self.coll].find_one()
        self.assertEqual(self.db[self.coll].count_documents({}), 1)
        self.assertIn("created_at", doc)
        self.assertIn("updated_at", doc)
        self.assertEqual(len(doc["price_history"]), 1)
        self.assertEqual(doc["price_history"][0]["price"], 549.99)

    def test_price_change_updates_in_place(self):
        self.repo.upsert_listing(self.coll, listing())
        outcome = self.repo.upsert_listing(self.coll, listing(price=519.99))
        self.assertEqual(outcome, "updated")

        doc = self.db[self.coll].find_one()
        self.assertEqual(doc["current_price"], 519.99)
        self.assertEqual([h["price"] for h in doc["price_history"]], [549.99, 519.99])

    def test_name_and_price_match_without_url(self):
        self.repo.upsert_listing(self.coll, listing(url=None))
        self.assertEqual(self.repo.upsert_listing(self.coll, listing(url=None)), "duplicate")
        # same name, new price and no URL: nothing to tie it to
        self.assertEqual(self.repo.upsert_listing(self.coll, listing(url=None, price=499.99)), "new")

    def test_url_match_wins_over_name_and_price(self):
        first = "https://www.amazon.com/dp/B0AAAAAAA1"
        second = "https://www.amazon.com/dp/B0BBBBBBB2"
        self.repo.upsert_listing(self.coll, listing(price=500.0, url=first))
        self.repo.upsert_listing(self.coll, listing(price=550.0, url=second))

        # same name, and the new price equals the other listing's price
        self.assertEqual(self.repo.upsert_listing(self.coll, listing(price=500.0, url=second)), "updated")
        self.assertEqual(self.db[self.coll].find_one({"source_url": second})["current_price"], 500.0)
        self.assertEqual(self.db[self.coll].find_one({"source_url": first})["current_price"], 500.0)
        self.assertEqual(self.db[self.coll].count_documents({}), 2)

    def test_history_is_capped(self):
        for step in range(12):
            self.repo.upsert_listing(self.coll, listing(price=500 + step))
        doc = self.db[self.coll].find_one()
        self.assertEqual(len(doc["price_history"]), 10)
        self.assertEqual(doc["price_history"][-1]["price"], 511)
        self.assertEqual(doc["price_history"][0]["price"], 502)

    def test_batch_stats(self):
        items = [
            listing(),
            listing(),
            listing(name="Gigabyte RTX 4070 WINDFORCE", url="https://www.amazon.com/dp/B0C4F8PR4M", price=539.0),
        ]
        stats = self.repo.upsert_listings(self.coll, items)
        self.assertEqual(stats.summary(), {"new": 2, "duplicate": 1, "updated": 0, "failed": 0, "total": 3})

    def test_ensure_indexes(self):
        self.repo.ensure_indexes(self.coll)
        index_keys = [list(info["key"])[0][0] for info in self.db[self.coll].index_information().values()]
        for field_name in ("name", "current_price", "source_url", "updated_at"):
            self.assertIn(field_name, index_keys)


class TestPriceRecords(unittest.TestCase):

    def setUp(self):
        self.db = mongomock.MongoClient().db
        self.repo = CatalogRepository(self.db)
        self.repo.upsert_listing("gpus_4070", listing())
        self.doc = self.db["gpus_4070"].find_one()

    def test_record_price(self):
        result = PriceResult(
            base_price=599.99,
            sale_price=529.99,
            current_price=529.99,
            is_on_sale=True,
            success=True,
            detection_method="priority_selector",
        )
        self.assertTrue(self.repo.record_price("gpus_4070", self.doc["_id"], result))
        doc = self.db["gpus_4070"].find_one()
        self.assertEqual(doc["current_price"], 529.99)
        self.assertTrue(doc["is_on_sale"])
        self.assertEqual(doc["price_history"][-1]["detection_method"], "priority_selector")
        self.assertFalse(self.repo.record_price("gpus_4070", "missing-id", result))

    def test_items_needing_update(self):
        self.assertEqual(self.repo.items_needing_update("gpus_4070", days_old=1), [])
        old = utcnow() - timedelta(days=3)
        self.db["gpus_4070"].update_one({"_id": self.doc["_id"]}, {"$set": {"updated_at": old}})
        self.assertEqual(len(self.repo.items_needing_update("gpus_4070", days_old=1)), 1)

    def test_items_with_source_url(self):
        self.db["gpus_4070"].insert_one({"name": "no url", "current_price": 10})
        items = self.repo.items_with_source_url("gpus_4070")
        self.assertEqual([item["name"] for item in items], ["MSI GeForce RTX 4070 12GB"])


class TestMaintenance(unittest.TestCase):

    def setUp(self):
        self.db = mongomock.MongoClient().db
        self.repo = CatalogRepository(self.db)

    def test_remove_without_price(self):
        coll = self.db["rams"]
        coll.insert_many(
            [
                {"name": "a", "current_price": 45.0},
                {"name": "b", "current_price": None},
                {"name": "c"},
                {"name": "d", "current_price": 0},
            ]
        )
        self.assertEqual(self.repo.remove_without_price("rams"), 3)
        self.assertEqual([d["name"] for d in coll.find()], ["a"])

    def test_remove_duplicates_keeps_newest(self):
        now = utcnow()
        coll = self.db["psus"]
        coll.insert_many(
            [
                {"name": "old", "source_url": "u1", "updated_at": now - timedelta(days=2)},
                {"name": "new", "source_url": "u1", "updated_at": now},
                {"name": "other", "source_url": "u2", "updated_at": now},
            ]
        )
        self.assertEqual(self.repo.remove_duplicates("psus"), 1)
        self.assertEqual(sorted(d["name"] for d in coll.find()), ["new", "other"])

    def test_purge(self):
        self.db["coolers"].insert_many([{"name": "a"}, {"name": "b"}])
        self.assertEqual(self.repo.purge("coolers"), 2)
        self.assertEqual(self.db["coolers"].count_documents({}), 0)

    def test_stats_and_listing(self):
        self.db["gpus_4070"].insert_many(
            [
                {"name": "a", "manufacturer": "NVIDIA", "current_price": 500.0, "is_on_sale": True},
                {"name": "b", "manufacturer": "NVIDIA", "current_price": 600.0, "is_on_sale": False},
                {"name": "c", "manufacturer": None},
            ]
        )
        self.db["rams"].insert_one({"name": "r"})

        self.assertEqual(self.repo.list_collections("gpus_"), ["gpus_4070"])
        stats = self.repo.collection_stats("gpus_4070")
        self.assertEqual(stats["count"], 3)
        self.assertEqual(stats["priced"], 2)
        self.assertEqual(stats["on_sale"], 1)
        self.assertEqual(stats["manufacturers"], ["NVIDIA"])
        self.assertEqual(stats["avg_price"], 550.0)
        self.assertEqual((stats["min_price"], stats["max_price"]), (500.0, 600.0))

    def test_documents_drop_ids(self):
        self.db["rams"].insert_one({"name": "r"})
        self.assertEqual(self.repo.documents("rams"), [{"name": "r"}])


if __name__ == "__main__":
    unittest.main()
