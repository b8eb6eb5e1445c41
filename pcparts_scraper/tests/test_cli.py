import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import mongomock
from typer.testing import CliRunner

from pcparts_scraper.interface.cli import app
from pcparts_scraper.services.storage import CatalogRepository
from pcparts_scraper.tests.fakes import FakeSession
from pcparts_scraper.tests.test_strategies import amazon_pages


class TestCli(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.db = mongomock.MongoClient().db
        self.repo = CatalogRepository(self.db)
        patchers = [
            patch("pcparts_scraper.interface.cli._repository", return_value=self.repo),
            patch("pcparts_scraper.interface.cli.setup_logging"),
            patch("pcparts_scraper.interface.cli.BrowserSession", side_effect=lambda: FakeSession(amazon_pages())),
        ]
        for patcher in patchers:
            patcher.start()
            self.addCleanup(patcher.stop)

    def test_scrape_saves_listings(self):
        result = self.runner.invoke(app, ["scrape", "gpu", "--term", "rtx 4070", "--workers", "1"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"successful": 1', result.output)
        self.assertEqual(self.db["gpus_4070"].count_documents({}), 1)

    def test_scrape_dry_run(self):
        result = self.runner.invoke(app, ["scrape", "gpu", "-t", "rtx 4070", "--dry-run"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self.db.list_collection_names(), [])

    def test_scrape_unknown_category(self):
        result = self.runner.invoke(app, ["scrape", "monitor", "-t", "27 inch"])
        self.assertEqual(result.exit_code, 1)

    def test_scrape_nothing_selected(self):
        result = self.runner.invoke(app, ["scrape", "gpu", "--manufacturer", "Matrox"])
        self.assertEqual(result.exit_code, 1)

    def test_purge_without_price(self):
        self.db["rams"].insert_many([{"name": "a", "current_price": 45.0}, {"name": "b"}])
        result = self.runner.invoke(app, ["purge", "rams", "--without-price"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Removed 1 documents from rams", result.output)

    def test_purge_needs_confirmation(self):
        self.db["rams"].insert_one({"name": "a"})
        result = self.runner.invoke(app, ["purge", "rams"], input="n\n")
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(self.db["rams"].count_documents({}), 1)

        result = self.runner.invoke(app, ["purge", "rams", "--yes"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(self.db["rams"].count_documents({}), 0)

    def test_stats(self):
        self.db["gpus_4070"].insert_many(
            [{"name": "a", "current_price": 500.0}, {"name": "b", "current_price": 600.0, "is_on_sale": True}]
        )
        result = self.runner.invoke(app, ["stats", "--prefix", "gpus_"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("gpus_4070", result.output)
        self.assertIn("avg=550.0", result.output)

    def test_export(self):
        self.db["psus"].insert_one({"name": "Corsair RM850x", "current_price": 129.99})
        with tempfile.TemporaryDirectory() as tmp:
            result = self.runner.invoke(app, ["export", "psus", "--format", "both", "--output-dir", tmp])
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertTrue((Path(tmp) / "psus.json").exists())
            self.assertTrue((Path(tmp) / "psus.csv").exists())

    def test_export_rejects_unknown_format(self):
        result = self.runner.invoke(app, ["export", "psus", "--format", "xml"])
        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
