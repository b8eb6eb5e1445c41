import json
import tempfile
import unittest
from pathlib import Path

from pcparts_scraper.catalog.search_terms import DEFAULT_TERMS, load_search_terms, terms_from_strings


class TestLoadSearchTerms(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_defaults(self):
        terms = load_search_terms("gpu")
        self.assertEqual(len(terms), len(DEFAULT_TERMS["gpu"]))
        self.assertEqual(terms[0].model, "RTX 4090")
        self.assertEqual(terms[0].search_terms, ["rtx 4090"])
        self.assertTrue(all(t.category == "gpu" for t in terms))

    def test_every_category_has_defaults(self):
        for category in ("gpu", "cpu", "ram", "psu", "cooler", "motherboard"):
            self.assertTrue(load_search_terms(category))

    def test_list_file(self):
        path = self.dir / "ram.json"
        path.write_text(
            json.dumps(
                [
                    {"model": "DDR5 64GB 6400", "searchTerms": ["ddr5 64gb 6400", "ddr5 2x32gb 6400"], "priority": 1},
                    {"searchTerms": ["no model"]},
                ]
            ),
            encoding="utf-8",
        )
        terms = load_search_terms("ram", path)
        self.assertEqual(len(terms), 1)
        self.assertEqual(terms[0].primary_term, "ddr5 64gb 6400")
        self.assertEqual(terms[0].priority, 1)

    def test_file_keyed_by_category(self):
        path = self.dir / "terms.json"
        path.write_text(
            json.dumps({"cpu": [{"model": "Ryzen 9 9950X", "manufacturer": "AMD"}], "gpu": []}),
            encoding="utf-8",
        )
        terms = load_search_terms("cpu", str(path))
        self.assertEqual([(t.model, t.manufacturer) for t in terms], [("Ryzen 9 9950X", "AMD")])
        self.assertEqual(terms[0].primary_term, "Ryzen 9 9950X")

    def test_unknown_category(self):
        with self.assertRaises(ValueError):
            load_search_terms("monitor")

    def test_missing_explicit_file(self):
        with self.assertRaises(FileNotFoundError):
            load_search_terms("psu", self.dir / "missing.json")


class TestTermsFromStrings(unittest.TestCase):

    def test_ad_hoc_terms(self):
        terms = terms_from_strings("cooler", ["noctua nh-d15", "arctic liquid freezer iii 360"])
        self.assertEqual([t.model for t in terms], ["noctua nh-d15", "arctic liquid freezer iii 360"])
        self.assertEqual(terms[1].search_terms, ["arctic liquid freezer iii 360"])
        self.assertEqual(terms[0].category, "cooler")


if __name__ == "__main__":
    unittest.main()
