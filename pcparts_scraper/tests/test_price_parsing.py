import unittest

from pcparts_scraper.services.price_parsing import (
    detect_discount,
    in_range,
    join_whole_fraction,
    parse_dollar_price,
    parse_price_text,
)


class TestParsePriceText(unittest.TestCase):

    def test_plain_dollar_amounts(self):
        self.assertEqual(parse_price_text("$1,299.99"), 1299.99)
        self.assertEqual(parse_price_text("  $89.00 "), 89.0)
        self.assertEqual(parse_price_text("USD 45"), 45.0)

    def test_numbers_pass_through(self):
        self.assertEqual(parse_price_text(549), 549.0)
        self.assertEqual(parse_price_text(19.5), 19.5)
        self.assertIsNone(parse_price_text(0))
        self.assertIsNone(parse_price_text(-3))

    def test_rejects_empty_zero_and_single_digit(self):
        self.assertIsNone(parse_price_text(None))
        self.assertIsNone(parse_price_text(""))
        self.assertIsNone(parse_price_text("free"))
        self.assertIsNone(parse_price_text("$0"))
        self.assertIsNone(parse_price_text("$5"))

    def test_doubled_price_is_cut_back(self):
        # Amazon renders some prices twice inside one node
        self.assertEqual(parse_price_text("$1,699.99$1,699.99"), 1699.99)

    def test_extra_dots_keep_first_two_parts(self):
        self.assertEqual(parse_price_text("12.34.56"), 12.34)

    def test_dollar_sign_required_for_dollar_price(self):
        self.assertIsNone(parse_dollar_price("4.5 out of 5 stars"))
        self.assertIsNone(parse_dollar_price(None))
        self.assertEqual(parse_dollar_price("$249.99"), 249.99)


class TestPriceHelpers(unittest.TestCase):

    def test_in_range_is_inclusive(self):
        self.assertTrue(in_range(100, 100, 5000))
        self.assertTrue(in_range(5000, 100, 5000))
        self.assertFalse(in_range(99.99, 100, 5000))
        self.assertFalse(in_range(None, 100, 5000))

    def test_join_whole_fraction(self):
        self.assertEqual(join_whole_fraction("1,299.", "99"), 1299.99)
        self.assertEqual(join_whole_fraction("549", None), 549.0)
        self.assertEqual(join_whole_fraction("74", "5"), 74.5)
        self.assertIsNone(join_whole_fraction("", "99"))

    def test_detect_discount(self):
        html = """
        <div>Save $50.00 today, 12% off
          <span class="a-text-strike">$449.99</span>
        </div>
        """
        info = detect_discount(html)
        self.assertTrue(info["has_discount"])
        self.assertIn("12% off", info["indicators"])
        self.assertIn(449.99, info["strikethrough_prices"])

    def test_detect_discount_on_plain_page(self):
        info = detect_discount("<div><span>$399.99</span></div>")
        self.assertFalse(info["has_discount"])
        self.assertEqual(info["strikethrough_prices"], [])


if __name__ == "__main__":
    unittest.main()
