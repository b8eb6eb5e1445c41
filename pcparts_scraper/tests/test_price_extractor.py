"""
Product-page price cascade: each strategy in order, candidate scoring,
sale detection and unavailable products.
"""
import unittest

from bs4 import BeautifulSoup

from pcparts_scraper.services.price_extractor import PriceExtractor, extract_price
from pcparts_scraper.tests.fakes import product_page


def page(body: str, title: str = "MSI GeForce RTX 4070 12GB") -> str:
    return (
        f'<html><body><span id="productTitle">{title}</span>'
        f'<div id="centerCol">{body}</div></body></html>'
    )


class TestCascadeOrder(unittest.TestCase):

    def setUp(self):
        self.extractor = PriceExtractor(price_range=(100, 5000))

    def test_hidden_input_wins_over_everything(self):
        html = page(
            '<input type="hidden" id="attach-base-product-price" value="549.99">'
            '<div id="corePrice_feature_div"><span class="a-price">'
            '<span class="a-offscreen">$599.99</span></span></div>'
        )
        result = self.extractor.extract(html)
        self.assertTrue(result.success)
        self.assertEqual(result.base_price, 549.99)
        self.assertEqual(result.current_price, 549.99)
        self.assertEqual(result.detection_method, "hidden_input")
        self.assertEqual(result.price_source, "#attach-base-product-price")

    def test_out_of_range_hidden_input_is_skipped(self):
        html = page(
            '<input type="hidden" id="attach-base-product-price" value="25.00">'
            '<div id="corePrice_feature_div"><span class="a-price">'
            '<span class="a-offscreen">$599.99</span></span></div>'
        )
        result = self.extractor.extract(html)
        self.assertEqual(result.current_price, 599.99)
        self.assertEqual(result.detection_method, "priority_selector")

    def test_json_blob(self):
        html = page(
            '<div class="twister-plus-buying-options-price-data">'
            '{"desktop_buybox_group_1":[{"displayPrice":"$629.00","priceAmount":629.00}]}'
            "</div>"
        )
        result = self.extractor.extract(html)
        self.assertEqual(result.current_price, 629.0)
        self.assertEqual(result.detection_method, "json_data")

    def test_priority_selector_skips_shipping_context(self):
        html = page(
            '<div id="corePrice_feature_div">'
            '<span class="ship">Shipping <span class="a-offscreen">$149.99</span></span>'
            '<span class="a-price"><span class="a-offscreen">$449.99</span></span>'
            "</div>"
        )
        result = self.extractor.extract(html)
        self.assertEqual(result.current_price, 449.99)
        self.assertEqual(result.detection_method, "priority_selector")

    def test_priority_selector_skips_plural_taxes_and_fees(self):
        html = page(
            '<div id="corePrice_feature_div">'
            '<span class="fees"><span class="a-offscreen">$129.00</span> Taxes &amp; Fees</span>'
            '<span class="a-price"><span class="a-offscreen">$899.99</span></span>'
            "</div>"
        )
        result = self.extractor.extract(html)
        self.assertEqual(result.current_price, 899.99)
        self.assertEqual(result.detection_method, "priority_selector")

    def test_enhanced_selector(self):
        html = page('<div id="priceblock_ourprice"><span class="a-offscreen">$329.00</span></div>')
        result = self.extractor.extract(html)
        self.assertEqual(result.current_price, 329.0)
        self.assertEqual(result.detection_method, "enhanced_selector")

    def test_data_attribute(self):
        result = self.extractor.extract(page('<div class="buy" data-price="219.50"></div>'))
        self.assertEqual(result.current_price, 219.5)
        self.assertEqual(result.detection_method, "data_attribute")
        self.assertEqual(result.price_source, "[data-price]")

    def test_script_pattern(self):
        html = page("") + '<script>var state = {"priceAmount": 349.95, "currency": "USD"};</script>'
        result = self.extractor.extract(html)
        self.assertEqual(result.current_price, 349.95)
        self.assertEqual(result.detection_method, "script_pattern")

    def test_nothing_found(self):
        result = self.extractor.extract(page("<p>See all buying options</p>"))
        self.assertFalse(result.success)
        self.assertEqual(result.error, "no price found")
        self.assertIsNone(result.current_price)
        self.assertEqual(result.title, "MSI GeForce RTX 4070 12GB")


class TestScoredCandidates(unittest.TestCase):

    def setUp(self):
        self.extractor = PriceExtractor(price_range=(100, 5000))

    def test_buy_price_beats_list_price(self):
        html = page(
            '<div class="a-section"><span class="a-price">'
            '<span class="a-offscreen">$129.99</span></span></div>'
            '<div>List: <span class="a-price a-text-strike" data-a-strike="true">'
            '<span class="a-offscreen">$159.99</span></span></div>'
        )
        result = self.extractor.extract(html)
        self.assertEqual(result.detection_method, "scored_candidates")
        self.assertEqual(result.sale_price, 129.99)
        self.assertEqual(result.base_price, 159.99)
        self.assertTrue(result.is_on_sale)
        self.assertEqual(result.current_price, 129.99)
        self.assertEqual(len(result.candidates), 2)
        self.assertGreater(result.candidates[0].score, result.candidates[1].score)

    def test_fee_only_candidates_are_rejected(self):
        html = page('<span>Shipping &amp; Import Fees <span class="a-offscreen">$120.00</span></span>')
        result = self.extractor.extract(html)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "no price found")
        self.assertEqual(len(result.candidates), 1)
        self.assertLess(result.candidates[0].score, 0)

    def test_offscreen_wins_tie_against_whole_fraction(self):
        html = (
            '<div><span class="a-price"><span class="a-price-whole">180.</span>'
            '<span class="a-price-fraction">00</span></span></div>'
            '<span class="a-price">Import fees <span class="a-offscreen">$210.00</span></span>'
        )
        scored = self.extractor.score_candidates(BeautifulSoup(html, "lxml"))
        self.assertEqual([item.candidate.score for item in scored], [2, 2])
        self.assertEqual(scored[0].candidate.price, 210.0)
        self.assertEqual(scored[0].candidate.strategy, "scored_offscreen")

    def test_document_order_breaks_equal_scores(self):
        html = (
            '<div class="a-price"><span class="a-offscreen">$300.00</span></div>'
            '<div class="a-price"><span class="a-offscreen">$250.00</span></div>'
        )
        scored = self.extractor.score_candidates(BeautifulSoup(html, "lxml"))
        self.assertEqual([item.candidate.price for item in scored], [300.0, 250.0])

    def test_out_of_range_nodes_are_not_candidates(self):
        html = '<div class="a-price"><span class="a-offscreen">$9.99</span></div>'
        self.assertEqual(self.extractor.score_candidates(BeautifulSoup(html, "lxml")), [])


class TestProductPage(unittest.TestCase):

    def test_sale_from_strikethrough_list_price(self):
        html = product_page("ASUS TUF RTX 4070 Ti SUPER", "$799.99", list_price="$899.99")
        result = extract_price(html)
        self.assertTrue(result.success)
        self.assertTrue(result.is_on_sale)
        self.assertEqual(result.base_price, 899.99)
        self.assertEqual(result.sale_price, 799.99)
        self.assertEqual(result.current_price, 799.99)
        self.assertEqual(result.image_url, "https://m.media-amazon.com/images/I/part.jpg")

    def test_lower_strikethrough_is_not_a_sale(self):
        html = product_page("ASUS TUF RTX 4070", "$599.99", list_price="$499.99")
        result = extract_price(html)
        self.assertFalse(result.is_on_sale)
        self.assertEqual(result.base_price, 599.99)
        self.assertIsNone(result.sale_price)

    def test_unavailable_product(self):
        html = product_page("ASUS TUF RTX 3080", unavailable=True)
        result = extract_price(html)
        self.assertTrue(result.success)
        self.assertFalse(result.is_available)
        self.assertEqual(result.unavailability_reason, "Currently unavailable")
        self.assertEqual(result.detection_method, "unavailable")
        self.assertIsNone(result.current_price)

    def test_title_is_trimmed(self):
        result = extract_price(product_page("  Corsair RM850x  ", "$129.99"))
        self.assertEqual(result.title, "Corsair RM850x")

    def test_custom_range_for_cheap_parts(self):
        html = product_page("Arctic P12 CPU Cooler", "$39.99")
        self.assertFalse(extract_price(html).success)
        self.assertEqual(extract_price(html, price_range=(10, 1000)).current_price, 39.99)


if __name__ == "__main__":
    unittest.main()
