import unittest

from pcparts_scraper.models.listing import RawListing
from pcparts_scraper.services.product_filters import (
    CoolerFilter,
    CpuFilter,
    GpuFilter,
    MotherboardFilter,
    PsuFilter,
    RamFilter,
    contains_any,
    get_filter,
    is_prebuilt_system,
    listing_price,
)


def raw(title, price=None, sale=None, text=None):
    return RawListing(title=title, base_price=price, sale_price=sale, price_text=text, url="https://x.test/p")


class TestSharedHelpers(unittest.TestCase):

    def test_contains_any_is_whole_word(self):
        self.assertTrue(contains_any("gaming pc bundle", ["pc"]))
        self.assertFalse(contains_any("pcie 4.0 graphics card", ["pc"]))

    def test_prebuilt_detection(self):
        self.assertTrue(is_prebuilt_system("CyberPowerPC Gamer Xtreme VR Gaming PC"))
        self.assertTrue(is_prebuilt_system("Lenovo Legion 5 Gaming Laptop RTX 4060"))
        self.assertTrue(is_prebuilt_system("Tower with 32GB RAM and 2TB SSD"))
        self.assertFalse(is_prebuilt_system("MSI GeForce RTX 4070 Ventus 2X"))
        self.assertFalse(is_prebuilt_system(None))

    def test_listing_price_prefers_sale(self):
        self.assertEqual(listing_price(raw("x", price=599.99, sale=549.99)), 549.99)
        self.assertEqual(listing_price(raw("x", price="$599.99")), 599.99)
        self.assertEqual(listing_price(raw("x", text="$89.99")), 89.99)
        self.assertIsNone(listing_price(raw("x")))

    def test_unknown_category(self):
        with self.assertRaises(ValueError):
            get_filter("monitor")
        self.assertIsInstance(get_filter("gpu"), GpuFilter)


class TestGpuFilter(unittest.TestCase):

    def setUp(self):
        self.filter = GpuFilter()

    def test_base_model_excludes_variants(self):
        term = "rtx 4070"
        self.assertTrue(self.filter.accept(raw("MSI GeForce RTX 4070 12GB Ventus 2X", 549.99), term))
        self.assertFalse(self.filter.accept(raw("MSI GeForce RTX 4070 SUPER 12GB", 599.99), term))
        self.assertFalse(self.filter.accept(raw("ZOTAC GeForce RTX 4070 Ti 12GB", 749.99), term))

    def test_ti_excludes_ti_super(self):
        term = "rtx 4070 ti"
        self.assertTrue(self.filter.accept(raw("ZOTAC GeForce RTX 4070 Ti 12GB", 749.99), term))
        self.assertFalse(self.filter.accept(raw("ASUS RTX 4070 Ti SUPER 16GB", 799.99), term))

    def test_xt_excludes_xtx(self):
        term = "rx 7900 xt"
        self.assertTrue(self.filter.accept(raw("XFX Radeon RX 7900 XT 20GB", 699.99), term))
        self.assertFalse(self.filter.accept(raw("XFX Radeon RX 7900 XTX 24GB", 899.99), term))

    def test_rejects_systems_and_bad_prices(self):
        term = "rtx 4070"
        self.assertFalse(self.filter.accept(raw("Skytech Gaming Desktop PC RTX 4070 i7", 1499.99), term))
        self.assertFalse(self.filter.accept(raw("MSI GeForce RTX 4070 12GB", 49.99), term))
        self.assertFalse(self.filter.accept(raw("MSI GeForce RTX 4070 12GB"), term))
        self.assertFalse(self.filter.accept(raw("Some other card", 549.99), term))


class TestCpuFilter(unittest.TestCase):

    def test_accepts_boxed_processor(self):
        f = CpuFilter()
        title = "AMD Ryzen 7 7800X3D 8-Core, 16-Thread Desktop Processor"
        self.assertTrue(f.accept(raw(title, 449.0), "amd ryzen 7 7800x3d"))

    def test_rejects_complete_system(self):
        f = CpuFilter()
        title = "Gaming PC AMD Ryzen 7 7800X3D, RTX 4070, 32GB RAM, 1TB SSD"
        self.assertFalse(f.accept(raw(title, 1299.0), "amd ryzen 7 7800x3d"))


class TestRamFilter(unittest.TestCase):

    def setUp(self):
        self.filter = RamFilter()
        self.title = "CORSAIR Vengeance RGB DDR5 RAM 32GB (2x16GB) 6000MHz CL36"

    def test_term_details_must_appear(self):
        self.assertTrue(self.filter.accept(raw(self.title, 109.99), "ddr5 32gb 6000"))
        self.assertFalse(self.filter.accept(raw(self.title, 109.99), "ddr4 32gb"))
        self.assertFalse(self.filter.accept(raw(self.title, 109.99), "ddr5 32gb 6400"))
        self.assertFalse(self.filter.accept(raw(self.title, 109.99), "ddr5 64gb"))

    def test_title_needs_capacity_and_ddr(self):
        self.assertFalse(self.filter.accept(raw("Corsair Vengeance memory kit", 99.0), "ram"))

    def test_price_caps_by_capacity(self):
        title = "Kingston FURY Beast 8GB DDR4 3200MHz Desktop Memory"
        self.assertTrue(self.filter.accept(raw(title, 24.99), "ddr4 8gb"))
        self.assertFalse(self.filter.accept(raw(title, 250.0), "ddr4 8gb"))

    def test_excluded_products(self):
        title = "Gaming Computer Intel Core i5 Processor 16GB DDR4 RAM 1TB SSD"
        self.assertFalse(self.filter.accept(raw(title, 599.0), "ddr4 16gb"))


class TestPsuFilter(unittest.TestCase):

    def setUp(self):
        self.filter = PsuFilter()

    def test_any_power_supply_is_kept(self):
        title = "Corsair RM850x Fully Modular 850W 80 Plus Gold ATX Power Supply"
        self.assertTrue(self.filter.accept(raw(title, 129.99), "750w 80 plus gold power supply"))
        self.assertTrue(self.filter.accept(raw(title), "anything"))

    def test_low_wattage_and_non_psus(self):
        self.assertFalse(self.filter.accept(raw("Mini 150W Power Supply adapter", 29.99), "psu"))
        self.assertFalse(self.filter.accept(raw("Corsair iCUE case fan 3-pack", 59.99), "psu"))


class TestCoolerFilter(unittest.TestCase):

    def setUp(self):
        self.filter = CoolerFilter()

    def test_air_cooler(self):
        title = "Noctua NH-D15 Premium CPU Air Cooler with 2x 140mm Fans"
        self.assertTrue(self.filter.accept(raw(title, 109.95), "cpu air cooler tower"))

    def test_liquid_term_needs_liquid_title(self):
        title = "Noctua NH-D15 Premium CPU Air Cooler with 2x 140mm Fans"
        self.assertFalse(self.filter.accept(raw(title, 109.95), "360mm aio liquid cpu cooler"))
        aio = "NZXT Kraken 360 RGB AIO Liquid CPU Cooler 360mm"
        self.assertTrue(self.filter.accept(raw(aio, 139.99), "360mm aio liquid cpu cooler"))

    def test_excluded_coolers(self):
        pad = "Laptop Cooling Pad with 5 Fans for Intel laptops"
        self.assertFalse(self.filter.accept(raw(pad, 29.99), "cpu air cooler tower"))
        case_fan = "ARCTIC P12 Case Fan 120mm for AMD and Intel builds"
        self.assertFalse(self.filter.accept(raw(case_fan, 12.99), "cpu air cooler"))


class TestMotherboardFilter(unittest.TestCase):

    def setUp(self):
        self.filter = MotherboardFilter()

    def test_any_board_is_kept(self):
        title = "ASUS ROG STRIX B650E-F GAMING WIFI AM5 ATX Motherboard"
        self.assertTrue(self.filter.accept(raw(title, 259.99), "z790 motherboard"))

    def test_rejects_bundles_and_other_parts(self):
        combo = "AMD Ryzen 7 7800X3D + ASUS B650 Motherboard Combo"
        self.assertFalse(self.filter.accept(raw(combo, 599.0), "b650 motherboard"))
        cooler = "CPU Cooler for AM5 and LGA1700"
        self.assertFalse(self.filter.accept(raw(cooler, 49.0), "am5"))
        cpu = "AMD Ryzen 5 7600X AM5 processor"
        self.assertFalse(self.filter.accept(raw(cpu, 199.0), "am5"))


if __name__ == "__main__":
    unittest.main()
