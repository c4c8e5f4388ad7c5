import unittest
from decimal import Decimal

from nexus import create_app
from nexus.services import settings_service
from nexus.services.settings_service import SettingsValidationError


class SettingsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "TESTING": True,
            "NEXUS_TAX_RATE": Decimal("7.5"),
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()

    @classmethod
    def tearDownClass(cls):
        cls.ctx.pop()

    def setUp(self):
        settings_service.init_app(self.app)

    def test_defaults_come_from_config(self):
        settings = settings_service.get_settings()
        self.assertEqual(settings.company_name, "Nexus B2B")
        self.assertEqual(settings.currency, "$")
        self.assertEqual(settings.tax_rate, Decimal("7.5"))
        self.assertEqual(settings.default_min_stock, 5)

    def test_partial_update_keeps_other_fields(self):
        updated = settings_service.update_settings({"tax_rate": 12, "currency": " € "})
        self.assertEqual(updated.tax_rate, Decimal("12"))
        self.assertEqual(updated.currency, "€")
        self.assertEqual(updated.company_name, "Nexus B2B")
        self.assertEqual(settings_service.get_settings(), updated)

    def test_to_dict_is_camel_case(self):
        data = settings_service.get_settings().to_dict()
        self.assertEqual(data, {
            "companyName": "Nexus B2B",
            "currency": "$",
            "taxRate": 7.5,
            "defaultMinStock": 5,
        })

    def test_tax_rate_bounds(self):
        for bad in (-1, 101, "abc"):
            with self.assertRaises(SettingsValidationError):
                settings_service.update_settings({"tax_rate": bad})
        self.assertEqual(settings_service.get_settings().tax_rate, Decimal("7.5"))

    def test_default_min_stock_must_be_non_negative_int(self):
        for bad in (-1, 2.5, True, "3"):
            with self.assertRaises(SettingsValidationError):
                settings_service.update_settings({"default_min_stock": bad})

    def test_blank_company_name_rejected(self):
        with self.assertRaises(SettingsValidationError):
            settings_service.update_settings({"company_name": "   "})

    def test_unknown_key_rejected(self):
        with self.assertRaises(SettingsValidationError):
            settings_service.update_settings({"theme": "dark"})


if __name__ == "__main__":
    unittest.main()
