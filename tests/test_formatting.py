import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.billing.formatting import format_field  # noqa: E402


class PostalCodeFormattingTests(unittest.TestCase):
    def test_us_zip(self):
        self.assertEqual(format_field("100011234", "US", "postalCode"), "10001-1234")
        self.assertEqual(format_field("10001", "US", "postalCode"), "10001")
        self.assertEqual(format_field("1000", "US", "postalCode"), "1000")
        self.assertEqual(format_field("10001-12345", "US", "postalCode"), "10001-1234")
        self.assertEqual(format_field("10001--12-34", "US", "postalCode"), "10001-1234")
        self.assertEqual(format_field("1234567-89", "US", "postalCode"), "12345-89")
        self.assertEqual(format_field("ab10001 x", "US", "postalCode"), "10001")

    def test_gb_postcode(self):
        self.assertEqual(format_field("sw1a1aa", "GB", "postalCode"), "SW1A 1AA")
        self.assertEqual(format_field("SW1A  1AA", "GB", "postalCode"), "SW1A 1AA")
        self.assertEqual(format_field("m1", "GB", "postalCode"), "M1")
        self.assertEqual(format_field("m11aa", "GB", "postalCode"), "M1 1AA")

    def test_ca_postal(self):
        self.assertEqual(format_field("m5v2h1", "CA", "postalCode"), "M5V 2H1")
        self.assertEqual(format_field("m5v-2h1-99", "CA", "postalCode"), "M5V 2H1")
        self.assertEqual(format_field("m5", "CA", "postalCode"), "M5")

    def test_digit_only_countries(self):
        self.assertEqual(format_field("2,000", "AU", "postalCode"), "2000")
        self.assertEqual(format_field("20001", "AU", "postalCode"), "2000")
        self.assertEqual(format_field("400 001 9", "IN", "postalCode"), "400001")
        self.assertEqual(format_field("D-10115", "DE", "postalCode"), "10115")

    def test_other_countries_pass_through(self):
        self.assertEqual(format_field("75008 paris", "FR", "postalCode"), "75008 paris")
        self.assertEqual(format_field("  x ", "ZZ", "postalCode"), "  x ")

    def test_country_code_is_case_insensitive(self):
        self.assertEqual(format_field("sw1a1aa", "gb", "postalCode"), "SW1A 1AA")


class PhoneNumberFormattingTests(unittest.TestCase):
    def test_strips_formatting_characters(self):
        self.assertEqual(format_field("+1 (555) 123-4567", "US", "phoneNumber"), "+15551234567")
        self.assertEqual(format_field("(555) 123-4567", "DE", "phoneNumber"), "5551234567")

    def test_plus_survives_only_as_prefix(self):
        self.assertEqual(format_field("++44 20", "GB", "phoneNumber"), "+4420")
        self.assertEqual(format_field("44+20+1", "GB", "phoneNumber"), "44201")
        self.assertEqual(format_field(" +1+2", "GB", "phoneNumber"), "+12")

    def test_truncates_to_fifteen_characters(self):
        self.assertEqual(format_field("+1234567890123456789", "US", "phoneNumber"), "+12345678901234")
        self.assertEqual(len(format_field("12345678901234567", "US", "phoneNumber")), 15)

    def test_empty_values(self):
        self.assertEqual(format_field("", "US", "phoneNumber"), "")
        self.assertEqual(format_field(None, "US", "phoneNumber"), "")


class FormatFieldContractTests(unittest.TestCase):
    SAMPLES = (
        "",
        "100011234",
        "10001-1234",
        "1-2-3-4-5-6-7-8-9-0",
        "sw1a1aa",
        " m5v 2h1 ",
        "2,000",
        "+1 (555) 123-4567",
        "1+2+3",
        "++++",
        "ab cd-ef",
        "ß1 2ab",
        "-",
    )

    def test_idempotent_for_all_countries_and_fields(self):
        for country in ("US", "GB", "CA", "AU", "IN", "DE", "FR", "ZZ", ""):
            for field in ("postalCode", "phoneNumber"):
                for sample in self.SAMPLES:
                    once = format_field(sample, country, field)
                    with self.subTest(country=country, field=field, sample=sample):
                        self.assertEqual(format_field(once, country, field), once)

    def test_snake_case_field_names(self):
        self.assertEqual(format_field("m5v2h1", "CA", "postal_code"), "M5V 2H1")
        self.assertEqual(format_field("+1 555", "CA", "phone_number"), "+1555")

    def test_unknown_field_passes_through(self):
        self.assertEqual(format_field("sw1a1aa", "GB", "city"), "sw1a1aa")


if __name__ == "__main__":
    unittest.main()
