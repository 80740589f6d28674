import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.billing.models import BillingDetails  # noqa: E402
from app.billing.rules import build_country_rules  # noqa: E402
from app.billing.validation import validate  # noqa: E402

US_ZIP_MESSAGE = "Please enter a valid ZIP code (e.g., 10001 or 10001-1234)"


def _details(**overrides) -> BillingDetails:
    data = {
        "fullName": "Jane Doe",
        "country": "US",
        "addressLine1": "123 Main St",
        "city": "New York",
        "state": "NY",
        "postalCode": "10001",
    }
    data.update(overrides)
    return BillingDetails(**data)


class ValidatorTests(unittest.TestCase):
    def test_complete_us_address_is_valid(self):
        result = validate(_details())
        self.assertTrue(result.valid)
        self.assertEqual(result.errors, {})

    def test_empty_form_reports_each_required_field_once(self):
        result = validate(BillingDetails())
        self.assertFalse(result.valid)
        self.assertEqual(
            result.errors,
            {
                "fullName": "Full name is required",
                "country": "Country is required",
                "addressLine1": "Address is required",
                "city": "City is required",
                "state": "State/Province is required",
                "postalCode": "Postal code is required",
            },
        )

    def test_minimum_lengths(self):
        result = validate(_details(fullName="J", addressLine1="12", city="X", country="U"))
        self.assertEqual(set(result.errors), {"fullName", "addressLine1", "city", "country"})
        self.assertTrue(validate(_details(state="X")).valid)

    def test_us_zip_pattern(self):
        result = validate(_details(postalCode="1234"))
        self.assertEqual(result.error_for("postalCode"), US_ZIP_MESSAGE)
        self.assertIsNone(validate(_details(postalCode="10001")).error_for("postalCode"))
        self.assertIsNone(validate(_details(postalCode="10001-1234")).error_for("postalCode"))
        self.assertEqual(validate(_details(postalCode="10001-12")).error_for("postalCode"), US_ZIP_MESSAGE)

    def test_postal_pattern_must_match_whole_value(self):
        self.assertEqual(validate(_details(postalCode="10001\n")).error_for("postalCode"), US_ZIP_MESSAGE)
        self.assertEqual(validate(_details(postalCode="x10001")).error_for("postalCode"), US_ZIP_MESSAGE)

    def test_country_change_revalidates_postal_code(self):
        details = _details(postalCode="10001")
        self.assertTrue(validate(details).valid)

        switched = details.model_copy(update={"country": "IN"})
        self.assertEqual(
            validate(switched).error_for("postalCode"),
            "Please enter a valid 6-digit Indian PIN code",
        )
        self.assertTrue(validate(switched.model_copy(update={"postal_code": "400001"})).valid)

    def test_with_country_clears_dependent_fields(self):
        details = _details(phoneNumber="+15551234567")
        switched = details.with_country("GB")
        self.assertEqual(switched.country, "GB")
        self.assertEqual(switched.postal_code, "")
        self.assertEqual(switched.phone_number, "")
        self.assertEqual(switched.full_name, "Jane Doe")
        self.assertEqual(validate(switched).error_for("postalCode"), "Postal code is required")

    def test_country_specific_patterns(self):
        cases = {
            ("GB", "SW1A 1AA"): True,
            ("GB", "sw1a1aa"): True,
            ("GB", "12345"): False,
            ("CA", "M5V 2H1"): True,
            ("CA", "M5V-2H1"): True,
            ("CA", "5MV 2H1"): False,
            ("AU", "2000"): True,
            ("AU", "200"): False,
            ("DE", "10115"): True,
            ("DE", "1011"): False,
            ("IN", "400001"): True,
        }
        for (country, postal), expected in cases.items():
            with self.subTest(country=country, postal=postal):
                result = validate(_details(country=country, postalCode=postal))
                self.assertEqual(result.error_for("postalCode") is None, expected)

    def test_unlisted_country_uses_default_rule(self):
        self.assertTrue(validate(_details(country="FR", postalCode="75008")).valid)
        result = validate(_details(country="FR", postalCode="75008!"))
        self.assertEqual(result.error_for("postalCode"), "Please enter a valid postal code")

    def test_phone_number_is_optional(self):
        self.assertTrue(validate(_details()).valid)
        self.assertTrue(validate(_details(phoneNumber="")).valid)
        self.assertTrue(validate(_details(phoneNumber=None)).valid)

    def test_phone_number_pattern(self):
        self.assertTrue(validate(_details(phoneNumber="+15551234567")).valid)
        self.assertTrue(validate(_details(phoneNumber="12345")).valid)
        self.assertTrue(validate(_details(phoneNumber="+1")).valid)
        for bad in ("123", "+0123", "555-1234", "1234567890123456", "+1234567890123456"):
            with self.subTest(phone=bad):
                self.assertEqual(
                    validate(_details(phoneNumber=bad)).error_for("phoneNumber"),
                    "Please enter a valid phone number",
                )

    def test_injected_rules(self):
        rules = build_country_rules(
            {
                "rules": {
                    "US": {"postal": {"pattern": "^[0-9]{3}$", "message": "Three digits"}},
                    "default": {"postal": {"pattern": "^.+$"}},
                }
            }
        )
        self.assertTrue(validate(_details(postalCode="123"), rules).valid)
        self.assertEqual(validate(_details(postalCode="10001"), rules).error_for("postalCode"), "Three digits")

    def test_snake_case_construction(self):
        details = BillingDetails(
            full_name="Jane Doe",
            country="AU",
            address_line1="1 George St",
            city="Sydney",
            state="NSW",
            postal_code="2000",
        )
        self.assertTrue(validate(details).valid)


if __name__ == "__main__":
    unittest.main()
