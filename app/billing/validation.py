from __future__ import annotations

import re

from .models import BillingDetails, ValidationResult
from .rules import CountryRules, resolve_rule

PHONE_NUMBER_RE = re.compile(r"^(\+[1-9][0-9]{0,14}|[0-9]{5,15})$")
PHONE_NUMBER_MESSAGE = "Please enter a valid phone number"

# (field, attribute, minimum length, message)
_REQUIRED_FIELDS: tuple[tuple[str, str, int, str], ...] = (
    ("fullName", "full_name", 2, "Full name is required"),
    ("country", "country", 2, "Country is required"),
    ("addressLine1", "address_line1", 3, "Address is required"),
    ("city", "city", 2, "City is required"),
    ("state", "state", 1, "State/Province is required"),
    ("postalCode", "postal_code", 3, "Postal code is required"),
)


def is_valid_phone_number(value: str | None) -> bool:
    if not value:
        return True
    return PHONE_NUMBER_RE.fullmatch(value) is not None


def validate(details: BillingDetails, rules: CountryRules | None = None) -> ValidationResult:
    """Check every field of a billing address, one message per failing field.

    The postal code is checked against the rule of ``details.country`` each
    time, so the result changes when only the country does.
    """
    errors: dict[str, str] = {}

    for field, attribute, min_length, message in _REQUIRED_FIELDS:
        value = getattr(details, attribute) or ""
        if len(value) < min_length:
            errors[field] = message

    if "postalCode" not in errors:
        rule = resolve_rule(details.country, rules)
        if not rule.matches_postal_code(details.postal_code):
            errors["postalCode"] = rule.postal_message

    if not is_valid_phone_number(details.phone_number):
        errors["phoneNumber"] = PHONE_NUMBER_MESSAGE

    return ValidationResult(errors=errors)
