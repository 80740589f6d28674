from .formatting import format_field, format_phone_number, format_postal_code
from .keystroke import apply_keystrokes, is_phone_key_allowed, is_postal_key_allowed
from .models import BillingDetails, ValidationResult
from .rules import (
    CountryRule,
    CountryRules,
    CountryRulesError,
    build_country_rules,
    get_country_rules,
    load_country_rules,
    resolve_rule,
)
from .validation import validate

__all__ = [
    "BillingDetails",
    "ValidationResult",
    "CountryRule",
    "CountryRules",
    "CountryRulesError",
    "build_country_rules",
    "get_country_rules",
    "load_country_rules",
    "resolve_rule",
    "format_field",
    "format_phone_number",
    "format_postal_code",
    "validate",
    "apply_keystrokes",
    "is_phone_key_allowed",
    "is_postal_key_allowed",
]
