from __future__ import annotations

import re
from typing import Callable

from .rules import CountryRules, PostalFormat, resolve_rule

MAX_PHONE_LENGTH = 15

POSTAL_FIELDS = {"postalCode", "postal_code"}
PHONE_FIELDS = {"phoneNumber", "phone_number"}

_NON_DIGIT_RE = re.compile(r"[^0-9]")
_NON_PHONE_RE = re.compile(r"[^0-9+]")
_NON_ZIP_RE = re.compile(r"[^0-9-]")
_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")
_WHITESPACE_RE = re.compile(r"\s")


def format_phone_number(value: str) -> str:
    cleaned = _NON_PHONE_RE.sub("", value)
    prefix = "+" if cleaned.startswith("+") else ""
    return (prefix + cleaned.replace("+", ""))[:MAX_PHONE_LENGTH]


def _format_us_zip(value: str) -> str:
    cleaned = _NON_ZIP_RE.sub("", value)
    if "-" in cleaned:
        head, _, tail = cleaned.partition("-")
        return f"{head[:5]}-{tail.replace('-', '')[:4]}"
    if len(cleaned) > 5:
        return f"{cleaned[:5]}-{cleaned[5:9]}"
    return cleaned[:5]


def _format_gb_postcode(value: str) -> str:
    cleaned = _WHITESPACE_RE.sub("", value.upper())
    if len(cleaned) > 3:
        return f"{cleaned[:-3]} {cleaned[-3:]}"
    return cleaned


def _format_ca_postal(value: str) -> str:
    cleaned = _NON_ALNUM_RE.sub("", value).upper()
    if len(cleaned) > 3:
        return f"{cleaned[:3]} {cleaned[3:6]}"
    return cleaned


def _digits(limit: int) -> Callable[[str], str]:
    def formatter(value: str) -> str:
        return _NON_DIGIT_RE.sub("", value)[:limit]

    return formatter


_POSTAL_FORMATTERS: dict[PostalFormat, Callable[[str], str]] = {
    PostalFormat.US_ZIP: _format_us_zip,
    PostalFormat.GB_POSTCODE: _format_gb_postcode,
    PostalFormat.CA_POSTAL: _format_ca_postal,
    PostalFormat.DIGITS_4: _digits(4),
    PostalFormat.DIGITS_5: _digits(5),
    PostalFormat.DIGITS_6: _digits(6),
    PostalFormat.PASSTHROUGH: lambda value: value,
}


def format_postal_code(value: str, country_code: str | None, rules: CountryRules | None = None) -> str:
    rule = resolve_rule(country_code, rules)
    return _POSTAL_FORMATTERS[rule.postal_format](value)


def format_field(
    raw_value: str | None,
    country_code: str | None,
    field: str,
    rules: CountryRules | None = None,
) -> str:
    """Normalize a postal code or phone number the way it is stored in form state.

    Runs on every keystroke, so it never raises: unknown fields and countries
    pass the value through and partial input is formatted as far as it goes.
    Applying it to its own output returns the same string.
    """
    value = raw_value or ""
    if field in PHONE_FIELDS:
        return format_phone_number(value)
    if field in POSTAL_FIELDS:
        return format_postal_code(value, country_code, rules)
    return value
