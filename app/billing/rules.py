from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from app.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_RULE_KEY = "default"
_DEFAULT_RULES_PATH = Path(__file__).with_name("country_rules.yaml")


class CountryRulesError(RuntimeError):
    pass


class PostalFormat(str, Enum):
    US_ZIP = "us_zip"
    GB_POSTCODE = "gb_postcode"
    CA_POSTAL = "ca_postal"
    DIGITS_4 = "digits_4"
    DIGITS_5 = "digits_5"
    DIGITS_6 = "digits_6"
    PASSTHROUGH = "passthrough"


class PostalKeys(str, Enum):
    DIGITS_HYPHEN = "digits_hyphen"
    ALNUM_SPACE = "alnum_space"
    DIGITS = "digits"
    ALNUM_SPACE_HYPHEN = "alnum_space_hyphen"


@dataclass(frozen=True)
class CountryRule:
    code: str
    name: str
    city_label: str
    city_placeholder: str
    state_label: str
    state_placeholder: str
    address_label: str
    address_placeholder: str
    phone_label: str
    phone_placeholder: str
    tax_id_label: str
    tax_id_placeholder: str
    postal_label: str
    postal_placeholder: str
    postal_pattern: re.Pattern[str]
    postal_message: str
    postal_format: PostalFormat
    postal_keys: PostalKeys

    def matches_postal_code(self, value: str) -> bool:
        return self.postal_pattern.fullmatch(value) is not None

    def field_labels(self) -> dict[str, dict[str, str]]:
        return {
            "city": {"label": self.city_label, "placeholder": self.city_placeholder},
            "state": {"label": self.state_label, "placeholder": self.state_placeholder},
            "addressLine1": {"label": self.address_label, "placeholder": self.address_placeholder},
            "postalCode": {"label": self.postal_label, "placeholder": self.postal_placeholder},
            "phoneNumber": {"label": self.phone_label, "placeholder": self.phone_placeholder},
            "taxId": {"label": self.tax_id_label, "placeholder": self.tax_id_placeholder},
        }


def normalize_country_code(country_code: str | None) -> str:
    if not country_code:
        return ""
    return str(country_code).strip().upper()


class CountryRules:
    """Read-only set of country rules plus the fallback used for unlisted countries.

    Built once from a mapping (normally the packaged YAML asset) and handed to
    the formatter, validator and keystroke filter.
    """

    def __init__(
        self,
        rules: Mapping[str, CountryRule],
        default: CountryRule,
        countries: tuple[tuple[str, str], ...] = (),
    ) -> None:
        self._rules = MappingProxyType({normalize_country_code(code): rule for code, rule in rules.items()})
        self._default = default
        self._countries = tuple(countries)

    @property
    def default(self) -> CountryRule:
        return self._default

    def resolve(self, country_code: str | None) -> CountryRule:
        return self._rules.get(normalize_country_code(country_code), self._default)

    def supported_codes(self) -> tuple[str, ...]:
        return tuple(self._rules.keys())

    def selectable_countries(self) -> tuple[tuple[str, str], ...]:
        return self._countries

    def field_labels(self, country_code: str | None) -> dict[str, dict[str, str]]:
        return self.resolve(country_code).field_labels()

    def __contains__(self, country_code: object) -> bool:
        return isinstance(country_code, str) and normalize_country_code(country_code) in self._rules

    def __len__(self) -> int:
        return len(self._rules)


def _text(section: Mapping[str, Any], key: str, default: str = "") -> str:
    value = section.get(key, default)
    return default if value is None else str(value)


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, Mapping):
        raise CountryRulesError(f"Invalid country rule section '{key}': expected a mapping.")
    return value


def build_rule(code: str, raw: Mapping[str, Any]) -> CountryRule:
    if not isinstance(raw, Mapping):
        raise CountryRulesError(f"Invalid country rule '{code}': expected a mapping.")

    city = _section(raw, "city")
    state = _section(raw, "state")
    address = _section(raw, "address")
    phone = _section(raw, "phone")
    tax_id = _section(raw, "tax_id")
    postal = _section(raw, "postal")

    pattern_text = _text(postal, "pattern")
    if not pattern_text:
        raise CountryRulesError(f"Country rule '{code}' has no postal pattern.")
    try:
        pattern = re.compile(pattern_text)
    except re.error as exc:
        raise CountryRulesError(f"Invalid postal pattern for '{code}': {exc}") from exc

    try:
        postal_format = PostalFormat(_text(postal, "format", PostalFormat.PASSTHROUGH.value))
        postal_keys = PostalKeys(_text(postal, "keys", PostalKeys.ALNUM_SPACE_HYPHEN.value))
    except ValueError as exc:
        raise CountryRulesError(f"Invalid postal strategy for '{code}': {exc}") from exc

    return CountryRule(
        code=code,
        name=_text(raw, "name", code),
        city_label=_text(city, "label", "City"),
        city_placeholder=_text(city, "placeholder"),
        state_label=_text(state, "label", "State/Province/Region"),
        state_placeholder=_text(state, "placeholder"),
        address_label=_text(address, "label", "Address Line 1"),
        address_placeholder=_text(address, "placeholder"),
        phone_label=_text(phone, "label", "Phone Number"),
        phone_placeholder=_text(phone, "placeholder"),
        tax_id_label=_text(tax_id, "label", "Tax/VAT ID"),
        tax_id_placeholder=_text(tax_id, "placeholder"),
        postal_label=_text(postal, "label", "Postal/ZIP Code"),
        postal_placeholder=_text(postal, "placeholder"),
        postal_pattern=pattern,
        postal_message=_text(postal, "message", "Please enter a valid postal code"),
        postal_format=postal_format,
        postal_keys=postal_keys,
    )


def build_country_rules(config: Mapping[str, Any]) -> CountryRules:
    """Build a rule set from an already parsed config mapping."""
    if not isinstance(config, Mapping):
        raise CountryRulesError("Invalid country rules config: expected a top-level mapping.")

    raw_rules = config.get("rules")
    if not isinstance(raw_rules, Mapping):
        raise CountryRulesError("Invalid country rules config: 'rules' must be a mapping.")
    if DEFAULT_RULE_KEY not in raw_rules:
        raise CountryRulesError("Invalid country rules config: a 'default' rule is required.")

    rules: dict[str, CountryRule] = {}
    for raw_code, raw_rule in raw_rules.items():
        code = str(raw_code)
        if code == DEFAULT_RULE_KEY:
            continue
        rules[normalize_country_code(code)] = build_rule(normalize_country_code(code), raw_rule)
    default = build_rule(DEFAULT_RULE_KEY, raw_rules[DEFAULT_RULE_KEY])

    countries: list[tuple[str, str]] = []
    for entry in config.get("countries") or []:
        if not isinstance(entry, Mapping) or not entry.get("code"):
            raise CountryRulesError(f"Invalid country entry: {entry!r}")
        code = normalize_country_code(str(entry["code"]))
        name = str(entry.get("name") or rules.get(code, default).name)
        countries.append((code, name))

    return CountryRules(rules, default, tuple(countries))


def load_country_rules(path: str | Path | None = None) -> CountryRules:
    rules_path = Path(path) if path else _DEFAULT_RULES_PATH
    if not rules_path.exists():
        raise CountryRulesError(f"Country rules not found at '{rules_path}'.")

    try:
        raw = rules_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CountryRulesError(f"Failed to read country rules '{rules_path}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise CountryRulesError(f"Invalid YAML in country rules '{rules_path}': {exc}") from exc

    rules = build_country_rules(parsed)
    logger.info("country_rules_loaded path=%s countries=%d", rules_path, len(rules))
    return rules


@lru_cache(maxsize=1)
def get_country_rules() -> CountryRules:
    return load_country_rules(settings.country_rules_path)


def resolve_rule(country_code: str | None, rules: CountryRules | None = None) -> CountryRule:
    """Return the rule for a country code, falling back to the default rule."""
    if rules is None:
        rules = get_country_rules()
    return rules.resolve(country_code)
