from __future__ import annotations

from .formatting import PHONE_FIELDS, POSTAL_FIELDS, format_field
from .rules import CountryRules, PostalKeys, resolve_rule

EDITING_KEYS = frozenset(
    {
        "Backspace",
        "Delete",
        "Tab",
        "Escape",
        "Enter",
        "ArrowLeft",
        "ArrowRight",
        "ArrowUp",
        "ArrowDown",
        "Home",
        "End",
    }
)

_DIGITS = frozenset("0123456789")
_LETTERS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")

_POSTAL_CHARSETS: dict[PostalKeys, frozenset[str]] = {
    PostalKeys.DIGITS_HYPHEN: _DIGITS | {"-"},
    PostalKeys.ALNUM_SPACE: _DIGITS | _LETTERS | {" "},
    PostalKeys.DIGITS: _DIGITS,
    PostalKeys.ALNUM_SPACE_HYPHEN: _DIGITS | _LETTERS | {" ", "-"},
}


def _is_passthrough_key(key: str, ctrl: bool) -> bool:
    if key in EDITING_KEYS:
        return True
    # copy/paste/select-all and friends
    return ctrl and len(key) == 1 and key in _LETTERS


def is_postal_key_allowed(
    key: str,
    country_code: str | None,
    *,
    ctrl: bool = False,
    rules: CountryRules | None = None,
) -> bool:
    if _is_passthrough_key(key, ctrl):
        return True
    if len(key) != 1:
        return False
    rule = resolve_rule(country_code, rules)
    return key in _POSTAL_CHARSETS[rule.postal_keys]


def is_phone_key_allowed(
    key: str,
    current: str = "",
    position: int | None = None,
    *,
    ctrl: bool = False,
) -> bool:
    if _is_passthrough_key(key, ctrl):
        return True
    if key in _DIGITS:
        return True
    if key == "+":
        cursor = len(current) if position is None else position
        return cursor == 0 and "+" not in current
    return False


def apply_keystrokes(
    text: str,
    country_code: str | None,
    field: str,
    initial: str = "",
    rules: CountryRules | None = None,
) -> str:
    """Type ``text`` into a field one character at a time.

    Rejected characters never reach the field; accepted ones are appended and
    the value is re-formatted, mirroring what the checkout form stores.
    """
    value = initial
    for char in text:
        if field in POSTAL_FIELDS:
            allowed = is_postal_key_allowed(char, country_code, rules=rules)
        elif field in PHONE_FIELDS:
            allowed = is_phone_key_allowed(char, value)
        else:
            allowed = True
        if not allowed:
            continue
        value = format_field(value + char, country_code, field, rules)
    return value
