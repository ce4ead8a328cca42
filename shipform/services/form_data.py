"""Flat shipment form data helpers.

Form data travels as a plain dict keyed by snake_case field names, the
same shape whether it comes from the HTTP API, the CLI or a stored draft.
Values may still be raw user input (e.g. "12.5" for weight), so every
reader goes through the coercion helpers here.
"""

import math
from typing import Any

ADDRESS_SUFFIXES: tuple[str, ...] = (
    "name",
    "phone",
    "country",
    "city",
    "street",
    "postal_code",
)

SENDER_FIELDS: tuple[str, ...] = tuple(f"sender_{s}" for s in ADDRESS_SUFFIXES)
RECEIVER_FIELDS: tuple[str, ...] = tuple(f"receiver_{s}" for s in ADDRESS_SUFFIXES)
DIMENSION_FIELDS: tuple[str, ...] = ("length", "width", "height")
NUMERIC_FIELDS: tuple[str, ...] = ("weight",) + DIMENSION_FIELDS
PACKAGE_FIELDS: tuple[str, ...] = NUMERIC_FIELDS + ("item_description",)
SERVICE_FIELDS: tuple[str, ...] = ("service_type", "shipment_type")
ADD_ON_FIELDS: tuple[str, ...] = (
    "signature_required",
    "contains_liquid",
    "insurance",
    "packaging",
)
OPTION_FIELDS: tuple[str, ...] = ("pickup_method",) + ADD_ON_FIELDS

FORM_FIELDS: tuple[str, ...] = (
    SENDER_FIELDS + RECEIVER_FIELDS + PACKAGE_FIELDS + SERVICE_FIELDS + OPTION_FIELDS
)

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


def is_blank(value: Any) -> bool:
    """Return True for None and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def text(value: Any) -> str:
    """Coerce a form value to a stripped string ("" for None)."""
    if value is None:
        return ""
    return str(value).strip()


def parse_number(value: Any) -> float | None:
    """Parse a numeric form value.

    Args:
        value: Raw value (number, numeric string, or blank).

    Returns:
        The float value, or None when the value is blank.

    Raises:
        ValueError: If the value is present but not a finite number.
    """
    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        number = float(str(value).strip())
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"Not a finite number: {value!r}")
    return number


def number_or_none(value: Any) -> float | None:
    """Lenient variant of parse_number: malformed input reads as absent."""
    try:
        return parse_number(value)
    except (TypeError, ValueError):
        return None


def flag(value: Any) -> bool:
    """Coerce a checkbox value to bool."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def empty_form() -> dict[str, Any]:
    """Return a form dict with every field blank and add-ons off."""
    form: dict[str, Any] = {name: "" for name in FORM_FIELDS}
    for name in ADD_ON_FIELDS:
        form[name] = False
    form["pickup_method"] = "home"
    return form


def merge_form(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Overlay known form fields from updates onto a copy of base."""
    merged = dict(base)
    for key, value in updates.items():
        if key in FORM_FIELDS:
            merged[key] = value
    return merged
