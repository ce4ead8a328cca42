"""Country reference table and shipment type classification.

Single source of truth for the static country list. Countries are keyed by
their canonical English name; every form field, fee table and stage rule
uses that name. The ISO code is carried for presentation only.
"""

from dataclasses import dataclass
from enum import Enum


class ShipmentType(str, Enum):
    """Shipment type derived from the sender/receiver country pair."""

    DOMESTIC = "Domestic"
    INTRA_GULF = "IntraGulf"
    INTERNATIONAL = "International"


@dataclass(frozen=True)
class Country:
    """A country in the static reference table.

    Attributes:
        name: Canonical country name used as the lookup key.
        code: ISO 3166 alpha-2 code.
        is_gulf: Whether the country belongs to the Gulf region.
    """

    name: str
    code: str
    is_gulf: bool = False


COUNTRIES: tuple[Country, ...] = (
    Country("Saudi Arabia", "SA", is_gulf=True),
    Country("United Arab Emirates", "AE", is_gulf=True),
    Country("Kuwait", "KW", is_gulf=True),
    Country("Bahrain", "BH", is_gulf=True),
    Country("Oman", "OM", is_gulf=True),
    Country("Qatar", "QA", is_gulf=True),
    Country("Jordan", "JO"),
    Country("Lebanon", "LB"),
    Country("Egypt", "EG"),
    Country("Iraq", "IQ"),
    Country("Turkey", "TR"),
    Country("India", "IN"),
    Country("Pakistan", "PK"),
    Country("United Kingdom", "GB"),
    Country("Germany", "DE"),
    Country("United States", "US"),
)

_COUNTRIES_BY_NAME: dict[str, Country] = {c.name: c for c in COUNTRIES}

GULF_COUNTRIES: frozenset[str] = frozenset(c.name for c in COUNTRIES if c.is_gulf)


def get_country(name: str | None) -> Country | None:
    """Look up a country by exact canonical name.

    Args:
        name: Country name as stored in form data.

    Returns:
        The Country, or None for unknown or empty names.
    """
    if not name:
        return None
    return _COUNTRIES_BY_NAME.get(name)


def list_countries() -> list[Country]:
    """Return the full static country list in display order."""
    return list(COUNTRIES)


def country_options() -> list[dict[str, str]]:
    """Build select options for a country field.

    Returns:
        List of {"value", "label"} dicts covering every country.
    """
    return [{"value": c.name, "label": c.name} for c in COUNTRIES]


def is_gulf(country_name: str | None) -> bool:
    """Check whether a country belongs to the Gulf region.

    Unmatched names are treated as non-Gulf. No case folding or
    normalization is applied; callers pass canonical names.

    Args:
        country_name: Canonical country name.

    Returns:
        True only for an exact match on a Gulf country.
    """
    return country_name in GULF_COUNTRIES if country_name else False


def classify(sender_country: str, receiver_country: str) -> ShipmentType:
    """Derive the shipment type for a country pair.

    Args:
        sender_country: Canonical sender country name.
        receiver_country: Canonical receiver country name.

    Returns:
        DOMESTIC when both names are identical, INTRA_GULF when both are
        Gulf countries, otherwise INTERNATIONAL.
    """
    if sender_country == receiver_country:
        return ShipmentType.DOMESTIC
    if is_gulf(sender_country) and is_gulf(receiver_country):
        return ShipmentType.INTRA_GULF
    return ShipmentType.INTERNATIONAL
