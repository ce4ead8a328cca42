"""Canonical fee schedule and shipping rule constants.

Single source of truth for services, package limits, pickup fees and
add-on fees, plus the country sets that drive the stage rules. Pricing
and rule modules import from here instead of using inline magic numbers.

Follows the same pattern as the country table: frozen dataclasses,
parallel lookups and frozensets.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from shipform.services.country_classifier import ShipmentType


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServiceOption:
    """A shipping service offered for one shipment type.

    Attributes:
        id: Stable service identifier stored on shipments.
        name: Display name.
        description: Short marketing description.
        max_weight: Heaviest package the service accepts, in kg.
        base_price: Flat price in dollars.
        price_per_kg: Price per kilogram in dollars.
        delivery_days: Estimated transit time in days.
    """

    id: str
    name: str
    description: str
    max_weight: float
    base_price: float
    price_per_kg: float
    delivery_days: int


SERVICES_BY_SHIPMENT_TYPE: MappingProxyType[ShipmentType, tuple[ServiceOption, ...]] = MappingProxyType({
    ShipmentType.DOMESTIC: (
        ServiceOption(
            id="domestic_standard",
            name="Domestic Standard",
            description="Delivery within 3 business days",
            max_weight=50,
            base_price=15,
            price_per_kg=0.5,
            delivery_days=3,
        ),
        ServiceOption(
            id="domestic_express",
            name="Domestic Express",
            description="Next business day delivery",
            max_weight=30,
            base_price=25,
            price_per_kg=1.0,
            delivery_days=1,
        ),
    ),
    ShipmentType.INTRA_GULF: (
        ServiceOption(
            id="gulf_standard",
            name="Gulf Standard",
            description="Delivery across the Gulf in 5 business days",
            max_weight=40,
            base_price=30,
            price_per_kg=1.5,
            delivery_days=5,
        ),
        ServiceOption(
            id="gulf_express",
            name="Gulf Express",
            description="Delivery across the Gulf in 2 business days",
            max_weight=25,
            base_price=45,
            price_per_kg=2.5,
            delivery_days=2,
        ),
    ),
    ShipmentType.INTERNATIONAL: (
        ServiceOption(
            id="international_economy",
            name="International Economy",
            description="Worldwide delivery in 7-10 business days",
            max_weight=30,
            base_price=50,
            price_per_kg=3.0,
            delivery_days=10,
        ),
        ServiceOption(
            id="international_express",
            name="International Express",
            description="Worldwide delivery in 3-4 business days",
            max_weight=20,
            base_price=80,
            price_per_kg=5.0,
            delivery_days=4,
        ),
    ),
})


# ---------------------------------------------------------------------------
# Package limits
# ---------------------------------------------------------------------------

MAX_DIMENSION_CM = 200
MIN_WEIGHT_KG = 0.1


@dataclass(frozen=True)
class PackageLimits:
    """Weight and dimension bounds for one shipment type."""

    max_weight: float
    max_dimension: float = MAX_DIMENSION_CM


PACKAGE_LIMITS: MappingProxyType[ShipmentType, PackageLimits] = MappingProxyType({
    ShipmentType.DOMESTIC: PackageLimits(max_weight=50),
    ShipmentType.INTRA_GULF: PackageLimits(max_weight=40),
    ShipmentType.INTERNATIONAL: PackageLimits(max_weight=30),
})


# ---------------------------------------------------------------------------
# Pickup / drop-off fees
# ---------------------------------------------------------------------------


class PickupMethod(str, Enum):
    """How the package reaches the carrier."""

    HOME = "home"
    POSTAL_OFFICE = "postal_office"


# Per sender country, in dollars. Countries absent here use DEFAULT_PICKUP_FEES.
PICKUP_FEES: MappingProxyType[str, MappingProxyType[PickupMethod, float]] = MappingProxyType({
    "Saudi Arabia": MappingProxyType({PickupMethod.HOME: 8.0, PickupMethod.POSTAL_OFFICE: 3.0}),
    "United Arab Emirates": MappingProxyType({PickupMethod.HOME: 10.0, PickupMethod.POSTAL_OFFICE: 4.0}),
    "Kuwait": MappingProxyType({PickupMethod.HOME: 7.0, PickupMethod.POSTAL_OFFICE: 3.0}),
    "Bahrain": MappingProxyType({PickupMethod.HOME: 6.0, PickupMethod.POSTAL_OFFICE: 2.5}),
    "Oman": MappingProxyType({PickupMethod.HOME: 6.0, PickupMethod.POSTAL_OFFICE: 2.5}),
    "Qatar": MappingProxyType({PickupMethod.HOME: 9.0, PickupMethod.POSTAL_OFFICE: 3.5}),
    "Jordan": MappingProxyType({PickupMethod.HOME: 5.5, PickupMethod.POSTAL_OFFICE: 2.0}),
    "Egypt": MappingProxyType({PickupMethod.HOME: 4.0, PickupMethod.POSTAL_OFFICE: 1.5}),
    "Iraq": MappingProxyType({PickupMethod.HOME: 6.5, PickupMethod.POSTAL_OFFICE: 2.0}),
})

DEFAULT_PICKUP_FEES: MappingProxyType[PickupMethod, float] = MappingProxyType({
    PickupMethod.HOME: 5.0,
    PickupMethod.POSTAL_OFFICE: 2.0,
})


# ---------------------------------------------------------------------------
# Add-on fees
# ---------------------------------------------------------------------------


class AddOn(str, Enum):
    """Optional paid add-ons."""

    SIGNATURE = "signature"
    LIQUID = "liquid"
    INSURANCE = "insurance"
    PACKAGING = "packaging"


ADD_ON_FEES: MappingProxyType[AddOn, float] = MappingProxyType({
    AddOn.SIGNATURE: 5.0,
    AddOn.LIQUID: 10.0,
    AddOn.INSURANCE: 15.0,
    AddOn.PACKAGING: 7.5,
})


# ---------------------------------------------------------------------------
# Rule constants
# ---------------------------------------------------------------------------

# Gulf senders cannot ship here.
RESTRICTED_DESTINATION = "Iraq"

# Receivers in these countries must sign on delivery.
SIGNATURE_REQUIRED_COUNTRIES: frozenset[str] = frozenset({"Jordan", "Egypt"})

# Above this weight only drop-off is offered, except for exempt senders.
HOME_PICKUP_MAX_WEIGHT_KG = 17
HOME_PICKUP_EXEMPT_COUNTRIES: frozenset[str] = frozenset({"Iraq"})

ITEM_DESCRIPTION_MIN_LENGTH = 5


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def services_for(shipment_type: ShipmentType) -> tuple[ServiceOption, ...]:
    """Return the services offered for a shipment type."""
    return SERVICES_BY_SHIPMENT_TYPE.get(shipment_type, ())


def find_service(service_id: str | None) -> tuple[ShipmentType, ServiceOption] | None:
    """Locate a service across all shipment-type buckets.

    Args:
        service_id: Service identifier (e.g. "domestic_standard").

    Returns:
        (shipment type, service) pair, or None when no bucket has the id.
    """
    if not service_id:
        return None
    for shipment_type, services in SERVICES_BY_SHIPMENT_TYPE.items():
        for service in services:
            if service.id == service_id:
                return shipment_type, service
    return None


def package_limits(shipment_type: ShipmentType) -> PackageLimits:
    """Return the weight/dimension bounds for a shipment type."""
    return PACKAGE_LIMITS[shipment_type]


def pickup_fee(sender_country: str | None, method: PickupMethod | str) -> float:
    """Return the pickup or drop-off fee charged in the sender's country.

    Args:
        sender_country: Canonical sender country name.
        method: Pickup method (enum or its string value).

    Returns:
        The country's fee, or the schedule default when the country has
        no entry.

    Raises:
        ValueError: If method is not a known pickup method.
    """
    method = PickupMethod(method)
    country_fees = PICKUP_FEES.get(sender_country or "")
    if country_fees is not None:
        return country_fees[method]
    return DEFAULT_PICKUP_FEES[method]


def add_on_fee(add_on: AddOn, selected: bool) -> float:
    """Return an add-on's flat fee, or zero when not selected."""
    return ADD_ON_FEES[add_on] if selected else 0.0
