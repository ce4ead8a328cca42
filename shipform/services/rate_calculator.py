"""Deterministic shipping rate calculation.

calculate_rate() is the only place prices are computed. The live estimate
shown while the form is filled in and the price persisted at finalize both
come from it, so they can only differ through stale input.

Money is computed in Decimal and each component is rounded half-up to two
decimals on its own; the total is the sum of the rounded components, so
total_price == base_cost + signature_cost + insurance_cost
+ packaging_cost + liquid_cost holds exactly.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

from shipform.errors import InputError, ServiceNotFoundError, WeightExceedsServiceError
from shipform.services.country_classifier import ShipmentType
from shipform.services.fee_schedule import (
    AddOn,
    PickupMethod,
    ServiceOption,
    add_on_fee,
    find_service,
    pickup_fee,
)
from shipform.services.form_data import flag, parse_number, text

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
DEFAULT_TOLERANCE = 0.01


@dataclass(frozen=True)
class RateCalculationInput:
    """Everything that affects a shipment's price."""

    service_id: str
    weight: float
    sender_country: str
    receiver_country: str
    pickup_method: PickupMethod | str = PickupMethod.HOME
    signature_required: bool = False
    contains_liquid: bool = False
    insurance: bool = False
    packaging: bool = False


@dataclass(frozen=True)
class RateBreakdown:
    """Rounded price components in dollars."""

    base_cost: float
    signature_cost: float
    insurance_cost: float
    packaging_cost: float
    liquid_cost: float
    total_price: float

    def to_dict(self) -> dict[str, float]:
        return {
            "base_cost": self.base_cost,
            "signature_cost": self.signature_cost,
            "insurance_cost": self.insurance_cost,
            "packaging_cost": self.packaging_cost,
            "liquid_cost": self.liquid_cost,
            "total_price": self.total_price,
        }


@dataclass(frozen=True)
class RateQuote:
    """Breakdown plus the service and shipment type it was priced for."""

    breakdown: RateBreakdown
    total_price: float
    shipment_type: ShipmentType
    service: ServiceOption

    def to_dict(self) -> dict[str, Any]:
        return {
            "breakdown": self.breakdown.to_dict(),
            "total_price": self.total_price,
            "shipment_type": self.shipment_type.value,
            "service": {
                "id": self.service.id,
                "name": self.service.name,
                "base_price": self.service.base_price,
                "price_per_kg": self.service.price_per_kg,
                "max_weight": self.service.max_weight,
                "delivery_days": self.service.delivery_days,
            },
        }


def _decimal(value: float | int) -> Decimal:
    return Decimal(str(value))


def round_money(value: Decimal | float) -> Decimal:
    """Round a dollar amount half-up to cents."""
    if not isinstance(value, Decimal):
        value = _decimal(value)
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: float) -> int:
    """Convert a dollar amount to integer cents for storage."""
    return int(round_money(amount) * 100)


def from_cents(cents: int | None) -> float:
    """Convert stored integer cents back to dollars."""
    return float(Decimal(cents or 0) / 100)


def calculate_rate(rate_input: RateCalculationInput) -> RateQuote:
    """Price a shipment.

    Args:
        rate_input: Service, weight, countries, pickup method and add-ons.

    Returns:
        RateQuote whose total equals the sum of its rounded components.

    Raises:
        ServiceNotFoundError: If the service id is not in the fee schedule.
        WeightExceedsServiceError: If weight is above the service maximum.
        InputError: If weight is negative or the pickup method is unknown.
    """
    located = find_service(rate_input.service_id)
    if located is None:
        raise ServiceNotFoundError(rate_input.service_id)
    shipment_type, service = located

    weight = rate_input.weight
    if weight < 0:
        raise InputError(
            "Weight must be a non-negative number",
            field_errors={"weight": "Weight must be a valid number"},
        )
    if weight > service.max_weight:
        raise WeightExceedsServiceError(weight, service.max_weight, service.id)

    try:
        pickup = pickup_fee(rate_input.sender_country, rate_input.pickup_method)
    except ValueError:
        raise InputError(
            f"Unknown pickup method: {rate_input.pickup_method}",
            field_errors={"pickup_method": "Pickup method is required"},
        ) from None

    service_cost = _decimal(service.base_price) + _decimal(weight) * _decimal(
        service.price_per_kg
    )
    base_cost = round_money(service_cost + _decimal(pickup))
    signature_cost = round_money(add_on_fee(AddOn.SIGNATURE, rate_input.signature_required))
    insurance_cost = round_money(add_on_fee(AddOn.INSURANCE, rate_input.insurance))
    packaging_cost = round_money(add_on_fee(AddOn.PACKAGING, rate_input.packaging))
    liquid_cost = round_money(add_on_fee(AddOn.LIQUID, rate_input.contains_liquid))
    total = base_cost + signature_cost + insurance_cost + packaging_cost + liquid_cost

    breakdown = RateBreakdown(
        base_cost=float(base_cost),
        signature_cost=float(signature_cost),
        insurance_cost=float(insurance_cost),
        packaging_cost=float(packaging_cost),
        liquid_cost=float(liquid_cost),
        total_price=float(total),
    )
    return RateQuote(
        breakdown=breakdown,
        total_price=breakdown.total_price,
        shipment_type=shipment_type,
        service=service,
    )


def rate_input_from_form(form_data: Mapping[str, Any]) -> RateCalculationInput:
    """Build calculator input from flat form data.

    Raises:
        ServiceNotFoundError: If no service is selected.
        InputError: If weight is missing or not a number.
    """
    service_id = text(form_data.get("service_type"))
    if not service_id:
        raise ServiceNotFoundError(None)

    try:
        weight = parse_number(form_data.get("weight"))
    except ValueError:
        weight = None
    if weight is None:
        raise InputError(
            "Weight is required to calculate a rate",
            field_errors={"weight": "Weight must be a valid number"},
        )

    return RateCalculationInput(
        service_id=service_id,
        weight=weight,
        sender_country=text(form_data.get("sender_country")),
        receiver_country=text(form_data.get("receiver_country")),
        pickup_method=text(form_data.get("pickup_method")) or PickupMethod.HOME,
        signature_required=flag(form_data.get("signature_required")),
        contains_liquid=flag(form_data.get("contains_liquid")),
        insurance=flag(form_data.get("insurance")),
        packaging=flag(form_data.get("packaging")),
    )


def calculate_rate_from_form(form_data: Mapping[str, Any]) -> RateQuote:
    """Price a flat form dict (stored draft or request body)."""
    return calculate_rate(rate_input_from_form(form_data))


def rates_match(
    client_base_cost: float | None,
    client_total: float | None,
    quote: RateQuote,
    tolerance: float = DEFAULT_TOLERANCE,
) -> bool:
    """Compare client-displayed prices with a server quote.

    Used only to flag tampered or stale client totals; the server quote is
    always the price that gets persisted.
    """
    if client_base_cost is None or client_total is None:
        return False
    return (
        abs(client_base_cost - quote.breakdown.base_cost) <= tolerance
        and abs(client_total - quote.total_price) <= tolerance
    )
