"""Shipment validation in draft and complete modes.

Draft mode only checks that numeric fields which are present parse as
non-negative numbers, so a half-filled form can always be saved. Complete
mode enforces every business rule as a hard requirement and runs at
finalize.

Every check runs; nothing short-circuits. Results are field-name ->
message maps so callers can highlight all offending fields at once.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from shipform.services.country_classifier import ShipmentType, is_gulf
from shipform.services.fee_schedule import (
    HOME_PICKUP_MAX_WEIGHT_KG,
    ITEM_DESCRIPTION_MIN_LENGTH,
    MAX_DIMENSION_CM,
    PickupMethod,
    find_service,
    package_limits,
)
from shipform.services.form_data import (
    NUMERIC_FIELDS,
    flag,
    is_blank,
    number_or_none,
    parse_number,
    text,
)
from shipform.services.stage_rules import (
    derive_shipment_type,
    home_pickup_allowed,
    is_restricted_route,
    requires_item_description,
    requires_signature,
)

MIN_NAME_LENGTH = 2
MIN_CITY_LENGTH = 2
MIN_PHONE_DIGITS = 10
POSTAL_CODE_LENGTH = (3, 10)

_NON_DIGIT = re.compile(r"\D")


@dataclass
class ValidationResult:
    """Outcome of a validation pass.

    Attributes:
        errors: Field name -> message; empty when valid.
    """

    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Add another result's errors into this one (later wins per field)."""
        self.errors.update(other.errors)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"is_valid": self.is_valid, "errors": dict(self.errors)}


# ---------------------------------------------------------------------------
# Draft mode
# ---------------------------------------------------------------------------


def validate_draft(form_data: Mapping[str, Any]) -> ValidationResult:
    """Sanity-check a draft: present numbers must be non-negative.

    Blank or missing fields are accepted.
    """
    result = ValidationResult()
    for name in NUMERIC_FIELDS:
        try:
            value = parse_number(form_data.get(name))
        except (TypeError, ValueError):
            value = -1.0
        if value is not None and value < 0:
            result.errors[name] = f"{name.capitalize()} must be a valid number"
    return result


# ---------------------------------------------------------------------------
# Complete mode, per stage
# ---------------------------------------------------------------------------


def _validate_address(form_data: Mapping[str, Any], prefix: str, who: str) -> dict[str, str]:
    errors: dict[str, str] = {}

    if len(text(form_data.get(f"{prefix}_name"))) < MIN_NAME_LENGTH:
        errors[f"{prefix}_name"] = f"{who} name must be at least {MIN_NAME_LENGTH} characters"

    phone = text(form_data.get(f"{prefix}_phone"))
    if not phone:
        errors[f"{prefix}_phone"] = f"{who} phone is required"
    elif len(_NON_DIGIT.sub("", phone)) < MIN_PHONE_DIGITS:
        errors[f"{prefix}_phone"] = (
            f"Phone number must have at least {MIN_PHONE_DIGITS} digits"
        )

    country = text(form_data.get(f"{prefix}_country"))
    if not country:
        errors[f"{prefix}_country"] = f"{who} country is required"

    if len(text(form_data.get(f"{prefix}_city"))) < MIN_CITY_LENGTH:
        errors[f"{prefix}_city"] = f"{who} city must be at least {MIN_CITY_LENGTH} characters"

    low, high = POSTAL_CODE_LENGTH
    postal_code = text(form_data.get(f"{prefix}_postal_code"))
    if len(postal_code) < low:
        errors[f"{prefix}_postal_code"] = (
            f"{who} postal code must be at least {low} characters"
        )
    elif len(postal_code) > high:
        errors[f"{prefix}_postal_code"] = (
            f"{who} postal code cannot exceed {high} characters"
        )

    if is_gulf(country) and not text(form_data.get(f"{prefix}_street")):
        errors[f"{prefix}_street"] = "Street address is required for Gulf countries"

    return errors


def validate_sender(form_data: Mapping[str, Any]) -> ValidationResult:
    """Sender address fields."""
    return ValidationResult(_validate_address(form_data, "sender", "Sender"))


def validate_receiver(form_data: Mapping[str, Any]) -> ValidationResult:
    """Receiver address fields plus the restricted-route block."""
    errors = _validate_address(form_data, "receiver", "Receiver")
    sender = text(form_data.get("sender_country"))
    receiver = text(form_data.get("receiver_country"))
    if sender and receiver and is_restricted_route(sender, receiver):
        errors["receiver_country"] = (
            f"Shipping from Gulf countries to {receiver} is currently not possible"
        )
    return ValidationResult(errors)


def validate_package(
    form_data: Mapping[str, Any], shipment_type: ShipmentType | None = None
) -> ValidationResult:
    """Weight against the shipment-type limit, dimensions, item description.

    Args:
        form_data: Flat form data.
        shipment_type: Derived type; computed from the countries when omitted.
    """
    errors: dict[str, str] = {}
    if shipment_type is None:
        shipment_type = derive_shipment_type(form_data)

    weight = number_or_none(form_data.get("weight"))
    if weight is None or weight <= 0:
        errors["weight"] = "Weight must be greater than 0 kg"
    elif shipment_type is not None:
        max_weight = package_limits(shipment_type).max_weight
        if weight > max_weight:
            errors["weight"] = (
                f"Weight cannot exceed {max_weight:g}kg for {shipment_type.value} shipments"
            )

    for name in ("length", "width", "height"):
        value = number_or_none(form_data.get(name))
        if value is None or value <= 0:
            errors[name] = f"{name.capitalize()} must be greater than 0 cm"
        elif value > MAX_DIMENSION_CM:
            errors[name] = f"{name.capitalize()} cannot exceed {MAX_DIMENSION_CM} cm"

    sender = text(form_data.get("sender_country"))
    receiver = text(form_data.get("receiver_country"))
    if requires_item_description(sender, receiver):
        if len(text(form_data.get("item_description"))) < ITEM_DESCRIPTION_MIN_LENGTH:
            errors["item_description"] = (
                f"Item description is required (minimum {ITEM_DESCRIPTION_MIN_LENGTH} "
                "characters) when shipping from non-Gulf to Gulf countries"
            )

    return ValidationResult(errors)


def validate_options(form_data: Mapping[str, Any]) -> ValidationResult:
    """Forced signature and the heavy-package pickup restriction."""
    errors: dict[str, str] = {}
    receiver = text(form_data.get("receiver_country"))
    if requires_signature(receiver) and not flag(form_data.get("signature_required")):
        errors["signature_required"] = f"Signature is required when shipping to {receiver}"

    sender = text(form_data.get("sender_country"))
    weight = number_or_none(form_data.get("weight"))
    if (
        not home_pickup_allowed(sender, weight)
        and text(form_data.get("pickup_method")) == PickupMethod.HOME.value
    ):
        errors["pickup_method"] = (
            f"Home pickup is not available for packages over {HOME_PICKUP_MAX_WEIGHT_KG}kg. "
            "Please select postal office drop-off"
        )
    return ValidationResult(errors)


def validate_service_selection(form_data: Mapping[str, Any]) -> ValidationResult:
    """Service, shipment type and pickup method must all be chosen.

    A known service must also belong to the derived shipment type. Unknown
    service ids are left to the rate calculator, which reports them as
    not found.
    """
    errors: dict[str, str] = {}
    derived = derive_shipment_type(form_data)

    service_id = text(form_data.get("service_type"))
    if not service_id:
        errors["service_type"] = "Service type is required"
    else:
        located = find_service(service_id)
        if located is not None and derived is not None and located[0] != derived:
            errors["service_type"] = (
                f"Selected service is not available for {derived.value} shipments"
            )

    if is_blank(form_data.get("shipment_type")) and derived is None:
        errors["shipment_type"] = "Shipment type is required"

    pickup = text(form_data.get("pickup_method"))
    if not pickup:
        errors["pickup_method"] = "Pickup method is required"
    elif pickup not in {m.value for m in PickupMethod}:
        errors["pickup_method"] = "Pickup method must be home or postal_office"

    return ValidationResult(errors)


def validate_complete(form_data: Mapping[str, Any]) -> ValidationResult:
    """Run every stage validator and merge the results."""
    shipment_type = derive_shipment_type(form_data)
    result = ValidationResult()
    result.merge(validate_sender(form_data))
    result.merge(validate_receiver(form_data))
    result.merge(validate_package(form_data, shipment_type))
    result.merge(validate_options(form_data))
    result.merge(validate_service_selection(form_data))
    return result
