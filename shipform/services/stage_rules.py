"""Stage rule resolver for the five-stage shipment form.

Each stage (sender, receiver, package, service, options) has a read-only
template of field rules. Resolving a stage layers the business rules for
the current form data onto that template and returns a fresh, frozen
CardRuleSet; templates are never mutated.

The stages form an ordered pipeline. A stage is enabled only when every
earlier stage is complete, and callers that know which field changed can
recompute from the first stage that depends on it.

Example:
    rules = resolve_stage("receiver", {"sender_country": "Kuwait",
                                       "receiver_country": "Iraq"})
    rules.validation_errors["receiver_country"]
    # "Shipping from Gulf countries to Iraq is currently not possible"
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping

from shipform.errors import UnknownStageError
from shipform.services.country_classifier import (
    ShipmentType,
    classify,
    country_options,
    is_gulf,
)
from shipform.services.fee_schedule import (
    HOME_PICKUP_EXEMPT_COUNTRIES,
    HOME_PICKUP_MAX_WEIGHT_KG,
    ITEM_DESCRIPTION_MIN_LENGTH,
    MAX_DIMENSION_CM,
    MIN_WEIGHT_KG,
    RESTRICTED_DESTINATION,
    SIGNATURE_REQUIRED_COUNTRIES,
    PickupMethod,
    package_limits,
    services_for,
)
from shipform.services.form_data import (
    ADD_ON_FIELDS,
    DIMENSION_FIELDS,
    RECEIVER_FIELDS,
    SENDER_FIELDS,
    flag,
    is_blank,
    number_or_none,
    text,
)

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    """Form stages in pipeline order."""

    SENDER = "sender"
    RECEIVER = "receiver"
    PACKAGE = "package"
    SERVICE = "service"
    OPTIONS = "options"


class FieldType(str, Enum):
    """Input widget kinds a field rule can describe."""

    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"


@dataclass(frozen=True)
class FieldValidation:
    """Value constraints for one field. None means unconstrained."""

    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    min: float | None = None
    max: float | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class SelectOption:
    """One choice in a select or radio field."""

    value: str
    label: str


@dataclass(frozen=True)
class FieldRule:
    """Current constraints for one form field."""

    type: FieldType
    label: str
    required: bool = False
    visible: bool = True
    disabled: bool = False
    validation: FieldValidation = field(default_factory=FieldValidation)
    options: tuple[SelectOption, ...] | None = None
    default_value: Any = None
    checked: bool | None = None
    allowed_values: tuple[str, ...] | None = None
    disabled_values: tuple[str, ...] | None = None
    placeholder: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON-compatible types."""
        v = self.validation
        return {
            "type": self.type.value,
            "label": self.label,
            "required": self.required,
            "visible": self.visible,
            "disabled": self.disabled,
            "validation": {
                "min_length": v.min_length,
                "max_length": v.max_length,
                "pattern": v.pattern,
                "min": v.min,
                "max": v.max,
                "error_message": v.error_message,
            },
            "options": (
                [{"value": o.value, "label": o.label} for o in self.options]
                if self.options is not None
                else None
            ),
            "default_value": self.default_value,
            "checked": self.checked,
            "allowed_values": (
                list(self.allowed_values) if self.allowed_values is not None else None
            ),
            "disabled_values": (
                list(self.disabled_values) if self.disabled_values is not None else None
            ),
            "placeholder": self.placeholder,
        }


@dataclass(frozen=True)
class CardRuleSet:
    """Resolved field rules for one stage.

    Attributes:
        stage: Stage these rules belong to.
        title: Card heading.
        enabled: False when the stage cannot be filled in yet.
        fields: Field name -> resolved FieldRule.
        validation_errors: Cross-field errors keyed by field name.
        context: Derived values the rules were computed from.
    """

    stage: Stage
    title: str
    enabled: bool
    fields: Mapping[str, FieldRule]
    validation_errors: Mapping[str, str] = field(default_factory=dict)
    context: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON-compatible types."""
        return {
            "stage": self.stage.value,
            "title": self.title,
            "enabled": self.enabled,
            "fields": {name: rule.to_dict() for name, rule in self.fields.items()},
            "validation_errors": dict(self.validation_errors),
            "context": dict(self.context),
        }


@dataclass(frozen=True)
class StageState:
    """One step of the resolved pipeline."""

    stage: Stage
    rules: CardRuleSet
    complete: bool
    missing_fields: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON-compatible types."""
        return {
            "stage": self.stage.value,
            "rules": self.rules.to_dict(),
            "complete": self.complete,
            "missing_fields": list(self.missing_fields),
        }


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

PHONE_PATTERN = r"^[0-9+\-\s()]+$"

_COUNTRY_OPTIONS: tuple[SelectOption, ...] = tuple(
    SelectOption(o["value"], o["label"]) for o in country_options()
)

_PICKUP_OPTIONS: tuple[SelectOption, ...] = (
    SelectOption(PickupMethod.HOME.value, "Home Pickup"),
    SelectOption(PickupMethod.POSTAL_OFFICE.value, "Drop-off at Postal Office"),
)


def _address_template(prefix: str, who: str) -> MappingProxyType:
    return MappingProxyType({
        f"{prefix}_name": FieldRule(
            type=FieldType.TEXT,
            label=f"{who} Name",
            required=True,
            validation=FieldValidation(
                min_length=2,
                max_length=100,
                error_message=f"{who} name must be at least 2 characters",
            ),
            placeholder="Full name",
        ),
        f"{prefix}_phone": FieldRule(
            type=FieldType.TEXT,
            label="Phone Number",
            required=True,
            validation=FieldValidation(
                min_length=10,
                max_length=20,
                pattern=PHONE_PATTERN,
                error_message="Phone number must have at least 10 digits",
            ),
            placeholder="+966 50 123 4567",
        ),
        f"{prefix}_country": FieldRule(
            type=FieldType.SELECT,
            label="Country",
            required=True,
            options=_COUNTRY_OPTIONS,
        ),
        f"{prefix}_city": FieldRule(
            type=FieldType.TEXT,
            label="City",
            required=True,
            validation=FieldValidation(
                min_length=2,
                max_length=100,
                error_message="City must be at least 2 characters",
            ),
        ),
        f"{prefix}_street": FieldRule(
            type=FieldType.TEXT,
            label="Street Address",
            validation=FieldValidation(max_length=200),
        ),
        f"{prefix}_postal_code": FieldRule(
            type=FieldType.TEXT,
            label="Postal Code",
            required=True,
            validation=FieldValidation(
                min_length=3,
                max_length=10,
                error_message="Postal code must be between 3 and 10 characters",
            ),
        ),
    })


def _dimension_rule(label: str) -> FieldRule:
    return FieldRule(
        type=FieldType.NUMBER,
        label=label,
        required=True,
        validation=FieldValidation(
            min=0,
            max=MAX_DIMENSION_CM,
            error_message=f"{label.split(' ')[0]} must be between 0 and {MAX_DIMENSION_CM} cm",
        ),
    )


SENDER_TEMPLATE = _address_template("sender", "Sender")
RECEIVER_TEMPLATE = _address_template("receiver", "Receiver")

PACKAGE_TEMPLATE = MappingProxyType({
    "weight": FieldRule(
        type=FieldType.NUMBER,
        label="Weight (kg)",
        required=True,
        validation=FieldValidation(min=MIN_WEIGHT_KG),
    ),
    "length": _dimension_rule("Length (cm)"),
    "width": _dimension_rule("Width (cm)"),
    "height": _dimension_rule("Height (cm)"),
    "item_description": FieldRule(
        type=FieldType.TEXTAREA,
        label="Item Description",
        visible=False,
        validation=FieldValidation(
            min_length=ITEM_DESCRIPTION_MIN_LENGTH,
            max_length=500,
            error_message=(
                f"Item description must be at least {ITEM_DESCRIPTION_MIN_LENGTH} characters"
            ),
        ),
        placeholder="Describe the contents of the package",
    ),
})

SERVICE_TEMPLATE = MappingProxyType({
    "service_type": FieldRule(
        type=FieldType.RADIO,
        label="Shipping Service",
        required=True,
        options=(),
    ),
})

OPTIONS_TEMPLATE = MappingProxyType({
    "pickup_method": FieldRule(
        type=FieldType.RADIO,
        label="Pickup Method",
        required=True,
        options=_PICKUP_OPTIONS,
        default_value=PickupMethod.HOME.value,
        allowed_values=(PickupMethod.HOME.value, PickupMethod.POSTAL_OFFICE.value),
        disabled_values=(),
    ),
    "signature_required": FieldRule(
        type=FieldType.CHECKBOX, label="Signature on Delivery", checked=False
    ),
    "contains_liquid": FieldRule(
        type=FieldType.CHECKBOX, label="Contains Liquid", checked=False
    ),
    "insurance": FieldRule(type=FieldType.CHECKBOX, label="Insurance", checked=False),
    "packaging": FieldRule(
        type=FieldType.CHECKBOX, label="Special Packaging", checked=False
    ),
})

STAGE_TITLES: MappingProxyType[Stage, str] = MappingProxyType({
    Stage.SENDER: "Sender Information",
    Stage.RECEIVER: "Receiver Information",
    Stage.PACKAGE: "Package Details",
    Stage.SERVICE: "Service Selection",
    Stage.OPTIONS: "Additional Options",
})


# ---------------------------------------------------------------------------
# Shared derivations
# ---------------------------------------------------------------------------


def derive_shipment_type(form_data: Mapping[str, Any]) -> ShipmentType | None:
    """Classify the form's country pair, or None while either is missing."""
    sender = text(form_data.get("sender_country"))
    receiver = text(form_data.get("receiver_country"))
    if not sender or not receiver:
        return None
    return classify(sender, receiver)


def is_restricted_route(sender_country: str, receiver_country: str) -> bool:
    """True when a Gulf sender ships to the restricted destination."""
    return is_gulf(sender_country) and receiver_country == RESTRICTED_DESTINATION


def requires_signature(receiver_country: str) -> bool:
    """True when the destination forces signature on delivery."""
    return receiver_country in SIGNATURE_REQUIRED_COUNTRIES


def requires_item_description(sender_country: str, receiver_country: str) -> bool:
    """True for non-Gulf senders shipping into the Gulf."""
    return (
        bool(sender_country)
        and not is_gulf(sender_country)
        and is_gulf(receiver_country)
    )


def home_pickup_allowed(sender_country: str, weight: float | None) -> bool:
    """Home pickup is offered up to the weight limit, or always for exempt senders."""
    if sender_country in HOME_PICKUP_EXEMPT_COUNTRIES:
        return True
    return weight is None or weight <= HOME_PICKUP_MAX_WEIGHT_KG


# ---------------------------------------------------------------------------
# Stage resolvers
# ---------------------------------------------------------------------------


def _fresh(template: Mapping[str, FieldRule]) -> dict[str, FieldRule]:
    return dict(template)


def _resolve_address(
    stage: Stage, template: Mapping[str, FieldRule], prefix: str, form_data: Mapping[str, Any]
) -> CardRuleSet:
    fields = _fresh(template)
    country = text(form_data.get(f"{prefix}_country"))
    gulf = is_gulf(country)
    fields[f"{prefix}_street"] = replace(
        fields[f"{prefix}_street"],
        required=gulf,
        validation=replace(
            fields[f"{prefix}_street"].validation,
            error_message="Street address is required for Gulf countries" if gulf else None,
        ),
    )
    return CardRuleSet(
        stage=stage,
        title=STAGE_TITLES[stage],
        enabled=True,
        fields=fields,
        validation_errors={},
        context={"country": country or None, "is_gulf": gulf},
    )


def resolve_sender(form_data: Mapping[str, Any]) -> CardRuleSet:
    """Sender card: street required for Gulf countries."""
    return _resolve_address(Stage.SENDER, SENDER_TEMPLATE, "sender", form_data)


def resolve_receiver(form_data: Mapping[str, Any]) -> CardRuleSet:
    """Receiver card: Gulf street rule plus the restricted-route block."""
    rules = _resolve_address(Stage.RECEIVER, RECEIVER_TEMPLATE, "receiver", form_data)
    sender = text(form_data.get("sender_country"))
    receiver = text(form_data.get("receiver_country"))
    if is_restricted_route(sender, receiver):
        rules = replace(
            rules,
            validation_errors={
                "receiver_country": (
                    f"Shipping from Gulf countries to {RESTRICTED_DESTINATION} "
                    "is currently not possible"
                ),
            },
        )
    return rules


def resolve_package(form_data: Mapping[str, Any]) -> CardRuleSet:
    """Package card: weight bound from the derived shipment type.

    Disabled, with no shipment type in context, until both countries are set.
    """
    fields = _fresh(PACKAGE_TEMPLATE)
    sender = text(form_data.get("sender_country"))
    receiver = text(form_data.get("receiver_country"))
    shipment_type = derive_shipment_type(form_data)

    if shipment_type is None:
        return CardRuleSet(
            stage=Stage.PACKAGE,
            title=STAGE_TITLES[Stage.PACKAGE],
            enabled=False,
            fields=fields,
            context={
                "shipment_type": None,
                "max_weight": None,
                "max_dimension": MAX_DIMENSION_CM,
            },
        )

    limits = package_limits(shipment_type)
    weight_rule = fields["weight"]
    fields["weight"] = replace(
        weight_rule,
        validation=replace(
            weight_rule.validation,
            max=limits.max_weight,
            error_message=(
                f"Weight must be between {MIN_WEIGHT_KG:g} and {limits.max_weight:g} kg "
                f"for {shipment_type.value} shipments"
            ),
        ),
    )

    needs_description = requires_item_description(sender, receiver)
    fields["item_description"] = replace(
        fields["item_description"],
        required=needs_description,
        visible=needs_description,
    )

    return CardRuleSet(
        stage=Stage.PACKAGE,
        title=STAGE_TITLES[Stage.PACKAGE],
        enabled=True,
        fields=fields,
        context={
            "shipment_type": shipment_type.value,
            "max_weight": limits.max_weight,
            "max_dimension": limits.max_dimension,
        },
    )


def resolve_service(form_data: Mapping[str, Any]) -> CardRuleSet:
    """Service card: services for the shipment type that can carry the weight."""
    fields = _fresh(SERVICE_TEMPLATE)
    shipment_type = derive_shipment_type(form_data)
    if shipment_type is None:
        return CardRuleSet(
            stage=Stage.SERVICE,
            title=STAGE_TITLES[Stage.SERVICE],
            enabled=False,
            fields=fields,
            context={"shipment_type": None, "services": []},
        )

    weight = number_or_none(form_data.get("weight"))
    available = [
        s for s in services_for(shipment_type) if weight is None or weight <= s.max_weight
    ]
    fields["service_type"] = replace(
        fields["service_type"],
        options=tuple(SelectOption(s.id, s.name) for s in available),
    )

    errors: dict[str, str] = {}
    selected = text(form_data.get("service_type"))
    if selected and selected not in {s.id for s in available}:
        errors["service_type"] = "Selected service is not available for this shipment"

    return CardRuleSet(
        stage=Stage.SERVICE,
        title=STAGE_TITLES[Stage.SERVICE],
        enabled=True,
        fields=fields,
        validation_errors=errors,
        context={
            "shipment_type": shipment_type.value,
            "services": [
                {
                    "id": s.id,
                    "name": s.name,
                    "description": s.description,
                    "max_weight": s.max_weight,
                    "base_price": s.base_price,
                    "price_per_kg": s.price_per_kg,
                    "delivery_days": s.delivery_days,
                }
                for s in available
            ],
        },
    )


def resolve_options(form_data: Mapping[str, Any]) -> CardRuleSet:
    """Options card: forced signature and the heavy-package pickup restriction."""
    fields = _fresh(OPTIONS_TEMPLATE)
    sender = text(form_data.get("sender_country"))
    receiver = text(form_data.get("receiver_country"))
    weight = number_or_none(form_data.get("weight"))

    for name in ADD_ON_FIELDS:
        fields[name] = replace(fields[name], checked=flag(form_data.get(name)))

    signature_forced = requires_signature(receiver)
    if signature_forced:
        fields["signature_required"] = replace(
            fields["signature_required"],
            checked=True,
            disabled=True,
            default_value=True,
        )

    errors: dict[str, str] = {}
    home_allowed = home_pickup_allowed(sender, weight)
    if not home_allowed:
        fields["pickup_method"] = replace(
            fields["pickup_method"],
            default_value=PickupMethod.POSTAL_OFFICE.value,
            allowed_values=(PickupMethod.POSTAL_OFFICE.value,),
            disabled_values=(PickupMethod.HOME.value,),
        )
        if text(form_data.get("pickup_method")) == PickupMethod.HOME.value:
            errors["pickup_method"] = (
                f"Home pickup is not available for packages over "
                f"{HOME_PICKUP_MAX_WEIGHT_KG}kg. Please select postal office drop-off"
            )

    return CardRuleSet(
        stage=Stage.OPTIONS,
        title=STAGE_TITLES[Stage.OPTIONS],
        enabled=True,
        fields=fields,
        validation_errors=errors,
        context={
            "signature_forced": signature_forced,
            "home_pickup_allowed": home_allowed,
        },
    )


Resolver = Callable[[Mapping[str, Any]], CardRuleSet]

STAGE_PIPELINE: tuple[tuple[Stage, Resolver], ...] = (
    (Stage.SENDER, resolve_sender),
    (Stage.RECEIVER, resolve_receiver),
    (Stage.PACKAGE, resolve_package),
    (Stage.SERVICE, resolve_service),
    (Stage.OPTIONS, resolve_options),
)

_RESOLVERS: MappingProxyType[Stage, Resolver] = MappingProxyType(dict(STAGE_PIPELINE))

# Form fields each stage reads, its own fields included.
STAGE_DEPENDENCIES: MappingProxyType[Stage, frozenset[str]] = MappingProxyType({
    Stage.SENDER: frozenset(SENDER_FIELDS),
    Stage.RECEIVER: frozenset(RECEIVER_FIELDS) | {"sender_country"},
    Stage.PACKAGE: frozenset(DIMENSION_FIELDS)
    | {"sender_country", "receiver_country", "weight", "item_description"},
    Stage.SERVICE: frozenset(
        {"sender_country", "receiver_country", "weight", "service_type"}
    ),
    Stage.OPTIONS: frozenset(ADD_ON_FIELDS)
    | {"sender_country", "receiver_country", "weight", "pickup_method"},
})


def _as_stage(stage: Stage | str) -> Stage:
    try:
        return Stage(stage)
    except ValueError:
        raise UnknownStageError(str(stage)) from None


def resolve_stage(stage: Stage | str, form_data: Mapping[str, Any]) -> CardRuleSet:
    """Resolve the field rules for one stage.

    Args:
        stage: Stage enum or its name ("sender", "receiver", ...).
        form_data: Current flat form data.

    Returns:
        A new CardRuleSet; identical inputs give equal results.

    Raises:
        UnknownStageError: If stage is not one of the five stages.
    """
    return _RESOLVERS[_as_stage(stage)](form_data)


def _has_value(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return not is_blank(value)


def missing_fields(rules: CardRuleSet, form_data: Mapping[str, Any]) -> list[str]:
    """Return required fields of the stage that hold no value."""
    return [
        name
        for name, rule in rules.fields.items()
        if rule.required and not _has_value(form_data.get(name))
    ]


def is_stage_complete(rules: CardRuleSet, form_data: Mapping[str, Any]) -> bool:
    """A stage is complete when all required fields are set and it has no errors."""
    return not missing_fields(rules, form_data) and not rules.validation_errors


def first_affected_stage(changed_field: str) -> Stage | None:
    """Return the earliest stage that reads changed_field, if any."""
    for stage, _ in STAGE_PIPELINE:
        if changed_field in STAGE_DEPENDENCIES[stage]:
            return stage
    return None


def resolve_pipeline(
    form_data: Mapping[str, Any], changed_field: str | None = None
) -> list[StageState]:
    """Resolve all stages in order, gating each on the previous one.

    Args:
        form_data: Current flat form data.
        changed_field: Field that just changed. When given, only the
            stages from the first one depending on it onward are
            returned; earlier stages are still evaluated for gating.

    Returns:
        StageState list in pipeline order (possibly empty when no stage
        reads changed_field).
    """
    start = 0
    if changed_field is not None:
        affected = first_affected_stage(changed_field)
        if affected is None:
            logger.debug("Field %s affects no stage", changed_field)
            return []
        start = [stage for stage, _ in STAGE_PIPELINE].index(affected)

    states: list[StageState] = []
    previous_complete = True
    for index, (stage, resolver) in enumerate(STAGE_PIPELINE):
        rules = resolver(form_data)
        enabled = previous_complete and rules.enabled
        if enabled != rules.enabled:
            rules = replace(rules, enabled=enabled)
        missing = missing_fields(rules, form_data)
        complete = enabled and not missing and not rules.validation_errors
        if index >= start:
            states.append(
                StageState(
                    stage=stage,
                    rules=rules,
                    complete=complete,
                    missing_fields=tuple(missing),
                )
            )
        previous_complete = complete
    return states
