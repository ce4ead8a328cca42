"""Pydantic schemas for API request/response validation.

This module defines the data contracts for the shipform REST API:
rule resolution, rate quotes, validation, accounts and shipments.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# Form data


class ShipmentForm(BaseModel):
    """Flat shipment form data.

    Every field is optional so partially filled drafts round-trip.
    Numeric fields accept raw strings; malformed values are reported by
    validation rather than rejected at the schema layer.
    """

    model_config = ConfigDict(extra="ignore")

    sender_name: str | None = None
    sender_phone: str | None = None
    sender_country: str | None = None
    sender_city: str | None = None
    sender_street: str | None = None
    sender_postal_code: str | None = None

    receiver_name: str | None = None
    receiver_phone: str | None = None
    receiver_country: str | None = None
    receiver_city: str | None = None
    receiver_street: str | None = None
    receiver_postal_code: str | None = None

    weight: float | str | None = None
    length: float | str | None = None
    width: float | str | None = None
    height: float | str | None = None
    item_description: str | None = None

    service_type: str | None = None
    shipment_type: str | None = None
    pickup_method: str | None = None

    signature_required: bool = False
    contains_liquid: bool = False
    insurance: bool = False
    packaging: bool = False


class FormDataRequest(BaseModel):
    """Request wrapping form data for rule resolution or validation."""

    form_data: ShipmentForm = Field(default_factory=ShipmentForm)


class PipelineRequest(FormDataRequest):
    """Request for staged pipeline resolution."""

    changed_field: str | None = None


# Countries and classification


class CountryResponse(BaseModel):
    """A country from the static reference table."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    code: str
    is_gulf: bool


class ClassifyRequest(BaseModel):
    """Request schema for classifying a country pair."""

    sender_country: str = Field(..., min_length=1)
    receiver_country: str = Field(..., min_length=1)


class ClassifyResponse(BaseModel):
    """Derived shipment type for a country pair."""

    shipment_type: str
    sender_is_gulf: bool
    receiver_is_gulf: bool


# Stage rules


class FieldValidationResponse(BaseModel):
    """Value constraints for one field."""

    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    min: float | None = None
    max: float | None = None
    error_message: str | None = None


class SelectOptionResponse(BaseModel):
    """One choice of a select or radio field."""

    value: str
    label: str


class FieldRuleResponse(BaseModel):
    """Resolved constraints for one form field."""

    type: str
    label: str
    required: bool
    visible: bool
    disabled: bool
    validation: FieldValidationResponse
    options: list[SelectOptionResponse] | None = None
    default_value: Any = None
    checked: bool | None = None
    allowed_values: list[str] | None = None
    disabled_values: list[str] | None = None
    placeholder: str | None = None


class CardRuleSetResponse(BaseModel):
    """Resolved field rules for one stage."""

    stage: str
    title: str
    enabled: bool
    fields: dict[str, FieldRuleResponse]
    validation_errors: dict[str, str]
    context: dict[str, Any]


class StageStateResponse(BaseModel):
    """One stage of the resolved pipeline."""

    stage: str
    rules: CardRuleSetResponse
    complete: bool
    missing_fields: list[str]


class PipelineResponse(BaseModel):
    """Resolved pipeline stages in order."""

    stages: list[StageStateResponse]


# Rates


class RateRequest(BaseModel):
    """Request schema for a rate quote."""

    service_id: str = Field(..., min_length=1)
    weight: float = Field(..., ge=0)
    sender_country: str = Field(..., min_length=1)
    receiver_country: str = Field(..., min_length=1)
    pickup_method: Literal["home", "postal_office"] = "home"
    signature_required: bool = False
    contains_liquid: bool = False
    insurance: bool = False
    packaging: bool = False


class RateBreakdownResponse(BaseModel):
    """Price components in dollars."""

    base_cost: float
    signature_cost: float
    insurance_cost: float
    packaging_cost: float
    liquid_cost: float
    total_price: float


class ServiceInfoResponse(BaseModel):
    """The service a quote was priced for."""

    id: str
    name: str
    base_price: float
    price_per_kg: float
    max_weight: float
    delivery_days: int


class RateQuoteResponse(BaseModel):
    """Rate quote with breakdown."""

    breakdown: RateBreakdownResponse
    total_price: float
    shipment_type: str
    service: ServiceInfoResponse


# Validation


class ValidationResponse(BaseModel):
    """Validation outcome; empty errors means valid."""

    is_valid: bool
    errors: dict[str, str]


# Accounts


class AccountCreate(BaseModel):
    """Request schema for creating an account."""

    email: str = Field(..., min_length=3, max_length=255)
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: str | None = Field(None, max_length=30)
    country: str | None = Field(None, max_length=100)
    city: str | None = Field(None, max_length=100)
    street: str | None = Field(None, max_length=255)
    postal_code: str | None = Field(None, max_length=20)


class AccountResponse(BaseModel):
    """Response schema for an account."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    phone: str | None = None
    country: str | None = None
    city: str | None = None
    street: str | None = None
    postal_code: str | None = None
    created_at: str


class AccountProfileResponse(AccountResponse):
    """Account plus the sender values used to pre-fill new shipments."""

    default_sender: dict[str, str]


# Shipments


class ClientRates(BaseModel):
    """Prices the client displayed. Recorded, never trusted."""

    base_cost: float | None = None
    total_price: float | None = None


class DraftRequest(BaseModel):
    """Request schema for saving or updating a draft."""

    form_data: ShipmentForm = Field(default_factory=ShipmentForm)
    client_rates: ClientRates | None = None


class TrackingEventCreate(BaseModel):
    """Request schema for appending a tracking event."""

    status: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)


class TrackingEventResponse(BaseModel):
    """Response schema for a tracking event."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    status: str
    location: str
    description: str | None = None
    timestamp: str


class ShipmentResponse(BaseModel):
    """Response schema for a shipment."""

    id: str
    status: str
    tracking_number: str | None = None
    shipment_type: str | None = None
    form_data: dict[str, Any]
    rate: RateBreakdownResponse
    estimated_delivery: str | None = None
    created_at: str
    updated_at: str
    finalized_at: str | None = None
    events: list[TrackingEventResponse] = Field(default_factory=list)


class ShipmentListResponse(BaseModel):
    """Response schema for listing shipments."""

    shipments: list[ShipmentResponse]
    total: int


class ShipmentStatsResponse(BaseModel):
    """Per-status counts and total spend."""

    total: int
    by_status: dict[str, int]
    total_spent: float


class TrackingResponse(BaseModel):
    """Public tracking view of a finalized shipment."""

    tracking_number: str
    status: str
    shipment_type: str | None = None
    sender_country: str | None = None
    receiver_country: str | None = None
    estimated_delivery: str | None = None
    events: list[TrackingEventResponse]


# Errors


class ErrorResponse(BaseModel):
    """Error body returned for domain failures."""

    error: str
    code: str
    remediation: str | None = None
    validation_errors: dict[str, str] | None = None
