"""Typed domain exceptions for API error mapping.

These exceptions give routes a stable contract instead of string
matching. Each family maps to one HTTP status:

- InputError / BusinessRuleViolation -> 400 (field-keyed messages)
- ReferenceNotFound -> 404 (single top-level message)
- StateConflict -> 409 (single top-level message, shipment unchanged)

Usage:
    # In service layer
    raise NotFoundError("Shipment", shipment_id)

    # In route handler
    try:
        shipment = service.finalize(shipment_id, account_id)
    except ReferenceNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
"""


class DomainError(Exception):
    """Base exception for all domain errors.

    Attributes:
        error_code: E-XXXX registry code for client display.
    """

    error_code: str = "E-4001"

    def __init__(self, message: str) -> None:
        super().__init__(message)


# --- Input / business rule failures (400) ---


class InputError(DomainError):
    """Missing or malformed field. Maps to HTTP 400."""

    error_code = "E-1001"

    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.field_errors: dict[str, str] = dict(field_errors or {})


class BusinessRuleViolation(InputError):
    """A business rule blocks the shipment (restricted route, forced signature)."""

    error_code = "E-2001"


class ShipmentValidationFailed(BusinessRuleViolation):
    """Complete-mode validation failed; carries the full field -> message map."""

    error_code = "E-2005"

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__(
            f"Shipment failed validation ({len(errors)} field(s))",
            field_errors=errors,
        )

    @property
    def errors(self) -> dict[str, str]:
        """Field-keyed validation messages."""
        return self.field_errors


class WeightExceedsServiceError(InputError):
    """Package weight is above the selected service's maximum."""

    error_code = "E-1004"

    def __init__(self, weight: float, max_weight: float, service_id: str) -> None:
        super().__init__(
            f"Weight {weight:g}kg exceeds service maximum of {max_weight:g}kg",
            field_errors={
                "weight": f"Weight cannot exceed {max_weight:g}kg for service '{service_id}'",
            },
        )
        self.weight = weight
        self.max_weight = max_weight
        self.service_id = service_id


# --- Reference failures (404) ---


class ReferenceNotFound(DomainError):
    """Referenced entity does not exist or is not visible to the caller."""

    error_code = "E-3001"


class NotFoundError(ReferenceNotFound):
    """Resource was not found. Maps to HTTP 404."""

    def __init__(self, resource_type: str, identifier: str | int) -> None:
        super().__init__(f"{resource_type} '{identifier}' not found")
        self.resource_type = resource_type
        self.identifier = identifier


class UnknownStageError(ReferenceNotFound):
    """Form stage name is not one of the five pipeline stages."""

    error_code = "E-1003"

    def __init__(self, stage: str) -> None:
        super().__init__(f"Unknown form stage: {stage}")
        self.stage = stage


class ServiceNotFoundError(ReferenceNotFound):
    """Service id is not present in the fee schedule."""

    error_code = "E-3002"

    def __init__(self, service_id: str | None) -> None:
        super().__init__(f"Service not found: {service_id}")
        self.service_id = service_id


# --- State conflicts (409) ---


class StateConflict(DomainError):
    """Operation is not valid for the entity's current state. Maps to HTTP 409."""

    error_code = "E-4002"


class AlreadyFinalizedError(StateConflict):
    """Shipment has left the draft state."""

    def __init__(self, shipment_id: str) -> None:
        super().__init__(f"Shipment '{shipment_id}' is already finalized")
        self.shipment_id = shipment_id


class ConflictError(StateConflict):
    """Resource conflict (e.g., duplicate). Maps to HTTP 409."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class InvalidStateTransition(StateConflict):
    """Requested status change is not allowed from the current status."""

    def __init__(self, current: str, target: str, message: str | None = None) -> None:
        super().__init__(message or f"Cannot transition from '{current}' to '{target}'")
        self.current = current
        self.target = target
