"""Error handling framework for shipform.

This package provides:
- Typed domain exceptions mapped to HTTP statuses
- Error code registry with E-XXXX format codes
- Error formatting utilities

Error categories:
- E-1xxx: Input errors
- E-2xxx: Business rule violations
- E-3xxx: Reference errors
- E-4xxx: State conflicts and system errors
"""

from shipform.errors.domain import (
    AlreadyFinalizedError,
    BusinessRuleViolation,
    ConflictError,
    DomainError,
    InputError,
    InvalidStateTransition,
    NotFoundError,
    ReferenceNotFound,
    ServiceNotFoundError,
    ShipmentValidationFailed,
    StateConflict,
    UnknownStageError,
    WeightExceedsServiceError,
)
from shipform.errors.formatter import ShipFormError, format_error
from shipform.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
    get_errors_by_category,
)

__all__ = [
    # Domain
    "DomainError",
    "InputError",
    "BusinessRuleViolation",
    "ShipmentValidationFailed",
    "WeightExceedsServiceError",
    "ReferenceNotFound",
    "NotFoundError",
    "ServiceNotFoundError",
    "UnknownStageError",
    "StateConflict",
    "AlreadyFinalizedError",
    "ConflictError",
    "InvalidStateTransition",
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "get_error",
    "get_errors_by_category",
    # Formatter
    "ShipFormError",
    "format_error",
]
