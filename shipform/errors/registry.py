"""Error code registry with E-XXXX format codes.

This module defines the error code system for shipform, organizing errors
into categories:
- E-1xxx: Input errors (missing or malformed fields)
- E-2xxx: Business rule violations
- E-3xxx: Reference errors (unknown service, shipment, or account)
- E-4xxx: State conflicts and system errors

Each error includes a code, title, message template, and remediation steps.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    INPUT = "input"  # E-1xxx
    BUSINESS_RULE = "business_rule"  # E-2xxx
    REFERENCE = "reference"  # E-3xxx
    STATE = "state"  # E-4xxx


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display.
        message_template: Message with {placeholders} for context.
        remediation: Action user should take to resolve.
        is_retryable: Whether the operation can be retried without user action.
    """

    code: str
    category: ErrorCategory
    title: str
    message_template: str
    remediation: str
    is_retryable: bool = False


ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Input errors (E-1xxx)
    "E-1001": ErrorCode(
        code="E-1001",
        category=ErrorCategory.INPUT,
        title="Invalid Field",
        message_template="Field '{field}' is missing or malformed.",
        remediation="Correct the highlighted field and resubmit.",
    ),
    "E-1002": ErrorCode(
        code="E-1002",
        category=ErrorCategory.INPUT,
        title="Invalid Number",
        message_template="Field '{field}' must be a non-negative number. Value: '{value}'.",
        remediation="Enter a numeric value (e.g. 2.5) without units.",
    ),
    "E-1003": ErrorCode(
        code="E-1003",
        category=ErrorCategory.INPUT,
        title="Unknown Stage",
        message_template="Unknown form stage '{stage}'.",
        remediation="Use one of: sender, receiver, package, service, options.",
    ),
    "E-1004": ErrorCode(
        code="E-1004",
        category=ErrorCategory.INPUT,
        title="Weight Exceeds Service",
        message_template="Weight {weight}kg exceeds the {max_weight}kg limit of service '{service}'.",
        remediation="Choose a service with a higher weight limit or split the package.",
    ),
    # Business rule violations (E-2xxx)
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.BUSINESS_RULE,
        title="Business Rule Violation",
        message_template="The shipment violates a shipping rule: {details}",
        remediation="Adjust the shipment so it satisfies the highlighted rule.",
    ),
    "E-2002": ErrorCode(
        code="E-2002",
        category=ErrorCategory.BUSINESS_RULE,
        title="Restricted Route",
        message_template="Shipping from {sender_country} to {receiver_country} is currently not possible.",
        remediation="Choose a different destination country.",
    ),
    "E-2003": ErrorCode(
        code="E-2003",
        category=ErrorCategory.BUSINESS_RULE,
        title="Signature Required",
        message_template="Signature is required when shipping to {receiver_country}.",
        remediation="Enable signature on delivery.",
    ),
    "E-2004": ErrorCode(
        code="E-2004",
        category=ErrorCategory.BUSINESS_RULE,
        title="Home Pickup Unavailable",
        message_template="Home pickup is not available for packages over {limit}kg.",
        remediation="Select postal office drop-off.",
    ),
    "E-2005": ErrorCode(
        code="E-2005",
        category=ErrorCategory.BUSINESS_RULE,
        title="Shipment Validation Failed",
        message_template="Shipment failed validation ({count} field(s)).",
        remediation="Fix every highlighted field, then finalize again.",
    ),
    # Reference errors (E-3xxx)
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.REFERENCE,
        title="Not Found",
        message_template="{resource} '{identifier}' was not found.",
        remediation="Check the identifier. Shipments are only visible to their owner.",
    ),
    "E-3002": ErrorCode(
        code="E-3002",
        category=ErrorCategory.REFERENCE,
        title="Service Not Found",
        message_template="Service '{service}' is not offered.",
        remediation="Select a service from the list available for this shipment type.",
    ),
    "E-3003": ErrorCode(
        code="E-3003",
        category=ErrorCategory.REFERENCE,
        title="Account Required",
        message_template="Request is not associated with a known account.",
        remediation="Send a valid X-Account-Id header.",
    ),
    # State and system errors (E-4xxx)
    "E-4001": ErrorCode(
        code="E-4001",
        category=ErrorCategory.STATE,
        title="Database Error",
        message_template="Database operation failed: {details}",
        remediation="This is a system error. Retry the operation. Contact support if issue persists.",
        is_retryable=True,
    ),
    "E-4002": ErrorCode(
        code="E-4002",
        category=ErrorCategory.STATE,
        title="Invalid State",
        message_template="Shipment '{identifier}' cannot be changed in state '{state}'.",
        remediation="Finalized shipments are read-only. Use repeat to create a new draft.",
    ),
}


def get_error(code: str) -> ErrorCode | None:
    """Get error definition by code.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all errors in a category.

    Args:
        category: The error category to filter by.

    Returns:
        List of ErrorCode objects in the specified category.
    """
    return [e for e in ERROR_REGISTRY.values() if e.category == category]
