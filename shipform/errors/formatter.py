"""Error formatting utilities.

This module provides:
- ShipFormError exception class for application errors
- Conversion of domain exceptions into coded, user-facing errors
- Error formatting for CLI and API display
"""

from dataclasses import dataclass, field

from shipform.errors.domain import DomainError, InputError
from shipform.errors.registry import get_error


@dataclass
class ShipFormError(Exception):
    """Application error with code, message, and context.

    Attributes:
        code: Error code in E-XXXX format.
        message: Human-readable error message.
        remediation: Action user should take to resolve.
        field_errors: Field name -> message map, empty for top-level errors.
        is_retryable: Whether the operation can be retried without user action.
        details: Additional context dictionary.
    """

    code: str
    message: str
    remediation: str
    field_errors: dict[str, str] = field(default_factory=dict)
    is_retryable: bool = False
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code}: {self.message}"

    @classmethod
    def from_code(cls, code: str, **kwargs: object) -> "ShipFormError":
        """Create error from registry code with context substitution.

        Args:
            code: Error code in E-XXXX format.
            **kwargs: Context values for message template substitution.
                Special keys 'field_errors' and 'details' are used for
                ShipFormError fields rather than message substitution.

        Returns:
            ShipFormError instance with formatted message.
        """
        field_errors = kwargs.get("field_errors", {})
        if not isinstance(field_errors, dict):
            field_errors = {}
        details = kwargs.get("details", {})
        if not isinstance(details, dict):
            details = {}

        error_def = get_error(code)
        if not error_def:
            return cls(
                code=code,
                message=f"Unknown error: {code}",
                remediation="Contact support.",
                field_errors=field_errors,
                details=details,
            )

        message = error_def.message_template
        try:
            template_kwargs = {
                k: v for k, v in kwargs.items() if k not in ("field_errors", "details")
            }
            message = message.format(**template_kwargs)
        except KeyError:
            # Keep template if some placeholders are missing
            pass

        return cls(
            code=error_def.code,
            message=message,
            remediation=error_def.remediation,
            field_errors=field_errors,
            is_retryable=error_def.is_retryable,
            details=details,
        )

    @classmethod
    def from_domain(cls, exc: DomainError) -> "ShipFormError":
        """Wrap a domain exception, keeping its own message.

        Args:
            exc: Domain exception raised by the service layer.

        Returns:
            ShipFormError carrying the exception's code and field errors.
        """
        error_def = get_error(exc.error_code)
        field_errors = exc.field_errors if isinstance(exc, InputError) else {}
        return cls(
            code=exc.error_code,
            message=str(exc),
            remediation=error_def.remediation if error_def else "Contact support.",
            field_errors=dict(field_errors),
            is_retryable=error_def.is_retryable if error_def else False,
        )

    def to_response(self) -> dict:
        """Serialize for a JSON error body."""
        body: dict = {
            "error": self.message,
            "code": self.code,
            "remediation": self.remediation,
        }
        if self.field_errors:
            body["validation_errors"] = self.field_errors
        return body


def format_error(error: ShipFormError, include_remediation: bool = True) -> str:
    """Format error for display to user.

    Args:
        error: The ShipFormError to format.
        include_remediation: Whether to include remediation steps.

    Returns:
        Multi-line formatted string suitable for user display.
    """
    lines = [f"{error.code}: {error.message}"]

    for field_name, message in sorted(error.field_errors.items()):
        lines.append(f"  {field_name}: {message}")

    if include_remediation:
        lines.append(f"  Action: {error.remediation}")

    return "\n".join(lines)
