"""Unit tests for shipform/errors/registry.py and formatter.py."""

import pytest

from shipform.errors import (
    AlreadyFinalizedError,
    InputError,
    NotFoundError,
    ShipFormError,
    ShipmentValidationFailed,
    WeightExceedsServiceError,
    format_error,
)
from shipform.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    get_error,
    get_errors_by_category,
)


@pytest.mark.parametrize(
    "code,category,title",
    [
        ("E-1001", ErrorCategory.INPUT, "Invalid Field"),
        ("E-1003", ErrorCategory.INPUT, "Unknown Stage"),
        ("E-1004", ErrorCategory.INPUT, "Weight Exceeds Service"),
        ("E-2005", ErrorCategory.BUSINESS_RULE, "Shipment Validation Failed"),
        ("E-3002", ErrorCategory.REFERENCE, "Service Not Found"),
        ("E-3003", ErrorCategory.REFERENCE, "Account Required"),
        ("E-4002", ErrorCategory.STATE, "Invalid State"),
    ],
)
def test_error_codes_registered(code, category, title):
    """Every code raised by the domain layer must be registered."""
    error = get_error(code)
    assert error is not None, f"{code} not found in registry"
    assert error.category == category
    assert error.title == title


def test_codes_match_category_prefix():
    prefixes = {
        ErrorCategory.INPUT: "E-1",
        ErrorCategory.BUSINESS_RULE: "E-2",
        ErrorCategory.REFERENCE: "E-3",
        ErrorCategory.STATE: "E-4",
    }
    for code, error in ERROR_REGISTRY.items():
        assert code == error.code
        assert code.startswith(prefixes[error.category])


def test_get_errors_by_category():
    codes = {e.code for e in get_errors_by_category(ErrorCategory.REFERENCE)}
    assert codes == {"E-3001", "E-3002", "E-3003"}


def test_unknown_code():
    assert get_error("E-9999") is None
    error = ShipFormError.from_code("E-9999")
    assert error.message == "Unknown error: E-9999"


def test_from_code_substitutes_template():
    error = ShipFormError.from_code("E-1003", stage="payment")
    assert error.message == "Unknown form stage 'payment'."
    assert error.remediation.startswith("Use one of")


def test_from_code_keeps_template_on_missing_placeholder():
    error = ShipFormError.from_code("E-1003")
    assert "{stage}" in error.message


class TestFromDomain:
    def test_keeps_exception_message(self):
        error = ShipFormError.from_domain(NotFoundError("Shipment", "abc"))
        assert error.code == "E-3001"
        assert error.message == "Shipment 'abc' not found"
        assert error.field_errors == {}

    def test_carries_field_errors(self):
        error = ShipFormError.from_domain(
            ShipmentValidationFailed({"weight": "Weight must be greater than 0 kg"})
        )
        assert error.code == "E-2005"
        assert error.to_response()["validation_errors"] == {
            "weight": "Weight must be greater than 0 kg"
        }

    def test_top_level_errors_have_no_validation_errors(self):
        body = ShipFormError.from_domain(AlreadyFinalizedError("abc")).to_response()
        assert "validation_errors" not in body
        assert body["code"] == "E-4002"

    def test_weight_error(self):
        exc = WeightExceedsServiceError(26, 25, "gulf_express")
        assert isinstance(exc, InputError)
        assert str(exc) == "Weight 26kg exceeds service maximum of 25kg"


def test_format_error_lists_fields():
    error = ShipFormError.from_domain(
        InputError("Bad input", field_errors={"weight": "Weight must be a valid number"})
    )
    text = format_error(error)
    assert text.splitlines()[0] == "E-1001: Bad input"
    assert "  weight: Weight must be a valid number" in text
    assert "Action:" in text
    assert "Action:" not in format_error(error, include_remediation=False)
