"""Tests for draft- and complete-mode shipment validation."""

import pytest

from shipform.services.country_classifier import ShipmentType
from shipform.services.shipment_validator import (
    ValidationResult,
    validate_complete,
    validate_draft,
    validate_options,
    validate_package,
    validate_receiver,
    validate_sender,
    validate_service_selection,
)


class TestValidationResult:
    def test_empty_is_valid(self):
        assert ValidationResult().is_valid is True

    def test_merge_collects_errors(self):
        result = ValidationResult({"a": "x"})
        result.merge(ValidationResult({"b": "y"}))
        assert result.errors == {"a": "x", "b": "y"}
        assert result.to_dict() == {"is_valid": False, "errors": {"a": "x", "b": "y"}}


class TestDraftMode:
    def test_empty_form_is_valid(self):
        assert validate_draft({}).is_valid is True

    def test_blank_numbers_accepted(self):
        assert validate_draft({"weight": "", "length": None}).is_valid is True

    def test_negative_number_rejected(self):
        result = validate_draft({"weight": -1})
        assert result.errors == {"weight": "Weight must be a valid number"}

    def test_malformed_number_rejected(self):
        result = validate_draft({"height": "tall"})
        assert result.errors == {"height": "Height must be a valid number"}

    def test_zero_accepted_in_draft(self):
        assert validate_draft({"weight": 0}).is_valid is True

    def test_other_rules_not_enforced(self, form_factory):
        form = form_factory(
            sender_country="Kuwait",
            receiver_country="Iraq",
            weight=45,
            pickup_method="home",
            signature_required=False,
        )
        assert validate_draft(form).is_valid is True


class TestAddresses:
    def test_complete_sender(self, complete_form):
        assert validate_sender(complete_form).is_valid is True

    def test_short_name_and_phone(self, form_factory):
        result = validate_sender(form_factory(sender_name="S", sender_phone="12345"))
        assert result.errors["sender_name"] == "Sender name must be at least 2 characters"
        assert result.errors["sender_phone"] == "Phone number must have at least 10 digits"

    def test_phone_digits_ignore_formatting(self, form_factory):
        result = validate_sender(form_factory(sender_phone="(050) 123-4567"))
        assert "sender_phone" not in result.errors

    def test_postal_code_bounds(self, form_factory):
        short = validate_receiver(form_factory(receiver_postal_code="12"))
        long = validate_receiver(form_factory(receiver_postal_code="12345678901"))
        assert "receiver_postal_code" in short.errors
        assert "receiver_postal_code" in long.errors

    def test_gulf_street_required(self, form_factory):
        result = validate_sender(form_factory(sender_street=""))
        assert result.errors["sender_street"] == "Street address is required for Gulf countries"

    def test_non_gulf_street_optional(self, form_factory):
        form = form_factory(sender_country="Jordan", sender_street="")
        assert "sender_street" not in validate_sender(form).errors

    def test_gulf_to_iraq(self, form_factory):
        result = validate_receiver(
            form_factory(sender_country="Oman", receiver_country="Iraq")
        )
        assert result.errors["receiver_country"] == (
            "Shipping from Gulf countries to Iraq is currently not possible"
        )


class TestPackage:
    def test_weight_required_positive(self, form_factory):
        result = validate_package(form_factory(weight=0))
        assert result.errors["weight"] == "Weight must be greater than 0 kg"

    def test_weight_over_type_limit(self, form_factory):
        form = form_factory(sender_country="Kuwait", receiver_country="Oman", weight=41)
        result = validate_package(form)
        assert result.errors["weight"] == "Weight cannot exceed 40kg for IntraGulf shipments"

    def test_explicit_shipment_type(self, form_factory):
        result = validate_package(form_factory(weight=35), ShipmentType.INTERNATIONAL)
        assert "weight" in result.errors

    def test_dimensions(self, form_factory):
        result = validate_package(form_factory(length=0, width=201, height=""))
        assert result.errors["length"] == "Length must be greater than 0 cm"
        assert result.errors["width"] == "Width cannot exceed 200 cm"
        assert result.errors["height"] == "Height must be greater than 0 cm"

    def test_item_description_required_non_gulf_to_gulf(self, form_factory):
        form = form_factory(
            sender_country="Egypt",
            receiver_country="Kuwait",
            item_description="Toy",
        )
        result = validate_package(form)
        assert result.errors["item_description"] == (
            "Item description is required (minimum 5 characters) "
            "when shipping from non-Gulf to Gulf countries"
        )

    def test_item_description_accepted(self, form_factory):
        form = form_factory(
            sender_country="Egypt",
            receiver_country="Kuwait",
            item_description="Books and notebooks",
        )
        assert "item_description" not in validate_package(form).errors


class TestOptions:
    @pytest.mark.parametrize("receiver", ["Jordan", "Egypt"])
    def test_signature_required(self, form_factory, receiver):
        result = validate_options(
            form_factory(receiver_country=receiver, signature_required=False)
        )
        assert result.errors["signature_required"] == (
            f"Signature is required when shipping to {receiver}"
        )

    def test_signature_present(self, form_factory):
        form = form_factory(receiver_country="Jordan", signature_required=True)
        assert validate_options(form).is_valid is True

    def test_home_pickup_at_17kg(self, form_factory):
        assert validate_options(form_factory(weight=17.0)).is_valid is True

    def test_home_pickup_over_17kg(self, form_factory):
        result = validate_options(form_factory(weight=17.01))
        assert result.errors["pickup_method"] == (
            "Home pickup is not available for packages over 17kg. "
            "Please select postal office drop-off"
        )

    def test_postal_office_over_17kg(self, form_factory):
        form = form_factory(weight=25, pickup_method="postal_office")
        assert validate_options(form).is_valid is True

    def test_iraq_sender_exempt(self, form_factory):
        form = form_factory(sender_country="Iraq", receiver_country="Iraq", weight=40)
        assert validate_options(form).is_valid is True


class TestServiceSelection:
    def test_service_required(self, form_factory):
        result = validate_service_selection(form_factory(service_type=""))
        assert result.errors["service_type"] == "Service type is required"

    def test_service_for_wrong_type(self, form_factory):
        result = validate_service_selection(form_factory(service_type="gulf_standard"))
        assert result.errors["service_type"] == (
            "Selected service is not available for Domestic shipments"
        )

    def test_shipment_type_required_without_countries(self, form_factory):
        form = form_factory(sender_country="", receiver_country="", shipment_type="")
        assert validate_service_selection(form).errors["shipment_type"] == (
            "Shipment type is required"
        )

    def test_pickup_required(self, form_factory):
        result = validate_service_selection(form_factory(pickup_method=""))
        assert result.errors["pickup_method"] == "Pickup method is required"

    def test_unknown_pickup(self, form_factory):
        result = validate_service_selection(form_factory(pickup_method="drone"))
        assert "pickup_method" in result.errors


class TestCompleteMode:
    def test_complete_form_is_valid(self, complete_form):
        result = validate_complete(complete_form)
        assert result.errors == {}

    def test_empty_package_fails(self, form_factory):
        form = form_factory(weight="", length="", width="", height="")
        assert validate_draft(form).is_valid is True
        result = validate_complete(form)
        assert set(result.errors) >= {"weight", "length", "width", "height"}

    def test_reports_every_error_at_once(self, form_factory):
        form = form_factory(
            sender_name="",
            receiver_country="Jordan",
            signature_required=False,
            weight=20,
            pickup_method="home",
            service_type="",
        )
        result = validate_complete(form)
        assert {"sender_name", "signature_required", "service_type"} <= set(result.errors)
        assert "pickup_method" in result.errors
