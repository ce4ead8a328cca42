"""Tests for calculate_rate() and its form adapter."""

from decimal import Decimal

import pytest

from shipform.errors import InputError, ServiceNotFoundError, WeightExceedsServiceError
from shipform.services.country_classifier import ShipmentType
from shipform.services.fee_schedule import PickupMethod
from shipform.services.rate_calculator import (
    RateCalculationInput,
    calculate_rate,
    calculate_rate_from_form,
    from_cents,
    rate_input_from_form,
    rates_match,
    round_money,
    to_cents,
)


def _input(**overrides) -> RateCalculationInput:
    values = {
        "service_id": "domestic_standard",
        "weight": 10,
        "sender_country": "X",
        "receiver_country": "X",
    }
    values.update(overrides)
    return RateCalculationInput(**values)


class TestCalculateRate:
    def test_base_cost_with_default_pickup(self):
        """15 + 10 * 0.5 + 5 (default home pickup) = 25.00."""
        quote = calculate_rate(_input())
        assert quote.breakdown.base_cost == 25.0
        assert quote.total_price == 25.0
        assert quote.shipment_type == ShipmentType.DOMESTIC
        assert quote.service.id == "domestic_standard"

    def test_country_pickup_fee(self):
        quote = calculate_rate(
            _input(
                sender_country="Saudi Arabia",
                receiver_country="Saudi Arabia",
                pickup_method=PickupMethod.POSTAL_OFFICE,
            )
        )
        # 15 + 5 + 3
        assert quote.breakdown.base_cost == 23.0

    def test_all_add_ons(self):
        quote = calculate_rate(
            _input(
                signature_required=True,
                contains_liquid=True,
                insurance=True,
                packaging=True,
            )
        )
        b = quote.breakdown
        assert b.signature_cost == 5.0
        assert b.liquid_cost == 10.0
        assert b.insurance_cost == 15.0
        assert b.packaging_cost == 7.5
        assert quote.total_price == 25.0 + 5.0 + 10.0 + 15.0 + 7.5

    def test_total_is_sum_of_components(self):
        quote = calculate_rate(
            _input(
                service_id="international_express",
                weight=3.333,
                sender_country="Jordan",
                receiver_country="Germany",
                insurance=True,
            )
        )
        b = quote.breakdown
        components = [
            Decimal(str(v))
            for v in (
                b.base_cost,
                b.signature_cost,
                b.insurance_cost,
                b.packaging_cost,
                b.liquid_cost,
            )
        ]
        assert sum(components) == Decimal(str(quote.total_price))

    def test_half_up_rounding(self):
        # 80 + 0.001 * 5 + 5.5 = 85.505 -> 85.51
        quote = calculate_rate(
            _input(
                service_id="international_express",
                weight=0.001,
                sender_country="Jordan",
                receiver_country="Germany",
            )
        )
        assert quote.breakdown.base_cost == 85.51

    def test_weight_at_service_maximum(self):
        quote = calculate_rate(_input(service_id="domestic_express", weight=30))
        assert quote.breakdown.base_cost == 25 + 30 * 1.0 + 5

    def test_weight_over_service_maximum(self):
        with pytest.raises(WeightExceedsServiceError) as exc_info:
            calculate_rate(_input(service_id="domestic_express", weight=30.5))
        assert exc_info.value.max_weight == 30
        assert "weight" in exc_info.value.field_errors

    def test_unknown_service(self):
        with pytest.raises(ServiceNotFoundError):
            calculate_rate(_input(service_id="teleport"))

    def test_negative_weight(self):
        with pytest.raises(InputError):
            calculate_rate(_input(weight=-1))

    def test_unknown_pickup_method(self):
        with pytest.raises(InputError) as exc_info:
            calculate_rate(_input(pickup_method="drone"))
        assert "pickup_method" in exc_info.value.field_errors

    def test_deterministic(self):
        assert calculate_rate(_input(insurance=True)) == calculate_rate(_input(insurance=True))

    def test_to_dict_includes_service(self):
        data = calculate_rate(_input()).to_dict()
        assert data["shipment_type"] == "Domestic"
        assert data["service"]["delivery_days"] == 3
        assert data["breakdown"]["total_price"] == 25.0


class TestMoneyHelpers:
    def test_round_money(self):
        assert round_money(2.675) == Decimal("2.68")
        assert round_money(Decimal("0.005")) == Decimal("0.01")

    def test_cents_round_trip(self):
        assert to_cents(28.0) == 2800
        assert to_cents(85.505) == 8551
        assert from_cents(2800) == 28.0
        assert from_cents(None) == 0.0


class TestFormAdapter:
    def test_reads_flat_form(self, complete_form):
        rate_input = rate_input_from_form(complete_form)
        assert rate_input.service_id == "domestic_standard"
        assert rate_input.weight == 10.0
        assert rate_input.pickup_method == "home"

    def test_string_weight(self, form_factory):
        rate_input = rate_input_from_form(form_factory(weight="12.5"))
        assert rate_input.weight == 12.5

    def test_missing_service(self, form_factory):
        with pytest.raises(ServiceNotFoundError):
            rate_input_from_form(form_factory(service_type=""))

    @pytest.mark.parametrize("weight", ["", None, "heavy"])
    def test_missing_or_bad_weight(self, form_factory, weight):
        with pytest.raises(InputError):
            rate_input_from_form(form_factory(weight=weight))

    def test_blank_pickup_defaults_to_home(self, form_factory):
        rate_input = rate_input_from_form(form_factory(pickup_method=""))
        assert rate_input.pickup_method == PickupMethod.HOME

    def test_calculate_from_form(self, complete_form):
        # 15 + 10 * 0.5 + 8 (home pickup in Saudi Arabia)
        assert calculate_rate_from_form(complete_form).total_price == 28.0


class TestRatesMatch:
    def test_match_within_tolerance(self):
        quote = calculate_rate(_input())
        assert rates_match(25.0, 25.005, quote) is True

    def test_mismatch(self):
        quote = calculate_rate(_input())
        assert rates_match(25.0, 5.0, quote) is False

    def test_missing_client_values(self):
        quote = calculate_rate(_input())
        assert rates_match(None, 25.0, quote) is False
