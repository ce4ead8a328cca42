"""Tests for the fee schedule lookups and rule constants."""

import pytest

from shipform.services.country_classifier import ShipmentType
from shipform.services.fee_schedule import (
    ADD_ON_FEES,
    DEFAULT_PICKUP_FEES,
    PACKAGE_LIMITS,
    SERVICES_BY_SHIPMENT_TYPE,
    AddOn,
    PickupMethod,
    add_on_fee,
    find_service,
    package_limits,
    pickup_fee,
    services_for,
)


class TestServices:
    def test_every_type_has_services(self):
        for shipment_type in ShipmentType:
            assert services_for(shipment_type)

    def test_service_ids_are_unique(self):
        ids = [s.id for services in SERVICES_BY_SHIPMENT_TYPE.values() for s in services]
        assert len(ids) == len(set(ids))

    def test_find_service_returns_bucket(self):
        shipment_type, service = find_service("gulf_express")
        assert shipment_type == ShipmentType.INTRA_GULF
        assert service.max_weight == 25

    def test_find_service_unknown(self):
        assert find_service("teleport") is None
        assert find_service("") is None
        assert find_service(None) is None

    def test_service_limits_do_not_exceed_package_limits(self):
        for shipment_type, services in SERVICES_BY_SHIPMENT_TYPE.items():
            for service in services:
                assert service.max_weight <= PACKAGE_LIMITS[shipment_type].max_weight


class TestPackageLimits:
    @pytest.mark.parametrize(
        "shipment_type,max_weight",
        [
            (ShipmentType.DOMESTIC, 50),
            (ShipmentType.INTRA_GULF, 40),
            (ShipmentType.INTERNATIONAL, 30),
        ],
    )
    def test_max_weight(self, shipment_type, max_weight):
        limits = package_limits(shipment_type)
        assert limits.max_weight == max_weight
        assert limits.max_dimension == 200


class TestPickupFees:
    def test_country_specific_fee(self):
        assert pickup_fee("Saudi Arabia", PickupMethod.HOME) == 8.0
        assert pickup_fee("Saudi Arabia", "postal_office") == 3.0

    def test_unlisted_country_uses_default(self):
        assert pickup_fee("Germany", PickupMethod.HOME) == DEFAULT_PICKUP_FEES[PickupMethod.HOME]
        assert pickup_fee(None, PickupMethod.POSTAL_OFFICE) == 2.0

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError):
            pickup_fee("Saudi Arabia", "drone")


class TestAddOnFees:
    def test_selected(self):
        assert add_on_fee(AddOn.INSURANCE, True) == ADD_ON_FEES[AddOn.INSURANCE]

    def test_not_selected_is_free(self):
        for add_on in AddOn:
            assert add_on_fee(add_on, False) == 0.0

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            ADD_ON_FEES[AddOn.LIQUID] = 0.0
