"""Tests for the country table and shipment type classification."""

import pytest

from shipform.services.country_classifier import (
    COUNTRIES,
    GULF_COUNTRIES,
    ShipmentType,
    classify,
    country_options,
    get_country,
    is_gulf,
    list_countries,
)


class TestCountryTable:
    """Tests for the static country list."""

    def test_gulf_set(self):
        assert GULF_COUNTRIES == {
            "Saudi Arabia",
            "United Arab Emirates",
            "Kuwait",
            "Bahrain",
            "Oman",
            "Qatar",
        }

    def test_names_are_unique(self):
        names = [c.name for c in COUNTRIES]
        assert len(names) == len(set(names))

    def test_get_country_exact_name(self):
        country = get_country("Jordan")
        assert country is not None
        assert country.code == "JO"
        assert country.is_gulf is False

    def test_get_country_unknown_or_empty(self):
        assert get_country("Atlantis") is None
        assert get_country("") is None
        assert get_country(None) is None

    def test_list_countries_returns_copy(self):
        countries = list_countries()
        countries.clear()
        assert len(list_countries()) == len(COUNTRIES)

    def test_country_options_use_name_as_value(self):
        options = country_options()
        assert {"value": "Kuwait", "label": "Kuwait"} in options
        assert len(options) == len(COUNTRIES)


class TestIsGulf:
    """Tests for Gulf membership."""

    @pytest.mark.parametrize("name", sorted(GULF_COUNTRIES))
    def test_gulf_members(self, name):
        assert is_gulf(name) is True

    def test_non_gulf(self):
        assert is_gulf("Iraq") is False
        assert is_gulf("Egypt") is False

    def test_unmatched_names_are_not_gulf(self):
        """No case folding: only exact canonical names match."""
        assert is_gulf("saudi arabia") is False
        assert is_gulf("") is False
        assert is_gulf(None) is False


class TestClassify:
    """Tests for classify()."""

    def test_same_country_is_domestic(self):
        assert classify("Jordan", "Jordan") == ShipmentType.DOMESTIC

    def test_same_gulf_country_is_domestic_not_intra_gulf(self):
        assert classify("Kuwait", "Kuwait") == ShipmentType.DOMESTIC

    def test_two_gulf_countries(self):
        assert classify("Kuwait", "Oman") == ShipmentType.INTRA_GULF

    def test_gulf_to_non_gulf(self):
        assert classify("Qatar", "Egypt") == ShipmentType.INTERNATIONAL

    def test_non_gulf_to_gulf(self):
        assert classify("Egypt", "Qatar") == ShipmentType.INTERNATIONAL

    def test_unknown_identical_names_are_domestic(self):
        assert classify("X", "X") == ShipmentType.DOMESTIC

    def test_values_are_wire_strings(self):
        assert ShipmentType.INTRA_GULF.value == "IntraGulf"
