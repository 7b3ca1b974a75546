import json
from decimal import Decimal

import pytest

from rental_booking.core.config import settings
from rental_booking.models import BookingKind, OptionKind
from rental_booking.services.pricing import (
    SurchargeConfigError,
    UnknownOptionKind,
    get_surcharge_table,
    load_surcharge_table,
    parse_option_flags,
)
from rental_booking.services.pricing.surcharges import (
    DEFAULT_SURCHARGE_TABLE,
    SurchargeMode,
)


def test_same_option_name_has_domain_specific_rules():
    vehicle = DEFAULT_SURCHARGE_TABLE.rules_for(BookingKind.VEHICLE_RENTAL)[OptionKind.INSURANCE]
    moving = DEFAULT_SURCHARGE_TABLE.rules_for(BookingKind.MOVING_SERVICE)[OptionKind.INSURANCE]
    assert vehicle.mode is SurchargeMode.PER_UNIT and vehicle.amount == Decimal("15.00")
    assert moving.mode is SurchargeMode.FIXED and moving.amount == Decimal("50.00")


def test_rule_contribution():
    rules = DEFAULT_SURCHARGE_TABLE.rules_for(BookingKind.VEHICLE_RENTAL)
    assert rules[OptionKind.GPS].contribution(3) == Decimal("24.00")
    assert rules[OptionKind.CHILD_SEAT].contribution(3) == Decimal("25.00")


def test_load_table_from_json(tmp_path):
    path = tmp_path / "surcharges.json"
    path.write_text(
        json.dumps(
            {
                "version": "2025-03",
                "rules": {
                    "vehicle_rental": {
                        "insurance": {"mode": "per_unit", "amount": "17.5"},
                        "childSeat": {"mode": "fixed", "amount": 30},
                    }
                },
            }
        )
    )
    table = load_surcharge_table(path)
    assert table.version == "2025-03"
    rules = table.rules_for(BookingKind.VEHICLE_RENTAL)
    assert rules[OptionKind.INSURANCE].amount == Decimal("17.50")
    assert rules[OptionKind.CHILD_SEAT].mode is SurchargeMode.FIXED
    assert table.rules_for(BookingKind.MOVING_SERVICE) == {}


def test_table_is_loaded_once_from_settings(tmp_path, monkeypatch):
    path = tmp_path / "surcharges.json"
    path.write_text(json.dumps({"version": "v-test", "rules": {"product_order": {}}}))
    monkeypatch.setattr(settings, "SURCHARGE_TABLE_PATH", str(path))
    first = get_surcharge_table()
    path.write_text(json.dumps({"version": "v-changed", "rules": {}}))
    assert get_surcharge_table() is first
    assert first.version == "v-test"


def test_defaults_without_configured_path(monkeypatch):
    monkeypatch.setattr(settings, "SURCHARGE_TABLE_PATH", "")
    assert get_surcharge_table() is DEFAULT_SURCHARGE_TABLE


@pytest.mark.parametrize(
    "payload",
    [
        {"rules": {}},
        {"version": "x", "rules": []},
        {"version": "x", "rules": {"boat_rental": {}}},
        {"version": "x", "rules": {"vehicle_rental": {"jetpack": {"mode": "fixed", "amount": 1}}}},
        {"version": "x", "rules": {"vehicle_rental": {"gps": {"mode": "hourly", "amount": 1}}}},
        {"version": "x", "rules": {"vehicle_rental": {"gps": {"mode": "fixed", "amount": -1}}}},
        {"version": "x", "rules": {"vehicle_rental": {"gps": {"mode": "fixed", "amount": "NaN"}}}},
        {"version": "x", "rules": {"vehicle_rental": {"gps": {"mode": "fixed", "amount": "cheap"}}}},
        {"version": "x", "rules": {"vehicle_rental": {"gps": {"mode": "fixed"}}}},
        {
            "version": "x",
            "rules": {
                "vehicle_rental": {
                    "child_seat": {"mode": "fixed", "amount": 25},
                    "childSeat": {"mode": "fixed", "amount": 30},
                }
            },
        },
    ],
)
def test_malformed_tables_are_rejected(tmp_path, payload):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(payload))
    with pytest.raises(SurchargeConfigError):
        load_surcharge_table(path)


def test_unreadable_table_is_rejected(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(SurchargeConfigError):
        load_surcharge_table(path)
    with pytest.raises(SurchargeConfigError):
        load_surcharge_table(tmp_path / "missing.json")


def test_parse_option_flags():
    assert parse_option_flags(None) == frozenset()
    assert parse_option_flags({"insurance": True, "gps": False, "movingKit": True}) == {
        OptionKind.INSURANCE,
        OptionKind.MOVING_KIT,
    }
    assert parse_option_flags(["gps", "GPS", "unlimited-mileage"]) == {
        OptionKind.GPS,
        OptionKind.UNLIMITED_MILEAGE,
    }
    with pytest.raises(UnknownOptionKind):
        parse_option_flags(["teleport"])
