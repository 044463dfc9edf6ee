"""Tests for VehicleSnapshot extraction from raw vehicle_data."""

from __future__ import annotations

from typing import Any

import pytest

from voltwatch.api.errors import DecodeError
from voltwatch.models.vehicle import ChargingState, ShiftState, VehicleSnapshot


class TestFromResponse:
    def test_parked_at_home(self, sample_vehicle_data: dict[str, Any]) -> None:
        snap = VehicleSnapshot.from_response(sample_vehicle_data)

        assert snap.locked is True
        assert snap.shift_state is None
        assert snap.charge_port_open is False
        assert snap.charging_state is ChargingState.OTHER
        assert snap.pilot_current is None
        assert snap.climate_on is False
        assert snap.position == (47.630007, -122.133969)

    def test_missing_sections_use_defaults(self) -> None:
        snap = VehicleSnapshot.from_response({"state": "online"})

        assert snap == VehicleSnapshot()
        assert snap.position is None

    def test_charging_complete_with_pilot(self) -> None:
        snap = VehicleSnapshot.from_response(
            {
                "charge_state": {
                    "charging_state": "Complete",
                    "charge_port_door_open": True,
                    "charger_pilot_current": 32,
                }
            }
        )
        assert snap.charging_state is ChargingState.COMPLETE
        assert snap.charge_port_open is True
        assert snap.pilot_current == 32.0

    def test_non_numeric_pilot_is_unknown(self) -> None:
        snap = VehicleSnapshot.from_response(
            {"charge_state": {"charger_pilot_current": "unknown"}}
        )
        assert snap.pilot_current is None

    def test_bool_pilot_is_unknown(self) -> None:
        snap = VehicleSnapshot.from_response({"charge_state": {"charger_pilot_current": True}})
        assert snap.pilot_current is None

    def test_not_a_mapping(self) -> None:
        with pytest.raises(DecodeError):
            VehicleSnapshot.from_response(["not", "a", "dict"])

    def test_wrong_section_type(self) -> None:
        with pytest.raises(DecodeError):
            VehicleSnapshot.from_response({"drive_state": "parked"})


class TestShiftState:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("P", ShiftState.PARK),
            ("D", ShiftState.DRIVE),
            ("R", ShiftState.REVERSE),
            ("N", ShiftState.NEUTRAL),
            ("Reverse", ShiftState.REVERSE),
            (None, None),
            ("", None),
            ("SNA", None),
        ],
    )
    def test_parse(self, raw: str | None, expected: ShiftState | None) -> None:
        snap = VehicleSnapshot.from_response({"drive_state": {"shift_state": raw}})
        assert snap.shift_state is expected


class TestChargingState:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Charging", ChargingState.CHARGING),
            ("Complete", ChargingState.COMPLETE),
            ("Stopped", ChargingState.OTHER),
            ("Disconnected", ChargingState.OTHER),
            (None, ChargingState.OTHER),
        ],
    )
    def test_parse(self, raw: str | None, expected: ChargingState) -> None:
        snap = VehicleSnapshot.from_response({"charge_state": {"charging_state": raw}})
        assert snap.charging_state is expected
