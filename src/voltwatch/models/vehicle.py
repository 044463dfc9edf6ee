from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from voltwatch.api.errors import DecodeError

logger = logging.getLogger(__name__)

_EXTRA_ALLOW = ConfigDict(extra="allow")


class Vehicle(BaseModel):
    model_config = _EXTRA_ALLOW

    vin: str
    id: int | None = None
    display_name: str | None = None
    state: str = "unknown"
    vehicle_id: int | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.vin


class DriveState(BaseModel):
    model_config = _EXTRA_ALLOW

    latitude: float | None = None
    longitude: float | None = None
    heading: int | None = None
    speed: int | None = None
    power: int | None = None
    shift_state: str | None = None


class ChargeState(BaseModel):
    model_config = _EXTRA_ALLOW

    battery_level: int | None = None
    battery_range: float | None = None
    charging_state: str | None = None
    charge_port_door_open: bool | None = None
    charger_pilot_current: Any = None
    charger_actual_current: int | None = None
    charger_voltage: int | None = None
    charger_power: int | None = None


class ClimateState(BaseModel):
    model_config = _EXTRA_ALLOW

    inside_temp: float | None = None
    outside_temp: float | None = None
    is_climate_on: bool | None = None
    is_auto_conditioning_on: bool | None = None


class VehicleState(BaseModel):
    model_config = _EXTRA_ALLOW

    locked: bool | None = None
    odometer: float | None = None
    sentry_mode: bool | None = None
    car_version: str | None = None


class VehicleData(BaseModel):
    model_config = _EXTRA_ALLOW

    vin: str | None = None
    display_name: str | None = None
    state: str = "unknown"
    vehicle_id: int | None = None
    charge_state: ChargeState | None = None
    climate_state: ClimateState | None = None
    drive_state: DriveState | None = None
    vehicle_state: VehicleState | None = None


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class ShiftState(StrEnum):
    PARK = "P"
    DRIVE = "D"
    REVERSE = "R"
    NEUTRAL = "N"


_SHIFT_ALIASES: dict[str, ShiftState] = {
    "P": ShiftState.PARK,
    "Park": ShiftState.PARK,
    "D": ShiftState.DRIVE,
    "Drive": ShiftState.DRIVE,
    "R": ShiftState.REVERSE,
    "Reverse": ShiftState.REVERSE,
    "N": ShiftState.NEUTRAL,
    "Neutral": ShiftState.NEUTRAL,
}


class ChargingState(StrEnum):
    CHARGING = "Charging"
    COMPLETE = "Complete"
    OTHER = "Other"


def _parse_shift(value: str | None) -> ShiftState | None:
    if not value:
        return None
    shift = _SHIFT_ALIASES.get(value)
    if shift is None:
        logger.debug("Unrecognised shift_state %r, treating as unknown", value)
    return shift


def _parse_charging(value: str | None) -> ChargingState:
    if value == ChargingState.CHARGING.value:
        return ChargingState.CHARGING
    if value == ChargingState.COMPLETE.value:
        return ChargingState.COMPLETE
    return ChargingState.OTHER


def _numeric(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


@dataclass(frozen=True, slots=True)
class VehicleSnapshot:
    """One successful poll of a vehicle, reduced to the fields the monitor acts on."""

    locked: bool = False
    shift_state: ShiftState | None = None
    charge_port_open: bool = False
    charging_state: ChargingState = ChargingState.OTHER
    pilot_current: float | None = None
    climate_on: bool = False
    latitude: float | None = None
    longitude: float | None = None

    @property
    def position(self) -> tuple[float, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    @classmethod
    def from_vehicle_data(cls, data: VehicleData) -> VehicleSnapshot:
        cs = data.charge_state or ChargeState()
        ds = data.drive_state or DriveState()
        vs = data.vehicle_state or VehicleState()
        cl = data.climate_state or ClimateState()
        return cls(
            locked=bool(vs.locked),
            shift_state=_parse_shift(ds.shift_state),
            charge_port_open=bool(cs.charge_port_door_open),
            charging_state=_parse_charging(cs.charging_state),
            pilot_current=_numeric(cs.charger_pilot_current),
            climate_on=bool(cl.is_climate_on),
            latitude=ds.latitude,
            longitude=ds.longitude,
        )

    @classmethod
    def from_response(cls, raw: Any) -> VehicleSnapshot:
        """Build a snapshot from the raw ``vehicle_data`` response mapping.

        Raises :class:`DecodeError` when the payload does not fit the
        expected shape.
        """
        if not isinstance(raw, dict):
            raise DecodeError(f"vehicle_data response is {type(raw).__name__}, expected object")
        try:
            data = VehicleData.model_validate(raw)
        except ValidationError as exc:
            raise DecodeError(f"Unexpected vehicle_data shape: {exc}") from exc
        return cls.from_vehicle_data(data)
