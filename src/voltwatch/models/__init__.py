from __future__ import annotations

from voltwatch.models.chargepoint import (
    ChargingSession,
    ChargingStatus,
    SessionAckResponse,
    StartSessionResponse,
    Station,
    UserStatus,
)
from voltwatch.models.config import AppSettings, ChargerConfig
from voltwatch.models.vehicle import (
    ChargeState,
    ChargingState,
    ClimateState,
    DriveState,
    ShiftState,
    Vehicle,
    VehicleData,
    VehicleSnapshot,
    VehicleState,
)

__all__ = [
    # chargepoint
    "ChargingSession",
    "ChargingStatus",
    "SessionAckResponse",
    "StartSessionResponse",
    "Station",
    "UserStatus",
    # config
    "AppSettings",
    "ChargerConfig",
    # vehicle
    "ChargeState",
    "ChargingState",
    "ClimateState",
    "DriveState",
    "ShiftState",
    "Vehicle",
    "VehicleData",
    "VehicleSnapshot",
    "VehicleState",
]
