"""Pydantic models for the ChargePoint account and map-prod APIs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

_EXTRA_ALLOW = ConfigDict(extra="allow", populate_by_name=True)

# current_charging values reported for a session
CHARGING_DONE = "done"
CHARGING_FULLY_CHARGED = "fully_charged"


class Station(BaseModel):
    model_config = _EXTRA_ALLOW

    device_id: int = Field(alias="deviceId")
    lat: float | None = None
    lon: float | None = None
    name: str = ""


class ChargingStatus(BaseModel):
    model_config = _EXTRA_ALLOW

    session_id: int = Field(default=0, alias="sessionId")
    state: str = ""
    start_time_utc: int | None = Field(default=None, alias="startTimeUTC")
    current_time_utc: int | None = Field(default=None, alias="currentTimeUTC")
    stations: list[Station] = Field(default_factory=list)


class UserStatus(BaseModel):
    """Live status of the account, including the active charging session."""

    model_config = _EXTRA_ALLOW

    charging: ChargingStatus = Field(default_factory=ChargingStatus)


class ChargingSession(BaseModel):
    """One historical session from ``charging_activity_monthly``."""

    model_config = _EXTRA_ALLOW

    session_id: int = 0
    device_id: int | None = None
    device_name: str = ""
    start_time: int = 0
    end_time: int | None = None
    current_charging: str = ""
    total_amount: float = 0.0
    miles_added: float = 0.0
    energy_kwh: float = 0.0
    power_kw: float = 0.0
    lat: float = 0.0
    lon: float = 0.0


class StartSessionResponse(BaseModel):
    model_config = _EXTRA_ALLOW

    ack_id: int = Field(alias="ackId")
    purpose_finalized: bool = Field(default=False, alias="purposeFinalized")


class SessionAckResponse(BaseModel):
    model_config = _EXTRA_ALLOW

    session_id: int = Field(alias="sessionId")
