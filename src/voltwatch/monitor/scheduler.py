"""Pick the next poll delay from how active the vehicle looks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from voltwatch.models.vehicle import ShiftState

if TYPE_CHECKING:
    from voltwatch.models.vehicle import VehicleSnapshot


class PollMode(StrEnum):
    ACTIVE = "active"
    DRIVE = "drive"
    STANDBY = "standby"


# Someone is at the car: unlocked, not driving forward, port closed.
_ACTIVE_SHIFTS: frozenset[ShiftState | None] = frozenset(
    {None, ShiftState.PARK, ShiftState.REVERSE}
)
_DRIVE_SHIFTS: frozenset[ShiftState | None] = frozenset(
    {ShiftState.DRIVE, ShiftState.REVERSE, ShiftState.NEUTRAL}
)


@dataclass(frozen=True)
class PollScheduler:
    """Three fixed intervals, chosen first-match: active, drive, standby."""

    active_seconds: float = 5.0
    drive_seconds: float = 15.0
    standby_seconds: float = 60.0

    def mode(self, snapshot: VehicleSnapshot) -> PollMode:
        # Presence is checked before driving; reverse appears in both sets.
        if (
            not snapshot.locked
            and snapshot.shift_state in _ACTIVE_SHIFTS
            and not snapshot.charge_port_open
        ):
            return PollMode.ACTIVE
        if snapshot.shift_state in _DRIVE_SHIFTS or snapshot.climate_on:
            return PollMode.DRIVE
        return PollMode.STANDBY

    def next_delay(self, snapshot: VehicleSnapshot) -> float:
        mode = self.mode(snapshot)
        if mode is PollMode.ACTIVE:
            return self.active_seconds
        if mode is PollMode.DRIVE:
            return self.drive_seconds
        return self.standby_seconds
