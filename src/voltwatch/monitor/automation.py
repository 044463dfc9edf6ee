"""Edge-triggered charging automation driven by consecutive vehicle snapshots.

Two rules run after every successful poll:

* **start**: the charge port went from closed to open and the car is parked
  within the geofence of a known charger, so a ChargePoint session is
  started there. Fires once per opening.
* **stop**: the car reports ``Complete`` while pilot current is still above
  1 A. ChargePoint keeps billing in this state, so every active station in
  the live session is stopped. Re-checked on every poll while it holds.

Remote failures propagate to the owning monitor loop.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Protocol

from voltwatch.chargers.registry import DEFAULT_THRESHOLD_M
from voltwatch.models.vehicle import ChargingState

if TYPE_CHECKING:
    from voltwatch.chargers.registry import Charger, ChargerRegistry
    from voltwatch.models.chargepoint import UserStatus
    from voltwatch.models.vehicle import VehicleSnapshot

logger = logging.getLogger(__name__)

# Pilot current (A) above which a "Complete" car is still drawing power.
STOP_PILOT_CURRENT_A = 1.0


class ChargingNetwork(Protocol):
    """The subset of :class:`~voltwatch.api.chargepoint.ChargePointClient` used here."""

    async def start_session(self, device_id: int) -> int: ...

    async def stop_session(self, session_id: int, device_id: int) -> None: ...

    async def user_status(self) -> UserStatus: ...


class ChargingStatus:
    """Per-vehicle "charging in progress" flags, shared across monitor loops."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._charging: dict[str, bool] = {}

    def set(self, vin: str, charging: bool) -> None:
        with self._lock:
            self._charging[vin] = charging

    def is_charging(self, vin: str) -> bool:
        with self._lock:
            return self._charging.get(vin, False)


async def stop_active_sessions(network: ChargingNetwork) -> int:
    """Stop every station in the account's live charging session.

    Returns the number of stop calls issued. The first failure propagates.
    """
    status = await network.user_status()
    charging = status.charging
    logger.info(
        "ChargePoint user status: session=%d state=%s stations=%s",
        charging.session_id,
        charging.state or "-",
        [s.device_id for s in charging.stations],
    )
    for station in charging.stations:
        await network.stop_session(charging.session_id, station.device_id)
    return len(charging.stations)


class ChargingAutomation:
    """Charging automation for one vehicle.

    Holds the previous snapshot privately; only the shared
    :class:`ChargingStatus` is visible to other loops.
    """

    def __init__(
        self,
        vin: str,
        chargers: ChargerRegistry,
        network: ChargingNetwork | None,
        status: ChargingStatus,
        *,
        threshold_m: float = DEFAULT_THRESHOLD_M,
    ) -> None:
        self._vin = vin
        self._chargers = chargers
        self._network = network
        self._status = status
        self._threshold_m = threshold_m
        self._previous: VehicleSnapshot | None = None

    @property
    def previous(self) -> VehicleSnapshot | None:
        return self._previous

    @property
    def is_charging(self) -> bool:
        return self._status.is_charging(self._vin)

    async def observe(self, current: VehicleSnapshot) -> None:
        """Evaluate both rules against *current*, then make it the previous snapshot."""
        if should_stop(current):
            await self.stop_charging()

        previous = self._previous
        if previous is not None and not previous.charge_port_open and current.charge_port_open:
            await self.start_nearby_charging(current)

        self._status.set(self._vin, current.charging_state is ChargingState.CHARGING)
        self._previous = current

    async def start_nearby_charging(self, snapshot: VehicleSnapshot) -> Charger | None:
        """Start a session on the charger the vehicle is parked at, if any."""
        position = snapshot.position
        if position is None:
            logger.info("%s: charge port opened but position is unknown", self._vin)
            return None

        charger = self._chargers.nearest_within(*position, threshold_m=self._threshold_m)
        if charger is None:
            logger.info(
                "%s: charge port opened at %.6f, %.6f, no known charger within %.0fm",
                self._vin,
                position[0],
                position[1],
                self._threshold_m,
            )
            return None

        if self._network is None:
            logger.warning(
                "%s: at charger %d but no ChargePoint token is configured",
                self._vin,
                charger.device_id,
            )
            return None

        logger.info("%s: starting charging on device %d", self._vin, charger.device_id)
        await self._network.start_session(charger.device_id)
        return charger

    async def stop_charging(self) -> int:
        if self._network is None:
            logger.warning("%s: charge complete but no ChargePoint token is configured", self._vin)
            return 0
        logger.info("%s: charge complete with pilot current flowing, stopping", self._vin)
        return await stop_active_sessions(self._network)


def should_stop(snapshot: VehicleSnapshot) -> bool:
    return (
        snapshot.charging_state is ChargingState.COMPLETE
        and snapshot.pilot_current is not None
        and snapshot.pilot_current > STOP_PILOT_CURRENT_A
    )
