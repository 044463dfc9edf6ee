"""Static registry of known chargers and the geofence match against them."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6_371_000.0
DEFAULT_THRESHOLD_M = 20.0


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two WGS-84 coordinates."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass(frozen=True, slots=True)
class Charger:
    """A ChargePoint station at a fixed location."""

    device_id: int
    latitude: float
    longitude: float
    name: str = ""

    def distance_m(self, latitude: float, longitude: float) -> float:
        return haversine(self.latitude, self.longitude, latitude, longitude)


KNOWN_CHARGERS: tuple[Charger, ...] = (
    Charger(device_id=1947511, latitude=47.630007, longitude=-122.133969, name="home"),
)


class ChargerRegistry:
    """Read-only, ordered collection of :class:`Charger` entries."""

    def __init__(self, chargers: Iterable[Charger] = KNOWN_CHARGERS) -> None:
        self._chargers: tuple[Charger, ...] = tuple(chargers)

    def __iter__(self) -> Iterator[Charger]:
        return iter(self._chargers)

    def __len__(self) -> int:
        return len(self._chargers)

    def nearest_within(
        self,
        latitude: float,
        longitude: float,
        threshold_m: float = DEFAULT_THRESHOLD_M,
    ) -> Charger | None:
        """Return the first charger (in registration order) closer than *threshold_m*.

        Returns ``None`` when no charger is in range.
        """
        for charger in self._chargers:
            distance = charger.distance_m(latitude, longitude)
            if distance < threshold_m:
                logger.debug(
                    "Charger %d is %.1fm away (threshold %.1fm)",
                    charger.device_id,
                    distance,
                    threshold_m,
                )
                return charger
        return None
