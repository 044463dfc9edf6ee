"""Known charger locations and geofence matching."""

from voltwatch.chargers.registry import KNOWN_CHARGERS, Charger, ChargerRegistry, haversine

__all__ = ["KNOWN_CHARGERS", "Charger", "ChargerRegistry", "haversine"]
