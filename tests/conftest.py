"""Shared fixtures for the voltwatch test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import pytest
import pytest_asyncio

from voltwatch._internal.retry import RetryPolicy
from voltwatch.api.client import TeslaFleetClient

VIN = "5YJ3E1EA1NF000001"

# The one charger in the default registry.
HOME_LAT = 47.630007
HOME_LON = -122.133969
HOME_DEVICE_ID = 1947511


async def _no_sleep(_: float) -> None:
    return None


@pytest_asyncio.fixture()
async def mock_client() -> AsyncIterator[TeslaFleetClient]:
    client = TeslaFleetClient(access_token="test-token-123", region="na")
    yield client
    await client.close()


@pytest.fixture()
def fast_retry() -> RetryPolicy:
    """A retry policy that never sleeps and gives up after a handful of attempts."""
    return RetryPolicy(randomization_factor=0.0, max_elapsed=5.0, sleep=_no_sleep)


@pytest.fixture()
def sample_vehicle_list_response() -> dict[str, Any]:
    return {
        "response": [
            {
                "id": 123456789,
                "vehicle_id": 987654321,
                "vin": VIN,
                "display_name": "My Model 3",
                "state": "online",
            }
        ],
        "count": 1,
    }


@pytest.fixture()
def sample_vehicle_data() -> dict[str, Any]:
    """Raw ``vehicle_data`` response mapping: parked, locked, at home, port closed."""
    return {
        "vin": VIN,
        "display_name": "My Model 3",
        "state": "online",
        "charge_state": {
            "battery_level": 72,
            "battery_range": 215.5,
            "charging_state": "Disconnected",
            "charge_port_door_open": False,
            "charger_pilot_current": None,
            "charger_voltage": 0,
        },
        "climate_state": {
            "inside_temp": 21.5,
            "outside_temp": 12.0,
            "is_climate_on": False,
        },
        "drive_state": {
            "latitude": HOME_LAT,
            "longitude": HOME_LON,
            "heading": 180,
            "speed": None,
            "shift_state": None,
        },
        "vehicle_state": {
            "locked": True,
            "odometer": 15234.5,
            "sentry_mode": False,
            "car_version": "2024.8.7",
        },
    }


@pytest.fixture()
def sample_vehicle_data_response(sample_vehicle_data: dict[str, Any]) -> dict[str, Any]:
    return {"response": sample_vehicle_data}
