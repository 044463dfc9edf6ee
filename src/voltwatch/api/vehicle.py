"""High-level Vehicle API built on top of TeslaFleetClient."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from voltwatch.api.errors import DecodeError
from voltwatch.models.vehicle import Vehicle, VehicleData

if TYPE_CHECKING:
    from voltwatch.api.client import TeslaFleetClient


class VehicleAPI:
    """Vehicle-related API operations (composition over TeslaFleetClient)."""

    def __init__(self, client: TeslaFleetClient) -> None:
        self._client = client

    async def list_vehicles(self) -> list[Vehicle]:
        """Return all vehicles associated with the account."""
        data = await self._client.get("/api/1/vehicles")
        raw_list: list[dict[str, object]] = data.get("response") or []
        try:
            return [Vehicle.model_validate(v) for v in raw_list]
        except ValidationError as exc:
            raise DecodeError(f"Unexpected vehicle list shape: {exc}") from exc

    async def fetch_raw_vehicle_data(self, vin: str) -> dict[str, Any]:
        """Return the unparsed ``response`` mapping of ``vehicle_data``."""
        data = await self._client.get(f"/api/1/vehicles/{vin}/vehicle_data")
        response = data.get("response")
        if not isinstance(response, dict):
            raise DecodeError(f"vehicle_data for {vin} has no response object")
        return response

    async def get_vehicle_data(self, vin: str) -> VehicleData:
        """Fetch full vehicle data as a typed model."""
        raw = await self.fetch_raw_vehicle_data(vin)
        try:
            return VehicleData.model_validate(raw)
        except ValidationError as exc:
            raise DecodeError(f"Unexpected vehicle_data shape: {exc}") from exc
