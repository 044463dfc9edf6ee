"""Per-vehicle monitoring loop: fetch, record, decide, wait, repeat."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from voltwatch._internal.async_utils import wait_or_shutdown
from voltwatch.models.vehicle import VehicleSnapshot
from voltwatch.telemetry.normalizer import flatten

if TYPE_CHECKING:
    import asyncio

    from voltwatch._internal.retry import RetryPolicy
    from voltwatch.models.vehicle import Vehicle
    from voltwatch.monitor.automation import ChargingAutomation
    from voltwatch.monitor.scheduler import PollScheduler
    from voltwatch.telemetry.metrics import MetricRegistry

logger = logging.getLogger(__name__)

METRIC_PREFIX = "tesla"


def charging_metric(vin: str) -> str:
    """Gauge holding the charging-in-progress flag (1/0) for *vin*."""
    return f"{METRIC_PREFIX}:{vin}:charging"


class VehicleSource(Protocol):
    async def fetch_raw_vehicle_data(self, vin: str) -> dict[str, Any]: ...


class VehicleMonitor:
    """Polls one vehicle until shutdown. Polls never overlap."""

    def __init__(
        self,
        vehicle: Vehicle,
        source: VehicleSource,
        metrics: MetricRegistry,
        automation: ChargingAutomation,
        scheduler: PollScheduler,
        retry: RetryPolicy,
        shutdown_event: asyncio.Event,
    ) -> None:
        self._vehicle = vehicle
        self._source = source
        self._metrics = metrics
        self._automation = automation
        self._scheduler = scheduler
        self._retry = retry
        self._shutdown = shutdown_event
        self._poll_count = 0

    @property
    def vin(self) -> str:
        return self._vehicle.vin

    @property
    def poll_count(self) -> int:
        return self._poll_count

    async def poll_once(self) -> VehicleSnapshot:
        """Fetch one snapshot, publish its metrics and run the automation rules."""
        vin = self._vehicle.vin

        async def _fetch() -> dict[str, Any]:
            logger.info("Polling %s (%s)", self._vehicle.label, vin)
            return await self._source.fetch_raw_vehicle_data(vin)

        raw = await self._retry.call(_fetch, description=f"vehicle_data {vin}")
        self._poll_count += 1

        written = self._metrics.update(flatten(METRIC_PREFIX, raw))
        logger.info("%s: updated %d metrics", vin, written)

        snapshot = VehicleSnapshot.from_response(raw)
        await self._automation.observe(snapshot)
        self._metrics.set(charging_metric(vin), 1.0 if self._automation.is_charging else 0.0)
        return snapshot

    async def run(self) -> None:
        """Loop until the shared shutdown event fires. Errors propagate."""
        while not self._shutdown.is_set():
            snapshot = await self.poll_once()
            delay = self._scheduler.next_delay(snapshot)
            logger.debug(
                "%s: next poll in %.0fs (%s)", self.vin, delay, self._scheduler.mode(snapshot)
            )
            if await wait_or_shutdown(self._shutdown, delay):
                break
        logger.info("%s: monitor stopped after %d polls", self.vin, self._poll_count)
