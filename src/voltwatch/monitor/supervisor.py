"""Run every monitoring task under one shutdown signal.

Tasks: one loop per vehicle, the metrics listener, and the side-channel
pollers. A vehicle loop that fails is logged and recorded, and the others
keep going. Once every vehicle loop has failed, or any other task fails,
shutdown is signalled, every task winds down at its next wait point, and
the first error is re-raised.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from voltwatch._internal.retry import RetryPolicy
from voltwatch.chargers.registry import DEFAULT_THRESHOLD_M, ChargerRegistry
from voltwatch.monitor.automation import ChargingAutomation, ChargingNetwork, ChargingStatus
from voltwatch.monitor.scheduler import PollScheduler
from voltwatch.monitor.vehicle import VehicleMonitor, VehicleSource

if TYPE_CHECKING:
    from collections.abc import Coroutine, Sequence
    from typing import Any

    from voltwatch.models.vehicle import Vehicle
    from voltwatch.telemetry.metrics import MetricRegistry
    from voltwatch.telemetry.server import MetricsServer
    from voltwatch.telemetry.sources import PeriodicPoller

logger = logging.getLogger(__name__)


class VehicleDirectory(VehicleSource, Protocol):
    async def list_vehicles(self) -> list[Vehicle]: ...


class Supervisor:
    """Owns the shared state and the lifetime of every monitoring task."""

    def __init__(
        self,
        metrics: MetricRegistry,
        *,
        vehicles: VehicleDirectory | None = None,
        network: ChargingNetwork | None = None,
        server: MetricsServer | None = None,
        pollers: Sequence[PeriodicPoller] = (),
        chargers: ChargerRegistry | None = None,
        scheduler: PollScheduler | None = None,
        retry: RetryPolicy | None = None,
        threshold_m: float = DEFAULT_THRESHOLD_M,
        shutdown_event: asyncio.Event | None = None,
    ) -> None:
        self._metrics = metrics
        self._vehicles = vehicles
        self._network = network
        self._server = server
        self._pollers = list(pollers)
        self._chargers = chargers if chargers is not None else ChargerRegistry()
        self._scheduler = scheduler if scheduler is not None else PollScheduler()
        self._retry = retry if retry is not None else RetryPolicy()
        self._threshold_m = threshold_m
        self._shutdown = shutdown_event if shutdown_event is not None else asyncio.Event()
        self._charging = ChargingStatus()
        self._monitors: dict[str, VehicleMonitor] = {}
        self._failures: dict[str, BaseException] = {}

    @property
    def shutdown_event(self) -> asyncio.Event:
        return self._shutdown

    @property
    def charging(self) -> ChargingStatus:
        return self._charging

    @property
    def monitors(self) -> dict[str, VehicleMonitor]:
        return dict(self._monitors)

    @property
    def failures(self) -> dict[str, BaseException]:
        """Errors that ended individual vehicle loops, keyed by VIN."""
        return dict(self._failures)

    def request_shutdown(self) -> None:
        if not self._shutdown.is_set():
            logger.info("Shutdown requested")
        self._shutdown.set()

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    async def discover(self) -> list[Vehicle]:
        assert self._vehicles is not None
        directory = self._vehicles
        vehicles = await self._retry.call(directory.list_vehicles, description="list vehicles")
        logger.info("Discovered %d vehicle(s): %s", len(vehicles), [v.vin for v in vehicles])
        return vehicles

    def build_monitor(self, vehicle: Vehicle) -> VehicleMonitor:
        assert self._vehicles is not None
        automation = ChargingAutomation(
            vehicle.vin,
            self._chargers,
            self._network,
            self._charging,
            threshold_m=self._threshold_m,
        )
        return VehicleMonitor(
            vehicle,
            self._vehicles,
            self._metrics,
            automation,
            self._scheduler,
            self._retry,
            self._shutdown,
        )

    async def _run_vehicles(self, vehicles: Sequence[Vehicle] | None) -> None:
        if vehicles is None:
            vehicles = await self.discover()
        if self._shutdown.is_set():
            return

        for vehicle in vehicles:
            if vehicle.vin in self._monitors:
                logger.warning("Skipping duplicate vehicle %s", vehicle.vin)
                continue
            self._monitors[vehicle.vin] = self.build_monitor(vehicle)

        await asyncio.gather(*(self._watch(m) for m in self._monitors.values()))
        if self._monitors and len(self._failures) == len(self._monitors):
            logger.error("Every vehicle monitor has failed")
            raise next(iter(self._failures.values()))

    async def _watch(self, monitor: VehicleMonitor) -> None:
        try:
            await monitor.run()
        except Exception as exc:
            self._failures[monitor.vin] = exc
            logger.error("Monitor for %s stopped: %s", monitor.vin, exc, exc_info=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self, vehicles: Sequence[Vehicle] | None = None) -> None:
        """Run until shutdown. Re-raises the first fatal task error.

        *vehicles* skips discovery when given.
        """
        named: dict[asyncio.Task[None], str] = {}

        def _spawn(coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task[None]:
            task = asyncio.create_task(coro, name=name)
            named[task] = name
            return task

        listener = None
        if self._server is not None:
            listener = _spawn(self._server.run(self._shutdown), "metrics listener")
        if self._vehicles is not None:
            _spawn(self._run_vehicles(vehicles), "vehicle monitors")
        else:
            logger.warning("No vehicle API configured, vehicle monitoring disabled")
        for poller in self._pollers:
            _spawn(poller.run(self._shutdown), f"{poller.name} poller")

        first_error: BaseException | None = None
        pending = set(named)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    exc = None if task.cancelled() else task.exception()
                    if exc is not None:
                        logger.error("%s failed: %s", named[task], exc, exc_info=exc)
                        if first_error is None:
                            first_error = exc
                        self.request_shutdown()
                    elif task is listener and not self._shutdown.is_set():
                        logger.info("Metrics listener exited, shutting down")
                        self.request_shutdown()
        except asyncio.CancelledError:
            self.request_shutdown()
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            raise

        if first_error is not None:
            raise first_error
