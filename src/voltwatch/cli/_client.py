"""Shared helpers for building API clients and the supervisor from settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from voltwatch._internal.retry import RetryPolicy
from voltwatch.api.chargepoint import ChargePointClient
from voltwatch.api.client import TeslaFleetClient
from voltwatch.api.errors import ConfigError
from voltwatch.api.vehicle import VehicleAPI
from voltwatch.chargers.registry import ChargerRegistry
from voltwatch.monitor.scheduler import PollScheduler
from voltwatch.monitor.supervisor import Supervisor
from voltwatch.telemetry.metrics import MetricRegistry
from voltwatch.telemetry.server import MetricsServer
from voltwatch.telemetry.sources import CarServerSource, ChargePointStatsSource, PeriodicPoller

if TYPE_CHECKING:
    import asyncio

    from voltwatch.models.config import AppSettings

logger = logging.getLogger(__name__)


def get_retry_policy(settings: AppSettings) -> RetryPolicy:
    return RetryPolicy(
        max_elapsed=settings.retry_max_elapsed_seconds,
        attempt_timeout=settings.request_timeout_seconds,
    )


def get_tesla_client(settings: AppSettings) -> TeslaFleetClient:
    """Build an authenticated :class:`TeslaFleetClient` or raise :class:`ConfigError`."""
    token = settings.resolve_tesla_token()
    if not token:
        raise ConfigError(
            "No Tesla access token found. Set VOLTWATCH_TESLA_ACCESS_TOKEN "
            "or VOLTWATCH_TESLA_TOKEN_JSON."
        )
    return TeslaFleetClient(
        access_token=token,
        region=settings.tesla_region,
        base_url=settings.tesla_base_url,
        timeout=settings.request_timeout_seconds,
    )


def get_vehicle_api(settings: AppSettings) -> tuple[TeslaFleetClient, VehicleAPI]:
    client = get_tesla_client(settings)
    return client, VehicleAPI(client)


def get_chargepoint(settings: AppSettings) -> ChargePointClient | None:
    if not settings.chargepoint_token:
        return None
    return ChargePointClient(
        settings.chargepoint_token,
        ack_policy=get_retry_policy(settings),
        timeout=settings.request_timeout_seconds,
    )


def get_charger_registry(settings: AppSettings) -> ChargerRegistry:
    return ChargerRegistry(c.to_charger() for c in settings.chargers)


def get_scheduler(settings: AppSettings) -> PollScheduler:
    return PollScheduler(
        active_seconds=settings.active_poll_seconds,
        drive_seconds=settings.drive_poll_seconds,
        standby_seconds=settings.standby_poll_seconds,
    )


class Runtime:
    """Everything ``serve`` wires together, plus the clients it must close."""

    def __init__(self, settings: AppSettings, shutdown_event: asyncio.Event) -> None:
        self.metrics = MetricRegistry()

        self.tesla: TeslaFleetClient | None = None
        vehicle_api: VehicleAPI | None = None
        try:
            self.tesla, vehicle_api = get_vehicle_api(settings)
        except ConfigError as exc:
            logger.warning("Vehicle monitoring disabled: %s", exc)

        self.chargepoint = get_chargepoint(settings)
        if self.chargepoint is None:
            logger.warning("No ChargePoint token configured, charging automation is log-only")

        pollers: list[PeriodicPoller] = []
        self.carserver: CarServerSource | None = None
        if settings.carserver_url:
            self.carserver = CarServerSource(
                settings.carserver_url, self.metrics, settings.carserver_poll_seconds
            )
            pollers.append(self.carserver)
        if self.chargepoint is not None:
            pollers.append(
                ChargePointStatsSource(
                    self.chargepoint, self.metrics, settings.chargepoint_poll_seconds
                )
            )

        host, port = settings.bind_address()
        self.server = MetricsServer(
            self.metrics,
            host,
            port,
            path=settings.metrics_path,
            grace_seconds=settings.shutdown_grace_seconds,
        )
        self.supervisor = Supervisor(
            self.metrics,
            vehicles=vehicle_api,
            network=self.chargepoint,
            server=self.server,
            pollers=pollers,
            chargers=get_charger_registry(settings),
            scheduler=get_scheduler(settings),
            retry=get_retry_policy(settings),
            threshold_m=settings.charger_threshold_m,
            shutdown_event=shutdown_event,
        )

    async def close(self) -> None:
        if self.tesla is not None:
            await self.tesla.close()
        if self.chargepoint is not None:
            await self.chargepoint.close()
        if self.carserver is not None:
            await self.carserver.close()
