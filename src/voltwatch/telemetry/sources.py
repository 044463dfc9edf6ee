"""Side-channel pollers feeding the shared metric registry.

Each poller runs on a fixed interval until shutdown. A failed poll is
logged and retried on the next tick; it never ends the poller.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol

import httpx

from voltwatch._internal.async_utils import wait_or_shutdown
from voltwatch.api.errors import DecodeError, RemoteCallError
from voltwatch.models.chargepoint import CHARGING_FULLY_CHARGED
from voltwatch.monitor.automation import ChargingNetwork, stop_active_sessions
from voltwatch.telemetry.normalizer import flatten

if TYPE_CHECKING:
    import asyncio

    from voltwatch.models.chargepoint import ChargingSession
    from voltwatch.telemetry.metrics import MetricRegistry

logger = logging.getLogger(__name__)


class PeriodicPoller(ABC):
    """Base class: call :meth:`poll_once` every ``interval`` seconds."""

    name = "poller"

    def __init__(self, interval: float) -> None:
        self._interval = interval
        self._poll_count = 0
        self._error_count = 0

    @property
    def poll_count(self) -> int:
        return self._poll_count

    @property
    def error_count(self) -> int:
        return self._error_count

    @abstractmethod
    async def poll_once(self) -> None: ...

    async def run(self, shutdown_event: asyncio.Event) -> None:
        logger.info("%s poller started (every %.0fs)", self.name, self._interval)
        while True:
            self._poll_count += 1
            try:
                await self.poll_once()
            except Exception:
                self._error_count += 1
                logger.warning("%s poll failed", self.name, exc_info=True)
            if await wait_or_shutdown(shutdown_event, self._interval):
                break
        logger.info("%s poller stopped", self.name)


class CarServerSource(PeriodicPoller):
    """Polls the in-car diagnostics server and records its vitals."""

    name = "carserver"

    def __init__(
        self,
        url: str,
        metrics: MetricRegistry,
        interval: float,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(interval)
        self._url = url
        self._metrics = metrics
        self._client = client or httpx.AsyncClient(timeout=10.0)

    async def poll_once(self) -> None:
        try:
            resp = await self._client.get(self._url)
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"GET {self._url} failed: {exc}") from exc
        if resp.status_code != 200:
            raise RemoteCallError(
                f"GET {self._url}: HTTP {resp.status_code}", status_code=resp.status_code
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise DecodeError(f"GET {self._url}: response is not JSON") from exc
        written = self._metrics.update(flatten(self.name, body))
        logger.debug("carserver: updated %d metrics", written)

    async def close(self) -> None:
        await self._client.aclose()


class SessionHistory(ChargingNetwork, Protocol):
    async def get_sessions(self) -> list[ChargingSession]: ...


class ChargePointStatsSource(PeriodicPoller):
    """Publishes ChargePoint session statistics.

    Also stops the live session once the latest one reports
    ``fully_charged``; a failed stop is logged like any other poll error.
    """

    name = "chargepoint"

    def __init__(self, network: SessionHistory, metrics: MetricRegistry, interval: float) -> None:
        super().__init__(interval)
        self._network = network
        self._metrics = metrics

    async def poll_once(self) -> None:
        sessions = await self._network.get_sessions()

        if sessions:
            latest = sessions[-1]
            self._metrics.set("chargepoint:latest:total_amount", latest.total_amount)
            self._metrics.set("chargepoint:latest:miles_added", latest.miles_added)
            self._metrics.set("chargepoint:latest:energy_kwh", latest.energy_kwh)
            self._metrics.set("chargepoint:latest:power_kw", latest.power_kw)
            self._metrics.set("chargepoint:latest:latitude", latest.lat)
            self._metrics.set("chargepoint:latest:longitude", latest.lon)

        self._metrics.set("chargepoint:total_amount", sum(s.total_amount for s in sessions))
        self._metrics.set("chargepoint:miles_added", sum(s.miles_added for s in sessions))
        self._metrics.set("chargepoint:energy_kwh", sum(s.energy_kwh for s in sessions))

        if sessions and sessions[-1].current_charging == CHARGING_FULLY_CHARGED:
            logger.info("chargepoint: latest session fully charged, stopping")
            await stop_active_sessions(self._network)
