"""CLI commands for one-off vehicle queries (list, snapshot)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from voltwatch._internal.async_utils import run_async
from voltwatch.cli._client import get_scheduler, get_vehicle_api
from voltwatch.models.config import AppSettings
from voltwatch.models.vehicle import VehicleSnapshot
from voltwatch.monitor.vehicle import METRIC_PREFIX
from voltwatch.telemetry.normalizer import flatten

if TYPE_CHECKING:
    from voltwatch.cli.main import AppContext


@click.command("vehicles")
@click.pass_obj
def vehicles_cmd(app_ctx: AppContext) -> None:
    """List vehicles on the account."""
    run_async(_vehicles(app_ctx))


async def _vehicles(app_ctx: AppContext) -> None:
    formatter = app_ctx.formatter
    client, api = get_vehicle_api(AppSettings())
    try:
        vehicles = await api.list_vehicles()
    finally:
        await client.close()

    if formatter.format == "json":
        formatter.output(vehicles, command="vehicles")
    else:
        formatter.rich.vehicle_list(vehicles)


@click.command("snapshot")
@click.argument("vin")
@click.pass_obj
def snapshot_cmd(app_ctx: AppContext, vin: str) -> None:
    """Poll VIN once and show what the monitor would see."""
    run_async(_snapshot(app_ctx, vin))


async def _snapshot(app_ctx: AppContext, vin: str) -> None:
    formatter = app_ctx.formatter
    settings = AppSettings()
    client, api = get_vehicle_api(settings)
    try:
        raw = await api.fetch_raw_vehicle_data(vin)
    finally:
        await client.close()

    snapshot = VehicleSnapshot.from_response(raw)
    scheduler = get_scheduler(settings)
    mode = scheduler.mode(snapshot)
    delay = scheduler.next_delay(snapshot)
    metrics = flatten(METRIC_PREFIX, raw)

    if formatter.format == "json":
        formatter.output(
            {
                "vin": vin,
                "snapshot": snapshot,
                "poll_mode": mode,
                "next_poll_seconds": delay,
                "metrics": metrics.values,
            },
            command="snapshot",
        )
        return

    formatter.rich.snapshot(vin, snapshot, mode.value, delay)
    formatter.rich.metrics(metrics.values)
