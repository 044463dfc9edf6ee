"""``voltwatch chargers``: show the charger registry and geofence distances."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from voltwatch.cli._client import get_charger_registry
from voltwatch.models.config import AppSettings

if TYPE_CHECKING:
    from voltwatch.cli.main import AppContext


@click.command("chargers")
@click.option("--lat", type=float, default=None, help="Latitude to measure from")
@click.option("--lon", type=float, default=None, help="Longitude to measure from")
@click.pass_obj
def chargers_cmd(app_ctx: AppContext, lat: float | None, lon: float | None) -> None:
    """List registered chargers, optionally with distance from a point."""
    if (lat is None) != (lon is None):
        raise click.UsageError("--lat and --lon must be given together")

    formatter = app_ctx.formatter
    settings = AppSettings()
    registry = get_charger_registry(settings)
    chargers = list(registry)
    threshold = settings.charger_threshold_m

    distances: dict[int, float] | None = None
    match = None
    if lat is not None and lon is not None:
        distances = {c.device_id: c.distance_m(lat, lon) for c in chargers}
        match = registry.nearest_within(lat, lon, threshold_m=threshold)

    if formatter.format == "json":
        formatter.output(
            {
                "chargers": chargers,
                "threshold_m": threshold,
                "distances_m": distances,
                "match": match.device_id if match is not None else None,
            },
            command="chargers",
        )
        return

    formatter.rich.charger_list(chargers, distances, threshold)
    if distances is not None:
        if match is None:
            formatter.rich.info(f"No charger within {threshold:g} m")
        else:
            formatter.rich.info(f"[green]Match:[/green] device {match.device_id}")
