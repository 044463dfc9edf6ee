from __future__ import annotations

from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from rich.console import Console

    from voltwatch.chargers.registry import Charger
    from voltwatch.models.vehicle import Vehicle, VehicleSnapshot


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"


class RichOutput:
    """Rich-based terminal output helpers for *voltwatch*."""

    def __init__(self, console: Console) -> None:
        self._con = console

    def vehicle_list(self, vehicles: Sequence[Vehicle]) -> None:
        table = Table(title="Vehicles")
        table.add_column("VIN", style="cyan")
        table.add_column("Name")
        table.add_column("State")

        for v in vehicles:
            state_style = "green" if v.state == "online" else "yellow"
            table.add_row(v.vin, v.display_name or "", f"[{state_style}]{v.state}[/{state_style}]")

        self._con.print(table)

    def snapshot(self, vin: str, snap: VehicleSnapshot, mode: str, delay: float) -> None:
        """Print the fields the monitor acts on, plus the poll interval it would pick."""
        self._con.print(Panel(f"[bold]{vin}[/bold]", expand=False))
        table = Table(title="Snapshot")
        table.add_column("Field", style="bold")
        table.add_column("Value")

        table.add_row("Locked", _yes_no(snap.locked))
        table.add_row("Shift", snap.shift_state.value if snap.shift_state else "-")
        table.add_row("Charge port open", _yes_no(snap.charge_port_open))
        table.add_row("Charging state", snap.charging_state.value)
        table.add_row(
            "Pilot current", f"{snap.pilot_current:g} A" if snap.pilot_current is not None else "-"
        )
        table.add_row("Climate", _yes_no(snap.climate_on))
        if snap.position is not None:
            table.add_row("Coordinates", f"{snap.position[0]}, {snap.position[1]}")
        table.add_row("Next poll", f"{delay:g}s ({mode})")

        self._con.print(table)

    def metrics(self, values: Mapping[str, float]) -> None:
        table = Table(title=f"Metrics ({len(values)})")
        table.add_column("Name", style="cyan")
        table.add_column("Value", justify="right")
        for name in sorted(values):
            table.add_row(name, f"{values[name]:g}")
        self._con.print(table)

    def charger_list(
        self,
        chargers: Sequence[Charger],
        distances: Mapping[int, float] | None = None,
        threshold_m: float | None = None,
    ) -> None:
        table = Table(title="Chargers")
        table.add_column("Device", style="cyan", justify="right")
        table.add_column("Name")
        table.add_column("Coordinates")
        if distances is not None:
            table.add_column("Distance", justify="right")
            table.add_column("In range")

        for c in chargers:
            row = [str(c.device_id), c.name, f"{c.latitude}, {c.longitude}"]
            if distances is not None:
                dist = distances[c.device_id]
                row.append(f"{dist:.1f} m")
                row.append(_yes_no(threshold_m is not None and dist < threshold_m))
            table.add_row(*row)

        self._con.print(table)

    def error(self, message: str) -> None:
        """Print a bold red error line."""
        self._con.print(f"[bold red]Error:[/bold red] {message}")

    def info(self, message: str) -> None:
        """Print an informational message (plain)."""
        self._con.print(message)
