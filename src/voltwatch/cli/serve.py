"""``voltwatch serve``: run the monitor, automation, and metrics listener."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import TYPE_CHECKING

import click

from voltwatch._internal.async_utils import run_async
from voltwatch.models.config import AppSettings

if TYPE_CHECKING:
    from voltwatch.cli.main import AppContext

logger = logging.getLogger(__name__)


@click.command("serve")
@click.option("--bind", default=None, help="Metrics listener address, [host]:port (default :2112)")
@click.option("--standby-poll", type=float, default=None, help="Standby poll interval (s)")
@click.option("--drive-poll", type=float, default=None, help="Drive poll interval (s)")
@click.option("--active-poll", type=float, default=None, help="Active poll interval (s)")
@click.pass_obj
def serve_cmd(
    app_ctx: AppContext,
    bind: str | None,
    standby_poll: float | None,
    drive_poll: float | None,
    active_poll: float | None,
) -> None:
    """Poll every vehicle, automate charging, and serve Prometheus metrics."""
    overrides = {
        "bind": bind,
        "standby_poll_seconds": standby_poll,
        "drive_poll_seconds": drive_poll,
        "active_poll_seconds": active_poll,
    }
    settings = AppSettings(**{k: v for k, v in overrides.items() if v is not None})
    run_async(_serve(settings))


async def _serve(settings: AppSettings) -> None:
    from voltwatch.cli._client import Runtime

    shutdown_event = asyncio.Event()

    def _handle_signal(signame: str) -> None:
        logger.info("%s received, shutting down gracefully", signame)
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Windows has no loop.add_signal_handler
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, _handle_signal, sig.name)

    runtime = Runtime(settings, shutdown_event)
    try:
        await runtime.supervisor.run()
    finally:
        await runtime.close()
        failures = runtime.supervisor.failures
        if failures:
            for vin, exc in failures.items():
                logger.error("Vehicle %s stopped with error: %s", vin, exc)
        logger.info("voltwatch stopped")
