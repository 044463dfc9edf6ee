"""HTTP listener exposing the metric registry for Prometheus scraping.

A small Starlette app served by uvicorn. ``/metrics`` (configurable) returns
the text exposition format; ``/healthz`` answers ``ok``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from prometheus_client import CONTENT_TYPE_LATEST
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

if TYPE_CHECKING:
    from starlette.requests import Request

    from voltwatch.telemetry.metrics import MetricRegistry

logger = logging.getLogger(__name__)

DEFAULT_GRACE_SECONDS = 5.0


def build_app(metrics: MetricRegistry, path: str = "/metrics") -> Starlette:
    """Return the ASGI app serving *metrics* at *path*."""

    async def _metrics(request: Request) -> Response:
        return Response(metrics.render(), media_type=CONTENT_TYPE_LATEST)

    async def _health(request: Request) -> Response:
        return PlainTextResponse("ok")

    return Starlette(
        routes=[
            Route(path, _metrics, methods=["GET"]),
            Route("/healthz", _health, methods=["GET"]),
        ]
    )


async def _safe_uvicorn_serve(server: Any, port: int) -> None:
    """Run uvicorn.Server.serve() with SystemExit protection.

    Uvicorn calls ``sys.exit(1)`` when it cannot bind the port.
    ``SystemExit`` is a ``BaseException`` that kills the asyncio event
    loop before the owning task can retrieve the exception.  This
    wrapper converts it to a regular ``OSError``.
    """
    try:
        await server.serve()
    except SystemExit as exc:
        if exc.code == 0:
            logger.debug("Uvicorn exited cleanly (code 0) on port %d", port)
            return
        raise OSError(f"Metrics server failed to start on port {port}") from exc


class MetricsServer:
    """Serves the registry until shutdown, then drains for a bounded grace period."""

    def __init__(
        self,
        metrics: MetricRegistry,
        host: str,
        port: int,
        *,
        path: str = "/metrics",
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
    ) -> None:
        self._app = build_app(metrics, path)
        self._host = host
        self._port = port
        self._path = path
        self._grace = grace_seconds
        self._server: Any = None

    @property
    def app(self) -> Starlette:
        return self._app

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Serve until *shutdown_event* fires or the server stops on its own.

        Bind failures propagate as :class:`OSError`.
        """
        import uvicorn

        config = uvicorn.Config(
            self._app,
            host=self._host,
            port=self._port,
            log_level="warning",
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        serve_task = asyncio.create_task(_safe_uvicorn_serve(self._server, self._port))
        shutdown_waiter = asyncio.create_task(shutdown_event.wait())
        logger.info("Listening on %s:%d%s", self._host, self._port, self._path)

        try:
            await asyncio.wait(
                [serve_task, shutdown_waiter],
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            serve_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await serve_task
            raise
        finally:
            shutdown_waiter.cancel()

        if serve_task.done():
            # Stopped before shutdown was requested: surface the reason.
            serve_task.result()
            logger.info("Metrics server exited")
            return

        await self._drain(serve_task)

    async def _drain(self, serve_task: asyncio.Task[None]) -> None:
        self._server.should_exit = True
        try:
            await asyncio.wait_for(asyncio.shield(serve_task), timeout=self._grace)
        except TimeoutError:
            logger.warning(
                "Metrics server did not stop within %.0fs, forcing shutdown", self._grace
            )
            self._server.force_exit = True
            serve_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await serve_task
        logger.info("Metrics server stopped")
