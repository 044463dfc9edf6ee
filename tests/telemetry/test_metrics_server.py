"""Tests for the Prometheus scrape endpoint and listener lifecycle."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.testclient import TestClient

from voltwatch.telemetry.metrics import MetricRegistry
from voltwatch.telemetry.server import MetricsServer, _safe_uvicorn_serve, build_app


class TestScrapeEndpoint:
    def test_metrics_exposition(self) -> None:
        metrics = MetricRegistry()
        metrics.set("tesla:drive_state:speed", 55)
        client = TestClient(build_app(metrics))

        resp = client.get("/metrics")

        assert resp.status_code == 200
        assert resp.headers["content-type"] == CONTENT_TYPE_LATEST
        assert "tesla:drive_state:speed 55.0" in resp.text

    def test_reflects_later_writes(self) -> None:
        metrics = MetricRegistry()
        client = TestClient(build_app(metrics))
        metrics.set("late:metric", 3)

        assert "late:metric 3.0" in client.get("/metrics").text

    def test_custom_path(self) -> None:
        client = TestClient(build_app(MetricRegistry(), "/prom"))
        assert client.get("/prom").status_code == 200
        assert client.get("/metrics").status_code == 404

    def test_healthz(self) -> None:
        client = TestClient(build_app(MetricRegistry()))
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.text == "ok"


class _FakeServer:
    """Stands in for uvicorn.Server: serves until should_exit is set."""

    def __init__(self, *, ignore_exit: bool = False, fail: bool = False) -> None:
        self.should_exit = False
        self.force_exit = False
        self.unwound = False
        self._ignore_exit = ignore_exit
        self._fail = fail

    async def serve(self) -> None:
        if self._fail:
            raise SystemExit(1)
        try:
            while not self.should_exit or self._ignore_exit:
                await asyncio.sleep(0.01)
        finally:
            self.unwound = True


class TestSafeServe:
    @pytest.mark.asyncio
    async def test_bind_failure_becomes_oserror(self) -> None:
        with pytest.raises(OSError, match="port 2112"):
            await _safe_uvicorn_serve(_FakeServer(fail=True), 2112)

    @pytest.mark.asyncio
    async def test_clean_exit(self) -> None:
        server = MagicMock()

        async def _serve() -> None:
            raise SystemExit(0)

        server.serve = _serve
        await _safe_uvicorn_serve(server, 2112)


class TestMetricsServerLifecycle:
    @pytest.mark.asyncio
    async def test_stops_on_shutdown(self) -> None:
        fake = _FakeServer()
        server = MetricsServer(MetricRegistry(), "127.0.0.1", 0, grace_seconds=1.0)
        shutdown = asyncio.Event()

        with patch("uvicorn.Server", return_value=fake):
            task = asyncio.create_task(server.run(shutdown))
            await asyncio.sleep(0.05)
            shutdown.set()
            await asyncio.wait_for(task, timeout=2.0)

        assert fake.should_exit is True
        assert fake.force_exit is False

    @pytest.mark.asyncio
    async def test_forces_exit_after_grace(self) -> None:
        fake = _FakeServer(ignore_exit=True)
        server = MetricsServer(MetricRegistry(), "127.0.0.1", 0, grace_seconds=0.05)
        shutdown = asyncio.Event()
        shutdown.set()

        with patch("uvicorn.Server", return_value=fake):
            await asyncio.wait_for(server.run(shutdown), timeout=2.0)

        assert fake.force_exit is True

    @pytest.mark.asyncio
    async def test_bind_failure_propagates(self) -> None:
        server = MetricsServer(MetricRegistry(), "127.0.0.1", 2112)

        with (
            patch("uvicorn.Server", return_value=_FakeServer(fail=True)),
            pytest.raises(OSError),
        ):
            await asyncio.wait_for(server.run(asyncio.Event()), timeout=2.0)

    @pytest.mark.asyncio
    async def test_cancellation_waits_for_serve_task(self) -> None:
        fake = _FakeServer()
        server = MetricsServer(MetricRegistry(), "127.0.0.1", 0)

        with patch("uvicorn.Server", return_value=fake):
            task = asyncio.create_task(server.run(asyncio.Event()))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert fake.unwound is True
        assert fake.should_exit is False
