"""CLI execution tests using Click's CliRunner."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest
from click.testing import CliRunner

from voltwatch.cli.main import _describe_error, cli, main

if TYPE_CHECKING:
    from pytest_httpx import HTTPXMock

FLEET_BASE = "https://fleet-api.prd.na.vn.cloud.tesla.com"
VIN = "5YJ3E1EA1NF000001"


def _json(output: str) -> dict[str, Any]:
    return json.loads(output)


class TestHelp:
    def test_root_help(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("serve", "vehicles", "snapshot", "chargers"):
            assert command in result.output

    def test_serve_help(self) -> None:
        result = CliRunner().invoke(cli, ["serve", "--help"])
        assert result.exit_code == 0
        assert "--bind" in result.output
        assert "--active-poll" in result.output


class TestChargers:
    def test_lists_default_registry(self, cli_env: dict[str, str]) -> None:
        result = CliRunner().invoke(cli, ["--format", "json", "chargers"])

        assert result.exit_code == 0, result.output
        data = _json(result.output)["data"]
        assert data["chargers"][0]["device_id"] == 1947511
        assert data["threshold_m"] == 20.0
        assert data["match"] is None

    def test_match_at_location(self, cli_env: dict[str, str]) -> None:
        result = CliRunner().invoke(
            cli,
            ["--format", "json", "chargers", "--lat", "47.630007", "--lon", "-122.133969"],
        )

        assert result.exit_code == 0, result.output
        data = _json(result.output)["data"]
        assert data["match"] == 1947511
        assert data["distances_m"]["1947511"] == pytest.approx(0.0)

    def test_rich_output(self, cli_env: dict[str, str]) -> None:
        result = CliRunner().invoke(
            cli, ["--format", "rich", "chargers", "--lat", "47.7", "--lon", "-122.2"]
        )
        assert result.exit_code == 0, result.output
        assert "1947511" in result.output
        assert "No charger within 20 m" in result.output

    def test_lat_without_lon(self, cli_env: dict[str, str]) -> None:
        result = CliRunner().invoke(cli, ["chargers", "--lat", "47.6"])
        assert result.exit_code != 0
        assert "must be given together" in result.output


class TestVehicles:
    def test_list(
        self,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
        sample_vehicle_list_response: dict[str, Any],
    ) -> None:
        httpx_mock.add_response(
            url=f"{FLEET_BASE}/api/1/vehicles", json=sample_vehicle_list_response
        )
        result = CliRunner().invoke(cli, ["--format", "json", "vehicles"])

        assert result.exit_code == 0, result.output
        payload = _json(result.output)
        assert payload["command"] == "vehicles"
        assert payload["data"][0]["vin"] == VIN

    def test_snapshot(
        self,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
        sample_vehicle_data_response: dict[str, Any],
    ) -> None:
        httpx_mock.add_response(
            url=f"{FLEET_BASE}/api/1/vehicles/{VIN}/vehicle_data",
            json=sample_vehicle_data_response,
        )
        result = CliRunner().invoke(cli, ["--format", "json", "snapshot", VIN])

        assert result.exit_code == 0, result.output
        data = _json(result.output)["data"]
        assert data["snapshot"]["locked"] is True
        assert data["poll_mode"] == "standby"
        assert data["next_poll_seconds"] == 60.0
        assert data["metrics"]["tesla:charge_state:battery_level"] == 72.0


class TestMainErrors:
    def test_missing_token_reports_config_error(
        self, cli_env: dict[str, str], monkeypatch: pytest.MonkeyPatch, capsys: Any
    ) -> None:
        monkeypatch.delenv("VOLTWATCH_TESLA_ACCESS_TOKEN")

        with pytest.raises(SystemExit) as exc_info:
            main(["--format", "json", "vehicles"])

        assert exc_info.value.code == 1
        payload = _json(capsys.readouterr().out)
        assert payload["ok"] is False
        assert payload["error"]["code"] == "config_error"

    def test_usage_error_exit_code(self, cli_env: dict[str, str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["chargers", "--lat", "1"])
        assert exc_info.value.code == 2

    def test_describe_unknown_error(self) -> None:
        assert _describe_error(RuntimeError("x")) == ("RuntimeError", "x")
