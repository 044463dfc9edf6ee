"""Shared fixtures for CLI execution tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture()
def cli_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict[str, str]:
    """Set environment variables so the CLI works without real credentials."""
    for key in list(os.environ):
        if key.startswith("VOLTWATCH_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)

    env = {
        "VOLTWATCH_TESLA_ACCESS_TOKEN": "test-token-123",
        "VOLTWATCH_TESLA_REGION": "na",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env
