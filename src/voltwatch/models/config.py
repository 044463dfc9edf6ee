from __future__ import annotations

import json

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

from voltwatch.api.errors import ConfigError
from voltwatch.chargers.registry import KNOWN_CHARGERS, Charger


class ChargerConfig(BaseModel):
    """A charger entry as written in ``VOLTWATCH_CHARGERS``."""

    device_id: int
    latitude: float
    longitude: float
    name: str = ""

    def to_charger(self) -> Charger:
        return Charger(
            device_id=self.device_id,
            latitude=self.latitude,
            longitude=self.longitude,
            name=self.name,
        )


def _default_chargers() -> list[ChargerConfig]:
    return [
        ChargerConfig(
            device_id=c.device_id, latitude=c.latitude, longitude=c.longitude, name=c.name
        )
        for c in KNOWN_CHARGERS
    ]


class AppSettings(BaseSettings):
    """Application-wide settings populated from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="VOLTWATCH_",
        extra="ignore",
    )

    bind: str = ":2112"
    metrics_path: str = "/metrics"

    standby_poll_seconds: float = 60.0
    drive_poll_seconds: float = 15.0
    active_poll_seconds: float = 5.0
    chargepoint_poll_seconds: float = 300.0
    carserver_url: str = "http://localhost:27654/diag_vitals"
    carserver_poll_seconds: float = 15.0

    tesla_access_token: str | None = None
    tesla_token_json: str | None = None
    tesla_region: str = "na"
    tesla_base_url: str | None = None
    chargepoint_token: str | None = None

    charger_threshold_m: float = 20.0
    chargers: list[ChargerConfig] = _default_chargers()

    shutdown_grace_seconds: float = 5.0
    retry_max_elapsed_seconds: float = 60.0
    request_timeout_seconds: float = 60.0

    def resolve_tesla_token(self) -> str | None:
        """Return the Tesla access token from either token setting.

        ``tesla_access_token`` wins; otherwise ``access_token`` is read from
        the ``tesla_token_json`` blob.
        """
        if self.tesla_access_token:
            return self.tesla_access_token
        if not self.tesla_token_json:
            return None
        try:
            blob = json.loads(self.tesla_token_json)
        except ValueError as exc:
            raise ConfigError("VOLTWATCH_TESLA_TOKEN_JSON is not valid JSON") from exc
        token = blob.get("access_token") if isinstance(blob, dict) else None
        if not token:
            raise ConfigError("VOLTWATCH_TESLA_TOKEN_JSON has no access_token")
        return str(token)

    def bind_address(self) -> tuple[str, int]:
        return parse_bind(self.bind)


def parse_bind(bind: str) -> tuple[str, int]:
    """Split ``host:port`` (host optional) into a ``(host, port)`` pair.

    >>> parse_bind(":2112")
    ('0.0.0.0', 2112)
    """
    host, sep, port = bind.rpartition(":")
    if not sep:
        raise ConfigError(f"Invalid bind address {bind!r}; expected [host]:port")
    try:
        port_num = int(port)
    except ValueError:
        raise ConfigError(f"Invalid port in bind address {bind!r}") from None
    return (host.strip("[]") or "0.0.0.0", port_num)
