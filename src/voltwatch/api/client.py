"""Thin async HTTP client for the Tesla vehicle API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from voltwatch.api.errors import (
    AuthError,
    ConfigError,
    DecodeError,
    RateLimitError,
    RemoteCallError,
    VehicleAsleepError,
)

logger = logging.getLogger(__name__)

REGION_BASE_URLS: dict[str, str] = {
    "na": "https://fleet-api.prd.na.vn.cloud.tesla.com",
    "eu": "https://fleet-api.prd.eu.vn.cloud.tesla.com",
    "cn": "https://fleet-api.prd.cn.vn.cloud.tesla.cn",
}

DEFAULT_TIMEOUT = 60.0


class TeslaFleetClient:
    """Bearer-authenticated JSON client.

    Maps HTTP failures onto :mod:`voltwatch.api.errors` so callers can
    decide what to retry without looking at status codes.
    """

    def __init__(
        self,
        access_token: str,
        region: str = "na",
        *,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if base_url is None:
            try:
                base_url = REGION_BASE_URLS[region]
            except KeyError:
                raise ConfigError(
                    f"Unknown region {region!r}; expected one of {', '.join(REGION_BASE_URLS)}"
                ) from None
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    async def get(self, path: str, *, params: dict[str, str] | None = None) -> dict[str, Any]:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._request("POST", path, json=json)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> TeslaFleetClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"{method} {path} failed: {exc}") from exc

        _raise_for_status(resp)

        try:
            data = resp.json()
        except ValueError as exc:
            raise DecodeError(f"{method} {path}: response is not JSON") from exc
        if not isinstance(data, dict):
            raise DecodeError(
                f"{method} {path}: expected a JSON object, got {type(data).__name__}"
            )
        return data


def _raise_for_status(resp: httpx.Response) -> None:
    status = resp.status_code
    if status < 400:
        return
    body = resp.text[:200]
    if status in (401, 403):
        raise AuthError(f"Authentication failed ({status}): {body}", status_code=status)
    if status == 408:
        raise VehicleAsleepError("Vehicle is asleep or unreachable", status_code=status)
    if status == 429:
        retry_after: int | None = None
        header = resp.headers.get("retry-after")
        if header is not None:
            try:
                retry_after = int(header)
            except ValueError:
                logger.debug("Ignoring non-integer retry-after header: %r", header)
        raise RateLimitError(retry_after=retry_after, status_code=status)
    raise RemoteCallError(f"HTTP {status}: {body}", status_code=status)
