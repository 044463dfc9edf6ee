"""Async client for the ChargePoint driver APIs used by charging automation."""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from voltwatch._internal.retry import RetryPolicy
from voltwatch.api.errors import (
    ChargePointRejectedError,
    DecodeError,
    RemoteCallError,
)
from voltwatch.models.chargepoint import (
    ChargingSession,
    SessionAckResponse,
    StartSessionResponse,
    UserStatus,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

ACCOUNT_ENDPOINT = "https://account.chargepoint.com/account/v1"
MAP_PROD_ENDPOINT = "https://mc.chargepoint.com/map-prod/v2"
SESSION_START_PATH = "/driver/station/startsession"
SESSION_STOP_PATH = "/driver/station/stopsession"
SESSION_ACK_PATH = "/driver/station/session/ack"

# Device description sent with start-session; mirrors the Android app.
_DEVICE_DATA: dict[str, str] = {
    "manufacturer": "unknown",
    "model": "unknown",
    "notificationId": "",
    "notificationIdType": "FCM",
    "type": "android",
    "udid": "",
    "version": "5.60.0-237-1702",
}

_SESSIONS_PAGE_SIZE = 1000


class ChargePointClient:
    """Start, stop and inspect ChargePoint sessions for one account token."""

    def __init__(
        self,
        token: str,
        *,
        ack_policy: RetryPolicy | None = None,
        timeout: float = 60.0,
        account_endpoint: str = ACCOUNT_ENDPOINT,
        map_prod_endpoint: str = MAP_PROD_ENDPOINT,
    ) -> None:
        self._account_endpoint = account_endpoint
        self._map_prod_endpoint = map_prod_endpoint
        self._ack_policy = ack_policy if ack_policy is not None else RetryPolicy()
        self._client = httpx.AsyncClient(
            headers={
                "Cookie": f"coulomb_sess={quote(token, safe='')}",
                "cp-session-token": token,
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ChargePointClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def start_session(self, device_id: int) -> int:
        """Start charging at *device_id* and return the new session id.

        The start call returns an acknowledgement id; the session id only
        becomes available once ChargePoint confirms it, so the ack endpoint
        is polled under the ack retry policy.
        """
        logger.info("Starting ChargePoint session on device %d", device_id)
        started = await self._post(
            self._account_endpoint + SESSION_START_PATH,
            {"deviceData": _DEVICE_DATA, "deviceId": device_id},
            StartSessionResponse,
        )

        async def _ack() -> SessionAckResponse:
            return await self._post(
                self._account_endpoint + SESSION_ACK_PATH,
                {"ackId": started.ack_id, "action": "start_session"},
                SessionAckResponse,
            )

        # The ack endpoint answers with an error body until the session is up.
        ack = await self._ack_policy.call(
            _ack,
            description=f"session ack {started.ack_id}",
            fatal=(DecodeError,),
        )
        logger.info("ChargePoint session %d started on device %d", ack.session_id, device_id)
        return ack.session_id

    async def stop_session(self, session_id: int, device_id: int) -> None:
        logger.info("Stopping ChargePoint session %d on device %d", session_id, device_id)
        await self._request(
            self._account_endpoint + SESSION_STOP_PATH,
            {"sessionId": session_id, "deviceId": device_id},
        )

    async def user_status(self) -> UserStatus:
        data = await self._request(self._map_prod_endpoint, {"user_status": {"mfhs": {}}})
        return _validate(UserStatus, data.get("user_status") or {})

    async def get_sessions(self) -> list[ChargingSession]:
        """Return the account's charging history, oldest first."""
        data = await self._request(
            self._map_prod_endpoint,
            {"charging_activity_monthly": {"mfhs": {}, "page_size": _SESSIONS_PAGE_SIZE}},
        )
        activity = data.get("charging_activity_monthly") or {}
        sessions: list[ChargingSession] = []
        for month in activity.get("month_info") or []:
            for raw in month.get("sessions") or []:
                sessions.append(_validate(ChargingSession, raw))
        sessions.sort(key=lambda s: s.start_time)
        return sessions

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _post(self, url: str, payload: dict[str, Any], model: type[M]) -> M:
        return _validate(model, await self._request(url, payload))

    async def _request(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = await self._client.post(url, json=payload)
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"POST {url} failed: {exc}") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            if resp.status_code != 200:
                raise RemoteCallError(
                    f"POST {url}: HTTP {resp.status_code}", status_code=resp.status_code
                ) from exc
            raise DecodeError(f"POST {url}: response is not JSON") from exc

        if isinstance(body, dict):
            _raise_for_error_body(body, resp.status_code)

        if resp.status_code != 200:
            raise RemoteCallError(
                f"POST {url}: HTTP {resp.status_code}", status_code=resp.status_code
            )
        if not isinstance(body, dict):
            raise DecodeError(f"POST {url}: expected a JSON object, got {type(body).__name__}")
        return body


def _raise_for_error_body(body: dict[str, Any], status_code: int) -> None:
    """Raise :class:`ChargePointRejectedError` for account or map-prod error bodies."""
    message = body.get("errorMessage")
    if message:
        raise ChargePointRejectedError(
            str(message),
            error_id=body.get("errorId"),
            category=str(body.get("errorCategory") or ""),
            status_code=status_code,
        )
    for value in body.values():
        if isinstance(value, dict) and value.get("error_message"):
            raise ChargePointRejectedError(
                str(value["error_message"]),
                error_id=value.get("error_code"),
                status_code=status_code,
            )


def _validate(model: type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"Unexpected {model.__name__} shape: {exc}") from exc
