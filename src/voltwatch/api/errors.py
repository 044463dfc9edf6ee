"""Error hierarchy shared by the remote clients and the monitor.

Retry classification lives here: :class:`RemoteCallError` is transient and
retried by :class:`~voltwatch._internal.retry.RetryPolicy`, while
:class:`RemoteRejectedError` and :class:`DecodeError` are surfaced
immediately.
"""

from __future__ import annotations


class VoltwatchError(Exception):
    """Base exception for all voltwatch errors."""


class ConfigError(VoltwatchError):
    """Invalid or missing configuration."""


class RemoteCallError(VoltwatchError):
    """Transient failure talking to a remote API (network, 5xx, timeouts)."""

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(RemoteCallError):
    """HTTP 429 from the remote side."""

    def __init__(
        self,
        message: str = "Rate limited",
        *,
        status_code: int | None = 429,
        retry_after: int | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message, status_code=status_code)


class VehicleAsleepError(RemoteCallError):
    """The vehicle is asleep or unreachable (HTTP 408)."""


class RemoteRejectedError(VoltwatchError):
    """The remote side definitively refused the request. Never retried."""

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AuthError(RemoteRejectedError):
    """Authentication failed or the token was rejected."""


class ChargePointRejectedError(RemoteRejectedError):
    """ChargePoint returned an error body for the request."""

    def __init__(
        self,
        message: str,
        *,
        error_id: int | None = None,
        category: str = "",
        status_code: int | None = None,
    ) -> None:
        self.error_id = error_id
        self.category = category
        super().__init__(message, status_code=status_code)

    def __str__(self) -> str:
        base = super().__str__()
        if self.error_id is None and not self.category:
            return base
        return f"{base} (Category {self.category}, ID {self.error_id})"


class DecodeError(VoltwatchError):
    """A response did not have the expected shape. Retrying will not help."""


# Errors that RetryPolicy returns immediately instead of retrying.
NON_RETRYABLE: tuple[type[BaseException], ...] = (RemoteRejectedError, DecodeError)
