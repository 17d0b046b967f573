"""Exception types raised by the leave API request layer."""

from __future__ import annotations

__all__ = [
    "ApplicationError",
    "LeaveAPIError",
    "NetworkError",
    "RequestTimeoutError",
]


class LeaveAPIError(Exception):
    """Base class for every error raised by the leave API client."""


class NetworkError(LeaveAPIError, ConnectionError):
    """The request never produced a usable JSON body.

    Raised for transport failures, non-2xx responses and unparsable bodies.
    These are the only failures the retry loop acts on.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RequestTimeoutError(NetworkError):
    """An attempt did not settle within the request timeout."""


class ApplicationError(LeaveAPIError, ValueError):
    """The API answered with ``success: false``.

    ``message`` is user-facing text supplied by the server. Never retried.
    """

    def __init__(self, message: str, payload: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}
