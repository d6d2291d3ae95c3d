"""
Client-side error taxonomy.

Every failed call raises an ApiError subclass carrying the server's envelope
message and its structured `errors` list, so callers can build notifications
without digging into the HTTP response.
"""
from typing import Any


class ApiError(Exception):
    """Base exception for all blog API client errors."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        errors: list[dict[str, Any]] | None = None,
        response_body: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []
        self.response_body = response_body

    @property
    def error_messages(self) -> list[str]:
        """The `msg` of every structured error, in server order."""
        return [str(e["msg"]) for e in self.errors if e.get("msg")]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class ValidationFailedError(ApiError):
    """400: request input was rejected; `errors` holds per-field messages."""


class UnauthorizedError(ApiError):
    """401, or an action attempted without a session."""


class ForbiddenError(ApiError):
    """403: the session may not modify this resource."""


class NotFoundError(ApiError):
    """404: the resource or route does not exist."""


class RateLimitedError(ApiError):
    """429: too many requests."""

    def __init__(self, message: str, *, retry_after: float | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerFaultError(ApiError):
    """5xx: the server failed."""


class ConnectionFailedError(ApiError):
    """The server could not be reached or did not answer in time."""


class ResponseParseError(ApiError):
    """The response body did not match the response envelope."""
