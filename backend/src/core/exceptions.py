"""
Error taxonomy for the API.

Route handlers and dependencies raise these; `api.errors` maps each one to the
JSON envelope `{success: false, message, errors?}` with the matching status code.
"""
from typing import Any


class BlogError(Exception):
    """Base class for errors that map to a client-visible response."""

    status_code: int = 500
    headers: dict[str, str] | None = None

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        self.message = message
        self.errors = errors
        super().__init__(message)


class ValidationFailedError(BlogError):
    """Request input failed validation. `errors` carries per-field messages."""

    status_code = 400

    def __init__(
        self,
        errors: list[dict[str, Any]] | None = None,
        message: str = "Validation failed",
    ) -> None:
        super().__init__(message, errors)


class UnauthorizedError(BlogError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class ForbiddenError(BlogError):
    """Authenticated, but not the owner of the resource nor an admin."""

    status_code = 403


class NotFoundError(BlogError):
    """The requested resource does not exist."""

    status_code = 404


class UpstreamError(BlogError):
    """An external service (the image host) failed."""

    status_code = 502


class UploadQuotaExceededError(BlogError):
    """The user has no uploads left in the current window."""

    status_code = 429

    def __init__(self, headers: dict[str, str]) -> None:
        super().__init__("Upload limit reached. Please try again later.")
        self.headers = headers
