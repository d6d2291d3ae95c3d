"""HTTP client wrapper over httpx."""
import contextlib
import logging
import time
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from blog_client.config import ClientConfig
from blog_client.exceptions import (
    ApiError,
    ConnectionFailedError,
    ForbiddenError,
    NotFoundError,
    RateLimitedError,
    ResponseParseError,
    ServerFaultError,
    UnauthorizedError,
    ValidationFailedError,
)
from blog_client.models import Envelope
from blog_client.session import SessionContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

API_PREFIX = "/api"

_STATUS_ERRORS: dict[int, type[ApiError]] = {
    400: ValidationFailedError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    422: ValidationFailedError,
}


def _raise_for_status(response: httpx.Response) -> None:
    """Map an error response to the client exception taxonomy."""
    if response.is_success:
        return
    body: dict[str, Any] | None = None
    with contextlib.suppress(ValueError):
        parsed = response.json()
        if isinstance(parsed, dict):
            body = parsed
    message = f"HTTP {response.status_code}"
    errors: list[dict[str, Any]] = []
    if body is not None:
        message = str(body.get("message") or message)
        if isinstance(body.get("errors"), list):
            errors = [e for e in body["errors"] if isinstance(e, dict)]

    kwargs: dict[str, Any] = {
        "status_code": response.status_code,
        "errors": errors,
        "response_body": body,
    }
    if response.status_code == 429:
        retry_after_header = response.headers.get("Retry-After")
        raise RateLimitedError(
            message,
            retry_after=float(retry_after_header) if retry_after_header else None,
            **kwargs,
        )
    if response.status_code >= 500:
        raise ServerFaultError(message, **kwargs)
    raise _STATUS_ERRORS.get(response.status_code, ApiError)(message, **kwargs)


def parse_data(envelope: Envelope, model: Any) -> Any:
    """Validate `envelope.data` against `model` (a type or a generic alias)."""
    try:
        return TypeAdapter(model).validate_python(envelope.data)
    except ValidationError as e:
        raise ResponseParseError(f"Unexpected response data: {e}") from e


class ApiClient:
    """
    Issues requests against the blog API.

    The bearer token comes from the explicit session context passed in. A 401
    on an authenticated request invalidates that session, which fires its
    hooks. Nothing is retried.

    Args:
        config: Base URL and timeout.
        session: The session whose token is sent.
        transport: Optional httpx transport, e.g. `httpx.ASGITransport(app)`
            or `httpx.MockTransport(handler)`.
    """

    def __init__(
        self,
        config: ClientConfig,
        session: SessionContext,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._session = session
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    def _build_headers(self) -> dict[str, str]:
        token = self._session.token
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Envelope:
        """
        Send a request and return the parsed envelope.

        Raises:
            ApiError: A subclass matching the response status.
            ConnectionFailedError: The server could not be reached.
            ResponseParseError: The body is not a valid envelope.
        """
        url = API_PREFIX + path
        had_session = self._session.is_authenticated
        start = time.perf_counter()
        try:
            response = await self.client.request(
                method,
                url,
                json=json,
                params={k: v for k, v in (params or {}).items() if v is not None} or None,
                files=files,
                headers=self._build_headers(),
            )
        except httpx.TimeoutException as e:
            raise ConnectionFailedError(
                f"Request timed out after {self._config.timeout}s: {e}",
            ) from e
        except httpx.TransportError as e:
            raise ConnectionFailedError(f"Failed to connect to {self._config.base_url}: {e}") from e
        logger.debug(
            "%s %s -> %s (%.0fms)",
            method,
            url,
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )

        if response.status_code == 401 and had_session:
            self._session.invalidate("unauthorized")
        _raise_for_status(response)

        try:
            envelope = Envelope.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ResponseParseError(
                f"Response from {method} {url} is not a valid envelope",
                status_code=response.status_code,
            ) from e
        if not envelope.success:
            raise ApiError(
                envelope.message or "Request failed",
                status_code=response.status_code,
                errors=[e.model_dump() for e in envelope.errors or []],
            )
        return envelope

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
