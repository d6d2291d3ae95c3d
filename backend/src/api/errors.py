"""Exception handlers mapping the error taxonomy to the JSON envelope."""
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import get_settings
from core.exceptions import BlogError
from schemas.envelope import error_envelope

logger = logging.getLogger(__name__)

_LOCATION_PARTS = {"body", "query", "path", "header", "cookie"}


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """
    Flatten pydantic errors into `{msg, field, location, type}` entries.

    `field` is the dotted path below the request location (e.g. `title`,
    `tags.0`), or None when the whole body is at fault.
    """
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        location = loc[0] if loc and loc[0] in _LOCATION_PARTS else None
        path = loc[1:] if location else loc
        errors.append({
            "msg": str(err.get("msg", "Invalid value")).removeprefix("Value error, "),
            "field": ".".join(path) or None,
            "location": location,
            "type": err.get("type"),
        })
    return errors


async def blog_error_handler(request: Request, exc: BlogError) -> JSONResponse:  # noqa: ARG001
    """Known error -> its status code and message."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message, exc.errors),
        headers=exc.headers,
    )


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Request validation failure -> 400 with per-field errors."""
    errors = format_validation_errors(exc)
    logger.info(
        "validation_failed",
        extra={"path": request.url.path, "fields": [e["field"] for e in errors]},
    )
    return JSONResponse(
        status_code=400,
        content=error_envelope("Validation failed", errors),
    )


async def http_exception_handler(
    request: Request,  # noqa: ARG001
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Framework HTTP errors (unknown route, wrong method) in the envelope shape."""
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = "Route not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is a 500; the exception text is only exposed in development."""
    logger.exception(
        "unhandled_exception",
        extra={"method": request.method, "path": request.url.path},
    )
    settings = get_settings()
    return JSONResponse(
        status_code=500,
        content=error_envelope(
            "Something went wrong!",
            error=str(exc) if settings.is_development else "Internal server error",
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install all handlers on the application."""
    app.add_exception_handler(BlogError, blog_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
