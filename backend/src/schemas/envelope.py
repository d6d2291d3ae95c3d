"""
Response envelope shared by every endpoint.

Shape: `{success, message?, errors?, data?, pagination?}`. Route handlers return
`Envelope[T]`; error handlers build the failure variant.
"""
from math import ceil
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

DataT = TypeVar("DataT")


class ErrorDetail(BaseModel):
    """A single validation problem. `field` names the offending input when known."""

    model_config = ConfigDict(extra="allow")

    msg: str
    field: str | None = None


class Pagination(BaseModel):
    """Pagination metadata for list endpoints."""

    current: int  # 1-based page number
    pages: int  # ceil(total / limit)
    total: int  # Items matching the filters, before pagination
    limit: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        """Compute page count for a page request."""
        return cls(current=page, pages=ceil(total / limit), total=total, limit=limit)


class Envelope(BaseModel, Generic[DataT]):
    """Standard JSON envelope."""

    success: bool = True
    message: str | None = None
    errors: list[ErrorDetail] | None = None
    data: DataT | None = None
    pagination: Pagination | None = None


def error_envelope(
    message: str,
    errors: list[dict[str, Any]] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Serialized failure envelope; `extra` adds fields such as a redacted `error`."""
    body: dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = [ErrorDetail.model_validate(e).model_dump() for e in errors]
    body.update(extra)
    return body
