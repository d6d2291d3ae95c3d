"""Pydantic schemas for category endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


def _normalize_category_name(value: str) -> str:
    name = value.strip()
    if not 1 <= len(name) <= 50:
        raise ValueError("Category name must be between 1 and 50 characters")
    return name


def _check_description(value: str | None) -> str | None:
    if value is not None and len(value) > 200:
        raise ValueError("Description cannot exceed 200 characters")
    return value


class CategoryCreate(BaseModel):
    """Schema for creating a category."""

    name: str
    description: str = ""

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        """Trim and bound the name."""
        return _normalize_category_name(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str) -> str:
        """Bound the description."""
        return _check_description(v)


class CategoryUpdate(BaseModel):
    """Schema for updating a category. Omitted fields are unchanged."""

    name: str | None = None
    description: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        """Trim and bound the name if provided."""
        return None if v is None else _normalize_category_name(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Bound the description if provided."""
        return _check_description(v)


class CategorySummary(BaseModel):
    """Category as embedded in post payloads."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str


class CategoryResponse(CategorySummary):
    """Full category payload."""

    description: str
    created_at: datetime
    updated_at: datetime
