"""Pydantic schemas for the image upload endpoint."""
from pydantic import BaseModel


class UploadResponse(BaseModel):
    """Public location of an uploaded image."""

    url: str
    public_id: str
