"""Image upload passthrough to Cloudinary's REST upload API."""
import hashlib
import logging
import time
from dataclasses import dataclass

import httpx

from core.config import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class ImageStorageError(Exception):
    """Raised when the image host rejects or fails an upload."""


@dataclass
class UploadedImage:
    """Location of an image stored by the image host."""

    url: str
    public_id: str


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """
    Cloudinary request signature.

    SHA-1 of the parameters sorted by name, joined as `k=v&k=v`, with the API
    secret appended.
    """
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()  # noqa: S324


async def upload_image(
    content: bytes,
    filename: str,
    content_type: str,
    settings: Settings | None = None,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
    transport: httpx.AsyncBaseTransport | None = None,
) -> UploadedImage:
    """
    Upload image bytes and return the public HTTPS URL.

    Args:
        content: Raw file bytes.
        filename: Original file name (forwarded to the host).
        content_type: MIME type of the file.
        settings: Settings with Cloudinary credentials (defaults to app settings).
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests pass an httpx.MockTransport).

    Raises:
        ImageStorageError: If credentials are missing, the host is unreachable,
            or the host rejects the upload.
    """
    settings = settings or get_settings()
    if not (
        settings.cloudinary_cloud_name
        and settings.cloudinary_api_key
        and settings.cloudinary_api_secret
    ):
        raise ImageStorageError("Image storage is not configured")

    params = {
        "folder": settings.cloudinary_folder,
        "timestamp": str(int(time.time())),
    }
    form = {
        **params,
        "api_key": settings.cloudinary_api_key,
        "signature": sign_params(params, settings.cloudinary_api_secret),
    }

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(
                settings.cloudinary_upload_url,
                data=form,
                files={"file": (filename, content, content_type)},
            )
    except httpx.HTTPError as e:
        logger.warning("image_upload_failed", extra={"error": str(e)})
        raise ImageStorageError(f"Image host unreachable: {e}") from e

    if response.status_code != 200:
        try:
            detail = response.json().get("error", {}).get("message", response.text)
        except ValueError:
            detail = response.text
        logger.warning(
            "image_upload_rejected",
            extra={"status_code": response.status_code, "detail": detail},
        )
        raise ImageStorageError(f"Image host rejected upload: {detail}")

    try:
        payload = response.json()
        return UploadedImage(url=payload["secure_url"], public_id=payload["public_id"])
    except (ValueError, KeyError, TypeError) as e:
        raise ImageStorageError("Image host returned no URL") from e
