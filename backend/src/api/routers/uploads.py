"""Image upload endpoint, proxied to the image host."""
import logging

from fastapi import APIRouter, Depends, File, Response, UploadFile

from api.dependencies import enforce_upload_quota, get_settings
from core.config import Settings
from core.exceptions import UpstreamError, ValidationFailedError
from core.upload_quota import QuotaStatus
from schemas.envelope import Envelope
from schemas.upload import UploadResponse
from services.image_storage import ImageStorageError, upload_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


def _file_error(message: str) -> ValidationFailedError:
    return ValidationFailedError([{"msg": message, "field": "file"}], message=message)


@router.post("/", response_model=Envelope[UploadResponse])
async def upload(
    response: Response,
    file: UploadFile | None = File(default=None),
    quota: QuotaStatus | None = Depends(enforce_upload_quota),
    settings: Settings = Depends(get_settings),
) -> Envelope[UploadResponse]:
    """
    Upload an image (multipart field `file`) and return its public URL.

    Each attempt counts against the caller's upload quota, reported in the
    X-RateLimit-* headers.
    """
    if quota is not None:
        response.headers.update(quota.headers)
    if file is None:
        raise _file_error("No file uploaded")
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise _file_error("Only JPEG, PNG, GIF and WebP images are allowed")

    content = await file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise _file_error(
            f"File exceeds maximum size of {settings.max_upload_bytes // (1024 * 1024)} MB",
        )
    if not content:
        raise _file_error("Uploaded file is empty")

    try:
        image = await upload_image(
            content,
            filename=file.filename or "upload",
            content_type=file.content_type,
            settings=settings,
        )
    except ImageStorageError as e:
        logger.warning("upload_failed", extra={"error": str(e)})
        raise UpstreamError("Upload failed") from e

    return Envelope(
        message="Upload successful",
        data=UploadResponse(url=image.url, public_id=image.public_id),
    )
