"""
Uploads Router

POST /upload - Store a school image (multipart field ``file``)

Identical files are stored once; re-uploading returns the existing object
with ``isDuplicate: true``.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from school_directory.core.config import settings
from school_directory.core.exceptions import (
    ImageValidationError,
    SchoolServiceError,
    SystemFailureError,
)
from school_directory.core.storage import ObjectStore, get_object_store
from school_directory.modules.uploads.schemas import UploadResponse
from school_directory.modules.uploads.service import ContentAddressedImageStore

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_image_store(
    backend: ObjectStore = Depends(get_object_store),
) -> ContentAddressedImageStore:
    """FastAPI dependency building the image store on the shared backend."""
    return ContentAddressedImageStore.from_settings(backend, settings)


async def read_upload(file: UploadFile | None) -> tuple[bytes, str | None]:
    """
    Read an uploaded file, stopping one byte past the size limit.

    Raises:
        ImageValidationError: If no file was sent
    """
    if file is None or not file.filename:
        raise ImageValidationError("No file uploaded")
    data = await file.read(settings.image_max_bytes + 1)
    return data, file.content_type


@router.post(
    "",
    response_model=UploadResponse,
    summary="Upload School Image",
    responses={
        400: {"description": "Not an image, empty, or larger than 5MB"},
        500: {"description": "Image storage failed"},
    },
)
async def upload_image(
    file: UploadFile | None = File(None),
    image_store: ContentAddressedImageStore = Depends(get_image_store),
) -> UploadResponse:
    """Store an uploaded image, reusing an identical one if already stored."""
    data, content_type = await read_upload(file)

    try:
        stored = await image_store.store_image(data, content_type, file.filename)
    except ImageValidationError as e:
        logger.warning(f"Upload rejected: {e.message}")
        raise
    except SchoolServiceError as e:
        logger.error(f"Upload failed: {e.message}")
        raise
    except Exception as e:
        logger.exception(f"Unexpected error storing image: {e}")
        raise SystemFailureError("Failed to upload image. Please try again.") from e

    return UploadResponse.from_stored(stored)
