"""
Content-Addressed Image Store

Stores school images keyed by the MD5 digest of their raw bytes, so the same
file uploaded any number of times maps to one object:

1. Validate the declared content type and size
2. Derive the key ``<prefix>/img_<digest>`` from the raw bytes
3. Look the key up; if an object exists, return it without uploading
4. Otherwise transform (fit 800x600, WebP) and write with no-overwrite
   semantics; losing a concurrent first-upload race is a benign duplicate

A failed lookup is treated as "not present": the worst case is a redundant
upload attempt, which the no-overwrite write turns into a duplicate. This
also means an object store outage shows up as upload failures rather than
lookup failures.
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from typing import Any

from school_directory.core.config import Settings
from school_directory.core.exceptions import (
    ImageUploadError,
    ImageValidationError,
)
from school_directory.core.storage import ObjectAlreadyExistsError, ObjectStore, StoredObject
from school_directory.modules.uploads.transform import transform_image

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "school-directory"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024


def compute_digest(data: bytes) -> str:
    """128-bit content digest of the raw bytes, hex encoded."""
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


def derive_key(digest: str, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """Storage key for a digest. Identical bytes always map to the same key."""
    return f"{prefix}/img_{digest}"


@dataclass(frozen=True)
class StoredImage:
    """Descriptor of a stored image."""

    url: str
    public_id: str
    width: int | None
    height: int | None
    is_duplicate: bool

    @classmethod
    def from_object(cls, stored: StoredObject, *, is_duplicate: bool) -> "StoredImage":
        return cls(
            url=stored.url,
            public_id=stored.key,
            width=stored.width,
            height=stored.height,
            is_duplicate=is_duplicate,
        )

    def to_response(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "public_id": self.public_id,
            "width": self.width,
            "height": self.height,
            "isDuplicate": self.is_duplicate,
        }


class ContentAddressedImageStore:
    """Deduplicating image store on top of an object store."""

    def __init__(
        self,
        backend: ObjectStore,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_width: int = 800,
        max_height: int = 600,
        quality: int = 80,
    ):
        self.backend = backend
        self.key_prefix = key_prefix
        self.max_bytes = max_bytes
        self.max_width = max_width
        self.max_height = max_height
        self.quality = quality

    @classmethod
    def from_settings(cls, backend: ObjectStore, settings: Settings) -> "ContentAddressedImageStore":
        return cls(
            backend,
            key_prefix=settings.image_key_prefix,
            max_bytes=settings.image_max_bytes,
            max_width=settings.image_max_width,
            max_height=settings.image_max_height,
            quality=settings.image_quality,
        )

    def _check_payload(self, data: bytes, content_type: str | None) -> None:
        if not content_type or not content_type.lower().startswith("image/"):
            raise ImageValidationError("Only image files are allowed")
        if not data:
            raise ImageValidationError("No file uploaded")
        if len(data) > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise ImageValidationError(f"File size must be less than {limit_mb}MB")

    async def _lookup(self, key: str) -> StoredObject | None:
        try:
            return await self.backend.head(key)
        except Exception as e:
            logger.warning(f"Image lookup failed for {key}, proceeding with upload: {e}")
            return None

    async def store_image(
        self,
        data: bytes,
        content_type: str | None,
        filename: str | None = None,
    ) -> StoredImage:
        """
        Store an image, reusing an existing object with identical content.

        Args:
            data: Raw image bytes as uploaded
            content_type: Declared MIME type
            filename: Client-side file name, for logging only; the key
                depends on the bytes alone

        Returns:
            StoredImage with ``is_duplicate=True`` when no new object was created

        Raises:
            ImageValidationError: If the file is not an image or is too large
            ImageUploadError: If the object store rejects the write
        """
        self._check_payload(data, content_type)

        key = derive_key(compute_digest(data), self.key_prefix)

        existing = await self._lookup(key)
        if existing is not None:
            logger.info(f"Image {filename or '<unnamed>'} already stored, reusing {key}")
            return StoredImage.from_object(existing, is_duplicate=True)

        transformed = await asyncio.to_thread(
            transform_image,
            data,
            max_width=self.max_width,
            max_height=self.max_height,
            quality=self.quality,
        )

        try:
            stored = await self.backend.put_if_absent(
                key,
                transformed.data,
                content_type=transformed.content_type,
                width=transformed.width,
                height=transformed.height,
            )
        except ObjectAlreadyExistsError:
            # A concurrent upload of the same bytes won; its object is equivalent
            logger.info(f"Image {key} was stored concurrently, reusing it")
            return StoredImage(
                url=self.backend.public_url(key),
                public_id=key,
                width=transformed.width,
                height=transformed.height,
                is_duplicate=True,
            )
        except Exception as e:
            logger.error(f"Failed to store image {key}: {e}")
            raise ImageUploadError() from e

        logger.info(
            f"Uploaded {filename or '<unnamed>'} as {key} "
            f"({transformed.width}x{transformed.height})"
        )
        return StoredImage.from_object(stored, is_duplicate=False)
