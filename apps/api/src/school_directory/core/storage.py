"""
Object Storage

S3-compatible object store (AWS S3, MinIO) used for school images.

The store is created by the application lifespan and kept on ``app.state``.
boto3 is synchronous, so every call runs in a worker thread to keep the event
loop free; connect/read timeouts bound each call.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from fastapi import Request

from school_directory.core.config import Settings
from school_directory.core.exceptions import SystemFailureError

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
ALREADY_EXISTS_CODES = {"PreconditionFailed", "ConditionalRequestConflict", "412"}


class ObjectAlreadyExistsError(Exception):
    """Raised when a no-overwrite write finds an object already at the key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Object already exists: {key}")


@dataclass(frozen=True)
class StoredObject:
    """An object in the store with its public URL and image dimensions."""

    key: str
    url: str
    width: int | None = None
    height: int | None = None


class ObjectStore(Protocol):
    """Minimal object store interface needed by the image store."""

    def public_url(self, key: str) -> str: ...

    async def head(self, key: str) -> StoredObject | None: ...

    async def put_if_absent(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str,
        width: int,
        height: int,
    ) -> StoredObject: ...


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _to_int(value: str | None) -> int | None:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


class S3ObjectStore:
    """Object store backed by an S3 bucket."""

    def __init__(
        self,
        bucket: str,
        *,
        client=None,
        endpoint_url: str | None = None,
        region_name: str = "us-east-1",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        public_base_url: str | None = None,
        timeout_seconds: float = 10.0,
    ):
        """
        Initialize the store.

        Args:
            bucket: Bucket holding the images
            client: Pre-built boto3 S3 client (tests); built from the other
                arguments when omitted
            endpoint_url: Custom endpoint (MinIO and other S3-compatible services)
            region_name: AWS region
            aws_access_key_id: Access key (falls back to the boto3 credential chain)
            aws_secret_access_key: Secret key
            public_base_url: Base URL objects are served from
            timeout_seconds: Connect and read timeout for each call
        """
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region_name = region_name
        self.public_base_url = public_base_url

        if client is None:
            client_kwargs: dict = {
                "region_name": region_name,
                "config": Config(
                    connect_timeout=timeout_seconds,
                    read_timeout=timeout_seconds,
                    retries={"max_attempts": 2, "mode": "standard"},
                ),
            }
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            if aws_access_key_id:
                client_kwargs["aws_access_key_id"] = aws_access_key_id
            if aws_secret_access_key:
                client_kwargs["aws_secret_access_key"] = aws_secret_access_key
            client = boto3.client("s3", **client_kwargs)

        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStore":
        return cls(
            settings.s3_bucket,
            endpoint_url=settings.s3_endpoint_url,
            region_name=settings.s3_region,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
            public_base_url=settings.s3_public_base_url,
            timeout_seconds=settings.storage_timeout_seconds,
        )

    def public_url(self, key: str) -> str:
        """Public URL an object is served from."""
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region_name}.amazonaws.com/{key}"

    async def head(self, key: str) -> StoredObject | None:
        """
        Look up an object.

        Returns:
            The stored object, or None if nothing exists at the key

        Raises:
            ClientError: For failures other than not-found
        """
        try:
            response = await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return None
            raise

        metadata = response.get("Metadata", {})
        return StoredObject(
            key=key,
            url=self.public_url(key),
            width=_to_int(metadata.get("width")),
            height=_to_int(metadata.get("height")),
        )

    async def put_if_absent(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str,
        width: int,
        height: int,
    ) -> StoredObject:
        """
        Write an object only if the key is free.

        Uses a conditional write (``If-None-Match: *``) so concurrent writers
        of the same key produce a single object.

        Raises:
            ObjectAlreadyExistsError: If an object already exists at the key
            ClientError: For other failures
        """
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata={"width": str(width), "height": str(height)},
                IfNoneMatch="*",
            )
        except ClientError as e:
            if _error_code(e) in ALREADY_EXISTS_CODES:
                raise ObjectAlreadyExistsError(key) from e
            raise

        logger.info(f"Stored object: {self.bucket}/{key}")
        return StoredObject(key=key, url=self.public_url(key), width=width, height=height)

    def close(self) -> None:
        """Release the client's connection pool."""
        self.client.close()


async def get_object_store(request: Request) -> ObjectStore:
    """FastAPI dependency returning the store created at startup."""
    store = getattr(request.app.state, "object_store", None)
    if store is None:
        logger.error("Object store requested before it was initialized")
        raise SystemFailureError(
            "Image storage is temporarily unavailable. Please try again later."
        )
    return store
