"""HTTP client for the School Directory API.

Runs the submission pipeline from the caller's side, the way the web form
does: validate locally, ask the server for a duplicate check, upload the
image only if that passes, then create the school. The client implements the
same collaborator interfaces as the server components, so it drives the
shared ``SubmissionOrchestrator`` unchanged.
"""

import logging
import mimetypes
from collections.abc import Mapping
from typing import Any
from uuid import UUID

import httpx

from school_directory.core.exceptions import (
    ImageUploadError,
    ImageValidationError,
    SchoolValidationError,
    UniquenessViolationError,
)
from school_directory.modules.schools.schemas import SchoolRead
from school_directory.modules.schools.service import NO_DUPLICATE, DuplicateCheckResult
from school_directory.modules.schools.submission import (
    ImageUpload,
    SubmissionOrchestrator,
    SubmissionOutcome,
)
from school_directory.modules.uploads.service import StoredImage

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class SchoolDirectoryClient:
    """Async HTTP client for the School Directory API.

    Usage:
        async with SchoolDirectoryClient("http://localhost:8000") as client:
            outcome = await client.submit(fields, image=ImageUpload(data, "image/png"))
            if outcome.accepted:
                print(outcome.record_id)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        *,
        api_prefix: str = "/api",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL
            timeout: Timeout in seconds for each request and each pipeline step
            api_prefix: Prefix the API routes are mounted under
            http_client: Pre-built httpx client (e.g. with an ASGI transport)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._prefix = api_prefix.rstrip("/")
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "SchoolDirectoryClient":
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self

    async def __aexit__(self, *args) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("SchoolDirectoryClient must be used as an async context manager")
        return self._client

    def _url(self, path: str) -> str:
        return f"{self._prefix}{path}"

    async def list_schools(self) -> list[SchoolRead]:
        """Fetch all schools, newest first."""
        response = await self.client.get(self._url("/schools"))
        response.raise_for_status()
        return [SchoolRead.model_validate(item) for item in response.json()["data"]]

    async def check_duplicate(self, email: str, contact: str) -> DuplicateCheckResult:
        """Advisory duplicate check on the server."""
        response = await self.client.post(
            self._url("/schools/check-duplicate"),
            json={"email": email, "contact": contact},
        )
        if response.status_code == 409:
            return DuplicateCheckResult(is_duplicate=True, field=_error_body(response).get("field"))
        if response.status_code == 400:
            body = _error_body(response)
            raise SchoolValidationError(body.get("message", "Invalid request"), body.get("field"))
        response.raise_for_status()
        return NO_DUPLICATE

    async def store_image(
        self,
        data: bytes,
        content_type: str | None,
        filename: str | None = None,
    ) -> StoredImage:
        """Upload an image; identical bytes come back as a duplicate."""
        if not filename:
            extension = mimetypes.guess_extension(content_type or "") or ""
            filename = f"image{extension}"
        files = {"file": (filename, data, content_type or "application/octet-stream")}
        response = await self.client.post(self._url("/upload"), files=files)

        body = _error_body(response)
        if response.status_code == 400:
            raise ImageValidationError(body.get("message", "Invalid image"))
        if response.status_code != 200:
            logger.error(f"Image upload failed with HTTP {response.status_code}")
            raise ImageUploadError()

        return StoredImage(
            url=body["url"],
            public_id=body["public_id"],
            width=body.get("width"),
            height=body.get("height"),
            is_duplicate=body.get("isDuplicate", False),
        )

    async def insert(self, fields: Mapping[str, Any]) -> UUID:
        """Create a school; the server's unique constraints are authoritative."""
        payload = {
            key: fields.get(key)
            for key in ("name", "address", "city", "state", "contact", "email", "image")
        }
        response = await self.client.post(self._url("/schools"), json=payload)

        body = _error_body(response)
        if response.status_code == 409:
            raise UniquenessViolationError(body.get("field") or "email")
        if response.status_code == 400:
            raise SchoolValidationError(body.get("message", "Invalid school data"), body.get("field"))
        response.raise_for_status()
        return UUID(body["data"]["id"])

    async def submit(
        self,
        fields: Mapping[str, Any],
        image: ImageUpload | None = None,
    ) -> SubmissionOutcome:
        """Run the full submission pipeline against the server."""
        orchestrator = SubmissionOrchestrator(
            self,
            self,
            self,
            step_timeout=self._timeout,
            check_lengths=False,
        )
        return await orchestrator.submit(fields, image)
