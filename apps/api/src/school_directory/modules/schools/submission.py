"""
School Submission Orchestrator

Runs one school submission through a fixed, one-way sequence:

1. Validate - shared rules; failure ends with REJECTED_INVALID and no I/O
2. Check duplicate - advisory email/contact lookup; a conflict ends with
   REJECTED_DUPLICATE before any image is uploaded
3. Upload image - only when an image was supplied; any failure ends with
   REJECTED_UPLOAD_FAILED and nothing is inserted
4. Insert - the record store's unique constraints are authoritative; a
   violation ends with REJECTED_DUPLICATE even though step 2 passed

Every external step is bounded by ``step_timeout``; a timeout counts as a
failure of that step. There are no retries inside one submission: callers
re-run ``submit`` to retry, which is safe because the duplicate check and
insert read fresh state and identical image bytes are deduplicated.

Collaborators are structural protocols, so the same orchestrator runs on the
server (repository, image store) and in ``SchoolDirectoryClient`` (HTTP).
"""

import asyncio
import enum
import logging
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar
from uuid import UUID

from school_directory.core.exceptions import (
    GENERIC_RETRY_MESSAGE,
    UPLOAD_RETRY_MESSAGE,
    DuplicateSchoolError,
    ImageUploadError,
    ImageValidationError,
    SchoolServiceError,
    SchoolValidationError,
    SystemFailureError,
    UniquenessViolationError,
)
from school_directory.modules.schools.service import DuplicateCheckResult
from school_directory.modules.schools.validation import check_field_lengths, validate_school_data
from school_directory.modules.uploads.service import StoredImage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SubmissionStatus(str, enum.Enum):
    """Terminal states of a submission."""

    ACCEPTED = "accepted"
    REJECTED_INVALID = "rejected_invalid"
    REJECTED_DUPLICATE = "rejected_duplicate"
    REJECTED_UPLOAD_FAILED = "rejected_upload_failed"
    REJECTED_SYSTEM_ERROR = "rejected_system_error"


@dataclass(frozen=True)
class ImageUpload:
    """Raw image supplied with a submission."""

    data: bytes
    content_type: str | None
    filename: str | None = None


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of a submission attempt."""

    status: SubmissionStatus
    record_id: UUID | None = None
    field: str | None = None
    message: str | None = None
    image: StoredImage | None = None

    @property
    def accepted(self) -> bool:
        return self.status is SubmissionStatus.ACCEPTED

    def to_error(self) -> SchoolServiceError | None:
        """Map a rejection onto the service error taxonomy."""
        if self.status is SubmissionStatus.ACCEPTED:
            return None
        if self.status is SubmissionStatus.REJECTED_INVALID:
            return SchoolValidationError(self.message or "Invalid school data", self.field)
        if self.status is SubmissionStatus.REJECTED_DUPLICATE:
            return DuplicateSchoolError(self.field or "email")
        if self.status is SubmissionStatus.REJECTED_UPLOAD_FAILED:
            if self.field == "image":
                return ImageValidationError(self.message or "Invalid image")
            return ImageUploadError(self.message or UPLOAD_RETRY_MESSAGE)
        return SystemFailureError(self.message or GENERIC_RETRY_MESSAGE)


class DuplicateChecker(Protocol):
    async def check_duplicate(self, email: str, contact: str) -> DuplicateCheckResult: ...


class ImageStore(Protocol):
    async def store_image(
        self, data: bytes, content_type: str | None, filename: str | None = None
    ) -> StoredImage: ...


class RecordStore(Protocol):
    async def insert(self, fields: Mapping[str, Any]) -> UUID: ...


def _invalid(message: str | None, field: str | None) -> SubmissionOutcome:
    return SubmissionOutcome(
        status=SubmissionStatus.REJECTED_INVALID,
        field=field,
        message=message,
    )


def _duplicate(field: str) -> SubmissionOutcome:
    return SubmissionOutcome(
        status=SubmissionStatus.REJECTED_DUPLICATE,
        field=field,
        message=DuplicateSchoolError(field).message,
    )


SYSTEM_ERROR = SubmissionOutcome(
    status=SubmissionStatus.REJECTED_SYSTEM_ERROR,
    message=GENERIC_RETRY_MESSAGE,
)


class SubmissionOrchestrator:
    """Duplicate-safe school submission pipeline."""

    def __init__(
        self,
        duplicate_checker: DuplicateChecker,
        image_store: ImageStore,
        record_store: RecordStore,
        *,
        step_timeout: float = 15.0,
        check_lengths: bool = True,
    ):
        """
        Args:
            duplicate_checker: Advisory email/contact lookup
            image_store: Content-addressed image store
            record_store: Store enforcing email/contact uniqueness on insert
            step_timeout: Seconds allowed for each external step
            check_lengths: Apply the server-side length limits during
                validation (the client leaves these to the server)
        """
        self.duplicate_checker = duplicate_checker
        self.image_store = image_store
        self.record_store = record_store
        self.step_timeout = step_timeout
        self.check_lengths = check_lengths

    async def _run(self, step: Awaitable[T]) -> T:
        return await asyncio.wait_for(step, timeout=self.step_timeout)

    def _validate(self, fields: Mapping[str, Any]) -> SubmissionOutcome | None:
        result = validate_school_data(fields)
        if result.is_valid and self.check_lengths:
            result = check_field_lengths(fields)
        if not result.is_valid:
            return _invalid(result.message, result.field)
        return None

    async def submit(
        self,
        fields: Mapping[str, Any],
        image: ImageUpload | None = None,
    ) -> SubmissionOutcome:
        """
        Run a submission to a terminal state.

        Args:
            fields: name, address, city, state, contact, email (and optionally
                an already-stored image URL under ``image``)
            image: Raw image to store with the school

        Returns:
            SubmissionOutcome; never raises for step failures
        """
        record = dict(fields)
        if record.get("contact") is not None:
            record["contact"] = str(record["contact"])

        # 1. Validate
        rejection = self._validate(record)
        if rejection is not None:
            logger.info(f"Submission rejected as invalid: field={rejection.field}")
            return rejection

        # 2. Advisory duplicate check
        try:
            check = await self._run(
                self.duplicate_checker.check_duplicate(record["email"], record["contact"])
            )
        except SchoolValidationError as e:
            return _invalid(e.message, e.field)
        except Exception as e:
            logger.error(f"Duplicate check failed: {type(e).__name__}: {e}")
            return SYSTEM_ERROR

        if check.is_duplicate:
            logger.info(f"Submission rejected by duplicate check: field={check.field}")
            return _duplicate(check.field or "email")

        # 3. Conditional image upload
        stored_image: StoredImage | None = None
        if image is not None:
            try:
                stored_image = await self._run(
                    self.image_store.store_image(image.data, image.content_type, image.filename)
                )
            except ImageValidationError as e:
                logger.info(f"Submission image rejected: {e.message}")
                return SubmissionOutcome(
                    status=SubmissionStatus.REJECTED_UPLOAD_FAILED,
                    field="image",
                    message=e.message,
                )
            except Exception as e:
                logger.error(f"Image upload failed: {type(e).__name__}: {e}")
                return SubmissionOutcome(
                    status=SubmissionStatus.REJECTED_UPLOAD_FAILED,
                    message=UPLOAD_RETRY_MESSAGE,
                )
            record["image"] = stored_image.url

        # 4. Authoritative insert
        try:
            record_id = await self._run(self.record_store.insert(record))
        except UniquenessViolationError as e:
            logger.warning(f"Duplicate detected at insert after passing check: field={e.field}")
            return _duplicate(e.field)
        except SchoolValidationError as e:
            return _invalid(e.message, e.field)
        except Exception as e:
            logger.error(f"Insert failed: {type(e).__name__}: {e}")
            return SYSTEM_ERROR

        logger.info(f"Submission accepted: id={record_id}")
        return SubmissionOutcome(
            status=SubmissionStatus.ACCEPTED,
            record_id=record_id,
            image=stored_image,
        )
