"""
Service Exceptions

Error taxonomy shared by the schools and uploads modules. Every error carries
a user-facing message, a stable error code and the HTTP status the API
returns for it. Messages never include driver or backend error text.
"""

from typing import Any

GENERIC_RETRY_MESSAGE = "Something went wrong. Please try again later."
UPLOAD_RETRY_MESSAGE = "Failed to upload image. Please try again or submit without an image."

FIELD_LABELS = {
    "email": "email address",
    "contact": "contact number",
}


class SchoolServiceError(Exception):
    """Base exception for school directory service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> dict[str, Any]:
        """JSON body returned to API callers."""
        return {
            "success": False,
            "error": self.error_code,
            "message": self.message,
        }


class SchoolValidationError(SchoolServiceError):
    """Raised when a submission is missing a field or has a malformed one."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
        )

    def to_response(self) -> dict[str, Any]:
        body = super().to_response()
        body["field"] = self.field
        return body


class DuplicateSchoolError(SchoolServiceError):
    """Raised when the email or contact number is already used by another school."""

    def __init__(self, field: str):
        self.field = field
        label = FIELD_LABELS.get(field, field)
        super().__init__(
            message=f"School with this {label} already exists",
            error_code="DUPLICATE_SCHOOL",
            status_code=409,
        )

    def to_response(self) -> dict[str, Any]:
        body = super().to_response()
        body["isDuplicate"] = True
        body["field"] = self.field
        return body


class ImageValidationError(SchoolValidationError):
    """Raised when an uploaded file is not an acceptable image."""

    def __init__(self, message: str):
        super().__init__(message=message, field="image")


class ImageUploadError(SchoolServiceError):
    """Raised when the object store cannot store an image."""

    def __init__(self, message: str = UPLOAD_RETRY_MESSAGE):
        super().__init__(
            message=message,
            error_code="UPLOAD_FAILED",
            status_code=500,
        )


class SystemFailureError(SchoolServiceError):
    """Raised when a dependency fails unexpectedly."""

    def __init__(self, message: str = GENERIC_RETRY_MESSAGE):
        super().__init__(
            message=message,
            error_code="INTERNAL_ERROR",
            status_code=500,
        )


class UniquenessViolationError(Exception):
    """
    Raised by the record store when an insert violates a unique constraint.

    Internal to the persistence layer; callers translate it into
    ``DuplicateSchoolError``.
    """

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Unique constraint violated on {field}")
