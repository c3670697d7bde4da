"""
Schools Service Layer

Business logic behind the school endpoints:

1. Duplicate check (advisory):
   - Email is checked first, then contact; the first conflict is reported
   - Reflects the state at query time and reserves nothing, so a concurrent
     submission can still win the race and be caught at insert time

2. School creation (authoritative):
   - Runs the shared validation rules plus server-only length limits
   - Inserts through the repository; a unique constraint violation becomes
     ``DuplicateSchoolError`` for the conflicting field even if the advisory
     check passed
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from school_directory.core.exceptions import (
    DuplicateSchoolError,
    SchoolValidationError,
    UniquenessViolationError,
)
from school_directory.modules.schools.models import School
from school_directory.modules.schools.repository import SchoolRepository
from school_directory.modules.schools.validation import check_field_lengths, validate_school_data

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateCheckResult:
    """Result of an advisory duplicate lookup."""

    is_duplicate: bool
    field: str | None = None


NO_DUPLICATE = DuplicateCheckResult(is_duplicate=False)


def ensure_valid(fields: Mapping[str, Any]) -> None:
    """
    Apply the shared rules and the server-only length limits.

    Raises:
        SchoolValidationError: Naming the first failing field
    """
    for result in (validate_school_data(fields), check_field_lengths(fields)):
        if not result.is_valid:
            raise SchoolValidationError(result.message or "Invalid school data", result.field)


class DuplicateCheckService:
    """Advisory email/contact uniqueness lookups."""

    def __init__(self, repository: SchoolRepository):
        self.repository = repository

    async def check_duplicate(self, email: str, contact: str) -> DuplicateCheckResult:
        """
        Report whether a stored school already uses the email or contact.

        Args:
            email: Email to look up (exact match)
            contact: Contact number to look up

        Returns:
            DuplicateCheckResult naming the conflicting field, if any

        Raises:
            SchoolValidationError: If either value is missing
        """
        if not email or not contact:
            raise SchoolValidationError(
                "Email and contact are required for duplicate check",
                field="email" if not email else "contact",
            )

        if await self.repository.get_by_email(email) is not None:
            logger.info("Duplicate check: email already registered")
            return DuplicateCheckResult(is_duplicate=True, field="email")

        if await self.repository.get_by_contact(str(contact)) is not None:
            logger.info("Duplicate check: contact already registered")
            return DuplicateCheckResult(is_duplicate=True, field="contact")

        return NO_DUPLICATE


class SchoolService:
    """Listing and creating schools."""

    def __init__(self, repository: SchoolRepository):
        self.repository = repository

    async def list_schools(self) -> list[School]:
        """All schools, newest first."""
        return await self.repository.list_all()

    async def create_school(self, fields: Mapping[str, Any]) -> UUID:
        """
        Validate and insert a school.

        Raises:
            SchoolValidationError: If a field is missing or malformed
            DuplicateSchoolError: If the email or contact is already used
        """
        ensure_valid(fields)

        try:
            school_id = await self.repository.insert(fields)
        except UniquenessViolationError as e:
            raise DuplicateSchoolError(e.field) from e

        logger.info(f"School added: id={school_id}")
        return school_id
