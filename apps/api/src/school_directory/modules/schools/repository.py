"""
School Repository

Database operations for directory school records.

The unique constraints on ``email`` and ``contact`` make ``insert`` the single
source of truth for duplicate rejection: it either writes the record or
raises ``UniquenessViolationError`` naming the conflicting field, atomically
with the write.
"""

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.core.exceptions import UniquenessViolationError
from school_directory.modules.schools.models import (
    CONTACT_UNIQUE_CONSTRAINT,
    EMAIL_UNIQUE_CONSTRAINT,
    School,
)

logger = logging.getLogger(__name__)


def _conflicting_field(error: IntegrityError) -> str | None:
    """
    Work out which unique constraint an IntegrityError refers to.

    PostgreSQL reports the constraint name; SQLite reports the column
    (``UNIQUE constraint failed: schools.email``).
    """
    orig = error.orig
    constraint_name = getattr(getattr(orig, "diag", None), "constraint_name", None)
    if constraint_name is None:
        constraint_name = getattr(orig, "constraint_name", None)

    detail = " ".join(str(part) for part in (constraint_name, orig) if part)

    if EMAIL_UNIQUE_CONSTRAINT in detail or "schools.email" in detail:
        return "email"
    if CONTACT_UNIQUE_CONSTRAINT in detail or "schools.contact" in detail:
        return "contact"
    return None


class SchoolRepository:
    """Repository for school records, bound to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_all(self) -> list[School]:
        """Return all schools, newest first."""
        result = await self.db.execute(
            select(School).order_by(School.created_at.desc(), School.id.desc())
        )
        return list(result.scalars().all())

    async def get_by_email(self, email: str) -> School | None:
        """Get a school by exact email match."""
        result = await self.db.execute(select(School).where(School.email == email).limit(1))
        return result.scalar_one_or_none()

    async def get_by_contact(self, contact: str) -> School | None:
        """Get a school by contact number."""
        result = await self.db.execute(select(School).where(School.contact == contact).limit(1))
        return result.scalar_one_or_none()

    async def insert(self, fields: Mapping[str, Any]) -> UUID:
        """
        Insert a new school record.

        Args:
            fields: Validated name, address, city, state, contact, email and
                optional image URL

        Returns:
            The new school's ID

        Raises:
            UniquenessViolationError: If the email or contact is already used
            IntegrityError: For any other constraint failure
        """
        school = School(
            name=fields["name"],
            address=fields["address"],
            city=fields["city"],
            state=fields["state"],
            contact=str(fields["contact"]),
            email=fields["email"],
            image=fields.get("image") or None,
        )

        self.db.add(school)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            field = _conflicting_field(e)
            if field is None:
                raise
            logger.warning(f"Insert rejected by unique constraint on {field}")
            raise UniquenessViolationError(field) from e

        await self.db.refresh(school)
        logger.info(f"Created school: {school.id} - {school.name}")
        return school.id
