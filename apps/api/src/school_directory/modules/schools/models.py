"""
School Models

Database model for directory school records.
"""

from sqlalchemy import Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from school_directory.modules.schools.validation import (
    ADDRESS_MAX_LENGTH,
    CITY_MAX_LENGTH,
    CONTACT_LENGTH,
    EMAIL_MAX_LENGTH,
    NAME_MAX_LENGTH,
    STATE_MAX_LENGTH,
)
from school_directory.modules.shared import BaseModel

# Constraint names are part of the contract with the repository, which maps
# an IntegrityError back to the conflicting field by name.
EMAIL_UNIQUE_CONSTRAINT = "uq_schools_email"
CONTACT_UNIQUE_CONSTRAINT = "uq_schools_contact"

IMAGE_MAX_LENGTH = 500


class School(BaseModel):
    """
    A school listed in the directory.

    Email and contact number are each unique across all records. The unique
    constraints are the final authority on duplicates; any lookup done before
    insert is advisory only.
    """

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(CITY_MAX_LENGTH), nullable=False)
    state: Mapped[str] = mapped_column(String(STATE_MAX_LENGTH), nullable=False)

    # Exactly 10 digits, stored as text to keep leading zeros
    contact: Mapped[str] = mapped_column(String(CONTACT_LENGTH), nullable=False)
    email: Mapped[str] = mapped_column(String(EMAIL_MAX_LENGTH), nullable=False)

    # Public URL of the stored image
    image: Mapped[str | None] = mapped_column(String(IMAGE_MAX_LENGTH), nullable=True)

    __table_args__ = (
        UniqueConstraint("email", name=EMAIL_UNIQUE_CONSTRAINT),
        UniqueConstraint("contact", name=CONTACT_UNIQUE_CONSTRAINT),
        Index("ix_schools_city", "city"),
        Index("ix_schools_state", "state"),
        Index("ix_schools_name", "name"),
        Index("ix_schools_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id}, name={self.name}, city={self.city})>"
