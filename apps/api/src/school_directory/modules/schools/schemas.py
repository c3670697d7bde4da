"""
School Schemas

Pydantic schemas for request parsing and response serialization.

Request fields are deliberately permissive (optional strings) so that the
shared validation rules, not Pydantic, decide which field is reported first
and the API answers 400 rather than 422.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def stringify_number(value: Any) -> Any:
    """JSON clients may send numbers for text fields; keep their decimal form."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class SchoolCreate(BaseModel):
    """Request body for POST /schools."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    contact: str | None = None
    # email_id is the field name used by older clients
    email: str | None = Field(None, validation_alias=AliasChoices("email", "email_id"))
    image: str | None = None

    @field_validator("name", "address", "city", "state", "contact", "email", "image", mode="before")
    @classmethod
    def stringify_numbers(cls, value: Any) -> Any:
        return stringify_number(value)

    def as_fields(self) -> dict[str, Any]:
        """Plain mapping consumed by validation and the record store."""
        return self.model_dump()


class SchoolRead(BaseModel):
    """A school as returned by GET /schools."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    address: str
    city: str
    state: str
    contact: str
    email: str
    image: str | None = None
    created_at: datetime


class SchoolListResponse(BaseModel):
    """Response for GET /schools."""

    success: bool = True
    data: list[SchoolRead]


class SchoolCreatedData(BaseModel):
    id: UUID
    image: str | None = None


class SchoolCreatedResponse(BaseModel):
    """Response after a school is added."""

    success: bool = True
    message: str = "School added successfully"
    data: SchoolCreatedData


class DuplicateCheckRequest(BaseModel):
    """Request body for POST /schools/check-duplicate."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    email: str | None = Field(None, validation_alias=AliasChoices("email", "email_id"))
    contact: str | None = None

    @field_validator("email", "contact", mode="before")
    @classmethod
    def stringify_numbers(cls, value: Any) -> Any:
        return stringify_number(value)


class DuplicateCheckResponse(BaseModel):
    """Response when no duplicate exists. Conflicts are reported as 409 errors."""

    success: bool = True
    is_duplicate: bool = Field(False, serialization_alias="isDuplicate")
    message: str = "No duplicates found"
