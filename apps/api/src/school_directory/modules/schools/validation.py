"""
School Validation Rules

Pure predicates shared by the HTTP handlers, the submission orchestrator and
the HTTP client, so a submission accepted locally is never rejected by the
server on basic shape.

Length limits need no system state but are enforced only on the server
(``check_field_lengths``); the database column sizes back them up.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

NAME_MAX_LENGTH = 100
ADDRESS_MAX_LENGTH = 500
CITY_MAX_LENGTH = 50
STATE_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255
CONTACT_LENGTH = 10

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CONTACT_PATTERN = re.compile(r"^[0-9]{10}$")

# Checked in this order; the first missing field is reported
REQUIRED_FIELDS = ("name", "address", "city", "state", "contact", "email")

FIELD_LENGTH_LIMITS = {
    "name": NAME_MAX_LENGTH,
    "address": ADDRESS_MAX_LENGTH,
    "city": CITY_MAX_LENGTH,
    "state": STATE_MAX_LENGTH,
    "email": EMAIL_MAX_LENGTH,
}

EMAIL_INVALID_MESSAGE = "Invalid email format"
CONTACT_INVALID_MESSAGE = "Contact must be 10 digits"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation pass. ``field`` names the first failing field."""

    is_valid: bool
    message: str | None = None
    field: str | None = None


VALID = ValidationResult(is_valid=True)


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def is_valid_email(value: Any) -> bool:
    """Return True if ``value`` looks like ``local@domain.tld``."""
    if not isinstance(value, str):
        return False
    return EMAIL_PATTERN.fullmatch(value) is not None


def is_valid_contact(value: Any) -> bool:
    """Return True if ``value`` is exactly 10 decimal digits."""
    if value is None or isinstance(value, bool):
        return False
    return CONTACT_PATTERN.fullmatch(str(value)) is not None


def validate_school_data(fields: Mapping[str, Any]) -> ValidationResult:
    """
    Validate a candidate school record.

    All required fields are checked for presence before any format check.

    Args:
        fields: Mapping with name, address, city, state, contact and email

    Returns:
        ValidationResult describing the first violation, or VALID
    """
    for field in REQUIRED_FIELDS:
        if _is_blank(fields.get(field)):
            return ValidationResult(
                is_valid=False,
                message=f"{field} is required",
                field=field,
            )

    if not is_valid_email(fields["email"]):
        return ValidationResult(is_valid=False, message=EMAIL_INVALID_MESSAGE, field="email")

    if not is_valid_contact(fields["contact"]):
        return ValidationResult(is_valid=False, message=CONTACT_INVALID_MESSAGE, field="contact")

    return VALID


def check_field_lengths(fields: Mapping[str, Any]) -> ValidationResult:
    """Server-side length limits for free-text fields."""
    for field, limit in FIELD_LENGTH_LIMITS.items():
        value = fields.get(field)
        if value is not None and len(str(value)) > limit:
            return ValidationResult(
                is_valid=False,
                message=f"{field} must be at most {limit} characters",
                field=field,
            )
    return VALID
