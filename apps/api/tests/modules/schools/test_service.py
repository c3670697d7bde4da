"""
Unit tests for the schools service layer.

These tests cover:
- Advisory duplicate check (email precedence, idempotence)
- School creation (validation, constraint violation mapping)
- Listing
"""

from uuid import uuid4

import pytest

from school_directory.core.exceptions import (
    DuplicateSchoolError,
    SchoolValidationError,
    UniquenessViolationError,
)
from school_directory.modules.schools.service import (
    NO_DUPLICATE,
    DuplicateCheckResult,
    DuplicateCheckService,
    SchoolService,
    ensure_valid,
)


class TestEnsureValid:
    """Tests for ensure_valid."""

    def test_valid_fields_pass(self, school_fields):
        """A valid submission raises nothing."""
        ensure_valid(school_fields)

    def test_reports_first_failing_field(self, school_fields):
        """The first failing field is raised as a 400 validation error."""
        school_fields["contact"] = "12345"

        with pytest.raises(SchoolValidationError) as exc_info:
            ensure_valid(school_fields)

        assert exc_info.value.field == "contact"
        assert exc_info.value.status_code == 400

    def test_applies_length_limits(self, school_fields):
        """Length limits are enforced after the shared rules."""
        school_fields["city"] = "x" * 51

        with pytest.raises(SchoolValidationError) as exc_info:
            ensure_valid(school_fields)

        assert exc_info.value.field == "city"


class TestCheckDuplicate:
    """Tests for DuplicateCheckService.check_duplicate."""

    @pytest.mark.asyncio
    async def test_no_duplicate(self, mock_repository):
        """Unused email and contact report no duplicate."""
        service = DuplicateCheckService(mock_repository)

        result = await service.check_duplicate("new@school.edu", "9000000000")

        assert result == NO_DUPLICATE
        mock_repository.get_by_email.assert_awaited_once_with("new@school.edu")
        mock_repository.get_by_contact.assert_awaited_once_with("9000000000")

    @pytest.mark.asyncio
    async def test_email_conflict(self, mock_repository, sample_school):
        """A stored email is reported as an email duplicate."""
        mock_repository.get_by_email.return_value = sample_school

        result = await DuplicateCheckService(mock_repository).check_duplicate(
            "office@greenvalley.edu", "9000000000"
        )

        assert result == DuplicateCheckResult(is_duplicate=True, field="email")

    @pytest.mark.asyncio
    async def test_contact_conflict(self, mock_repository, sample_school):
        """A stored contact is reported as a contact duplicate."""
        mock_repository.get_by_contact.return_value = sample_school

        result = await DuplicateCheckService(mock_repository).check_duplicate(
            "new@school.edu", "9876543210"
        )

        assert result == DuplicateCheckResult(is_duplicate=True, field="contact")

    @pytest.mark.asyncio
    async def test_email_reported_when_both_conflict(self, mock_repository, sample_school):
        """Email is checked first; contact is not looked up once email conflicts."""
        mock_repository.get_by_email.return_value = sample_school
        mock_repository.get_by_contact.return_value = sample_school

        result = await DuplicateCheckService(mock_repository).check_duplicate(
            "office@greenvalley.edu", "9876543210"
        )

        assert result.field == "email"
        mock_repository.get_by_contact.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_repeated_checks_agree(self, school_repository, school_fields):
        """With no intervening writes, the check gives the same answer."""
        await school_repository.insert(school_fields)
        service = DuplicateCheckService(school_repository)

        first = await service.check_duplicate("office@greenvalley.edu", "9000000000")
        second = await service.check_duplicate("office@greenvalley.edu", "9000000000")

        assert first == second == DuplicateCheckResult(is_duplicate=True, field="email")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("email", "contact", "field"),
        [("", "9876543210", "email"), ("a@b.co", "", "contact"), ("", "", "email")],
    )
    async def test_missing_values_rejected(self, mock_repository, email, contact, field):
        """A missing email or contact is a validation error, with no lookup."""
        with pytest.raises(SchoolValidationError) as exc_info:
            await DuplicateCheckService(mock_repository).check_duplicate(email, contact)

        assert exc_info.value.field == field
        mock_repository.get_by_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_failure_propagates(self, mock_repository):
        """Store failures are not reported as 'no duplicate'."""
        mock_repository.get_by_email.side_effect = ConnectionError("db down")

        with pytest.raises(ConnectionError):
            await DuplicateCheckService(mock_repository).check_duplicate(
                "new@school.edu", "9000000000"
            )


class TestCreateSchool:
    """Tests for SchoolService.create_school."""

    @pytest.mark.asyncio
    async def test_create_success(self, mock_repository, school_fields):
        """A valid school is inserted and its ID returned."""
        new_id = uuid4()
        mock_repository.insert.return_value = new_id

        result = await SchoolService(mock_repository).create_school(school_fields)

        assert result == new_id
        mock_repository.insert.assert_awaited_once_with(school_fields)

    @pytest.mark.asyncio
    async def test_invalid_data_never_reaches_store(self, mock_repository, school_fields):
        """Invalid data is rejected before the insert."""
        school_fields["email"] = "not-an-email"

        with pytest.raises(SchoolValidationError) as exc_info:
            await SchoolService(mock_repository).create_school(school_fields)

        assert exc_info.value.field == "email"
        mock_repository.insert.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("field", "message"),
        [
            ("email", "School with this email address already exists"),
            ("contact", "School with this contact number already exists"),
        ],
    )
    async def test_constraint_violation_becomes_duplicate_error(
        self, mock_repository, school_fields, field, message
    ):
        """A unique violation at insert becomes a 409 duplicate error."""
        mock_repository.insert.side_effect = UniquenessViolationError(field)

        with pytest.raises(DuplicateSchoolError) as exc_info:
            await SchoolService(mock_repository).create_school(school_fields)

        assert exc_info.value.field == field
        assert exc_info.value.message == message
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_second_insert_of_same_email_is_rejected(
        self, school_repository, school_fields, other_school_fields
    ):
        """Only the first school with an email is stored."""
        service = SchoolService(school_repository)
        await service.create_school(school_fields)
        other_school_fields["email"] = school_fields["email"]

        with pytest.raises(DuplicateSchoolError) as exc_info:
            await service.create_school(other_school_fields)

        assert exc_info.value.field == "email"
        assert len(school_repository.records) == 1


class TestListSchools:
    """Tests for SchoolService.list_schools."""

    @pytest.mark.asyncio
    async def test_list_newest_first(self, school_repository, school_fields, other_school_fields):
        """The most recently added school comes first."""
        service = SchoolService(school_repository)
        await service.create_school(school_fields)
        await service.create_school(other_school_fields)

        schools = await service.list_schools()

        assert [s.email for s in schools] == ["admin@riverside.edu", "office@greenvalley.edu"]

    @pytest.mark.asyncio
    async def test_list_empty(self, mock_repository):
        """An empty directory lists nothing."""
        assert await SchoolService(mock_repository).list_schools() == []
