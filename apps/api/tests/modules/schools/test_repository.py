"""
Unit tests for the school repository.

These tests cover:
- Mapping unique constraint violations onto the conflicting field
- Insert success and rollback on conflict
- Lookups and listing
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from school_directory.core.exceptions import UniquenessViolationError
from school_directory.modules.schools.models import School
from school_directory.modules.schools.repository import SchoolRepository, _conflicting_field


def _integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO schools ...", {}, orig)


class _DriverError(Exception):
    """Driver exception exposing the violated constraint by name."""

    def __init__(self, message: str, constraint_name: str):
        super().__init__(message)
        self.constraint_name = constraint_name


class TestConflictingField:
    """Tests for _conflicting_field."""

    def test_postgres_email_constraint(self):
        """The email constraint name in the message maps to email."""
        error = _integrity_error(
            Exception('duplicate key value violates unique constraint "uq_schools_email"')
        )
        assert _conflicting_field(error) == "email"

    def test_postgres_contact_constraint(self):
        """The contact constraint name in the message maps to contact."""
        error = _integrity_error(
            Exception('duplicate key value violates unique constraint "uq_schools_contact"')
        )
        assert _conflicting_field(error) == "contact"

    def test_constraint_name_attribute(self):
        """asyncpg exposes the constraint on the exception itself."""
        error = _integrity_error(_DriverError("unique violation", "uq_schools_contact"))
        assert _conflicting_field(error) == "contact"

    def test_sqlite_column_message(self):
        """SQLite reports the column rather than the constraint."""
        error = _integrity_error(Exception("UNIQUE constraint failed: schools.email"))
        assert _conflicting_field(error) == "email"

    def test_unrelated_constraint(self):
        """Other integrity failures map to no field."""
        error = _integrity_error(Exception('null value in column "name" violates not-null'))
        assert _conflicting_field(error) is None


class TestInsert:
    """Tests for SchoolRepository.insert."""

    @pytest.mark.asyncio
    async def test_insert_returns_new_id(self, mock_db, school_fields):
        """Insert commits the school and returns its ID."""
        new_id = uuid4()

        async def assign_id(school):
            school.id = new_id

        mock_db.refresh.side_effect = assign_id

        result = await SchoolRepository(mock_db).insert(school_fields)

        assert result == new_id
        added = mock_db.add.call_args[0][0]
        assert isinstance(added, School)
        assert added.email == "office@greenvalley.edu"
        assert added.contact == "9876543210"
        assert added.image is None
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_insert_stores_image_url(self, mock_db, school_fields):
        """The image URL is stored on the record."""
        school_fields["image"] = "https://images.test/school-directory/img_abc"

        await SchoolRepository(mock_db).insert(school_fields)

        added = mock_db.add.call_args[0][0]
        assert added.image == "https://images.test/school-directory/img_abc"

    @pytest.mark.asyncio
    async def test_insert_stringifies_contact(self, mock_db, school_fields):
        """A numeric contact is stored as text."""
        school_fields["contact"] = 9876543210

        await SchoolRepository(mock_db).insert(school_fields)

        assert mock_db.add.call_args[0][0].contact == "9876543210"

    @pytest.mark.asyncio
    async def test_unique_violation_is_mapped_to_field(self, mock_db, school_fields):
        """A unique violation rolls back and names the conflicting field."""
        mock_db.commit.side_effect = _integrity_error(
            Exception('duplicate key value violates unique constraint "uq_schools_email"')
        )

        with pytest.raises(UniquenessViolationError) as exc_info:
            await SchoolRepository(mock_db).insert(school_fields)

        assert exc_info.value.field == "email"
        mock_db.rollback.assert_awaited_once()
        mock_db.refresh.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_integrity_errors_propagate(self, mock_db, school_fields):
        """Integrity errors on other constraints are re-raised unchanged."""
        mock_db.commit.side_effect = _integrity_error(Exception("check constraint failed"))

        with pytest.raises(IntegrityError):
            await SchoolRepository(mock_db).insert(school_fields)

        mock_db.rollback.assert_awaited_once()


class TestQueries:
    """Tests for lookups and listing."""

    @pytest.mark.asyncio
    async def test_get_by_email(self, mock_db, sample_school):
        """Lookup by email returns the matching school."""
        result = MagicMock()
        result.scalar_one_or_none.return_value = sample_school
        mock_db.execute.return_value = result

        school = await SchoolRepository(mock_db).get_by_email("office@greenvalley.edu")

        assert school is sample_school
        mock_db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_by_contact_not_found(self, mock_db):
        """Lookup by an unused contact returns None."""
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db.execute.return_value = result

        assert await SchoolRepository(mock_db).get_by_contact("9876543210") is None

    @pytest.mark.asyncio
    async def test_list_all(self, mock_db, sample_school):
        """Listing returns every stored school."""
        result = MagicMock()
        result.scalars.return_value.all.return_value = [sample_school]
        mock_db.execute.return_value = result

        schools = await SchoolRepository(mock_db).list_all()

        assert schools == [sample_school]

    @pytest.mark.asyncio
    async def test_list_all_orders_newest_first(self, mock_db):
        """Listing orders by creation time, then ID, descending."""
        result = MagicMock()
        result.scalars.return_value.all.return_value = []
        mock_db.execute.return_value = result

        await SchoolRepository(mock_db).list_all()

        statement = mock_db.execute.call_args[0][0]
        order_by = str(statement).split("ORDER BY", 1)[1]
        assert "schools.created_at DESC" in order_by
        assert "schools.id DESC" in order_by
