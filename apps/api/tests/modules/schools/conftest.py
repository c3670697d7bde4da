"""
Fixtures for schools tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from school_directory.modules.schools.models import School


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_repository():
    """Create a mock school repository with no stored schools."""
    repository = AsyncMock()
    repository.get_by_email = AsyncMock(return_value=None)
    repository.get_by_contact = AsyncMock(return_value=None)
    repository.list_all = AsyncMock(return_value=[])
    repository.insert = AsyncMock(return_value=uuid4())
    return repository


@pytest.fixture
def sample_school():
    """Create a sample stored school."""
    school = School(
        name="Green Valley High",
        address="12 Ridge Road",
        city="Pune",
        state="Maharashtra",
        contact="9876543210",
        email="office@greenvalley.edu",
        image=None,
    )
    school.id = uuid4()
    school.created_at = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)
    school.updated_at = school.created_at
    return school
