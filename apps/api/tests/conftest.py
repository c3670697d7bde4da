"""
Shared fixtures: in-memory stand-ins for the database and the object store.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from io import BytesIO
from types import SimpleNamespace
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

from school_directory.core.exceptions import UniquenessViolationError
from school_directory.core.storage import ObjectAlreadyExistsError, StoredObject
from school_directory.main import app
from school_directory.modules.schools.router import get_repository
from school_directory.modules.uploads.router import get_image_store
from school_directory.modules.uploads.service import ContentAddressedImageStore


class InMemoryObjectStore:
    """Object store keeping objects in a dict, with no-overwrite writes."""

    def __init__(self):
        self.objects: dict[str, StoredObject] = {}
        self.payloads: dict[str, bytes] = {}
        self.head_calls: list[str] = []
        self.put_calls: list[str] = []
        self.fail_head = False
        self.fail_put = False

    def public_url(self, key: str) -> str:
        return f"https://images.test/{key}"

    async def head(self, key: str) -> StoredObject | None:
        self.head_calls.append(key)
        # Yield so concurrent callers can interleave
        await asyncio.sleep(0)
        if self.fail_head:
            raise ConnectionError("object store unreachable")
        return self.objects.get(key)

    async def put_if_absent(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str,
        width: int,
        height: int,
    ) -> StoredObject:
        self.put_calls.append(key)
        if self.fail_put:
            raise ConnectionError("object store unreachable")
        if key in self.objects:
            raise ObjectAlreadyExistsError(key)
        stored = StoredObject(key=key, url=self.public_url(key), width=width, height=height)
        self.objects[key] = stored
        self.payloads[key] = data
        return stored


class InMemorySchoolRepository:
    """Repository double enforcing email/contact uniqueness on insert."""

    def __init__(self):
        self.records: list[SimpleNamespace] = []
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)

    async def list_all(self) -> list[SimpleNamespace]:
        return sorted(self.records, key=lambda r: r.created_at, reverse=True)

    async def get_by_email(self, email: str) -> SimpleNamespace | None:
        await asyncio.sleep(0)
        return next((r for r in self.records if r.email == email), None)

    async def get_by_contact(self, contact: str) -> SimpleNamespace | None:
        await asyncio.sleep(0)
        return next((r for r in self.records if r.contact == contact), None)

    async def insert(self, fields) -> object:
        # No await between the check and the write, so inserts are atomic
        if any(r.email == fields["email"] for r in self.records):
            raise UniquenessViolationError("email")
        if any(r.contact == str(fields["contact"]) for r in self.records):
            raise UniquenessViolationError("contact")

        self._clock += timedelta(seconds=1)
        record = SimpleNamespace(
            id=uuid4(),
            name=fields["name"],
            address=fields["address"],
            city=fields["city"],
            state=fields["state"],
            contact=str(fields["contact"]),
            email=fields["email"],
            image=fields.get("image") or None,
            created_at=self._clock,
        )
        self.records.append(record)
        return record.id


def make_image_bytes(
    width: int = 1600,
    height: int = 1200,
    color: tuple[int, int, int] = (30, 120, 200),
    image_format: str = "PNG",
) -> bytes:
    """Encode a solid-color image."""
    image = Image.new("RGB", (width, height), color)
    buffer = BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
def school_repository():
    return InMemorySchoolRepository()


@pytest.fixture
def make_image():
    """Factory fixture for encoded test images."""
    return make_image_bytes


@pytest.fixture
def png_bytes():
    """A 1600x1200 PNG, larger than the 800x600 output box."""
    return make_image_bytes()


@pytest.fixture
def other_png_bytes():
    return make_image_bytes(color=(200, 40, 40))


@pytest.fixture
def school_fields():
    """A valid submission."""
    return {
        "name": "Green Valley High",
        "address": "12 Ridge Road",
        "city": "Pune",
        "state": "Maharashtra",
        "contact": "9876543210",
        "email": "office@greenvalley.edu",
    }


@pytest.fixture
def other_school_fields():
    """A valid submission sharing no unique field with ``school_fields``."""
    return {
        "name": "Riverside Academy",
        "address": "4 Lake View",
        "city": "Nashik",
        "state": "Maharashtra",
        "contact": "9123456780",
        "email": "admin@riverside.edu",
    }


@pytest.fixture
def image_store(object_store):
    return ContentAddressedImageStore(object_store)


@pytest_asyncio.fixture
async def api_client(school_repository, image_store):
    """HTTP client wired to the app with in-memory stores behind it."""
    app.dependency_overrides[get_repository] = lambda: school_repository
    app.dependency_overrides[get_image_store] = lambda: image_store
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
