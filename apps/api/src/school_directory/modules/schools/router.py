"""
Schools Router

API endpoints for the school directory. All endpoints are public.

Endpoints:
- GET /schools - List schools, newest first
- POST /schools - Add a school (image given as an already-stored URL)
- POST /schools/check-duplicate - Advisory email/contact duplicate check
- POST /schools/submit - Full submission pipeline with an optional image file

Errors are raised as ``SchoolServiceError`` subclasses and rendered by the
application-level exception handler, e.g.:
    409 {"success": false, "error": "DUPLICATE_SCHOOL", "isDuplicate": true, "field": "email", ...}
"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.core.config import settings
from school_directory.core.database import get_db
from school_directory.core.exceptions import (
    DuplicateSchoolError,
    SchoolServiceError,
    SchoolValidationError,
    SystemFailureError,
)
from school_directory.modules.schools.repository import SchoolRepository
from school_directory.modules.schools.schemas import (
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    SchoolCreate,
    SchoolCreatedData,
    SchoolCreatedResponse,
    SchoolListResponse,
    SchoolRead,
)
from school_directory.modules.schools.service import DuplicateCheckService, SchoolService
from school_directory.modules.schools.submission import ImageUpload, SubmissionOrchestrator
from school_directory.modules.uploads.router import get_image_store, read_upload
from school_directory.modules.uploads.service import ContentAddressedImageStore

logger = logging.getLogger(__name__)

router = APIRouter()


def get_repository(db: AsyncSession = Depends(get_db)) -> SchoolRepository:
    return SchoolRepository(db)


@router.get(
    "",
    response_model=SchoolListResponse,
    summary="List Schools",
    responses={500: {"description": "Failed to fetch schools"}},
)
async def list_schools(
    repository: SchoolRepository = Depends(get_repository),
) -> SchoolListResponse:
    """Return every school, newest first. Filtering is left to the client."""
    try:
        schools = await SchoolService(repository).list_schools()
    except Exception as e:
        logger.exception(f"Failed to fetch schools: {e}")
        raise SystemFailureError("Failed to fetch schools") from e

    return SchoolListResponse(data=[SchoolRead.model_validate(school) for school in schools])


@router.post(
    "",
    response_model=SchoolCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add School",
    description="""
Add a school to the directory.

The email address and contact number must each be unused. The database
constraint is the final authority: a request that loses a race with a
concurrent submission is rejected with 409 even if a prior duplicate check
passed.
""",
    responses={
        400: {"description": "Missing or invalid field"},
        409: {"description": "Email or contact already used"},
        500: {"description": "Failed to add school"},
    },
)
async def create_school(
    data: SchoolCreate,
    repository: SchoolRepository = Depends(get_repository),
) -> SchoolCreatedResponse:
    """Validate and insert a school."""
    try:
        school_id = await SchoolService(repository).create_school(data.as_fields())
    except DuplicateSchoolError as e:
        logger.warning(f"Duplicate school rejected: field={e.field}")
        raise
    except SchoolValidationError as e:
        logger.info(f"Invalid school rejected: field={e.field}")
        raise
    except Exception as e:
        logger.exception(f"Unexpected error adding school: {e}")
        raise SystemFailureError("Failed to add school") from e

    return SchoolCreatedResponse(data=SchoolCreatedData(id=school_id, image=data.image))


@router.post(
    "/check-duplicate",
    response_model=DuplicateCheckResponse,
    summary="Check For Duplicate School",
    description="""
Report whether a school already uses the email or contact number.

Email is checked first. The result is advisory: it reserves nothing.
""",
    responses={
        400: {"description": "Email or contact missing"},
        409: {"description": "Email or contact already used"},
    },
)
async def check_duplicate(
    data: DuplicateCheckRequest,
    repository: SchoolRepository = Depends(get_repository),
) -> DuplicateCheckResponse:
    try:
        result = await DuplicateCheckService(repository).check_duplicate(
            data.email or "", data.contact or ""
        )
    except SchoolServiceError:
        raise
    except Exception as e:
        logger.exception(f"Duplicate check failed: {e}")
        raise SystemFailureError("Failed to check for duplicates") from e

    if result.is_duplicate:
        raise DuplicateSchoolError(result.field or "email")

    return DuplicateCheckResponse()


@router.post(
    "/submit",
    response_model=SchoolCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit School With Image",
    description="""
Run the full submission pipeline on the server:
validate, check duplicates, store the image (if any), insert.

No image is uploaded for a submission that fails the duplicate check, and an
image upload failure aborts the submission.
""",
    responses={
        400: {"description": "Missing or invalid field, or invalid image"},
        409: {"description": "Email or contact already used"},
        500: {"description": "Image storage or database failure"},
    },
)
async def submit_school(
    name: str | None = Form(None),
    address: str | None = Form(None),
    city: str | None = Form(None),
    state: str | None = Form(None),
    contact: str | None = Form(None),
    email: str | None = Form(None),
    file: UploadFile | None = File(None),
    repository: SchoolRepository = Depends(get_repository),
    image_store: ContentAddressedImageStore = Depends(get_image_store),
) -> SchoolCreatedResponse:
    fields = SchoolCreate(
        name=name, address=address, city=city, state=state, contact=contact, email=email
    ).as_fields()

    image = None
    if file is not None and file.filename:
        data, content_type = await read_upload(file)
        image = ImageUpload(data=data, content_type=content_type, filename=file.filename)

    orchestrator = SubmissionOrchestrator(
        DuplicateCheckService(repository),
        image_store,
        repository,
        step_timeout=settings.step_timeout_seconds,
    )
    outcome = await orchestrator.submit(fields, image)

    error = outcome.to_error()
    if error is not None:
        logger.info(f"Submission ended with {outcome.status.value}")
        raise error

    return SchoolCreatedResponse(
        data=SchoolCreatedData(
            id=outcome.record_id,
            image=outcome.image.url if outcome.image else None,
        )
    )
