"""
School Directory API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database engine and session factory
- Object storage client for school images
- CORS middleware
- Error rendering for service exceptions
- API routing
- Health check endpoints

Connection handles are created here and kept on ``app.state``; request
handlers receive them through dependencies.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text

from school_directory.api import api_router
from school_directory.core.config import settings
from school_directory.core.database import close_db, create_engine, create_session_maker, init_db
from school_directory.core.exceptions import SchoolServiceError, SchoolValidationError
from school_directory.core.storage import S3ObjectStore

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown of:
    - Database engine
    - Object storage client
    """
    # Startup
    logger.info(f"Starting School Directory API in {settings.python_env} mode...")

    engine = create_engine()
    app.state.engine = engine
    app.state.session_maker = create_session_maker(engine)
    try:
        await init_db(engine)
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    app.state.object_store = S3ObjectStore.from_settings(settings)
    logger.info(f"[OK] Object storage configured (bucket={settings.s3_bucket})")

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down School Directory API...")
    app.state.object_store.close()
    await close_db(engine)
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="School Directory API",
    description="Browse and submit school records",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchoolServiceError)
async def school_service_error_handler(_request: Request, exc: SchoolServiceError) -> JSONResponse:
    """Render service errors as ``{success: false, error, message, ...}``."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as 400 ``VALIDATION_ERROR`` for the first bad field."""
    errors = exc.errors()
    loc = errors[0].get("loc", ()) if errors else ()
    field = loc[-1] if loc and isinstance(loc[-1], str) and loc[-1] != "body" else None
    message = f"{field} is invalid" if field else "Invalid request body"
    logger.info(f"Request rejected by schema: field={field}")
    error = SchoolValidationError(message, field)
    return JSONResponse(status_code=error.status_code, content=error.to_response())


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the School Directory API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check endpoint."""
    return {"status": "ready"}


@app.get("/debug/db", tags=["Debug"])
async def debug_db(request: Request):
    """
    Test the database connection and report whether the schools table exists.

    Only available in development.
    """
    if not settings.is_development:
        return JSONResponse(status_code=404, content={"detail": "Not Found"})

    try:
        async with request.app.state.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            value = result.scalar()
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        return {
            "database": "connected",
            "result": value,
            "schools_table_exists": "schools" in tables,
        }
    except Exception as e:
        return {"database": "error", "message": str(e)}
