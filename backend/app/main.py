"""
DevEvent API - Main Application Entry Point

Event listing and booking service backed by MongoDB:
- One memoized database connection per process, shared by all requests
- Slug derivation and date/time normalization before every event write
- Referential-integrity check before every booking insert
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from app.core.config import get_settings
from app.core.exceptions import (
    ConnectionFailure,
    DanglingReference,
    NotFound,
    UniquenessViolation,
    ValidationFailure,
)
from app.core.logging import setup_logging, get_logger
from app.core.metrics import metrics_endpoint
from app.api.router import api_router
from app.api.middleware import RequestLoggingMiddleware
from app.db.connection import acquire_connection, reset_connection_manager
from app.db.indexes import ensure_indexes

# Raises MissingConfiguration here, before anything is served, when MONGODB_URI is unset
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    try:
        handle = await acquire_connection()
    except ConnectionFailure as e:
        # Requests retry through get_db; indexes are created on the next startup
        logger.warning("database_unavailable", error=str(e.cause))
    else:
        await ensure_indexes(handle)
        logger.info("database_ready")

    yield

    await reset_connection_manager()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Event listing and booking API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

# Routes
app.include_router(api_router)


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(request: Request, exc: ValidationFailure):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": exc.message, "field": exc.field, "errors": exc.errors},
    )


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": str(exc)})


@app.exception_handler(DanglingReference)
async def dangling_reference_handler(request: Request, exc: DanglingReference):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"message": str(exc), "eventId": exc.event_id},
    )


@app.exception_handler(UniquenessViolation)
async def uniqueness_violation_handler(request: Request, exc: UniquenessViolation):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"message": str(exc), "field": exc.field},
    )


@app.exception_handler(ConnectionFailure)
async def connection_failure_handler(request: Request, exc: ConnectionFailure):
    get_logger(__name__).error("request_database_unavailable", error=str(exc.cause))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"message": "Database unavailable."},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    get_logger(__name__).exception("unexpected_error", error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Unexpected server error."},
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for Docker and load balancers.
    Pings the database; answers 503 with status "degraded" when it is unreachable.
    """
    try:
        handle = await acquire_connection()
        await handle.database.command("ping")
    except (ConnectionFailure, PyMongoError) as e:
        get_logger(__name__).warning("health_database_unavailable", error=str(e))
        database, health, status_code = "unavailable", "degraded", status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        database, health, status_code = "connected", "healthy", status.HTTP_200_OK

    return JSONResponse(
        status_code=status_code,
        content={
            "status": health,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "database": database,
        },
    )


@app.get("/metrics", tags=["Health"])
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
