"""
Tubely API - FastAPI Application.

Builds the FastAPI application:

- Lifespan hook configuring logging and the MongoDB connection
- CORS and request logging middleware
- Request body ceilings for the upload endpoints
- Exception handlers rendering application errors as {"error", "message"}
- /api/v1 routers, /assets static mount for thumbnails, health endpoints

API Structure:
    /api/v1/videos                         - Video records (create, list)
    /api/v1/videos/{video_id}              - Video record (get, delete)
    /api/v1/videos/{video_id}/video        - Video file upload
    /api/v1/videos/{video_id}/thumbnail    - Thumbnail upload
    /assets/{name}                         - Uploaded thumbnails
"""

import logging
import time
import uuid

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from tubely import __version__
from tubely.api.v1 import api_router
from tubely.config import Settings, get_settings
from tubely.core.database import close_db, get_db_client, init_db
from tubely.core.exceptions import TubelyError
from tubely.core.middleware import UploadSizeLimitMiddleware
from tubely.utils.logger import setup_logging


logger = logging.getLogger(__name__)

HTTP_ERROR_THRESHOLD = 400

VIDEO_UPLOAD_PATH = r"^/api/v1/videos/[^/]+/video$"
THUMBNAIL_UPLOAD_PATH = r"^/api/v1/videos/[^/]+/thumbnail$"


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Startup: configure logging, connect to MongoDB, create the assets directory.
    Shutdown: close the MongoDB connection.
    """
    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info(
        "Tubely API starting",
        extra={
            "app_env": settings.app_env,
            "host": settings.host,
            "port": settings.port,
            "bucket": settings.s3_bucket_name,
        },
    )

    settings.assets_path.mkdir(parents=True, exist_ok=True)
    await init_db(settings)

    yield

    logger.info("Tubely API shutting down")
    await close_db()


# =============================================================================
# FastAPI Application Instance
# =============================================================================

_settings = get_settings()

app = FastAPI(
    title=_settings.app_name,
    description="Upload, prepare and stream short-form videos.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)


def _current_settings() -> Settings:
    """Settings as route dependencies see them, including dependency_overrides."""
    return app.dependency_overrides.get(get_settings, get_settings)()


# =============================================================================
# Middleware Configuration
# =============================================================================

app.add_middleware(
    UploadSizeLimitMiddleware,
    limits=[
        (VIDEO_UPLOAD_PATH, lambda: _current_settings().max_video_upload_bytes),
        (THUMBNAIL_UPLOAD_PATH, lambda: _current_settings().max_thumbnail_upload_bytes),
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    """
    Log each request with its status and duration.

    Adds X-Request-ID and X-Process-Time headers to every response.
    """
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    start_time = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Request failed",
            extra={"method": request.method, "path": request.url.path, "request_id": request_id},
        )
        raise

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["X-Process-Time"] = f"{process_time_ms}ms"
    response.headers["X-Request-ID"] = request_id

    log_level = logging.INFO if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        "Request completed",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": process_time_ms,
            "request_id": request_id,
        },
    )
    return response


# =============================================================================
# Routes
# =============================================================================

app.include_router(api_router, prefix="/api/v1")

app.mount(
    "/assets",
    StaticFiles(directory=_settings.assets_root, check_dir=False),
    name="assets",
)


@app.get("/", response_class=JSONResponse, tags=["root"], summary="API Root")
async def root() -> dict[str, Any]:
    return {
        "name": get_settings().app_name,
        "version": __version__,
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "api_prefix": "/api/v1",
    }


@app.get("/health", response_class=JSONResponse, tags=["health"], summary="Health Check")
async def health_check() -> dict[str, Any]:
    """Liveness probe; does not touch any dependency."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "service": get_settings().app_name,
    }


@app.get("/ready", response_class=JSONResponse, tags=["health"], summary="Readiness Check")
async def readiness_check() -> JSONResponse:
    """Readiness probe; reports whether MongoDB answers a ping."""
    try:
        mongodb_ready = await get_db_client().ping()
    except RuntimeError:
        mongodb_ready = False

    return JSONResponse(
        status_code=200 if mongodb_ready else 503,
        content={
            "ready": mongodb_ready,
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": {"mongodb": mongodb_ready},
        },
    )


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(TubelyError)
async def tubely_error_handler(request: Request, exc: TubelyError) -> JSONResponse:
    """Render application errors with their mapped status code."""
    if exc.status_code >= 500:
        logger.error(
            "Request failed with server error",
            exc_info=exc,
            extra={"path": request.url.path, "error": exc.error_code},
        )
    else:
        logger.info(
            "Request rejected",
            extra={"path": request.url.path, "error": exc.error_code, "reason": exc.message},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Render HTTP exceptions in the application error shape.

    Structured details (a dict with an "error" key) are returned as-is.
    """
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    elif exc.status_code == 404:
        content = {
            "error": "not_found",
            "message": f"The requested path '{request.url.path}' was not found",
        }
    else:
        content = {"error": "http_error", "message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors and hide their details from clients."""
    logger.error(
        f"Internal server error on {request.method} {request.url.path}: {exc!s}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )
