import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.responses import error_response
from app.api.routes.cities import router as cities_router
from app.api.routes.files import router as files_router
from app.api.routes.health import router as health_router
from app.api.routes.persons import router as persons_router
from app.api.routes.reports import router as reports_router
from app.core.config import settings
from app.core.db import create_all_tables
from app.core.errors import ErrorKey, PersonDirectoryError, get_status_code
from app.core.localization import Localizer, negotiate_locale
from app.core.middleware import RequestSizeLimitMiddleware
from app.core.observability import (
    ObservabilityMiddleware,
    configure_structured_logging,
    extract_request_context,
    metrics_endpoint,
)
from app.core.telemetry import (
    init_telemetry,
    instrument_fastapi,
    instrument_httpx,
    shutdown_telemetry,
)

# Configure structured logging before creating logger
if settings.observability_structured_logs:
    configure_structured_logging(settings.app_log_level)

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

_ERROR_KEY_VALUES = frozenset(key.value for key in ErrorKey)

# Keys for pydantic errors that carry no ErrorKey of their own, by (field alias, error type)
_FIELD_ERROR_KEYS: dict[tuple[str, str], ErrorKey] = {
    ("gender", "enum"): ErrorKey.GENDER_INVALID,
    ("type", "enum"): ErrorKey.PHONE_TYPE_INVALID,
    ("connectionType", "enum"): ErrorKey.CONNECTION_TYPE_INVALID,
    ("firstName", "missing"): ErrorKey.FIRST_NAME_REQUIRED,
    ("lastName", "missing"): ErrorKey.LAST_NAME_REQUIRED,
    ("gender", "missing"): ErrorKey.GENDER_INVALID,
    ("personalNumber", "missing"): ErrorKey.PERSONAL_NUMBER_REQUIRED,
    ("dateOfBirth", "missing"): ErrorKey.DATE_OF_BIRTH_REQUIRED,
    ("cityId", "missing"): ErrorKey.CITY_ID_REQUIRED,
    ("number", "missing"): ErrorKey.PHONE_NUMBER_REQUIRED,
    ("personId", "missing"): ErrorKey.PERSON_ID_REQUIRED,
    ("connectedPersonId", "missing"): ErrorKey.CONNECTED_PERSON_ID_REQUIRED,
}


def _request_localizer(request: Request) -> Localizer:
    return Localizer(negotiate_locale(request.headers.get("accept-language")))


def validation_messages(errors: list[dict[str, Any]], localizer: Localizer) -> list[str]:
    """
    Turn pydantic/FastAPI validation errors into display messages.

    Errors raised by our validators carry an ErrorKey value and are
    localized; known missing or enum fields map to their ErrorKey; anything
    else is rendered as ``field: message``.
    """
    messages: list[str] = []
    for err in errors:
        ctx_error = (err.get("ctx") or {}).get("error")
        raw = str(ctx_error) if ctx_error is not None else None
        if raw in _ERROR_KEY_VALUES:
            messages.append(localizer.get(raw))
            continue

        loc = [str(part) for part in err.get("loc", ())]
        field = loc[-1] if loc else ""
        key = _FIELD_ERROR_KEYS.get((field, err.get("type", "")))
        if key is not None:
            messages.append(localizer.get(key))
        else:
            location = ".".join(part for part in loc if part not in ("body", "query", "path"))
            messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return messages


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize tracing and (optionally) the schema; flush spans on shutdown."""
    init_telemetry()
    instrument_fastapi(app)
    instrument_httpx()
    # SQLAlchemy is instrumented in app/core/db.py when the engine is created

    if settings.db_auto_create:
        await create_all_tables()

    yield

    shutdown_telemetry()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Sets up:
    - OpenTelemetry distributed tracing
    - Structured logging with correlation IDs
    - Observability middleware (metrics, request tracking)
    - CORS and request size limits
    - Exception handlers rendering the ApiResponse envelope
    - API routers
    - Metrics endpoint for Prometheus scraping
    """
    app = FastAPI(
        title="Person Directory API",
        description="Directory of persons, their phone numbers and connections",
        version="0.1.0",
        lifespan=lifespan,
    )

    # ============================================================================
    # Middleware
    # ============================================================================

    if settings.observability_enabled:
        app.add_middleware(
            ObservabilityMiddleware,
            request_id_header=settings.observability_request_id_header,
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(RequestSizeLimitMiddleware, max_size_mb=settings.max_file_size_mb)

    # ============================================================================
    # Exception Handlers
    # ============================================================================

    @app.exception_handler(PersonDirectoryError)
    async def person_directory_error_handler(
        request: Request, exc: PersonDirectoryError
    ) -> JSONResponse:
        """
        Handle domain exceptions that escaped the service layer.

        Maps them to HTTP status codes via ERROR_STATUS_MAP.
        """
        status_code = get_status_code(exc)
        context = {
            "details": exc.details,
            "path": request.url.path,
            **extract_request_context(request),
        }
        if status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}", extra=context)
            message = _request_localizer(request).get(ErrorKey.INTERNAL_SERVER_ERROR)
        else:
            logger.warning(f"{exc.__class__.__name__}: {exc.message}", extra=context)
            key = getattr(exc, "key", None)
            message = _request_localizer(request).get(key) if key else exc.message
        return error_response(message, status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Render request validation failures as 400 with one message per error."""
        localizer = _request_localizer(request)
        messages = validation_messages(list(exc.errors()), localizer)
        logger.info(
            "Request validation failed",
            extra={"path": request.url.path, "error_count": len(messages)},
        )
        return error_response(localizer.get(ErrorKey.VALIDATION_FAILED), errors=messages)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Consistent envelope for HTTP exceptions, including unknown routes."""
        if exc.status_code >= 500:
            logger.error(
                f"HTTP {exc.status_code}: {exc.detail}",
                extra={"path": request.url.path, **extract_request_context(request)},
            )
        response = error_response(str(exc.detail), exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Catch-all handler for unexpected exceptions.

        Logs the full exception and returns a generic 500 error to the client
        without exposing internal implementation details.
        """
        context = {
            "path": request.url.path if request.url else "unknown",
            **extract_request_context(request),
        }
        logger.error(f"Unhandled exception: {exc}", exc_info=True, extra=context)
        return error_response(
            _request_localizer(request).get(ErrorKey.INTERNAL_SERVER_ERROR),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    # ============================================================================
    # Router Registration
    # ============================================================================

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(persons_router, prefix=API_PREFIX)
    app.include_router(cities_router, prefix=API_PREFIX)
    app.include_router(reports_router, prefix=API_PREFIX)
    app.include_router(files_router, prefix=API_PREFIX)

    # ============================================================================
    # Metrics Endpoint (Prometheus)
    # ============================================================================

    async def metrics_route(request: Request) -> Response:
        return metrics_endpoint()

    if settings.observability_enabled:
        app.add_route("/metrics", metrics_route)

    return app


app = create_app()
