"""
Bug Tracker API - application factory and process entry point
"""
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIASGIMiddleware
from sqlalchemy.exc import IntegrityError

from bugtracker import __version__
from bugtracker.api.router import api_router
from bugtracker.core.config import settings
from bugtracker.core.database import close_db, init_db
from bugtracker.core.exceptions import BugTrackerError, format_validation_errors
from bugtracker.core.logging_config import logger
from bugtracker.core.middleware import (
    RequestLoggingMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)
from bugtracker.core.rate_limiter import limiter, rate_limit_exceeded_handler


def validate_critical_config() -> None:
    """
    Refuse to boot on configuration that cannot work, and warn about
    configuration that only works outside production.
    """
    problems: List[str] = []
    production = settings.ENVIRONMENT == "production"

    if not settings.DATABASE_URL:
        problems.append("DATABASE_URL is empty")

    if settings.uses_default_secret():
        notice = "JWT_SECRET_KEY is unset; tokens are signed with the fallback secret"
        if production:
            problems.append(notice)
        else:
            logger.warning(f"[Startup] {notice}")

    if problems:
        for problem in problems:
            logger.critical(f"[Startup] {problem}")
        raise RuntimeError("Refusing to start: " + "; ".join(problems))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"[Startup] {settings.APP_NAME} v{__version__} ({settings.ENVIRONMENT})")
    validate_critical_config()
    await init_db()
    logger.info("[Startup] Database ready")
    try:
        yield
    finally:
        logger.info("[Shutdown] Closing database connections")
        await close_db()


def _error(status_code: int, message: str, details: Optional[List[str]] = None) -> JSONResponse:
    body = {"error": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


async def handle_bugtracker_error(request: Request, exc: BugTrackerError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = format_validation_errors(exc.errors())
    logger.warning(
        f"Rejected {request.method} {request.url.path}: {'; '.join(details)}",
        extra={"event_type": "validation_error", "http_path": request.url.path},
    )
    return _error(400, "Validation failed", details)


async def handle_integrity_error(request: Request, exc: IntegrityError):
    # A unique index lost a race against a concurrent insert
    logger.warning(
        f"Constraint violation on {request.method} {request.url.path}: {exc.orig}",
        extra={"event_type": "integrity_error", "http_path": request.url.path},
    )
    return _error(400, "Duplicate or conflicting value")


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    return _error(500, "Internal server error")


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.APP_NAME,
        description="Bug reporting and tracking API",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    application.add_exception_handler(BugTrackerError, handle_bugtracker_error)
    application.add_exception_handler(RequestValidationError, handle_validation_error)
    application.add_exception_handler(IntegrityError, handle_integrity_error)
    application.add_exception_handler(Exception, handle_unexpected_error)

    # Starlette runs the most recently added middleware outermost
    application.add_middleware(SlowAPIASGIMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )

    @application.get("/health", tags=["Health"])
    async def liveness():
        return {"status": "healthy", "version": __version__, "environment": settings.ENVIRONMENT}

    @application.get("/", tags=["Root"])
    async def service_info():
        return {
            "name": settings.APP_NAME,
            "version": __version__,
            "api": settings.API_PREFIX,
            "docs": application.docs_url,
            "health": "/health",
        }

    application.include_router(api_router, prefix=settings.API_PREFIX)
    return application


app = create_app()


def run():
    """Console entry point: ``bugtracker-server``"""
    import uvicorn

    uvicorn.run("bugtracker.main:app", host=settings.SERVER_HOST,
                port=settings.SERVER_PORT, reload=settings.DEBUG)


if __name__ == "__main__":
    run()
