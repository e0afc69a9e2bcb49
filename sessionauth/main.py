"""Session Auth - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sessionauth.api.auth import router as auth_router
from sessionauth.api.health import router as health_router
from sessionauth.api.session import router as session_router
from sessionauth.core import engine, settings, setup_logging
from sessionauth.core.logging import get_logger
from sessionauth.middleware import auth_error_response

# Import all models to ensure they're registered with Base for Alembic
from sessionauth.models import User, UserSession  # noqa: F401
from sessionauth.services.errors import AuthError

logger = get_logger("main")

_LOCATIONS = {"body", "path", "query", "header", "cookie"}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="dev" if settings.debug else "structured",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"Security configuration: {warning}")

    yield

    logger.info("Shutting down...")
    await engine.dispose()


async def _handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    return auth_error_response(request, exc)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and path parameters are client errors (400)."""
    errors = exc.errors()
    detail = "Invalid request"
    if errors:
        loc = ".".join(str(part) for part in errors[0].get("loc", ()) if part not in _LOCATIONS)
        msg = errors[0].get("msg", "invalid value")
        detail = f"Invalid {loc}: {msg}" if loc else msg
    return JSONResponse(status_code=400, content={"detail": detail})


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Email/password authentication with per-device session management",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on error responses too.
    # Credentials are allowed because the token travels in a cookie.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_origin_regex=settings.cors_origin_regex or None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept",
        ],
    )

    app.add_exception_handler(AuthError, _handle_auth_error)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, _handle_validation_error  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, _handle_unexpected_error)

    # Include routers
    app.include_router(health_router)  # Health at root level
    app.include_router(auth_router)  # /auth
    app.include_router(session_router)  # /session

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "running",
        }

    return app


# Application instance
app = create_app()
