"""
FastAPI Application Entry Point for the job board

This module creates and configures the main FastAPI application instance with all
middleware, routes, exception handlers, and lifecycle events.

Features:
- Automatic OpenAPI documentation generation
- CORS middleware for the web client
- Security headers, request ids and rate limiting
- Database connection management and default role seeding
- One error envelope for every failure: {"error": {"message", "issues"?}}
- Health check
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import API_DESCRIPTION, API_TITLE, API_VERSION, api_router
from app.core.config import get_settings
from app.core.database import check_db_health, close_db, init_db
from app.core.exceptions import AppError
from app.core.logging import clear_request_context, set_request_context, setup_logging
from app.core.rate_limit import limiter
from app.core.security import SecurityHeaders
from app.services import shutdown_services, startup_services
from app.utils.file_handling import UPLOAD_URL_PREFIX

# Initialize settings and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

# Pydantic prefixes messages raised from validators
_VALUE_ERROR_PREFIX = "Value error, "
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie", "form"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} ({settings.environment})...")

    try:
        logger.info("Initializing database...")
        await init_db()
        await startup_services()
        logger.info("Application startup completed successfully")

        yield

    except Exception as e:
        logger.error(f"Startup failed: {str(e)}", exc_info=True)
        raise

    finally:
        logger.info(f"Shutting down {settings.app_name}...")

        try:
            await shutdown_services()
            await close_db()
            logger.info("Application shutdown completed successfully")

        except Exception as e:
            logger.error(f"Shutdown error: {str(e)}", exc_info=True)


# Create FastAPI application instance
app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
    lifespan=lifespan,
    debug=settings.debug
)

# Security middleware
app.add_middleware(SecurityHeaders)

# Rate limiting middleware
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# CORS middleware for the web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tag every request and its log lines with a request id."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    set_request_context(request_id)
    try:
        response = await call_next(request)
    finally:
        clear_request_context()
    response.headers["X-Request-ID"] = request_id
    return response


# Include API routes
app.include_router(api_router, prefix="/api")

# Uploaded files
app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


# Exception handlers
def _error(status_code: int, message: str, issues=None) -> JSONResponse:
    error: Dict[str, Any] = {"message": message}
    if issues:
        error["issues"] = issues
    return JSONResponse(status_code=status_code, content={"error": error})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Handle errors raised by the services."""
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions raised by the framework."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = _error(exc.status_code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors with one issue per failing field."""
    issues = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        message = str(err.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        issues.append({"path": ".".join(loc), "message": message})
    return _error(status.HTTP_400_BAD_REQUEST, "Validation error", issues)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded on {request.url.path}")
    return _error(status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests, please try again later")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions; the traceback stays in the server log."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# Health check endpoint
@app.get("/health", tags=["health"])
@limiter.limit("30/minute")
async def health_check(request: Request) -> JSONResponse:
    """
    Health check endpoint for monitoring and load balancers.
    """
    database = await check_db_health()
    healthy = database.get("status") == "healthy"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "version": API_VERSION,
            "environment": settings.environment,
            "services": {
                "database": database.get("status"),
                "api": "healthy",
            },
        },
    )


if __name__ == "__main__":
    # Development server
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
        access_log=True
    )
