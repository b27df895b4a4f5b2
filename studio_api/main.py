"""
Main FastAPI Application

Entry point for the studio management API.
Configures middleware, routes, error handlers, and startup/shutdown events.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import logging
import time
from contextlib import asynccontextmanager

from studio_api import __version__
from studio_api.config import get_settings
from studio_api.database import engine, init_db, SessionLocal
from studio_api.middleware.tenant import TenantContextMiddleware
from studio_api.middleware.rate_limit import RateLimitMiddleware
from studio_api.utils.logging import setup_logging, get_logger
from studio_api.core.roles import RoleRegistry, session_role_loader
from studio_api.core.security import build_token_issuer
from studio_api.core.exceptions import (
    NotFoundError,
    AuthenticationError,
    PermissionDenied,
    TenantIsolationError,
    ConflictError,
    InvalidInputError,
    RateLimitExceeded
)
from studio_api.services.google_oauth import build_google_client
from studio_api.services.roles import seed_default_roles

from studio_api.api.endpoints import auth, users, roles, tenants, events, projects, images, finances

settings = get_settings()

setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=(settings.ENVIRONMENT == "production")
)
logger = get_logger(__name__)


def configure_app_state(app: FastAPI) -> None:
    """Attach the token issuer, role registry and Google client."""
    app.state.token_issuer = build_token_issuer()
    app.state.role_registry = RoleRegistry(
        session_role_loader(SessionLocal),
        ttl_seconds=settings.ROLE_CACHE_TTL_SECONDS,
    )
    app.state.google_client = build_google_client()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting application in {settings.ENVIRONMENT} mode")

    # Create tables outside production only; production schemas are migrated
    if settings.ENVIRONMENT in ("development", "test"):
        logger.warning("Initializing database tables")
        init_db()

    db = SessionLocal()
    try:
        seed_default_roles(db)
    finally:
        db.close()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Studio Management API",
    description="Multi-tenant photography studio backend with tenant isolation, roles and sessions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

configure_app_state(app)


# ============================================================================
# MIDDLEWARE CONFIGURATION
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header to track request duration."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# The last middleware added runs first: tenant context must be set
# before the rate limiter picks a bucket.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(TenantContextMiddleware)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

def _error_response(exc, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": error_type},
        headers=exc.headers or {}
    )


@app.exception_handler(TenantIsolationError)
async def tenant_isolation_error_handler(request: Request, exc: TenantIsolationError):
    """Cross-tenant attempts are already in the security log; add the request."""
    logger.error(
        f"TENANT ISOLATION VIOLATION: {request.method} {request.url.path}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "tenant_id": getattr(request.state, "tenant_id", None)
        }
    )
    return _error_response(exc, "tenant_isolation_error")


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return _error_response(exc, "authentication_error")


@app.exception_handler(PermissionDenied)
async def permission_denied_handler(request: Request, exc: PermissionDenied):
    return _error_response(exc, "forbidden")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(exc, "not_found")


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return _error_response(exc, "conflict")


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return _error_response(exc, "invalid_input")


@app.exception_handler(RateLimitExceeded)
async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(
        f"Rate limit exceeded: {request.url.path}",
        extra={"tenant_id": getattr(request.state, "tenant_id", None)}
    )
    return _error_response(exc, "rate_limit_exceeded")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all exception handler.

    Full details go to the log; clients get a generic error unless DEBUG.
    """
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
            "tenant_id": getattr(request.state, "tenant_id", None)
        }
    )

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={
                "detail": str(exc),
                "type": type(exc).__name__,
            }
        )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "type": "internal_error"
        }
    )


# ============================================================================
# ROUTES
# ============================================================================

@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": __version__
    }


@app.get("/", tags=["root"])
async def root():
    return {
        "message": "Studio Management API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(roles.router)
app.include_router(tenants.router)
app.include_router(events.router)
app.include_router(projects.router)
app.include_router(images.router)
app.include_router(finances.router)


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Studio Management API v{__version__} ({settings.ENVIRONMENT}, debug={settings.DEBUG})")

    uvicorn.run(
        "studio_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
