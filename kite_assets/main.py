"""
Main FastAPI Application

Entry point for the Kite Assets inventory service.
Configures middleware, routes, error handlers, and startup/shutdown events.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
from contextlib import asynccontextmanager

from kite_assets import __version__
from kite_assets.config import get_settings
from kite_assets.database import engine, init_db
from kite_assets.middleware.organization_context import OrganizationContextMiddleware
from kite_assets.middleware.rate_limit import RateLimitMiddleware
from kite_assets.utils.logging import setup_logging, get_logger
from kite_assets.core.exceptions import TenantIsolationError

from kite_assets.api.endpoints import auth, users, assets, taxonomy, dashboard, reports, organizations

settings = get_settings()

setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=(settings.ENVIRONMENT == "production")
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.APP_NAME} in {settings.ENVIRONMENT} mode")

    if settings.ENVIRONMENT in ("development", "test"):
        init_db()

    if not settings.PLATFORM_ADMIN_EMAIL:
        logger.warning("PLATFORM_ADMIN_EMAIL is not set - no account can become platform admin")

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    description="Multi-tenant asset inventory with role-based access control and PDF reporting",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# ============================================================================
# MIDDLEWARE CONFIGURATION
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS,
    allow_credentials=settings.ENVIRONMENT != "development",
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header to track request duration."""
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = str(time.time() - start_time)
    return response


# Middleware added last runs first: organization context must be on
# request.state before the rate limiter picks a bucket.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(OrganizationContextMiddleware)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

def _request_context(request: Request) -> dict:
    return {
        "path": request.url.path,
        "method": request.method,
        "organization_id": getattr(request.state, "organization_id", None),
        "user_id": getattr(request.state, "user_id", None),
        "request_id": getattr(request.state, "request_id", None),
    }


@app.exception_handler(TenantIsolationError)
async def tenant_isolation_error_handler(request: Request, exc: TenantIsolationError):
    """
    Handle cross-organization access attempts.

    CRITICAL: logged at error level on top of the security event.
    """
    logger.error(f"TENANT ISOLATION VIOLATION: {exc.detail}", extra=_request_context(request))
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": TenantIsolationError.error_type}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Every error body carries a detail message and a type."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": getattr(exc, "error_type", "http_error")},
        headers=getattr(exc, "headers", None) or {}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all exception handler.

    SECURITY: Don't expose internal errors in production.
    Log full details but return generic error to client.
    """
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=True,
        extra=_request_context(request)
    )

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc), "type": type(exc).__name__}
        )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Something went wrong. Please try again.",
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
    """Root endpoint with API information."""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


API_PREFIX = "/api/v1"

app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(users.router, prefix=API_PREFIX)
app.include_router(assets.router, prefix=API_PREFIX)
app.include_router(taxonomy.departments_router, prefix=API_PREFIX)
app.include_router(taxonomy.categories_router, prefix=API_PREFIX)
app.include_router(taxonomy.locations_router, prefix=API_PREFIX)
app.include_router(dashboard.router, prefix=API_PREFIX)
app.include_router(reports.router, prefix=API_PREFIX)
app.include_router(organizations.router, prefix=API_PREFIX)


if __name__ == "__main__":
    import uvicorn

    logger.info("=" * 80)
    logger.info(settings.APP_NAME)
    logger.info("=" * 80)
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug: {settings.DEBUG}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")
    logger.info("=" * 80)

    uvicorn.run(
        "kite_assets.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
