"""Main FastAPI application for the PawRefer API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from pawrefer.api.dashboard import router as dashboard_router
from pawrefer.api.rate_limit import limiter
from pawrefer.api.v1.admin import router as admin_router
from pawrefer.api.v1.auth import router as auth_router
from pawrefer.api.v1.forms import router as forms_router
from pawrefer.api.v1.rewards import router as rewards_router
from pawrefer.api.v1.user import router as user_router
from pawrefer.logging_config import configure_logging, get_logger
from pawrefer.settings import settings
from pawrefer.storage.db import db

DASHBOARD_PREFIX = "/dashboard"
PRIVATE_PREFIXES = ("/api/v1/auth", "/api/v1/user", "/api/v1/admin", DASHBOARD_PREFIX)

logger = get_logger(__name__)


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def _is_private_path(path: str) -> bool:
    return any(_under(path, p) for p in PRIVATE_PREFIXES)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every response.

    Responses that can carry session state (auth endpoints and dashboard
    views) are also marked uncacheable.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if _is_private_path(request.url.path):
            response.headers["Cache-Control"] = "no-store"

        return response


class DashboardGateMiddleware(BaseHTTPMiddleware):
    """Redirect dashboard requests without a session cookie to the home page.

    Only the cookie's presence is checked here; the dashboard endpoints
    verify it.
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if _under(path, DASHBOARD_PREFIX) and not request.cookies.get(settings.session_cookie_name):
            logger.debug("dashboard_redirect", path=path)
            return RedirectResponse(url="/", status_code=307)
        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on start-up, release the pool on shutdown."""
    logger.info("pawrefer_starting", env=settings.env, referrals_per_reward=settings.referrals_per_reward)
    db.create_tables()

    yield

    db.dispose()
    logger.info("pawrefer_stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI app
    """
    configure_logging()

    # Hide API docs in production
    is_production = settings.is_production

    app = FastAPI(
        title="PawRefer API",
        description="Pet survey, referral and rewards API",
        version="1.0.0",
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        openapi_url=None if is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(DashboardGateMiddleware)

    # Added before CORS so preflight responses get the headers too
    app.add_middleware(SecurityHeadersMiddleware)

    allowed_origins = [
        origin.strip()
        for origin in settings.allowed_origins.split(",")
        if origin.strip()
    ]

    # Block wildcard in production; credentialed CORS with "*" leaks the session cookie
    if is_production and "*" in allowed_origins:
        logger.error("cors_wildcard_blocked", message="Wildcard CORS not allowed in production")
        allowed_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
        max_age=3600,  # Cache preflight for 1 hour
    )

    # Shared limiter, see pawrefer.api.rate_limit
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Please try again later."},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path, method=request.method)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "message": str(exc)},
        )

    # Include v1 API routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(forms_router, prefix="/api/v1")
    app.include_router(rewards_router, prefix="/api/v1")
    app.include_router(user_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    # Dashboard views (behind the session gate)
    app.include_router(dashboard_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": "1.0.0",
            "env": settings.env,
        }

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "PawRefer API",
            "version": "1.0.0",
            "docs": "/api/docs",
        }

    return app


# Create app instance
app = create_app()
