"""
FastAPI Application Entry Point

Pizza Storefront - Hybrid Architecture
Runs against seeded in-memory services in development and against the
hosted Supabase project (PostgREST + GoTrue) in staging / production.

Endpoints:
    - GET /, /menu, /cart, /orders, /profile, /onboarding, /auth: HTML pages
    - POST /cart/*, /selection, /auth/*, /profile, /onboarding: Form actions
    - /api/*: JSON API over the same visitor state
    - GET /health: System health check
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from storefront.core.config import get_settings, setup_logging
from storefront.core.exceptions import AuthRequiredError, StorefrontError
from storefront.dependencies import get_auth, get_platform
from storefront.routes import api, pages
from storefront.schemas import AuthUser, HealthResponse
from storefront.services.auth import AuthEvent, BaseAuthProvider, get_auth_provider
from storefront.services.platform import BaseDataPlatform, get_data_platform
from storefront.state import SessionRegistry, get_slot_backend

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


def log_auth_event(event: AuthEvent, user: Optional[AuthUser]) -> None:
    logger.info(f"Auth: {event.value} ({user.email if user else 'unknown user'})")


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    # Validate production config before the factories try to use it
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    platform = get_data_platform()
    auth = get_auth_provider()
    slots = get_slot_backend()
    logger.info(f"✅ Data Platform: {platform.provider_name}")
    logger.info(f"✅ Auth Provider: {auth.provider_name}")
    logger.info(f"✅ State Backend: {slots.provider_name}")

    unsubscribe = auth.on_auth_state_change(log_auth_event)

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    unsubscribe()
    await platform.close()
    await auth.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Pizza ordering storefront: menu, cart, service selection, checkout "
        "and order tracking on top of a hosted data platform."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def session_cookie(request: Request, call_next):
    """Attach the visitor's session id, issuing a cookie on first visit."""
    session_id = request.cookies.get(settings.session_cookie_name)
    is_new = not session_id or len(session_id) != 32 or not session_id.isalnum()
    if is_new:
        session_id = SessionRegistry.new_session_id()
    request.state.session_id = session_id

    response = await call_next(request)

    if is_new:
        response.set_cookie(
            settings.session_cookie_name,
            session_id,
            max_age=settings.state_ttl_seconds,
            httponly=True,
            samesite="lax",
            secure=settings.is_production,
        )
    return response


app.include_router(api.router)
app.include_router(pages.router)


# =============================================================================
# HEALTH ENDPOINT
# =============================================================================

@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    platform: BaseDataPlatform = Depends(get_platform),
    auth: BaseAuthProvider = Depends(get_auth),
) -> HealthResponse:
    """Verify the data platform, identity provider and state backend."""
    platform_status = "healthy" if await platform.health_check() else "unhealthy"
    auth_status = "healthy" if await auth.health_check() else "unhealthy"
    state_status = "healthy" if get_slot_backend().health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [platform_status, auth_status, state_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        data_platform=platform_status,
        auth_provider=auth_status,
        state_backend=state_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api")


@app.exception_handler(StorefrontError)
async def storefront_exception_handler(request: Request, exc: StorefrontError):
    """Turn storefront errors into a short message."""
    if isinstance(exc, AuthRequiredError) and not _wants_json(request):
        return RedirectResponse(
            f"/auth?returnTo={quote(request.url.path, safe='/')}",
            status_code=303,
        )

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
