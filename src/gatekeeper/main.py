"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.gatekeeper.auth.dependencies import set_login_history_store, set_verification_manager
from src.gatekeeper.auth.exceptions import (
    ProviderNotConfiguredError,
    RateLimitedError,
    UnauthenticatedError,
)
from src.gatekeeper.auth.factory import build_auth_components
from src.gatekeeper.config import settings
from src.gatekeeper.features.auth import router as auth_router
from src.gatekeeper.services.rate_limiter import limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    try:
        components = build_auth_components(settings)
        await components.start()
        set_verification_manager(components.manager)
        set_login_history_store(components.login_history)
        logger.info(
            "Verification manager ready",
            extra={"providers": components.manager.providers()},
        )
    except Exception as e:
        logger.error(
            f"Failed to initialize verification manager: {e}",
            exc_info=True,
            extra={"error_type": "auth_init_failed"},
        )
        raise

    yield

    try:
        await components.close()
        logger.info("Auth components cleanup completed")
    except Exception as e:
        logger.error(f"Error during auth cleanup: {e}", exc_info=True)
    finally:
        set_verification_manager(None)
        set_login_history_store(None)


app = FastAPI(
    title="Gatekeeper API",
    description="Multi-provider bearer token verification for the activity log",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

origins = settings.cors_origins.split(",")
logger.info(f"Origins : {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "X-Auth-Provider"],
)


@app.exception_handler(UnauthenticatedError)
async def unauthenticated_handler(request: Request, exc: UnauthenticatedError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"error": "Unauthorized", "message": str(exc)},
    )


@app.exception_handler(RateLimitedError)
async def rate_limited_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
    headers = {}
    retry_after = exc.retry_after_seconds()
    if retry_after is not None:
        headers["Retry-After"] = str(retry_after)

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": "RateLimited",
            "message": exc.message,
            "reset_at": exc.reset_at.isoformat() if exc.reset_at else None,
        },
        headers=headers,
    )


@app.exception_handler(ProviderNotConfiguredError)
async def provider_not_configured_handler(
    request: Request, exc: ProviderNotConfiguredError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "ProviderNotConfigured", "message": str(exc)},
    )


app.include_router(auth_router, prefix=settings.api_v1_prefix)


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str


@app.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint."""
    return HealthCheckResponse(status="healthy")
