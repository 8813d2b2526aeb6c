"""API handlers for login, logout and current-user endpoints."""

import logging

from fastapi import APIRouter, Depends, Request

from src.gatekeeper.auth.dependencies import (
    get_current_identity,
    get_login_history_store,
    get_verification_manager,
)
from src.gatekeeper.auth.exceptions import UnauthenticatedError
from src.gatekeeper.auth.models import Identity
from src.gatekeeper.database.login_history import LoginHistoryEntry
from src.gatekeeper.features.auth.schemas import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    ProvidersResponse,
)
from src.gatekeeper.services.rate_limiter import (
    default_rate_limit,
    login_rate_limit,
    public_rate_limit,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

AUTH_ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Token missing, malformed or rejected"},
    429: {"model": ErrorResponse, "description": "Provider rate limit reached"},
}


@router.post(
    "/{provider}/login",
    response_model=LoginResponse,
    responses={
        **AUTH_ERROR_RESPONSES,
        404: {"model": ErrorResponse, "description": "Provider not enabled"},
    },
)
@login_rate_limit
async def login(provider: str, body: LoginRequest, request: Request) -> LoginResponse:
    """
    Verify a provider token and record the login.

    The token is only checked against ``provider`` (``google`` or ``x``).
    A failure to write the login history does not fail the login.

    Args:
        provider: Provider name from the path
        body: Token issued by the provider

    Returns:
        The verified identity

    Raises:
        ProviderNotConfiguredError: 404 if the provider is not enabled
        UnauthenticatedError: 401 if the token is rejected
        RateLimitedError: 429 if the provider is throttling us

    Example Response:
        {
            "logged_in": true,
            "user": {"user_id": "42", "name": "Jane", "username": "jane", ...}
        }
    """
    provider = provider.lower()
    manager = get_verification_manager()
    manager.get(provider)

    logger.info(
        f"{provider} login: Token received",
        extra={"provider": provider, "token_length": len(body.token)},
    )

    identity = await manager.verify(body.token, provider)
    if identity is None:
        raise UnauthenticatedError("Authentication failed")

    try:
        entry = LoginHistoryEntry.for_identity(
            identity,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
        await get_login_history_store().record(entry)
    except Exception as e:
        logger.error(
            f"Failed to save login history: {e}",
            exc_info=True,
            extra={"user_id": identity.user_id},
        )

    logger.info(f"{provider} login: Success", extra={"user_id": identity.user_id})
    return LoginResponse(logged_in=True, user=identity)


@router.post("/logout", response_model=LogoutResponse)
async def logout(request: Request) -> LogoutResponse:
    """Stateless logout; the client discards its token."""
    logger.info(
        "Logout: Request received",
        extra={"ip": request.client.host if request.client else None},
    )
    return LogoutResponse(success=True, message="Logged out successfully")


@router.get("/me", response_model=Identity, responses=AUTH_ERROR_RESPONSES)
@default_rate_limit
async def me(request: Request, identity: Identity = Depends(get_current_identity)) -> Identity:
    """Return the identity behind the bearer token."""
    return identity


@router.get("/providers", response_model=ProvidersResponse)
@public_rate_limit
async def providers(request: Request) -> ProvidersResponse:
    """List the enabled providers in the order they are tried."""
    return ProvidersResponse(providers=get_verification_manager().providers())
