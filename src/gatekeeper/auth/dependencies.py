"""FastAPI dependencies for bearer token authentication."""

import logging

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.gatekeeper.auth.exceptions import UnauthenticatedError
from src.gatekeeper.auth.manager import VerificationManager
from src.gatekeeper.auth.models import Identity
from src.gatekeeper.database.login_history import LoginHistoryStore

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

# Global instances (initialized in main.py startup)
_verification_manager: VerificationManager | None = None
_login_history_store: LoginHistoryStore | None = None


def set_verification_manager(manager: VerificationManager | None) -> None:
    """
    Set the global verification manager instance.

    Called during application startup, and by tests to inject fakes.

    Args:
        manager: VerificationManager instance (None to reset)
    """
    global _verification_manager
    _verification_manager = manager


def get_verification_manager() -> VerificationManager:
    """
    Get the global verification manager instance.

    Raises:
        RuntimeError: If the manager has not been initialized
    """
    if _verification_manager is None:
        raise RuntimeError(
            "Verification manager not initialized. "
            "Ensure application startup calls set_verification_manager()."
        )
    return _verification_manager


def set_login_history_store(store: LoginHistoryStore | None) -> None:
    global _login_history_store
    _login_history_store = store


def get_login_history_store() -> LoginHistoryStore:
    if _login_history_store is None:
        raise RuntimeError(
            "Login history store not initialized. "
            "Ensure application startup calls set_login_history_store()."
        )
    return _login_history_store


async def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    x_auth_provider: str | None = Header(None, alias="X-Auth-Provider"),
) -> Identity:
    """
    Authenticate the request from its ``Authorization: Bearer`` header.

    The optional ``X-Auth-Provider`` header restricts verification to one
    provider; without it every enabled provider is tried in order.

    Args:
        request: Incoming request (the identity is stored on ``request.state``)
        credentials: Bearer token from Authorization header
        x_auth_provider: Optional provider hint

    Returns:
        Identity of the caller

    Raises:
        UnauthenticatedError: Missing/malformed header or rejected token (401)
        RateLimitedError: Provider throttled with no cached fallback (429)

    Example:
        @router.get("/me")
        async def me(identity: Identity = Depends(get_current_identity)):
            return identity
    """
    if request.headers.get("Authorization") is None:
        logger.warning("Authentication failed: No Authorization header")
        raise UnauthenticatedError("Authentication token is required")

    if credentials is None or not credentials.credentials.strip():
        logger.warning("Authentication failed: Invalid Authorization header format")
        raise UnauthenticatedError("Authentication token format is invalid")

    manager = get_verification_manager()
    identity = await manager.verify(credentials.credentials.strip(), x_auth_provider)

    if identity is None:
        logger.warning("Authentication failed: Token verification failed")
        raise UnauthenticatedError("Authentication failed")

    request.state.identity = identity
    logger.info(
        "User authenticated",
        extra={"user_id": identity.user_id, "provider": x_auth_provider or "auto"},
    )
    return identity
