"""Rate limiting service for API endpoints."""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.gatekeeper.auth.models import Identity
from src.gatekeeper.config import settings

logger = logging.getLogger(__name__)


def get_user_id_or_ip(request: Request) -> str:
    """
    Extract the authenticated user ID or fall back to the client IP.

    - Authenticated requests: rate limited per provider user ID
    - Unauthenticated requests (login endpoints): rate limited per IP address
    """
    identity: Identity | None = getattr(request.state, "identity", None)

    if identity is not None:
        return f"user:{identity.provider or 'unknown'}:{identity.user_id}"

    return f"ip:{get_remote_address(request)}"


# In-memory storage for single-instance deployment
limiter = Limiter(
    key_func=get_user_id_or_ip,
    default_limits=[],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)


class RateLimitTiers:
    """Rate limit tiers for different endpoint categories."""

    # Standard authenticated endpoints
    DEFAULT = ["100 per minute", "1000 per hour"]

    # Login endpoints; each X login may cost a call against our X API quota
    LOGIN = ["10 per minute", "60 per hour"]

    # Public endpoints
    PUBLIC = ["20 per minute", "100 per hour"]


# Note: decorated endpoints must take a 'request: Request' parameter (slowapi requirement)
default_rate_limit = limiter.limit(";".join(RateLimitTiers.DEFAULT))
login_rate_limit = limiter.limit(";".join(RateLimitTiers.LOGIN))
public_rate_limit = limiter.limit(";".join(RateLimitTiers.PUBLIC))
