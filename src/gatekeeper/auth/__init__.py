"""Authentication module for multi-provider bearer token verification."""

from src.gatekeeper.auth.exceptions import (
    ProviderNotConfiguredError,
    RateLimitedError,
    TokenVerificationError,
    TransientLookupError,
    UnauthenticatedError,
)
from src.gatekeeper.auth.manager import VerificationManager
from src.gatekeeper.auth.models import CachedIdentityRecord, Identity, PersistedProviderUser

__all__ = [
    "VerificationManager",
    "Identity",
    "CachedIdentityRecord",
    "PersistedProviderUser",
    "TokenVerificationError",
    "UnauthenticatedError",
    "RateLimitedError",
    "TransientLookupError",
    "ProviderNotConfiguredError",
]
