"""Custom exceptions for token verification."""

from datetime import datetime, timezone


class TokenVerificationError(Exception):
    """Base exception for all token verification errors."""

    pass


class UnauthenticatedError(TokenVerificationError):
    """Raised when a request carries no usable credential (missing, malformed, rejected)."""

    pass


class TransientLookupError(TokenVerificationError):
    """Raised when the identity provider could not be reached or returned garbage."""

    pass


class ProviderNotConfiguredError(TokenVerificationError):
    """Raised when no verifier is registered for the requested provider."""

    def __init__(self, provider: str):
        super().__init__(f"Auth provider '{provider}' is not configured")
        self.provider = provider


class RateLimitedError(TokenVerificationError):
    """
    Raised when the identity provider throttles us and no cached fallback exists.

    Distinct from an invalid credential: callers should answer with a
    retry-after message instead of a plain 401.

    Attributes:
        reset_at: When the provider's request window resets (x-rate-limit-reset)
        user_limit_reset_at: When the per-user 24h window resets
        user_limit_remaining: Remaining calls in the per-user 24h window
        user_limit_limit: Size of the per-user 24h window
    """

    def __init__(
        self,
        message: str,
        reset_at: datetime | None = None,
        user_limit_reset_at: datetime | None = None,
        user_limit_remaining: int | None = None,
        user_limit_limit: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.reset_at = reset_at
        self.user_limit_reset_at = user_limit_reset_at
        self.user_limit_remaining = user_limit_remaining
        self.user_limit_limit = user_limit_limit

    def retry_after_seconds(self, now: datetime | None = None) -> int | None:
        """Seconds until the earliest known reset, or None when the provider gave no hint."""
        resets = [r for r in (self.reset_at, self.user_limit_reset_at) if r is not None]
        if not resets:
            return None
        now = now or datetime.now(timezone.utc)
        return max(0, int((min(resets) - now).total_seconds()))
