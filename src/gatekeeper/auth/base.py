"""Abstract base class for identity verifiers."""

from abc import ABC, abstractmethod

from src.gatekeeper.auth.models import Identity


class IdentityVerifier(ABC):
    """
    Turns a bearer token into an Identity for one identity provider.

    Supports: Google, X, or any future provider registered with the
    VerificationManager.
    """

    provider_name: str

    @abstractmethod
    async def verify(self, token: str) -> Identity | None:
        """
        Verify a bearer token.

        Args:
            token: Raw bearer credential (without "Bearer " prefix)

        Returns:
            Identity on success, None when the token is not valid for this provider

        Raises:
            RateLimitedError: If the provider throttled us and no fallback exists
        """
        pass
