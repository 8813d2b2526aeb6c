"""Registry and dispatch of identity verifiers."""

import logging

from src.gatekeeper.auth.base import IdentityVerifier
from src.gatekeeper.auth.exceptions import ProviderNotConfiguredError, RateLimitedError
from src.gatekeeper.auth.models import Identity

logger = logging.getLogger(__name__)


class VerificationManager:
    """
    Picks the identity verifier for a bearer token.

    Without a provider hint every registered verifier is tried in
    registration order and the first Identity wins. With a hint only that
    verifier is tried.

    Example:
        >>> manager = VerificationManager()
        >>> manager.register("google", GoogleIdentityVerifier())
        >>> identity = await manager.verify(token, provider_hint="google")
    """

    def __init__(self) -> None:
        self._verifiers: dict[str, IdentityVerifier] = {}

    def register(self, provider_name: str, verifier: IdentityVerifier) -> None:
        self._verifiers[provider_name] = verifier
        logger.info("Auth provider registered", extra={"provider": provider_name})

    def providers(self) -> list[str]:
        """Registered provider names in registration order."""
        return list(self._verifiers.keys())

    def get(self, provider_name: str) -> IdentityVerifier:
        """
        Return the verifier for ``provider_name``.

        Raises:
            ProviderNotConfiguredError: If no verifier is registered under that name
        """
        verifier = self._verifiers.get(provider_name)
        if verifier is None:
            raise ProviderNotConfiguredError(provider_name)
        return verifier

    async def verify(self, token: str, provider_hint: str | None = None) -> Identity | None:
        """
        Verify ``token`` against the hinted provider, or all providers in order.

        Returns:
            The first Identity produced, or None when no verifier accepts the token

        Raises:
            RateLimitedError: If a provider is throttling and has no fallback
        """
        if provider_hint:
            hint = provider_hint.strip().lower()
            try:
                candidates = [(hint, self.get(hint))]
            except ProviderNotConfiguredError as e:
                logger.warning(str(e), extra={"provider": hint})
                return None
        else:
            candidates = list(self._verifiers.items())

        for provider_name, verifier in candidates:
            try:
                identity = await verifier.verify(token)
            except RateLimitedError:
                raise
            except Exception as e:
                logger.warning(
                    f"Token verification exception for provider: {e}",
                    exc_info=True,
                    extra={"provider": provider_name},
                )
                continue

            if identity is not None:
                logger.info(
                    "Token verified",
                    extra={"provider": provider_name, "user_id": identity.user_id},
                )
                return identity

        logger.warning(
            "Token verification failed for all providers",
            extra={"providers": [name for name, _ in candidates]},
        )
        return None
