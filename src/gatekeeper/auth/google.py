"""Google ID token verification."""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from src.gatekeeper.auth.base import IdentityVerifier
from src.gatekeeper.auth.jwt_lite import JwtLiteDecoder, MalformedTokenError
from src.gatekeeper.auth.models import Identity, PersistedProviderUser
from src.gatekeeper.auth.signature import TokenSignatureVerifier, UnverifiedSignaturePolicy
from src.gatekeeper.database.user_store import UserStore

logger = logging.getLogger(__name__)

GOOGLE_ISSUER = "https://accounts.google.com"


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


class GoogleIdentityVerifier(IdentityVerifier):
    """
    Verifies Google Identity Services ID tokens (JWT).

    Checks are applied in order and any failure returns None:
    1. Three-segment structure and decodable JSON payload
    2. ``exp`` not in the past (strict, no leeway)
    3. ``iss`` exactly equal to the Google issuer
    4. ``sub`` a non-empty string
    5. Signature accepted by the configured signature policy

    When a user store is given, every accepted token refreshes the user's
    row; a failed write is logged and does not fail the verification.

    The verifier never raises on bad input, so the manager can try it
    speculatively against tokens issued by other providers.

    Attributes:
        issuer: Expected ``iss`` claim
        signature_verifier: Policy for the token signature (claims-only by default)
        user_store: Where verified Google users are recorded (optional)

    Example:
        >>> verifier = GoogleIdentityVerifier()
        >>> identity = await verifier.verify(id_token)
    """

    provider_name = "google"

    def __init__(
        self,
        signature_verifier: TokenSignatureVerifier | None = None,
        issuer: str = GOOGLE_ISSUER,
        decoder: JwtLiteDecoder | None = None,
        clock: Callable[[], float] = time.time,
        user_store: UserStore | None = None,
    ):
        self.signature_verifier = signature_verifier or UnverifiedSignaturePolicy()
        self.issuer = issuer
        self.decoder = decoder or JwtLiteDecoder()
        self.clock = clock
        self.user_store = user_store

    async def verify(self, token: str) -> Identity | None:
        try:
            payload = self.decoder.decode_payload(token)
        except MalformedTokenError as e:
            logger.warning(f"Google auth: Invalid token format: {e}")
            return None

        exp = payload.get("exp")
        if exp is not None:
            if isinstance(exp, bool) or not isinstance(exp, (int, float)):
                logger.warning("Google auth: Non-numeric exp claim", extra={"exp": exp})
                return None
            now = self.clock()
            if exp < now:
                logger.warning("Google auth: Token expired", extra={"exp": exp, "now": int(now)})
                return None

        iss = payload.get("iss")
        if iss != self.issuer:
            logger.warning("Google auth: Invalid issuer", extra={"iss": iss or "not set"})
            return None

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub:
            logger.warning(
                "Google auth: User ID not found",
                extra={"payload_keys": list(payload.keys())},
            )
            return None

        if not await self.signature_verifier.verify_signature(token):
            logger.warning("Google auth: Signature rejected", extra={"sub": sub})
            return None

        identity = Identity(
            user_id=sub,
            email=_optional_str(payload.get("email")),
            name=_optional_str(payload.get("name")),
            username=None,
            avatar=_optional_str(payload.get("picture")),
            provider=self.provider_name,
        )
        await self._save(identity)
        return identity

    async def _save(self, identity: Identity) -> None:
        if self.user_store is None:
            return

        user = PersistedProviderUser(
            provider=self.provider_name,
            provider_user_id=identity.user_id,
            name=identity.name,
            email=identity.email,
            avatar=identity.avatar,
            last_verified_at=datetime.now(timezone.utc),
        )
        try:
            await self.user_store.upsert(user)
        except Exception as e:
            logger.error(
                f"Google auth: Failed to save user: {e}",
                exc_info=True,
                extra={"provider_user_id": identity.user_id},
            )
