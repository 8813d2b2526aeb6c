"""Signature policies for JWT-shaped tokens."""

import logging
from typing import Protocol

import httpx
from jose import JWTError, jwt

from src.gatekeeper.auth.jwks import JWKSCache

logger = logging.getLogger(__name__)


class TokenSignatureVerifier(Protocol):
    """Decides whether a token's signature is trusted. Must not raise."""

    async def verify_signature(self, token: str) -> bool: ...


class UnverifiedSignaturePolicy:
    """
    Trusts the claims of a token without checking its signature.

    This is the claims-only behaviour the app shipped with: anyone able to
    forge a Google-shaped payload is accepted. Switch
    ``google_verify_signature`` on to use ``GoogleJWKSSignatureVerifier``.
    """

    async def verify_signature(self, token: str) -> bool:
        logger.debug(
            "Token signature not verified (claims-only policy)",
            extra={"policy": "unverified"},
        )
        return True


class GoogleJWKSSignatureVerifier:
    """
    Verifies RS256 signatures against Google's published keys.

    Claims such as ``exp`` and ``iss`` are checked by the identity verifier;
    this policy only checks the signature and, when a client ID is
    configured, the ``aud`` claim.

    Attributes:
        jwks_cache: JWKS cache for fetching signing keys
        audience: Expected ``aud`` claim (OAuth client ID), or None to skip
    """

    algorithms = ["RS256"]

    def __init__(self, jwks_cache: JWKSCache, audience: str | None = None):
        self.jwks_cache = jwks_cache
        self.audience = audience

    async def verify_signature(self, token: str) -> bool:
        try:
            unverified_header = jwt.get_unverified_header(token)
            kid = unverified_header.get("kid")
            if not kid:
                raise JWTError("JWT header missing 'kid' (key ID)")

            signing_key = await self.jwks_cache.get_signing_key(kid)

            jwt.decode(
                token,
                signing_key,
                algorithms=self.algorithms,
                audience=self.audience,
                options={
                    "verify_signature": True,
                    "verify_aud": self.audience is not None,
                    "verify_exp": False,
                    "verify_iss": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                },
            )
            return True

        except (JWTError, ValueError) as e:
            logger.warning(
                f"JWT signature verification failed: {e}",
                extra={"error_type": "jwt_signature_invalid"},
            )
            return False

        except httpx.HTTPError as e:
            logger.error(
                f"Could not fetch signing keys: {e}",
                extra={"error_type": "jwks_unavailable"},
            )
            return False
