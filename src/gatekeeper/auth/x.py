"""X (Twitter) OAuth2 access token verification."""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from src.gatekeeper.auth.base import IdentityVerifier
from src.gatekeeper.auth.exceptions import RateLimitedError, TransientLookupError
from src.gatekeeper.auth.models import Identity, PersistedProviderUser
from src.gatekeeper.auth.remote_lookup import RemoteUserLookup
from src.gatekeeper.cache.tiered import TieredCache, hash_token
from src.gatekeeper.database.user_store import UserStore

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "X API rate limit reached. Please wait a moment and try again."


def _epoch_header(headers: Mapping[str, str], name: str) -> datetime | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def _int_header(headers: Mapping[str, str], name: str) -> int | None:
    try:
        return int(headers[name])
    except (KeyError, TypeError, ValueError):
        return None


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def parse_user(body: Any) -> Identity | None:
    """
    Map an X user-info response to an Identity.

    Accepts the v2 ``{"data": {...}}`` envelope or a bare user object, and
    the v1.1 field names (``id_str``, ``screen_name``, ``profile_image_url_https``).
    Returns None when no user id can be found.
    """
    if not isinstance(body, dict):
        return None
    data = body.get("data", body)
    if not isinstance(data, dict):
        return None

    user_id = _optional_str(data.get("id_str") or data.get("id"))
    if not user_id:
        return None

    username = _optional_str(data.get("username") or data.get("screen_name"))
    return Identity(
        user_id=user_id,
        email=_optional_str(data.get("email")),
        name=_optional_str(data.get("name")) or username,
        username=username,
        avatar=_optional_str(data.get("profile_image_url") or data.get("profile_image_url_https")),
        provider="x",
    )


class XIdentityVerifier(IdentityVerifier):
    """
    Verifies X OAuth2 bearer tokens while sparing the X API.

    Resolution order, first success wins:
    1. ``token:<sha256>`` cache entry
    2. Remote lookup against the user-info endpoint
       - 401: drop the token cache entry, reject
       - 429: cached identity, then a fresh stored user for this token,
         otherwise ``RateLimitedError``
    3. ``user:<id>`` cache entry (also re-links the token key)
    4. Stored user verified within the freshness window
    5. Fresh identity from the response, persisted and cached

    Attributes:
        lookup: Remote "who am I" client
        cache: Two-key identity cache
        user_store: Persisted provider users
        freshness_days: Max age of a stored user usable as a fallback
    """

    provider_name = "x"

    def __init__(
        self,
        lookup: RemoteUserLookup,
        cache: TieredCache,
        user_store: UserStore,
        freshness_days: int = 30,
    ):
        self.lookup = lookup
        self.cache = cache
        self.user_store = user_store
        self.freshness_days = freshness_days

    async def verify(self, token: str) -> Identity | None:
        token_hash = hash_token(token)
        log_extra = {"token_hash_prefix": token_hash[:12]}

        cached = await self.cache.get_by_token(token_hash)
        if cached is not None:
            logger.debug("X auth: Token cache hit", extra=log_extra)
            return cached.identity

        try:
            response = await self.lookup.fetch(token)
        except TransientLookupError as e:
            logger.warning(f"X auth: User lookup unavailable: {e}", extra=log_extra)
            return None

        if response.status_code == 401:
            logger.warning("X auth: Token rejected by X (401)", extra=log_extra)
            await self.cache.invalidate_token(token_hash)
            return None

        if response.status_code == 429:
            return await self._rate_limited(token_hash, response.headers)

        if not response.ok:
            logger.error(
                "X auth: User lookup failed",
                extra={**log_extra, "status": response.status_code, "body": response.body},
            )
            return None

        remote_identity = parse_user(response.body)
        if remote_identity is None:
            logger.warning("X auth: User ID not found in response", extra=log_extra)
            return None

        user_id = remote_identity.user_id

        by_user = await self.cache.get_by_user(user_id)
        if by_user is not None:
            logger.info("X auth: User cache hit, linking token", extra={"provider_user_id": user_id})
            await self.cache.link_token(token_hash, by_user)
            return by_user.identity

        stored = await self._find_fresh(user_id)
        if stored is not None:
            identity = stored.to_identity()
            await self.cache.store(token_hash, identity)
            logger.info("X auth: Using stored user", extra={"provider_user_id": user_id})
            return identity

        await self._save(remote_identity, token_hash)
        await self.cache.store(token_hash, remote_identity)
        logger.info("X auth: Token verified successfully", extra={"provider_user_id": user_id})
        return remote_identity

    async def _rate_limited(self, token_hash: str, headers: Mapping[str, str]) -> Identity:
        reset_at = _epoch_header(headers, "x-rate-limit-reset")
        logger.error(
            "X auth: Rate limit exceeded",
            extra={
                "token_hash_prefix": token_hash[:12],
                "rate_limit_reset": reset_at.isoformat() if reset_at else "unknown",
                "user_limit_remaining": headers.get("x-user-limit-24hour-remaining"),
            },
        )

        cached = await self.cache.get_by_token(token_hash)
        if cached is not None:
            logger.info("X auth: Using cached identity due to rate limit")
            return cached.identity

        stored = await self._find_fresh_by_token(token_hash)
        if stored is not None:
            identity = stored.to_identity()
            await self.cache.store(token_hash, identity)
            logger.info(
                "X auth: Using stored user due to rate limit",
                extra={"provider_user_id": identity.user_id},
            )
            return identity

        message = RATE_LIMIT_MESSAGE
        if reset_at is not None:
            message += f" Resets at {reset_at.strftime('%Y-%m-%d %H:%M:%S')} UTC."

        raise RateLimitedError(
            message,
            reset_at=reset_at,
            user_limit_reset_at=_epoch_header(headers, "x-user-limit-24hour-reset"),
            user_limit_remaining=_int_header(headers, "x-user-limit-24hour-remaining"),
            user_limit_limit=_int_header(headers, "x-user-limit-24hour-limit"),
        )

    async def _find_fresh(self, user_id: str) -> PersistedProviderUser | None:
        try:
            return await self.user_store.find_fresh(self.provider_name, user_id, self.freshness_days)
        except Exception as e:
            logger.warning(
                f"X auth: Failed to read stored user: {e}", extra={"provider_user_id": user_id}
            )
            return None

    async def _find_fresh_by_token(self, token_hash: str) -> PersistedProviderUser | None:
        try:
            return await self.user_store.find_fresh_by_token_hash(
                self.provider_name, token_hash, self.freshness_days
            )
        except Exception as e:
            logger.warning(f"X auth: Failed to read stored user by token: {e}")
            return None

    async def _save(self, identity: Identity, token_hash: str) -> None:
        user = PersistedProviderUser(
            provider=self.provider_name,
            provider_user_id=identity.user_id,
            name=identity.name,
            email=identity.email,
            username=identity.username,
            avatar=identity.avatar,
            last_verified_at=datetime.now(timezone.utc),
            token_hash=token_hash,
        )
        try:
            await self.user_store.upsert(user)
        except Exception as e:
            logger.error(
                f"X auth: Failed to save user: {e}",
                exc_info=True,
                extra={"provider_user_id": identity.user_id},
            )

