"""Builds the verification manager from settings."""

import logging
from dataclasses import dataclass

import httpx

from src.gatekeeper.auth.google import GoogleIdentityVerifier
from src.gatekeeper.auth.jwks import JWKSCache
from src.gatekeeper.auth.manager import VerificationManager
from src.gatekeeper.auth.remote_lookup import RemoteUserLookup
from src.gatekeeper.auth.signature import GoogleJWKSSignatureVerifier, UnverifiedSignaturePolicy
from src.gatekeeper.auth.x import XIdentityVerifier
from src.gatekeeper.cache.base import Cache
from src.gatekeeper.cache.memory import InMemoryCache
from src.gatekeeper.cache.redis_cache import RedisCache
from src.gatekeeper.cache.tiered import TieredCache
from src.gatekeeper.config import Settings
from src.gatekeeper.database.connection import get_supabase_admin_client
from src.gatekeeper.database.login_history import (
    InMemoryLoginHistoryStore,
    LoginHistoryStore,
    SupabaseLoginHistoryStore,
)
from src.gatekeeper.database.user_store import InMemoryUserStore, SupabaseUserStore, UserStore

logger = logging.getLogger(__name__)


@dataclass
class AuthComponents:
    """Everything the app needs for authentication, plus what must be closed on shutdown."""

    manager: VerificationManager
    login_history: LoginHistoryStore
    cache: Cache
    http_client: httpx.AsyncClient
    jwks_cache: JWKSCache | None = None

    async def start(self) -> None:
        if isinstance(self.cache, RedisCache):
            await self.cache.start()

    async def close(self) -> None:
        if self.jwks_cache is not None:
            await self.jwks_cache.close()
        if isinstance(self.cache, RedisCache):
            await self.cache.stop()
        await self.http_client.aclose()


def build_cache(settings: Settings) -> Cache:
    if settings.cache_backend == "redis":
        return RedisCache(settings.redis_url)
    if settings.cache_backend != "memory":
        raise ValueError(f"Unknown cache backend: {settings.cache_backend}")
    return InMemoryCache()


def build_stores(settings: Settings) -> tuple[UserStore, LoginHistoryStore]:
    if settings.user_store_backend == "supabase":
        client = get_supabase_admin_client()
        return (
            SupabaseUserStore(client, table=settings.users_table),
            SupabaseLoginHistoryStore(client, table=settings.login_history_table),
        )
    if settings.user_store_backend != "memory":
        raise ValueError(f"Unknown user store backend: {settings.user_store_backend}")
    return InMemoryUserStore(), InMemoryLoginHistoryStore()


def build_auth_components(
    settings: Settings,
    cache: Cache | None = None,
    user_store: UserStore | None = None,
    login_history: LoginHistoryStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AuthComponents:
    """
    Wire verifiers for every provider listed in ``enabled_auth_providers``.

    Collaborators can be passed in (tests); otherwise they are built from
    the configured backends.

    Raises:
        ValueError: If a provider or backend name is unknown
    """
    if cache is None:
        cache = build_cache(settings)
    if user_store is None or login_history is None:
        default_user_store, default_login_history = build_stores(settings)
        user_store = user_store or default_user_store
        login_history = login_history or default_login_history

    http_client = http_client or httpx.AsyncClient(
        timeout=httpx.Timeout(settings.remote_lookup_timeout_seconds, connect=5.0)
    )

    manager = VerificationManager()
    jwks_cache = None

    for provider in settings.auth_providers:
        if provider == "google":
            if settings.google_verify_signature:
                jwks_cache = JWKSCache(
                    settings.google_jwks_url,
                    cache_ttl=settings.jwks_cache_ttl_seconds,
                    http_client=http_client,
                )
                signature_verifier = GoogleJWKSSignatureVerifier(
                    jwks_cache, audience=settings.google_client_id
                )
            else:
                logger.warning(
                    "Google ID token signatures are NOT verified "
                    "(set GOOGLE_VERIFY_SIGNATURE=true to enable)"
                )
                signature_verifier = UnverifiedSignaturePolicy()
            manager.register(
                "google",
                GoogleIdentityVerifier(
                    signature_verifier,
                    issuer=settings.google_issuer,
                    user_store=user_store,
                ),
            )

        elif provider == "x":
            lookup = RemoteUserLookup(settings.x_user_info_url, http_client=http_client)
            manager.register(
                "x",
                XIdentityVerifier(
                    lookup,
                    TieredCache(cache, ttl_seconds=settings.identity_cache_ttl_seconds),
                    user_store,
                    freshness_days=settings.user_freshness_days,
                ),
            )

        else:
            raise ValueError(f"Unknown auth provider: {provider}")

    logger.info(
        "Verification manager initialized",
        extra={
            "providers": manager.providers(),
            "cache_backend": settings.cache_backend,
            "user_store_backend": settings.user_store_backend,
        },
    )

    return AuthComponents(
        manager=manager,
        login_history=login_history,
        cache=cache,
        http_client=http_client,
        jwks_cache=jwks_cache,
    )
