"""Tests for building auth components from settings."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from src.gatekeeper.auth.factory import build_auth_components, build_cache, build_stores
from src.gatekeeper.auth.google import GoogleIdentityVerifier
from src.gatekeeper.auth.signature import GoogleJWKSSignatureVerifier, UnverifiedSignaturePolicy
from src.gatekeeper.auth.x import XIdentityVerifier
from src.gatekeeper.cache.memory import InMemoryCache
from src.gatekeeper.cache.redis_cache import RedisCache
from src.gatekeeper.config import Settings
from src.gatekeeper.database.login_history import (
    InMemoryLoginHistoryStore,
    SupabaseLoginHistoryStore,
)
from src.gatekeeper.database.user_store import InMemoryUserStore, SupabaseUserStore


def make_settings(**overrides) -> Settings:
    values = {
        "enabled_auth_providers": "google,x",
        "cache_backend": "memory",
        "user_store_backend": "memory",
        "google_verify_signature": False,
    }
    values.update(overrides)
    return Settings(**values)


class TestBuildAuthComponents:
    """Tests for build_auth_components."""

    def test_registers_providers_in_configured_order(self):
        components = build_auth_components(make_settings(enabled_auth_providers="x, Google"))

        assert components.manager.providers() == ["x", "google"]
        assert isinstance(components.manager.get("x"), XIdentityVerifier)
        assert isinstance(components.manager.get("google"), GoogleIdentityVerifier)

    def test_single_provider(self):
        components = build_auth_components(make_settings(enabled_auth_providers="google"))

        assert components.manager.providers() == ["google"]

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown auth provider: github"):
            build_auth_components(make_settings(enabled_auth_providers="google,github"))

    def test_claims_only_google_by_default(self):
        components = build_auth_components(make_settings())

        google = components.manager.get("google")
        assert isinstance(google.signature_verifier, UnverifiedSignaturePolicy)
        assert components.jwks_cache is None

    def test_strict_google_uses_jwks(self):
        components = build_auth_components(
            make_settings(google_verify_signature=True, google_client_id="client-123")
        )

        google = components.manager.get("google")
        assert isinstance(google.signature_verifier, GoogleJWKSSignatureVerifier)
        assert google.signature_verifier.audience == "client-123"
        assert google.signature_verifier.jwks_cache is components.jwks_cache
        assert components.jwks_cache._http_client is components.http_client

    def test_x_verifier_shares_injected_collaborators(self):
        cache = InMemoryCache()
        user_store = InMemoryUserStore()
        client = httpx.AsyncClient()

        components = build_auth_components(
            make_settings(identity_cache_ttl_seconds=60, user_freshness_days=7),
            cache=cache,
            user_store=user_store,
            http_client=client,
        )

        x = components.manager.get("x")
        assert components.cache is cache
        assert x.cache.cache is cache
        assert x.cache.ttl_seconds == 60
        assert x.user_store is user_store
        assert x.freshness_days == 7
        assert x.lookup._http_client is client
        assert components.http_client is client
        assert components.manager.get("google").user_store is user_store

    def test_injected_login_history_is_used(self):
        history = InMemoryLoginHistoryStore()

        components = build_auth_components(make_settings(), login_history=history)

        assert components.login_history is history


@pytest.mark.asyncio
class TestAuthComponentsLifecycle:
    async def test_close_releases_resources(self):
        components = build_auth_components(make_settings(google_verify_signature=True))
        components.http_client.aclose = AsyncMock()

        await components.close()

        components.http_client.aclose.assert_awaited_once()

    async def test_redis_cache_started_and_stopped(self):
        redis_client = Mock()
        redis_client.ping = AsyncMock()
        redis_client.aclose = AsyncMock()
        cache = RedisCache("redis://localhost:6379/0", client=redis_client)
        components = build_auth_components(make_settings(), cache=cache)
        components.http_client.aclose = AsyncMock()

        await components.start()
        await components.close()

        redis_client.ping.assert_awaited_once()
        redis_client.aclose.assert_awaited_once()


class TestBackends:
    def test_memory_cache(self):
        assert isinstance(build_cache(make_settings()), InMemoryCache)

    def test_redis_cache(self):
        cache = build_cache(make_settings(cache_backend="redis", redis_url="redis://cache:6379/1"))

        assert isinstance(cache, RedisCache)
        assert cache.redis_url == "redis://cache:6379/1"

    def test_unknown_cache_backend(self):
        with pytest.raises(ValueError, match="Unknown cache backend"):
            build_cache(make_settings(cache_backend="memcached"))

    def test_memory_stores(self):
        user_store, history = build_stores(make_settings())

        assert isinstance(user_store, InMemoryUserStore)
        assert isinstance(history, InMemoryLoginHistoryStore)

    def test_supabase_stores(self):
        client = Mock()
        with patch(
            "src.gatekeeper.auth.factory.get_supabase_admin_client", return_value=client
        ):
            user_store, history = build_stores(
                make_settings(user_store_backend="supabase", users_table="members")
            )

        assert isinstance(user_store, SupabaseUserStore)
        assert isinstance(history, SupabaseLoginHistoryStore)
        assert user_store.client is client
        assert user_store.table == "members"

    def test_unknown_store_backend(self):
        with pytest.raises(ValueError, match="Unknown user store backend"):
            build_stores(make_settings(user_store_backend="sqlite"))
