"""Shared fixtures for authentication tests."""

import base64
import json
import time
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from src.gatekeeper.cache.memory import InMemoryCache
from src.gatekeeper.cache.tiered import TieredCache
from src.gatekeeper.database.user_store import InMemoryUserStore


def _b64url(data: dict[str, Any]) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


@pytest.fixture
def make_jwt() -> Callable[..., str]:
    """Build an unsigned compact JWT from a claims dict."""

    def _make(claims: dict[str, Any], header: dict[str, Any] | None = None) -> str:
        header = header or {"alg": "RS256", "kid": "key-1", "typ": "JWT"}
        return f"{_b64url(header)}.{_b64url(claims)}.signature"

    return _make


@pytest.fixture
def google_claims() -> dict[str, Any]:
    """Provide valid Google ID token claims."""
    return {
        "iss": "https://accounts.google.com",
        "sub": "u1",
        "email": "a@b.com",
        "name": "Alice",
        "picture": "https://lh3.googleusercontent.com/a/u1",
        "aud": "client-123.apps.googleusercontent.com",
        "iat": int(time.time()) - 60,
        "exp": int(time.time()) + 3600,
    }


@pytest.fixture
def x_user_body() -> dict[str, Any]:
    """Provide an X v2 /users/me response body."""
    return {"data": {"id": "42", "name": "Jane", "username": "jane"}}


@pytest.fixture
def mock_lookup() -> Mock:
    """Provide mock remote user lookup."""
    lookup = Mock()
    lookup.fetch = AsyncMock()
    return lookup


@pytest.fixture
def memory_cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def tiered_cache(memory_cache: InMemoryCache) -> TieredCache:
    return TieredCache(memory_cache, ttl_seconds=2592000)


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture(scope="session")
def rsa_private_pem() -> str:
    """Provide a freshly generated RSA private key in PEM form."""
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def jwks_body(rsa_private_pem: str) -> dict[str, Any]:
    """Provide a JWKS document publishing the public half of rsa_private_pem as key-1."""
    from jose import jwk

    public = jwk.construct(rsa_private_pem, algorithm="RS256").public_key().to_dict()
    public.update({"kid": "key-1", "use": "sig", "alg": "RS256"})
    return {"keys": [public]}
