"""JWKS (JSON Web Key Set) fetching and caching for Google ID token verification."""

import logging
from datetime import datetime, timezone

import httpx
from jose import jwk
from jose.backends.base import Key

logger = logging.getLogger(__name__)


class JWKSCache:
    """
    Manages JWKS fetching and caching with automatic refresh.

    Keys are fetched lazily on first use and cached in-memory with a TTL.
    An unknown key ID triggers one extra refresh, which covers Google's
    regular key rotation.

    Attributes:
        jwks_url: URL to fetch JWKS from (Google: /oauth2/v3/certs)
        cache_ttl: Cache time-to-live in seconds (default: 3600 = 1 hour)
        _keys: Cached keys dictionary (kid -> key)
        _last_refresh: Timestamp of last successful JWKS fetch
        _http_client: HTTP client for fetching JWKS

    Example:
        >>> cache = JWKSCache("https://www.googleapis.com/oauth2/v3/certs")
        >>> signing_key = await cache.get_signing_key("key-id-123")
    """

    def __init__(
        self,
        jwks_url: str,
        cache_ttl: int = 3600,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize JWKS cache.

        Args:
            jwks_url: URL to fetch JWKS from
            cache_ttl: Cache TTL in seconds (default: 1 hour)
            http_client: Shared HTTP client (a private one is created if omitted)
        """
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self._keys: dict[str, Key] = {}
        self._last_refresh: datetime | None = None
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, read=30.0, connect=10.0, write=10.0)
        )

    async def get_signing_key(self, kid: str) -> Key:
        """
        Get signing key by key ID (kid).

        Refreshes the JWKS when the cache has expired or the kid is unknown.

        Raises:
            ValueError: If key ID not found after refresh
            httpx.HTTPError: If JWKS fetch fails
        """
        if self._needs_refresh():
            await self.refresh_keys()

        key = self._keys.get(kid)

        # Unknown kid: Google may have rotated keys since the last fetch
        if key is None:
            logger.warning(
                f"Key ID '{kid}' not found in cache, refreshing JWKS",
                extra={"kid": kid, "cached_kids": list(self._keys.keys())},
            )
            await self.refresh_keys()
            key = self._keys.get(kid)

        if key is None:
            raise ValueError(
                f"Key ID '{kid}' not found in JWKS. Available keys: {list(self._keys.keys())}"
            )

        return key

    async def refresh_keys(self) -> None:
        """
        Fetch JWKS and replace the cached keys.

        Raises:
            httpx.HTTPError: If HTTP request fails
            ValueError: If JWKS response is invalid
        """
        try:
            logger.info(f"Fetching JWKS from {self.jwks_url}")
            response = await self._http_client.get(self.jwks_url)
            response.raise_for_status()

            keys_list = response.json().get("keys", [])
            if not keys_list:
                logger.warning(
                    "JWKS response contains no keys; signature verification will fail",
                    extra={"jwks_url": self.jwks_url},
                )

            new_keys: dict[str, Key] = {}
            for key_data in keys_list:
                kid = key_data.get("kid")
                if not kid:
                    logger.warning("JWKS key missing 'kid', skipping")
                    continue

                algorithm = key_data.get("alg", "RS256")
                new_keys[kid] = jwk.construct(key_data, algorithm=algorithm)

                logger.debug(
                    f"Loaded key {kid} (algorithm: {algorithm})",
                    extra={"kid": kid, "alg": algorithm},
                )

            # Atomic update
            self._keys = new_keys
            self._last_refresh = datetime.now(timezone.utc)

            logger.info(
                "JWKS cache refreshed successfully",
                extra={
                    "key_count": len(new_keys),
                    "key_ids": list(new_keys.keys()),
                    "ttl_seconds": self.cache_ttl,
                },
            )

        except httpx.HTTPError as e:
            logger.error(
                f"Failed to fetch JWKS from {self.jwks_url}: {e}",
                exc_info=True,
                extra={"error_type": "jwks_fetch_failed"},
            )
            raise

        except Exception as e:
            logger.error(
                f"Failed to parse JWKS: {e}",
                exc_info=True,
                extra={"error_type": "jwks_parse_failed"},
            )
            raise

    def _needs_refresh(self) -> bool:
        if self._last_refresh is None:
            return True

        age = (datetime.now(timezone.utc) - self._last_refresh).total_seconds()
        return age >= self.cache_ttl

    async def close(self) -> None:
        """Close the HTTP client if this cache created it."""
        if self._owns_client:
            await self._http_client.aclose()
        logger.info("JWKS cache closed")
