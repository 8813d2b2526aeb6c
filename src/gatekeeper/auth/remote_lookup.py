"""HTTP call to an identity provider's "who am I" endpoint."""

import logging

import httpx

from src.gatekeeper.auth.exceptions import TransientLookupError
from src.gatekeeper.auth.models import RemoteLookupResponse

logger = logging.getLogger(__name__)


class RemoteUserLookup:
    """
    Fetches the user behind an OAuth2 bearer token.

    Pure I/O: no retries, no caching, no interpretation of status codes.
    Status, parsed body and headers are handed back untouched so the caller
    can apply its own policy (401 / 429 handling, rate-limit headers).

    Attributes:
        user_info_url: Provider endpoint returning the token owner's profile
        _http_client: HTTP client used for the call

    Example:
        >>> lookup = RemoteUserLookup("https://api.x.com/2/users/me")
        >>> response = await lookup.fetch(access_token)
        >>> response.status_code
        200
    """

    def __init__(
        self,
        user_info_url: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.user_info_url = user_info_url
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0))
        )

    async def fetch(self, token: str) -> RemoteLookupResponse:
        """
        GET the user-info endpoint with ``token`` as a bearer credential.

        Raises:
            TransientLookupError: If the request could not be completed
        """
        try:
            response = await self._http_client.get(
                self.user_info_url,
                headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.error(
                f"User lookup request failed: {e}",
                extra={"error_type": "remote_lookup_failed", "url": self.user_info_url},
            )
            raise TransientLookupError(f"User lookup request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        logger.info(
            "User lookup response received",
            extra={"status": response.status_code, "url": self.user_info_url},
        )

        return RemoteLookupResponse(
            status_code=response.status_code,
            body=body,
            headers={k.lower(): v for k, v in response.headers.items()},
        )

    async def close(self) -> None:
        await self._http_client.aclose()
