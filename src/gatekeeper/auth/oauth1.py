"""OAuth 1.0a request signing (RFC 5849, HMAC-SHA1)."""

import base64
import hashlib
import hmac
import logging
import secrets
import time
from urllib.parse import parse_qsl, quote, urlsplit

logger = logging.getLogger(__name__)


def percent_encode(value: str) -> str:
    """RFC 3986 percent-encoding; only unreserved characters are left as-is."""
    return quote(str(value), safe="~")


def _base_url(url: str) -> str:
    parts = urlsplit(url)
    base = f"{parts.scheme.lower()}://{parts.hostname}"
    if parts.port is not None:
        base += f":{parts.port}"
    return base + parts.path


def build_signature_base_string(method: str, url: str, params: dict[str, str]) -> str:
    """
    Build the signature base string.

    Query parameters of ``url`` are merged into ``params``; the base URL
    keeps only scheme, host, port and path.

    Example:
        >>> build_signature_base_string("get", "https://api.x.com/1.1/a.json", {"b": "1"})
        'GET&https%3A%2F%2Fapi.x.com%2F1.1%2Fa.json&b%3D1'
    """
    merged = dict(params)
    query = urlsplit(url).query
    if query:
        merged.update(parse_qsl(query, keep_blank_values=True))

    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in merged.items())
    parameter_string = "&".join(f"{k}={v}" for k, v in encoded)

    return "&".join(
        [method.upper(), percent_encode(_base_url(url)), percent_encode(parameter_string)]
    )


def build_signing_key(consumer_secret: str, token_secret: str | None = None) -> str:
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"


def sign(
    method: str,
    url: str,
    params: dict[str, str],
    consumer_secret: str,
    token_secret: str | None = None,
) -> str:
    """
    Compute the base64 HMAC-SHA1 ``oauth_signature`` for a request.

    Args:
        method: HTTP method
        url: Request URL (query string allowed)
        params: OAuth and request parameters, without ``oauth_signature``
        consumer_secret: Application consumer secret
        token_secret: Access/request token secret, if any

    Returns:
        Base64-encoded signature
    """
    base_string = build_signature_base_string(method, url, params)
    signing_key = build_signing_key(consumer_secret, token_secret)

    logger.debug(
        "OAuth 1.0a signature generation",
        extra={
            "method": method.upper(),
            "params_keys": sorted(params.keys()),
            "base_string_length": len(base_string),
        },
    )

    digest = hmac.new(signing_key.encode(), base_string.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def build_authorization_header(params: dict[str, str]) -> str:
    """Render OAuth params as an ``Authorization: OAuth ...`` header value, keys sorted."""
    pairs = ", ".join(
        f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(params.items())
    )
    return f"OAuth {pairs}"


def generate_oauth_params(
    consumer_key: str,
    token: str | None = None,
    nonce: str | None = None,
    timestamp: str | None = None,
) -> dict[str, str]:
    """Protocol parameters for a signed request; nonce and timestamp are filled in when omitted."""
    params = {
        "oauth_consumer_key": consumer_key,
        "oauth_signature_method": "HMAC-SHA1",
        "oauth_version": "1.0",
    }
    if token is not None:
        params["oauth_token"] = token

    params["oauth_nonce"] = nonce if nonce is not None else secrets.token_hex(16)
    params["oauth_timestamp"] = timestamp if timestamp is not None else str(int(time.time()))
    return params


def signed_authorization_header(
    method: str,
    url: str,
    consumer_key: str,
    consumer_secret: str,
    token: str | None = None,
    token_secret: str | None = None,
) -> str:
    """Generate params, sign them and return the Authorization header in one step."""
    params = generate_oauth_params(consumer_key, token)
    params["oauth_signature"] = sign(method, url, params, consumer_secret, token_secret)
    return build_authorization_header(params)
