"""Claims-only JWT decoding (no signature check)."""

import base64
import binascii
import json
from typing import Any


class MalformedTokenError(ValueError):
    """Raised when a token does not have the structure of a compact JWT."""

    pass


def _b64url_decode(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def split_token(token: str) -> list[str]:
    """
    Split a compact JWT into its three segments.

    Raises:
        MalformedTokenError: If the token does not have exactly three segments
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedTokenError(f"Expected 3 segments, got {len(parts)}")
    return parts


def _decode_segment(segment: str, name: str) -> dict[str, Any]:
    try:
        raw = _b64url_decode(segment)
    except (binascii.Error, UnicodeEncodeError, ValueError) as e:
        raise MalformedTokenError(f"Failed to base64url-decode {name}: {e}") from e

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedTokenError(f"Failed to parse {name} as JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedTokenError(f"{name} is not a JSON object")
    return data


class JwtLiteDecoder:
    """
    Decodes the structure of a compact JWT without verifying it.

    Only the payload is needed for claims checks; the header is exposed for
    callers that want the ``kid``/``alg`` before a real signature check.

    Example:
        >>> claims = JwtLiteDecoder().decode_payload(id_token)
        >>> claims["sub"]
    """

    def decode_payload(self, token: str) -> dict[str, Any]:
        """
        Return the claims of ``token``.

        Raises:
            MalformedTokenError: On wrong segment count, bad base64 or non-object JSON
        """
        return _decode_segment(split_token(token)[1], "payload")

    def decode_header(self, token: str) -> dict[str, Any]:
        return _decode_segment(split_token(token)[0], "header")
