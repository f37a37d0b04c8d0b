"""OpenID Connect identity token payload decoding.

Only the claims segment of a compact ``header.payload.signature`` token is
read. No signature, expiry, issuer or audience checks are performed. That is
fine for a token received straight from the token endpoint over TLS; for a
token from any other channel the caller must verify it first.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any, Callable, TypeVar, overload

from pydantic import ValidationError

from grantflow.models.errors import TokenDecodeError

T = TypeVar("T")

ClaimsValidator = Callable[[dict[str, Any]], T]

BASE64URL_SEGMENT = re.compile(r"^[A-Za-z0-9_-]*$")


def _base64url_decode(segment: str) -> bytes:
    if not BASE64URL_SEGMENT.match(segment):
        raise ValueError("segment contains characters outside the base64url alphabet")
    padding = (4 - len(segment) % 4) % 4
    return base64.b64decode(segment + "=" * padding, altchars=b"-_", validate=True)


@overload
def decode_id_token(id_token: str) -> dict[str, Any]: ...


@overload
def decode_id_token(id_token: str, validator: ClaimsValidator[T]) -> T: ...


def decode_id_token(
    id_token: str, validator: ClaimsValidator[T] | None = None
) -> T | dict[str, Any]:
    """Decode the claims of an identity token without verifying it.

    Args:
        id_token: Compact serialized token
        validator: Optional callable that turns the raw claims into the
            caller's expected shape, e.g. ``MyClaims.model_validate``.
            Without one, the claims dict is returned unchecked.

    Returns:
        The claims, as returned by the validator if one was given

    Raises:
        TokenDecodeError: On a wrong segment count, invalid base64url,
            invalid JSON, a non-object payload, or a validator failure
    """
    segments = id_token.split(".")
    if len(segments) != 3:
        raise TokenDecodeError(
            f"Identity token must have 3 segments, got {len(segments)}"
        )

    try:
        payload = _base64url_decode(segments[1])
    except (binascii.Error, ValueError) as e:
        raise TokenDecodeError(f"Invalid base64url in token payload: {e}") from e

    try:
        claims = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TokenDecodeError(f"Token payload is not valid JSON: {e}") from e

    if not isinstance(claims, dict):
        raise TokenDecodeError("Token payload is not a JSON object")

    if validator is None:
        return claims

    try:
        return validator(claims)
    except (ValidationError, ValueError, TypeError) as e:
        raise TokenDecodeError(f"Token claims failed validation: {e}") from e
