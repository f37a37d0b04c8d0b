"""PKCE (Proof Key for Code Exchange) primitives.

Implements RFC 7636 S256 challenge derivation and verifier validation to
prevent authorization code interception attacks. Plain-text PKCE is not
supported.
"""

from __future__ import annotations

import base64
import hashlib

from grantflow.models.errors import PKCEError
from grantflow.models.security import (
    CODE_CHALLENGE_METHOD,
    MAX_VERIFIER_LENGTH,
    MIN_VERIFIER_LENGTH,
    VERIFIER_PATTERN,
    PKCEParameters,
)
from grantflow.primitives.random import SecureTokenGenerator, default_generator


def validate_code_verifier(code_verifier: str) -> None:
    """Check a code verifier against RFC 7636 Section 4.1.

    The verifier must be 43-128 characters long and use only unreserved
    characters: [A-Z] / [a-z] / [0-9] / "-" / "." / "_" / "~"

    Raises:
        PKCEError: If the verifier is out of range. It is never truncated
            or padded.
    """
    if not (MIN_VERIFIER_LENGTH <= len(code_verifier) <= MAX_VERIFIER_LENGTH):
        raise PKCEError(
            f"code_verifier must be {MIN_VERIFIER_LENGTH}-{MAX_VERIFIER_LENGTH} "
            f"characters, got {len(code_verifier)}"
        )
    if not VERIFIER_PATTERN.match(code_verifier):
        raise PKCEError("code_verifier contains characters outside [A-Za-z0-9-._~]")


def create_s256_code_challenge(code_verifier: str) -> str:
    """Derive the code challenge from a code verifier using the S256 method.

    RFC 7636 Section 4.2: BASE64URL-ENCODE(SHA256(ASCII(code_verifier)))

    Args:
        code_verifier: The code verifier to hash

    Returns:
        Base64url-encoded SHA256 hash of the code verifier, without padding

    Raises:
        PKCEError: If the verifier is invalid
    """
    validate_code_verifier(code_verifier)

    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()

    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


class PKCEManager:
    """Generates PKCE parameters for authorization code flows.

    The random source is injected through the token generator so tests
    can make verifiers deterministic.
    """

    def __init__(self, token_generator: SecureTokenGenerator | None = None):
        self._token_generator = token_generator or default_generator

    def generate_parameters(self) -> PKCEParameters:
        """Generate a fresh verifier and its S256 challenge.

        Returns:
            PKCEParameters: Immutable parameters for the authorization flow

        Raises:
            RandomSourceError: If no secure random source is available
        """
        code_verifier = self._token_generator.generate_code_verifier()

        return PKCEParameters(
            code_verifier=code_verifier,
            code_challenge=create_s256_code_challenge(code_verifier),
            code_challenge_method=CODE_CHALLENGE_METHOD,
        )
