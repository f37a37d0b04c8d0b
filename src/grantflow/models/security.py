"""Security-related models for OAuth 2.0 authentication.

Contains PKCE parameters and the constraints they must satisfy (RFC 7636).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

CODE_CHALLENGE_METHOD = "S256"
MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128

# RFC 7636 Section 4.1 unreserved characters
VERIFIER_PATTERN = re.compile(r"^[A-Za-z0-9\-._~]+$")


@dataclass(frozen=True)
class PKCEParameters:
    """PKCE (Proof Key for Code Exchange) parameters for one authorization flow.

    Immutable parameters generated for each authorization flow to prevent
    authorization code interception attacks. Only the challenge is sent in
    the authorization request; the verifier is kept for the token exchange.
    """

    code_verifier: str = field(repr=False)
    code_challenge: str = field()
    code_challenge_method: str = field(default=CODE_CHALLENGE_METHOD)

    def __post_init__(self) -> None:
        """Validate PKCE parameters meet RFC 7636 requirements."""
        if not (
            MIN_VERIFIER_LENGTH <= len(self.code_verifier) <= MAX_VERIFIER_LENGTH
        ):
            raise ValueError("code_verifier must be 43-128 characters")
        if len(self.code_challenge) != 43:
            raise ValueError("S256 code_challenge must be 43 characters")
        if self.code_challenge_method != CODE_CHALLENGE_METHOD:
            raise ValueError("Only S256 code challenge method is supported")
