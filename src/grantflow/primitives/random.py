"""Cryptographically secure random strings for state and PKCE verifiers."""

from __future__ import annotations

import base64
import logging
import secrets
from typing import Callable

from grantflow.models.errors import RandomSourceError

logger = logging.getLogger(__name__)

RandomBytes = Callable[[int], bytes]

# 32 bytes encode to 43 base64url characters, the PKCE verifier minimum.
MIN_NUM_BYTES = 32


class SecureTokenGenerator:
    """Generates URL-safe random strings from an injected byte source.

    Output is base64url without padding, so it only contains
    ``[A-Za-z0-9_-]`` and can be placed in a query string unescaped.
    The default source is ``secrets.token_bytes`` (the OS CSPRNG), which
    is safe to call concurrently. Tests may inject a deterministic source.
    """

    def __init__(
        self,
        random_bytes: RandomBytes = secrets.token_bytes,
        num_bytes: int = MIN_NUM_BYTES,
    ):
        if num_bytes < MIN_NUM_BYTES:
            raise ValueError(f"num_bytes must be at least {MIN_NUM_BYTES}")
        self._random_bytes = random_bytes
        self.num_bytes = num_bytes

    def generate(self) -> str:
        """Return a fresh random string.

        Raises:
            RandomSourceError: If the random source is unavailable or
                returns short output
        """
        try:
            raw = self._random_bytes(self.num_bytes)
        except (NotImplementedError, OSError) as e:
            logger.error("No secure random source available")
            raise RandomSourceError(f"Secure random source unavailable: {e}") from e

        if len(raw) != self.num_bytes:
            raise RandomSourceError(
                f"Random source returned {len(raw)} bytes, expected {self.num_bytes}"
            )

        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    def generate_state(self) -> str:
        return self.generate()

    def generate_code_verifier(self) -> str:
        return self.generate()


default_generator = SecureTokenGenerator()
