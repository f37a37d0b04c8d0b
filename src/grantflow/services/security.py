"""State parameter validation for OAuth 2.0 callbacks."""

from __future__ import annotations

import logging
import secrets

from grantflow.models.errors import InvalidStateError

logger = logging.getLogger(__name__)


def validate_state(expected: str | None, actual: str | None) -> None:
    """Validate the callback state parameter against the persisted value.

    Comparison is exact and constant-time over the UTF-8 bytes. Must run
    before any token endpoint call.

    Args:
        expected: State persisted when the authorization URL was built
        actual: State parameter from the callback URL

    Raises:
        InvalidStateError: If either value is missing or they don't match
    """
    if not expected:
        raise InvalidStateError("No stored state to validate the callback against")
    if not actual:
        raise InvalidStateError("Callback missing required state parameter")

    if not secrets.compare_digest(expected.encode("utf-8"), actual.encode("utf-8")):
        logger.warning("State parameter mismatch on authorization callback")
        raise InvalidStateError("State parameter mismatch - possible CSRF attack")
