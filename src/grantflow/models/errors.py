"""Exception hierarchy for OAuth 2.0 authorization-code flows.

Provides specific exception types for different failure modes so callers can
tell CSRF failures apart from provider rejections and malformed tokens.
"""

from __future__ import annotations

from typing import Any


class OAuth2Error(Exception):
    """Base exception for all OAuth 2.0 related errors."""

    pass


class RandomSourceError(OAuth2Error):
    """Raised when no cryptographically secure random source is available.

    This is a configuration error. There is no fallback to a weaker source.
    """

    pass


class PKCEError(OAuth2Error):
    """Raised when a PKCE code verifier is outside the allowed length/alphabet."""

    pass


class AuthorizationError(OAuth2Error):
    """Raised when the authorization server reports an error on the redirect."""

    def __init__(
        self,
        message: str,
        error: str | None = None,
        error_description: str | None = None,
        error_uri: str | None = None,
    ):
        super().__init__(message)
        self.error = error
        self.error_description = error_description
        self.error_uri = error_uri


class AuthorizationCallbackError(OAuth2Error):
    """Raised when authorization server callback data is malformed or invalid.

    This indicates the authorization server sent an invalid callback URL,
    not that our callback handling code failed.
    """

    pass


class InvalidStateError(AuthorizationCallbackError):
    """Raised when the callback state is missing or does not match.

    Either case could indicate a CSRF attack. The flow is aborted before
    any token endpoint call is made.
    """

    pass


class OAuthRequestError(OAuth2Error):
    """Raised when a token endpoint call fails.

    Covers transport failures, non-success HTTP statuses and bodies that are
    not a JSON object. ``status_code`` is None when no response was received.
    The underlying exception, if any, is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        error: str | None = None,
        error_description: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.error = error
        self.error_description = error_description

    @property
    def is_transport_error(self) -> bool:
        """True when the request never produced an HTTP response."""
        return self.status_code is None

    @classmethod
    def from_error_body(
        cls, message: str, status_code: int, body: str, data: Any
    ) -> OAuthRequestError:
        """Build an error, lifting RFC 6749 error fields out of a JSON body."""
        error = error_description = None
        if isinstance(data, dict):
            error = data.get("error")
            error_description = data.get("error_description")
        return cls(
            message,
            status_code=status_code,
            body=body,
            error=error if isinstance(error, str) else None,
            error_description=(
                error_description if isinstance(error_description, str) else None
            ),
        )


class TokenDecodeError(OAuth2Error):
    """Raised when an identity token is malformed.

    Wrong segment count, invalid base64url or a payload that is not a JSON
    object all end up here.
    """

    pass


class IdentityLinkError(OAuth2Error):
    """Base exception for provider identity linking failures."""

    pass


class IdentityLinkConflictError(IdentityLinkError):
    """Raised when a credential for a provider identity already exists."""

    def __init__(self, message: str, provider_id: str, provider_user_id: str):
        super().__init__(message)
        self.provider_id = provider_id
        self.provider_user_id = provider_user_id


class UnknownUserError(IdentityLinkError):
    """Raised when attaching a credential to a user that does not exist."""

    pass


class IdentityLookupError(OAuth2Error):
    """Raised by user store implementations when the backing store fails.

    The identity linker never wraps or swallows it.
    """

    pass
