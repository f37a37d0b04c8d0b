"""OAuth 2.0 authorization flow service.

Builds authorization URLs (with optional PKCE) and parses and validates the
callback the authorization server redirects back to.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from urllib.parse import parse_qs, urlparse

from grantflow.models.errors import (
    AuthorizationCallbackError,
    AuthorizationError,
)
from grantflow.models.flow import (
    AuthorizationRequest,
    AuthorizationResponse,
    AuthorizationURL,
    normalize_scopes,
)
from grantflow.primitives.pkce import PKCEManager
from grantflow.primitives.random import SecureTokenGenerator, default_generator
from grantflow.services.security import validate_state

logger = logging.getLogger(__name__)


class OAuth2FlowManager:
    """Builds authorization requests and handles their callbacks.

    Holds no per-flow state. The state and code verifier it produces are
    returned to the caller, who persists them across the redirect (for
    example in a short-lived http-only cookie).
    """

    def __init__(self, token_generator: SecureTokenGenerator | None = None):
        """Initialize the flow manager.

        Args:
            token_generator: Source of state values and PKCE verifiers
        """
        self._token_generator = token_generator or default_generator
        self._pkce_manager = PKCEManager(self._token_generator)

    def create_authorization_url(
        self,
        authorization_endpoint: str,
        client_id: str,
        redirect_uri: str,
        scopes: str | Iterable[str] = (),
        state: str | None = None,
        extra_params: Mapping[str, str] | None = None,
        use_pkce: bool = False,
    ) -> AuthorizationURL:
        """Build the URL the user agent is redirected to.

        Args:
            authorization_endpoint: Absolute authorization endpoint URL
            client_id: Client identifier
            redirect_uri: Callback URI registered with the provider
            scopes: Scopes to request, as an iterable or a space-separated
                string; ``scope`` is omitted when empty
            state: State to use; a fresh one is generated when None
            extra_params: Extra query parameters, applied last so they
                override same-named built-in parameters
            use_pkce: Add an S256 code challenge and return its verifier

        Returns:
            AuthorizationURL with the URL, the state and (PKCE only) the
            code verifier to persist

        Raises:
            RandomSourceError: If no secure random source is available
        """
        if state is None:
            state = self._token_generator.generate_state()

        code_verifier = code_challenge = code_challenge_method = None
        if use_pkce:
            pkce_params = self._pkce_manager.generate_parameters()
            code_verifier = pkce_params.code_verifier
            code_challenge = pkce_params.code_challenge
            code_challenge_method = pkce_params.code_challenge_method

        auth_request = AuthorizationRequest(
            authorization_endpoint=authorization_endpoint,
            client_id=client_id,
            redirect_uri=redirect_uri,
            state=state,
            scopes=normalize_scopes(scopes),
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
            extra_params=extra_params or {},
        )

        logger.debug(
            f"Built authorization URL for client {client_id} "
            f"(pkce={use_pkce}, scopes={list(auth_request.scopes)})"
        )

        return AuthorizationURL(
            url=auth_request.build_authorization_url(),
            state=state,
            code_verifier=code_verifier,
        )

    def handle_authorization_callback(
        self,
        callback_url: str,
        expected_state: str | None,
    ) -> AuthorizationResponse:
        """Handle the authorization server's redirect back to the client.

        State is checked first, so a forged callback never reaches the
        error or code handling below, let alone the token endpoint.

        Args:
            callback_url: Full callback URL received from authorization server
            expected_state: State persisted with the authorization URL

        Returns:
            AuthorizationResponse: Parsed callback carrying the code

        Raises:
            InvalidStateError: If state is missing or doesn't match
            AuthorizationError: If the provider returned an error
            AuthorizationCallbackError: If the code is missing
        """
        auth_response = self._parse_callback_url(callback_url)

        validate_state(expected_state, auth_response.state)

        if auth_response.is_error():
            see_also = (
                f"See: {auth_response.error_uri}" if auth_response.error_uri else ""
            )
            logger.warning(
                f"Authorization callback contained error: {auth_response.error} - "
                f"{auth_response.error_description}"
            )
            raise AuthorizationError(
                f"Authorization failed: {auth_response.error} "
                f"({auth_response.error_description or ''}) "
                f"{see_also}",
                error=auth_response.error,
                error_description=auth_response.error_description,
                error_uri=auth_response.error_uri,
            )

        if auth_response.code is None:
            raise AuthorizationCallbackError("Missing authorization code")

        logger.debug("Authorization callback successful - received authorization code")
        return auth_response

    def _parse_callback_url(self, callback_url: str) -> AuthorizationResponse:
        """Parse OAuth callback URL into AuthorizationResponse.

        Raises:
            AuthorizationCallbackError: If URL is malformed
        """
        try:
            parsed = urlparse(callback_url)
            query_params = parse_qs(parsed.query)
        except ValueError as e:
            raise AuthorizationCallbackError(
                f"Failed to parse callback URL: {e}"
            ) from e

        # Extract single values from query parameter lists
        def get_single_param(key: str) -> str | None:
            values = query_params.get(key, [])
            return values[0] if values else None

        return AuthorizationResponse(
            code=get_single_param("code"),
            state=get_single_param("state"),
            error=get_single_param("error"),
            error_description=get_single_param("error_description"),
            error_uri=get_single_param("error_uri"),
        )
