"""Complete OAuth 2.0 authorization code client for one provider.

Coordinates authorization URL building, callback validation, token exchange
and identity token decoding.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx
from pydantic import BaseModel

from grantflow.models.errors import TokenDecodeError
from grantflow.models.flow import AuthorizationURL
from grantflow.models.tokens import ClientPassword, TokenExchangeConfig
from grantflow.primitives.id_token import ClaimsValidator, decode_id_token
from grantflow.primitives.random import SecureTokenGenerator
from grantflow.services.flow import OAuth2FlowManager
from grantflow.services.tokens import OAuth2TokenManager, ResponseValidator

logger = logging.getLogger(__name__)


class OAuth2Client:
    """OAuth 2.0 authorization code client bound to one provider.

    Stateless between calls: the state and code verifier returned by
    ``create_authorization_url`` are persisted by the caller and passed back
    into ``handle_callback``.
    """

    def __init__(
        self,
        client_id: str,
        authorization_endpoint: str,
        token_endpoint: str,
        redirect_uri: str | None = None,
        client_password: ClientPassword | None = None,
        token_generator: SecureTokenGenerator | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        """Initialize OAuth client.

        Args:
            client_id: Client identifier issued by the provider
            authorization_endpoint: Provider authorization endpoint
            token_endpoint: Provider token endpoint
            redirect_uri: Registered callback URI. Required to build
                authorization URLs.
            client_password: Secret and authentication scheme for
                confidential clients; None for public clients
            token_generator: Random source for state and PKCE verifiers
            http_client: HTTP client for token requests
            timeout: HTTP request timeout
        """
        self.client_id = client_id
        self.authorization_endpoint = authorization_endpoint
        self.token_endpoint = token_endpoint
        self.redirect_uri = redirect_uri
        self.client_password = client_password

        self.flow_manager = OAuth2FlowManager(token_generator)
        self.token_manager = OAuth2TokenManager(http_client, timeout=timeout)

    def create_authorization_url(
        self,
        scopes: str | Iterable[str] = (),
        state: str | None = None,
        extra_params: Mapping[str, str] | None = None,
        use_pkce: bool = False,
    ) -> AuthorizationURL:
        """Build an authorization URL for this provider.

        Returns:
            AuthorizationURL; persist its ``state`` and ``code_verifier``
        """
        if not self.redirect_uri:
            raise ValueError("redirect_uri is required to build authorization URLs")

        return self.flow_manager.create_authorization_url(
            self.authorization_endpoint,
            self.client_id,
            self.redirect_uri,
            scopes=scopes,
            state=state,
            extra_params=extra_params,
            use_pkce=use_pkce,
        )

    async def validate_authorization_code(
        self,
        code: str,
        code_verifier: str | None = None,
        response_validator: ResponseValidator[Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Exchange an authorization code whose callback was already validated.

        Raises:
            OAuthRequestError: If the token endpoint call fails
        """
        config = TokenExchangeConfig(
            client_id=self.client_id,
            redirect_uri=self.redirect_uri,
            client_password=self.client_password,
            code_verifier=code_verifier,
        )
        return await self.token_manager.exchange_code_for_token(
            self.token_endpoint,
            code,
            config,
            response_validator=response_validator,
            timeout=timeout,
        )

    async def handle_callback(
        self,
        callback_url: str,
        expected_state: str | None,
        code_verifier: str | None = None,
        response_validator: ResponseValidator[Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Validate a callback and exchange its code for tokens.

        State is validated before the token endpoint is contacted, so a
        forged or replayed callback costs no network call.

        Raises:
            InvalidStateError: If the state is missing or doesn't match
            AuthorizationError: If the provider reported an error
            AuthorizationCallbackError: If the callback has no code
            OAuthRequestError: If the token endpoint call fails
        """
        auth_response = self.flow_manager.handle_authorization_callback(
            callback_url, expected_state
        )

        logger.debug(f"Exchanging authorization code for client {self.client_id}")

        return await self.validate_authorization_code(
            auth_response.code,
            code_verifier=code_verifier,
            response_validator=response_validator,
            timeout=timeout,
        )

    def decode_id_token(
        self,
        tokens: Mapping[str, Any] | BaseModel,
        validator: ClaimsValidator[Any] | None = None,
    ) -> Any:
        """Decode the ``id_token`` of a token response, unverified.

        ``tokens`` is either the raw response mapping or a model such as
        ``TokenResponse`` produced by a response validator.

        Only use on a token response that came straight from the token
        endpoint; see ``decode_id_token``.

        Raises:
            TokenDecodeError: If there is no id_token or it is malformed
        """
        if isinstance(tokens, BaseModel):
            id_token = getattr(tokens, "id_token", None)
        else:
            id_token = tokens.get("id_token")
        if not isinstance(id_token, str):
            raise TokenDecodeError("Token response has no id_token")

        if validator is None:
            return decode_id_token(id_token)
        return decode_id_token(id_token, validator)

    async def close(self) -> None:
        """Close service connections."""
        await self.token_manager.close()

    async def __aenter__(self) -> OAuth2Client:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
