"""OAuth 2.0 authorization code exchange service.

Implements the RFC 6749 token endpoint interaction with PKCE (RFC 7636) and
either body or HTTP Basic client authentication.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, TypeVar, overload

import httpx
from pydantic import ValidationError

from grantflow.models.errors import OAuthRequestError
from grantflow.models.tokens import TokenExchangeConfig, TokenRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")

ResponseValidator = Callable[[dict[str, Any]], T]


class OAuth2TokenManager:
    """Exchanges authorization codes for tokens at a token endpoint.

    Uses application/x-www-form-urlencoded encoding as required by RFC 6749.
    The manager holds no per-flow state; concurrent exchanges share only the
    HTTP client. Failures surface immediately, with no retry.
    """

    def __init__(
        self, http_client: httpx.AsyncClient | None = None, timeout: float = 30.0
    ):
        """Initialize the token manager.

        Args:
            http_client: Client to send requests with. One is created (and
                owned) when omitted.
            timeout: HTTP request timeout in seconds for an owned client
        """
        self.timeout = timeout
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    @overload
    async def exchange_code_for_token(
        self,
        token_endpoint: str,
        code: str,
        config: TokenExchangeConfig,
        response_validator: None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]: ...

    @overload
    async def exchange_code_for_token(
        self,
        token_endpoint: str,
        code: str,
        config: TokenExchangeConfig,
        response_validator: ResponseValidator[T],
        timeout: float | None = None,
    ) -> T: ...

    async def exchange_code_for_token(
        self,
        token_endpoint: str,
        code: str,
        config: TokenExchangeConfig,
        response_validator: ResponseValidator[T] | None = None,
        timeout: float | None = None,
    ) -> T | dict[str, Any]:
        """Exchange an authorization code for tokens.

        Implements RFC 6749 Section 4.1.3 - Access Token Request.

        The response is returned as parsed JSON. It is not checked against
        any schema unless ``response_validator`` is given (for example
        ``TokenResponse.model_validate``); the caller owns that check.

        Args:
            token_endpoint: Token endpoint URL
            code: Authorization code from the callback
            config: Client id, redirect URI, client password, code verifier
            response_validator: Optional callable producing the caller's
                expected response shape
            timeout: Per-call timeout overriding the client default

        Returns:
            The token response JSON object, or the validator's result

        Raises:
            OAuthRequestError: On transport failure, a non-2xx status, or a
                body that is not a JSON object
        """
        token_request = TokenRequest(
            token_endpoint=token_endpoint, code=code, config=config
        )
        form_data = token_request.to_form_data()
        headers = token_request.to_headers()

        # Log request details (without sensitive data)
        auth_method = token_request.auth_method
        logger.debug(
            f"Token request to {token_endpoint}: client_id={config.client_id}, "
            f"auth_method={auth_method.value if auth_method else 'none'}, "
            f"pkce={'code_verifier' in form_data}"
        )

        request_kwargs: dict[str, Any] = {"data": form_data, "headers": headers}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        try:
            response = await self._http_client.post(token_endpoint, **request_kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"HTTP error during token exchange: {e!r}")
            raise OAuthRequestError(f"HTTP error during token exchange: {e}") from e

        data = self._parse_token_response(response)

        if response_validator is None:
            return data

        try:
            return response_validator(data)
        except (ValidationError, ValueError, TypeError) as e:
            raise OAuthRequestError(
                f"Token response failed validation: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def _parse_token_response(self, response: httpx.Response) -> dict[str, Any]:
        """Parse a token endpoint response.

        Handles both successful responses (2xx) and error responses (400+)
        according to RFC 6749 Section 5.

        Raises:
            OAuthRequestError: For error statuses and unparsable bodies
        """
        body = response.text

        try:
            response_data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            if not response.is_success:
                logger.warning(
                    f"Token exchange failed with {response.status_code} (non-JSON body)"
                )
                raise OAuthRequestError(
                    f"Token endpoint returned HTTP {response.status_code}",
                    status_code=response.status_code,
                    body=body,
                ) from e
            raise OAuthRequestError(
                f"Invalid token response format: {e}",
                status_code=response.status_code,
                body=body,
            ) from e

        if not response.is_success:
            # Error response (RFC 6749 Section 5.2)
            error = OAuthRequestError.from_error_body(
                f"Token endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=body,
                data=response_data,
            )
            logger.warning(
                f"Token exchange failed with {response.status_code}: "
                f"{error.error or 'unknown_error'} - "
                f"{error.error_description or 'No description provided'}"
            )
            raise error

        if not isinstance(response_data, dict):
            raise OAuthRequestError(
                "Token response is not a JSON object",
                status_code=response.status_code,
                body=body,
            )

        logger.info("Token exchange successful")
        return response_data

    async def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> OAuth2TokenManager:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
