"""Token exchange models for the OAuth 2.0 authorization code grant.

Contains client authentication configuration, the token request and an
optional convenience model for common token response fields.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from grantflow.primitives.pkce import validate_code_verifier


class ClientAuthMethod(str, Enum):
    """How a confidential client authenticates at the token endpoint."""

    CLIENT_SECRET = "client_secret"  # client_id/client_secret in the body
    HTTP_BASIC_AUTH = "http_basic_auth"  # RFC 6749 Section 2.3.1 header


class ClientPassword(BaseModel):
    """Client secret and the scheme used to present it."""

    model_config = ConfigDict(frozen=True)

    client_secret: str = Field(min_length=1, repr=False)
    authenticate_with: ClientAuthMethod = ClientAuthMethod.CLIENT_SECRET


class TokenExchangeConfig(BaseModel):
    """Per-client configuration for an authorization code exchange."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    redirect_uri: str | None = None
    client_password: ClientPassword | None = None
    code_verifier: str | None = Field(default=None, repr=False)

    @field_validator("client_id")
    @classmethod
    def validate_client_id(cls, v: str) -> str:
        if not v:
            raise ValueError("client_id must not be empty")
        return v

    @field_validator("code_verifier")
    @classmethod
    def check_code_verifier(cls, v: str | None) -> str | None:
        # Raises PKCEError, which pydantic does not wrap
        if v is not None:
            validate_code_verifier(v)
        return v


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code token request (RFC 6749 Section 4.1.3).

    Immutable request parameters for exchanging an authorization code.
    Exactly one client authentication mode is applied: secret in the body,
    secret in a Basic header, or none (public client).
    """

    token_endpoint: str
    code: str
    config: TokenExchangeConfig
    grant_type: str = "authorization_code"

    @property
    def auth_method(self) -> ClientAuthMethod | None:
        if self.config.client_password is None:
            return None
        return self.config.client_password.authenticate_with

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for application/x-www-form-urlencoded request.

        Token requests must use form encoding, not JSON (RFC 6749 Section 4.1.3).

        Returns:
            Dictionary suitable for httpx data parameter
        """
        data = {
            "grant_type": self.grant_type,
            "code": self.code,
        }

        if self.config.redirect_uri:
            data["redirect_uri"] = self.config.redirect_uri
        if self.config.code_verifier:
            data["code_verifier"] = self.config.code_verifier

        password = self.config.client_password
        if password is None:
            data["client_id"] = self.config.client_id
        elif password.authenticate_with is ClientAuthMethod.CLIENT_SECRET:
            data["client_id"] = self.config.client_id
            data["client_secret"] = password.client_secret

        return data

    def to_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        password = self.config.client_password
        if (
            password is not None
            and password.authenticate_with is ClientAuthMethod.HTTP_BASIC_AUTH
        ):
            headers["Authorization"] = basic_authorization(
                self.config.client_id, password.client_secret
            )

        return headers


def basic_authorization(client_id: str, client_secret: str) -> str:
    """Build an ``Authorization`` header value for HTTP Basic client auth."""
    credentials = f"{client_id}:{client_secret}".encode("utf-8")
    return f"Basic {base64.b64encode(credentials).decode('ascii')}"


class TokenResponse(BaseModel):
    """Common token response fields (RFC 6749 Section 5.1, OIDC id_token).

    The exchange itself never requires this shape. Pass
    ``TokenResponse.model_validate`` as a response validator to opt in.
    Provider-specific fields are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None  # Seconds until expiry
    refresh_token: str | None = None
    scope: str | None = None
    id_token: str | None = None

    @property
    def scopes(self) -> list[str]:
        return self.scope.split() if self.scope else []
