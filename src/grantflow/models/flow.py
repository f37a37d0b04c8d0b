"""Authorization flow models for OAuth 2.0.

Contains models for authorization requests and callback handling.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse


def normalize_scopes(scopes: str | Iterable[str]) -> tuple[str, ...]:
    """Turn scopes into a duplicate-free tuple, first occurrence wins.

    A plain string is treated as a space-separated scope list.
    """
    if isinstance(scopes, str):
        scopes = scopes.split()
    return tuple(dict.fromkeys(scopes))


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters for an authorization code flow."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    state: str
    scopes: tuple[str, ...] = ()
    code_challenge: str | None = None
    code_challenge_method: str | None = None
    extra_params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "scopes", normalize_scopes(self.scopes))
        object.__setattr__(
            self, "extra_params", MappingProxyType(dict(self.extra_params))
        )

    def query_params(self) -> dict[str, str]:
        """Build the query parameters, extras last so they override built-ins."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": self.state,
        }

        if self.scopes:
            params["scope"] = " ".join(self.scopes)
        if self.code_challenge:
            params["code_challenge"] = self.code_challenge
            params["code_challenge_method"] = self.code_challenge_method or "S256"

        params.update(self.extra_params)
        return params

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL.

        Query parameters already on the endpoint are kept unless one of
        ours has the same name.
        """
        parsed = urlparse(self.authorization_endpoint)
        params = dict(parse_qsl(parsed.query, keep_blank_values=True))
        params.update(self.query_params())

        return urlunparse(parsed._replace(query=urlencode(params)))


@dataclass(frozen=True)
class AuthorizationURL:
    """A built authorization URL plus the values the caller must persist.

    ``state`` is checked at the callback; ``code_verifier`` (PKCE flows only)
    is sent at token exchange. Neither is stored by this library.
    """

    url: str
    state: str
    code_verifier: str | None = field(default=None, repr=False)

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class AuthorizationResponse:
    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None
    error_uri: str | None = None

    def is_success(self) -> bool:
        return self.error is None and self.code is not None

    def is_error(self) -> bool:
        return self.error is not None
