"""OAuth 2.0 authorization code grant toolkit.

State and PKCE generation, authorization URL building, code exchange,
identity token decoding and provider identity linking.
"""

from grantflow.models.errors import (
    AuthorizationCallbackError,
    AuthorizationError,
    IdentityLinkConflictError,
    IdentityLinkError,
    IdentityLookupError,
    InvalidStateError,
    OAuth2Error,
    OAuthRequestError,
    PKCEError,
    RandomSourceError,
    TokenDecodeError,
    UnknownUserError,
)
from grantflow.models.flow import AuthorizationResponse, AuthorizationURL
from grantflow.models.identity import ProviderIdentity, UserStore
from grantflow.models.tokens import (
    ClientAuthMethod,
    ClientPassword,
    TokenExchangeConfig,
    TokenResponse,
)
from grantflow.oauth_client import OAuth2Client
from grantflow.primitives.id_token import decode_id_token
from grantflow.primitives.pkce import create_s256_code_challenge, validate_code_verifier
from grantflow.primitives.random import SecureTokenGenerator
from grantflow.services.flow import OAuth2FlowManager
from grantflow.services.identity import ProviderUserAuth, provider_user_auth
from grantflow.services.security import validate_state
from grantflow.services.tokens import OAuth2TokenManager
from grantflow.stores.memory import InMemoryUserStore

__all__ = [
    "AuthorizationCallbackError",
    "AuthorizationError",
    "AuthorizationResponse",
    "AuthorizationURL",
    "ClientAuthMethod",
    "ClientPassword",
    "IdentityLinkConflictError",
    "IdentityLinkError",
    "IdentityLookupError",
    "InMemoryUserStore",
    "InvalidStateError",
    "OAuth2Client",
    "OAuth2Error",
    "OAuth2FlowManager",
    "OAuth2TokenManager",
    "OAuthRequestError",
    "PKCEError",
    "ProviderIdentity",
    "ProviderUserAuth",
    "RandomSourceError",
    "SecureTokenGenerator",
    "TokenDecodeError",
    "TokenExchangeConfig",
    "TokenResponse",
    "UnknownUserError",
    "UserStore",
    "create_s256_code_challenge",
    "decode_id_token",
    "provider_user_auth",
    "validate_code_verifier",
    "validate_state",
]
