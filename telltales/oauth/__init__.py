"""
OAuth 1.0a module for Telldus Live integration.

This module implements the three-legged OAuth handshake against the
Telldus Live API and the verification of stored access tokens.

The verifier that completes a handshake comes from whichever source
answers first:
- A one-shot loopback listener that receives the browser redirect
- Manual entry of the verification code or redirect URL

Public API:
    TelldusOAuthConfig: OAuth configuration
    TokenExchangeClient: Request/access token round trips
    OAuthCallbackServer: Local callback listener
    OAuthCoordinator: High-level OAuth interface
    AuthOutcome: Result of validating credentials

Exceptions:
    TelldusAuthError: Base exception
    MissingConsumerKeysError, TransportError, ResponseParseError,
    AuthorizationDeniedError, MissingFieldError, VerificationFailedError,
    UnauthorizedError, MissingVerifierError, VerifierNotFoundError,
    CallbackListenerError, ConfigurationError
"""

from .auth_server import (
    AuthorizationResult,
    OAuthCallbackServer,
    extract_verifier,
    run_authorization_flow,
)
from .config import TelldusOAuthConfig
from .coordinator import AuthOutcome, OAuthCoordinator
from .exceptions import (
    AuthorizationDeniedError,
    CallbackListenerError,
    ConfigurationError,
    MissingConsumerKeysError,
    MissingFieldError,
    MissingVerifierError,
    ResponseParseError,
    TelldusAuthError,
    TransportError,
    UnauthorizedError,
    VerificationFailedError,
    VerifierNotFoundError,
)
from .profile import compose_account_name, verify_profile
from .token_exchange import TempToken, TokenExchangeClient, parse_token_response

__all__ = [
    # Configuration
    "TelldusOAuthConfig",
    # Token exchange
    "TempToken",
    "TokenExchangeClient",
    "parse_token_response",
    # Callback listener
    "AuthorizationResult",
    "OAuthCallbackServer",
    "extract_verifier",
    "run_authorization_flow",
    # Profile
    "compose_account_name",
    "verify_profile",
    # Coordinator
    "AuthOutcome",
    "OAuthCoordinator",
    # Exceptions
    "TelldusAuthError",
    "ConfigurationError",
    "MissingConsumerKeysError",
    "TransportError",
    "ResponseParseError",
    "AuthorizationDeniedError",
    "MissingFieldError",
    "VerificationFailedError",
    "UnauthorizedError",
    "MissingVerifierError",
    "VerifierNotFoundError",
    "CallbackListenerError",
]
