"""
OAuth exception classes for Telldus Live integration.

This module defines the exception hierarchy for all OAuth-related errors.
Every failure of the authorization workflow reaches the caller as one of
these types; lower-level ``requests`` errors are chained as ``__cause__``.
"""

from typing import Optional


class TelldusAuthError(Exception):
    """Base exception for all Telldus OAuth errors."""

    pass


class ConfigurationError(TelldusAuthError):
    """OAuth configuration error (invalid endpoint or timeout settings)."""

    pass


class MissingConsumerKeysError(TelldusAuthError):
    """Public or private API key is blank; nothing was sent over the network."""

    def __init__(self, message: str = "consumer keys are required before authenticating"):
        super().__init__(message)


class TransportError(TelldusAuthError):
    """
    HTTP request failed at the transport level or with a non-2xx status.

    Attributes:
        status_code: HTTP status of the response, None if no response arrived
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ResponseParseError(TelldusAuthError):
    """Provider response body could not be decoded."""

    pass


class AuthorizationDeniedError(TelldusAuthError):
    """User declined access on the Telldus Live consent page."""

    def __init__(self, message: str = "OAuth authorization was denied"):
        super().__init__(message)


class MissingFieldError(TelldusAuthError):
    """OAuth response lacks a required field."""

    def __init__(self, field: str):
        super().__init__(f"OAuth response missing field `{field}`")
        self.field = field


class VerificationFailedError(TelldusAuthError):
    """Telldus Live answered with a non-success status or an oauth_problem."""

    def __init__(self, reason: str):
        super().__init__(f"Telldus Live rejected the request with status {reason}")
        self.reason = reason


class UnauthorizedError(TelldusAuthError):
    """Stored access token was rejected (HTTP 401)."""

    def __init__(self, message: str = "stored tokens were rejected; please re-authorize"):
        super().__init__(message)


class MissingVerifierError(TelldusAuthError):
    """Manual input carried no verification code."""

    def __init__(self, message: str = "authorization code or redirect URL is required"):
        super().__init__(message)


class VerifierNotFoundError(TelldusAuthError):
    """Pasted redirect URL has no oauth_verifier query parameter."""

    def __init__(self, message: str = "redirect URL missing oauth_verifier parameter"):
        super().__init__(message)


class CallbackListenerError(TelldusAuthError):
    """Local callback listener failed to bind, accept or parse the redirect."""

    pass
