"""Exceptions for Telldus Live API client."""


class TelldusAPIError(Exception):
    """Base exception for Telldus Live API errors."""

    pass


class TelldusAuthenticationError(TelldusAPIError):
    """
    Authentication failure with Telldus Live API.

    The access token is invalid or revoked. Run ``telltales auth validate``
    to authorize again.
    """

    pass


class TelldusRateLimitError(TelldusAPIError):
    """API rate limit exceeded."""

    pass
