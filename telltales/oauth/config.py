"""
OAuth configuration for Telldus Live integration.

This module provides configuration management for OAuth 1.0a
authentication with the Telldus Live API. Configuration can be loaded
from environment variables or provided programmatically. Consumer keys
are not part of this configuration; they live in the credentials file.
"""

import os
from dataclasses import dataclass

from .. import __version__
from .exceptions import ConfigurationError


@dataclass
class TelldusOAuthConfig:
    """
    Configuration for Telldus Live OAuth 1.0a.

    Attributes:
        base_url: Telldus Live API root
        request_token_path: Endpoint issuing request tokens
        authorize_path: Browser consent page
        access_token_path: Endpoint redeeming a request token
        profile_path: Protected endpoint used to verify the access token
        callback_host: Loopback address the callback listener binds to
        callback_path: URL path the provider redirects to after consent
        callback_timeout: Seconds to wait for the browser redirect before
            falling back to manual entry
        request_timeout: Per-request HTTP timeout in seconds
        min_request_interval: Minimum spacing between REST calls in seconds
        user_agent: User-Agent header sent with every request
    """

    base_url: str = "https://pa-api.telldus.com"

    # Telldus Live OAuth endpoints
    request_token_path: str = "/oauth/requestToken"
    authorize_path: str = "/oauth/authorize"
    access_token_path: str = "/oauth/accessToken"
    profile_path: str = "/json/user/profile"

    # Callback listener
    callback_host: str = "127.0.0.1"
    callback_path: str = "/oauth/callback"
    callback_timeout: int = 300

    request_timeout: int = 30
    min_request_interval: float = 1.0
    user_agent: str = f"telltales-cli/{__version__} (+https://github.com/niklasha/telltales)"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"base_url must start with http:// or https://, got {self.base_url}"
            )

        self.base_url = self.base_url.rstrip("/")

        if not self.callback_path.startswith("/"):
            raise ConfigurationError("callback_path must start with '/'")

        if self.callback_timeout <= 0:
            raise ConfigurationError("callback_timeout must be positive")

        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")

        if self.min_request_interval < 0:
            raise ConfigurationError("min_request_interval cannot be negative")

    @property
    def request_token_url(self) -> str:
        return f"{self.base_url}{self.request_token_path}"

    @property
    def authorize_url(self) -> str:
        return f"{self.base_url}{self.authorize_path}"

    @property
    def access_token_url(self) -> str:
        return f"{self.base_url}{self.access_token_path}"

    @property
    def profile_url(self) -> str:
        return f"{self.base_url}{self.profile_path}"

    @classmethod
    def from_env(cls) -> "TelldusOAuthConfig":
        """
        Load configuration from environment variables.

        Optional environment variables:
            TELLTALES_API_URL: API root (default: https://pa-api.telldus.com)
            TELLTALES_CALLBACK_TIMEOUT: Seconds to wait for the browser redirect (default: 300)
            TELLTALES_REQUEST_TIMEOUT: HTTP timeout in seconds (default: 30)

        Returns:
            TelldusOAuthConfig instance

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        try:
            callback_timeout = int(os.environ.get("TELLTALES_CALLBACK_TIMEOUT", "300"))
            request_timeout = int(os.environ.get("TELLTALES_REQUEST_TIMEOUT", "30"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid timeout in environment: {e}") from e

        return cls(
            base_url=os.environ.get("TELLTALES_API_URL", "https://pa-api.telldus.com"),
            callback_timeout=callback_timeout,
            request_timeout=request_timeout,
        )
