"""
OAuth coordinator for high-level OAuth operations.

This module provides the main interface for authentication in the
application. It decides whether a handshake is needed, runs it, verifies
the resulting access token against the profile endpoint, and re-authorizes
exactly once when stored tokens are rejected.

State machine:
    NoToken -> Handshaking -> Verifying -> Verified
                                        -> Reauthorizing -> Verifying' -> Verified
                                                                       -> Failed
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from ..credentials import TelldusCredentials
from .auth_server import OAuthCallbackServer, run_authorization_flow
from .config import TelldusOAuthConfig
from .exceptions import MissingConsumerKeysError, UnauthorizedError
from .http_client import build_session
from .profile import verify_profile
from .token_exchange import TokenExchangeClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthOutcome:
    """
    Result of OAuthCoordinator.validate().

    Attributes:
        tokens_refreshed: Whether a new access token pair was obtained;
            the caller should persist ``credentials`` when True
        account_name: Display name from the profile, if any
        credentials: Working credentials holding the current access pair
    """

    tokens_refreshed: bool
    account_name: Optional[str]
    credentials: TelldusCredentials


class OAuthCoordinator:
    """
    High-level coordinator for OAuth operations.

    Example:
        coordinator = OAuthCoordinator()
        outcome = coordinator.validate(credentials)
        if outcome.tokens_refreshed:
            store.save(outcome.credentials)
    """

    def __init__(
        self,
        config: Optional[TelldusOAuthConfig] = None,
        session: Optional[requests.Session] = None,
        prompt: Optional[Callable[[], str]] = None,
        open_browser: bool = False,
    ):
        """
        Initialize OAuth coordinator.

        Args:
            config: OAuth configuration (loads from environment if not provided)
            session: HTTP session shared by all calls
            prompt: Manual verifier input used when the browser redirect times out
            open_browser: Whether to open the consent page automatically
        """
        self.config = config or TelldusOAuthConfig.from_env()
        self.session = session or build_session(self.config)
        self.exchange = TokenExchangeClient(self.config, self.session)
        self.prompt = prompt
        self.open_browser = open_browser

    def validate(self, credentials: TelldusCredentials) -> AuthOutcome:
        """
        Ensure the credentials hold a working access token.

        The passed-in credentials are never modified; the returned outcome
        carries the (possibly new) working copy.

        Args:
            credentials: Consumer keys and, possibly empty, stored access pair

        Returns:
            AuthOutcome

        Raises:
            MissingConsumerKeysError: If either consumer key is blank
            TelldusAuthError: Any failure of the handshake or verification
        """
        if not credentials.is_complete():
            raise MissingConsumerKeysError()

        working = credentials
        refreshed = False

        if not working.has_access_token():
            logger.info("No stored access token, starting authorization flow")
            working = self.authorize(working)
            refreshed = True

        try:
            account_name = verify_profile(self.session, self.config, working)
        except UnauthorizedError:
            print("Stored tokens were rejected by Telldus Live; starting OAuth flow.")
            logger.warning("Access token rejected, re-authorizing once")
            working = self.authorize(working)
            refreshed = True
            account_name = verify_profile(self.session, self.config, working)

        return AuthOutcome(
            tokens_refreshed=refreshed, account_name=account_name, credentials=working
        )

    def authorize(self, credentials: TelldusCredentials) -> TelldusCredentials:
        """
        Run one full OAuth handshake.

        This orchestrates:
        1. Binding the local callback listener
        2. Requesting a request token with the listener URL as callback
        3. Acquiring the verifier (browser redirect or manual entry)
        4. Exchanging the request token for an access token

        Returns:
            Copy of credentials holding the new access pair
        """
        server = OAuthCallbackServer(self.config)
        server.start()

        temp_token = self.exchange.request_token(
            credentials.public_key, credentials.private_key, server.callback_url
        )

        verifier = run_authorization_flow(
            server,
            self.exchange.authorize_url(temp_token),
            prompt=self.prompt,
            open_browser=self.open_browser,
            timeout=self.config.callback_timeout,
        )

        token, token_secret = self.exchange.exchange_access_token(
            credentials.public_key, credentials.private_key, temp_token, verifier
        )
        logger.info("Authorization complete")
        return credentials.with_tokens(token, token_secret)
