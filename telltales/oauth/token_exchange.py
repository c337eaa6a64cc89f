"""
Token exchange client for Telldus Live OAuth 1.0a.

This module performs the HTTP round trips of the OAuth handshake:
- Request token (consumer pair + callback URL → temporary token)
- Authorization URL construction (browser consent page)
- Access token exchange (temporary token + verifier → access token)
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qsl, urlencode

import requests

from .config import TelldusOAuthConfig
from .exceptions import (
    AuthorizationDeniedError,
    MissingFieldError,
    ResponseParseError,
    TransportError,
    VerificationFailedError,
)
from .http_client import build_session, oauth1_signer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TempToken:
    """
    Request token pair, valid for a single handshake.

    Attributes:
        token: oauth_token issued by the request-token endpoint
        secret: oauth_token_secret paired with the token
    """

    token: str
    secret: str


def parse_token_response(body: str) -> TempToken:
    """
    Parse a URL-encoded OAuth token response.

    Args:
        body: Response body, e.g. ``oauth_token=T&oauth_token_secret=S``

    Returns:
        TempToken with the token pair

    Raises:
        AuthorizationDeniedError: If the body reports oauth_problem=user_refused
        VerificationFailedError: For any other oauth_problem
        MissingFieldError: If oauth_token or oauth_token_secret is absent
        ResponseParseError: If a percent-escape does not decode as UTF-8
    """
    # Empty pairs are skipped and a bare key maps to ""
    try:
        data: Dict[str, str] = dict(
            parse_qsl(body.strip(), keep_blank_values=True, errors="strict")
        )
    except UnicodeDecodeError as e:
        raise ResponseParseError(f"unable to parse OAuth response: {e}") from e

    problem = data.get("oauth_problem")
    if problem is not None:
        if problem == "user_refused":
            raise AuthorizationDeniedError()
        raise VerificationFailedError(problem)

    for field in ("oauth_token", "oauth_token_secret"):
        if field not in data:
            raise MissingFieldError(field)

    return TempToken(token=data["oauth_token"], secret=data["oauth_token_secret"])


class TokenExchangeClient:
    """
    Performs the OAuth 1.0a token round trips against Telldus Live.

    Each call is signed with HMAC-SHA1 and must receive a 2xx status;
    anything else is raised as TransportError.
    """

    def __init__(
        self,
        config: Optional[TelldusOAuthConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize token exchange client.

        Args:
            config: OAuth configuration (defaults if not provided)
            session: HTTP session (creates one if not provided)
        """
        self.config = config or TelldusOAuthConfig()
        self.session = session or build_session(self.config)

    def request_token(
        self, consumer_key: str, consumer_secret: str, callback_url: str
    ) -> TempToken:
        """
        Obtain a request token.

        Args:
            consumer_key: Public API key
            consumer_secret: Private API key
            callback_url: Where Telldus Live redirects the browser after consent

        Returns:
            TempToken for this handshake only
        """
        logger.info("Requesting OAuth request token")
        body = self._post(
            self.config.request_token_url,
            params={"oauth_callback": callback_url},
            auth=oauth1_signer(consumer_key, consumer_secret),
        )
        temp_token = parse_token_response(body)
        logger.debug("Request token received")
        return temp_token

    def authorize_url(self, temp_token: TempToken) -> str:
        """Browser URL where the user grants access for the request token."""
        return f"{self.config.authorize_url}?{urlencode({'oauth_token': temp_token.token})}"

    def exchange_access_token(
        self,
        consumer_key: str,
        consumer_secret: str,
        temp_token: TempToken,
        verifier: str,
    ) -> Tuple[str, str]:
        """
        Redeem a request token for an access token.

        Args:
            consumer_key: Public API key
            consumer_secret: Private API key
            temp_token: Request token from request_token()
            verifier: oauth_verifier proving the user consented

        Returns:
            (token, token_secret) access pair
        """
        logger.info("Exchanging request token for access token")
        body = self._post(
            self.config.access_token_url,
            params={"oauth_verifier": verifier},
            auth=oauth1_signer(
                consumer_key, consumer_secret, temp_token.token, temp_token.secret
            ),
        )
        access = parse_token_response(body)
        logger.info("Successfully obtained access token")
        return access.token, access.secret

    def _post(self, url: str, params: dict, auth) -> str:
        try:
            response = self.session.post(
                url, params=params, auth=auth, timeout=self.config.request_timeout
            )
        except requests.RequestException as e:
            logger.error(f"Network error during OAuth request to {url}: {e}")
            raise TransportError(f"HTTP request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(
                f"OAuth request to {url} failed: {response.status_code} - {response.text}"
            )
            raise TransportError(
                f"HTTP request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        return response.text
