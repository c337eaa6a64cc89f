"""HTTP session and OAuth1 signing helpers shared by the auth and REST layers."""

from typing import Optional

import requests
from requests_oauthlib import OAuth1

from .config import TelldusOAuthConfig


def build_session(config: Optional[TelldusOAuthConfig] = None) -> requests.Session:
    """Create a requests session carrying the telltales User-Agent."""
    config = config or TelldusOAuthConfig()
    session = requests.Session()
    session.headers.update({"User-Agent": config.user_agent})
    return session


def oauth1_signer(
    consumer_key: str,
    consumer_secret: str,
    token: Optional[str] = None,
    token_secret: Optional[str] = None,
) -> OAuth1:
    """
    HMAC-SHA1 signer for a single request.

    Without a token pair the request is signed with the consumer pair only,
    as required for the request-token call.
    """
    return OAuth1(
        consumer_key,
        client_secret=consumer_secret,
        resource_owner_key=token or None,
        resource_owner_secret=token_secret or None,
        signature_method="HMAC-SHA1",
    )
