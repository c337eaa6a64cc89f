"""
Profile verification for Telldus Live.

Calls the protected user profile endpoint with the current access token.
A 401 is reported as UnauthorizedError so the coordinator can decide to
re-authorize; every other failure is final.
"""

import logging
from typing import Any, Optional

import requests

from ..credentials import TelldusCredentials
from .config import TelldusOAuthConfig
from .exceptions import (
    ResponseParseError,
    TransportError,
    UnauthorizedError,
    VerificationFailedError,
)
from .http_client import oauth1_signer

logger = logging.getLogger(__name__)


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def compose_account_name(user: Any) -> Optional[str]:
    """
    Build a display name from the profile's user object.

    First and last name joined by a space, else whichever is present,
    else the username, else None.
    """
    if not isinstance(user, dict):
        return None

    name = " ".join(
        part for part in (_clean(user.get("firstname")), _clean(user.get("lastname"))) if part
    )
    if name:
        return name

    return _clean(user.get("username")) or None


def verify_profile(
    session: requests.Session,
    config: TelldusOAuthConfig,
    credentials: TelldusCredentials,
) -> Optional[str]:
    """
    Confirm the access token works and fetch the account name.

    Args:
        session: HTTP session
        config: OAuth configuration
        credentials: Consumer and access token pairs to sign with

    Returns:
        Display name, or None if the profile carries no usable name

    Raises:
        UnauthorizedError: On HTTP 401, whatever the body
        TransportError: On any other non-2xx status or network failure
        ResponseParseError: If the body is not a JSON object
        VerificationFailedError: If status is not "success"
    """
    auth = oauth1_signer(
        credentials.public_key,
        credentials.private_key,
        credentials.token,
        credentials.token_secret,
    )

    try:
        response = session.get(config.profile_url, auth=auth, timeout=config.request_timeout)
    except requests.RequestException as e:
        logger.error(f"Network error during profile verification: {e}")
        raise TransportError(f"HTTP request failed: {e}") from e

    if response.status_code == 401:
        logger.warning("Profile request rejected with 401")
        raise UnauthorizedError()

    if not 200 <= response.status_code < 300:
        logger.error(f"Profile request failed: {response.status_code} - {response.text}")
        raise TransportError(
            f"HTTP request failed with status {response.status_code}",
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise ResponseParseError(f"invalid JSON from profile endpoint: {e}") from e

    if not isinstance(payload, dict):
        raise ResponseParseError("profile response is not a JSON object")

    status = payload.get("status")
    if not isinstance(status, str):
        status = "unknown"
    if status != "success":
        raise VerificationFailedError(status)

    account_name = compose_account_name(payload.get("user"))
    logger.debug("Profile verified")
    return account_name
