"""
Telldus Live API client with OAuth 1.0a signing.

This module provides an authenticated HTTP client for the Telldus Live
REST API. It handles:

- OAuth1 request signing with the stored access token
- Process-wide spacing of requests (Telldus Live throttles bursts)
- Error handling and logging
- 401 response handling with re-authorization guidance

The client expects credentials that already passed
``OAuthCoordinator.validate()``.
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional

import requests

from ..credentials import TelldusCredentials
from ..oauth.config import TelldusOAuthConfig
from ..oauth.http_client import build_session, oauth1_signer
from . import endpoints
from .exceptions import TelldusAPIError, TelldusAuthenticationError, TelldusRateLimitError
from .models import Entry
from .parsers import array_from, parse_controller, parse_device, parse_sensor

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Enforces a minimum interval between requests.

    The last-request timestamp is shared by every caller holding the same
    instance and is only touched under the lock.
    """

    def __init__(self, min_interval: float = 1.0):
        self.min_interval = min_interval
        self._lock = threading.Lock()
        self._last_request: Optional[float] = None

    def wait(self) -> None:
        """Block until the next request may start, then claim the slot."""
        with self._lock:
            if self._last_request is not None:
                elapsed = time.monotonic() - self._last_request
                if elapsed < self.min_interval:
                    delay = self.min_interval - elapsed
                    logger.debug(f"Rate limiting: sleeping {delay:.2f}s")
                    time.sleep(delay)
            self._last_request = time.monotonic()


_shared_rate_limiters: Dict[float, RateLimiter] = {}
_shared_lock = threading.Lock()


def shared_rate_limiter(min_interval: float) -> RateLimiter:
    """Process-wide limiter for ``min_interval``, created on first use."""
    with _shared_lock:
        limiter = _shared_rate_limiters.get(min_interval)
        if limiter is None:
            limiter = RateLimiter(min_interval)
            _shared_rate_limiters[min_interval] = limiter
        return limiter


class TelldusClient:
    """
    Authenticated HTTP client for Telldus Live.

    Example:
        outcome = OAuthCoordinator().validate(credentials)
        client = TelldusClient(outcome.credentials)

        for entry in client.list_devices():
            print(entry.name)

        client.turn_on("123456")
    """

    def __init__(
        self,
        credentials: TelldusCredentials,
        config: Optional[TelldusOAuthConfig] = None,
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize Telldus Live client.

        Args:
            credentials: Consumer keys and access token pair
            config: API configuration (defaults if not provided)
            session: HTTP session (creates one if not provided)
            rate_limiter: Request spacing (process-wide limiter if not provided)
        """
        self.credentials = credentials
        self.config = config or TelldusOAuthConfig()
        self.session = session or build_session(self.config)
        self.rate_limiter = rate_limiter or shared_rate_limiter(
            self.config.min_request_interval
        )

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Make authenticated GET request.

        Args:
            path: API endpoint path (e.g., "/json/devices/list")
            params: Query parameters

        Returns:
            Decoded JSON payload

        Raises:
            TelldusAuthenticationError: If the access token is rejected (401)
            TelldusRateLimitError: If rate limit exceeded (429)
            TelldusAPIError: For other API errors
        """
        url = f"{self.config.base_url}{path}"
        auth = oauth1_signer(
            self.credentials.public_key,
            self.credentials.private_key,
            self.credentials.token,
            self.credentials.token_secret,
        )

        logger.debug(f"GET {url}")
        if params:
            logger.debug(f"  Params: {params}")

        self.rate_limiter.wait()

        try:
            response = self.session.get(
                url, params=params or None, auth=auth, timeout=self.config.request_timeout
            )
        except requests.RequestException as e:
            logger.error(f"Network error: {e}")
            raise TelldusAPIError(f"HTTP request failed: {e}") from e

        if response.status_code == 401:
            logger.error(f"Authentication failed (401): {response.text}")
            raise TelldusAuthenticationError(
                "Authentication failed. OAuth token may be expired or revoked. "
                "Re-authorize with: telltales auth validate"
            )

        if response.status_code == 429:
            logger.warning("Rate limit exceeded (429)")
            raise TelldusRateLimitError(
                "Telldus Live rate limit exceeded. Please wait before retrying."
            )

        if not response.ok:
            logger.error(f"API error ({response.status_code}): {response.text}")
            raise TelldusAPIError(
                f"Telldus Live API error ({response.status_code}): {response.text}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise TelldusAPIError(f"unexpected Telldus response: {e}") from e

    def list_controllers(self) -> List[Entry]:
        payload = self.get_json(endpoints.CLIENTS_LIST)
        return [parse_controller(item) for item in array_from(payload, ["client", "clients"])]

    def list_devices(self) -> List[Entry]:
        payload = self.get_json(
            endpoints.DEVICES_LIST, {"supportedMethods": endpoints.SUPPORTED_METHODS}
        )
        return [parse_device(item) for item in array_from(payload, ["device", "devices"])]

    def list_sensors(self) -> List[Entry]:
        payload = self.get_json(
            endpoints.SENSORS_LIST,
            {"includeIgnored": "0", "includeValues": "1", "includeScale": "1"},
        )
        return [parse_sensor(item) for item in array_from(payload, ["sensor", "sensors"])]

    def list_all(self) -> List[Entry]:
        """Controllers, devices and sensors in one list (unsorted)."""
        return self.list_controllers() + self.list_devices() + self.list_sensors()

    def device_info(self, device_id: str) -> Dict[str, Any]:
        """
        Get details of a single device.

        Raises:
            TelldusAPIError: If Telldus Live reports an error for the id
        """
        return self._checked(
            self.get_json(
                endpoints.DEVICE_INFO,
                {"id": device_id, "supportedMethods": endpoints.SUPPORTED_METHODS},
            )
        )

    def sensor_info(self, sensor_id: str) -> Dict[str, Any]:
        """Get details and latest values of a single sensor."""
        return self._checked(
            self.get_json(endpoints.SENSOR_INFO, {"id": sensor_id, "includeScale": "1"})
        )

    def device_command(self, device_id: str, method: int, value: Optional[int] = None) -> str:
        """
        Send a TELLSTICK_* method to a device.

        Args:
            device_id: Telldus Live device id
            method: One of the TELLSTICK_* constants in ``endpoints``
            value: Method argument (dim level for TELLSTICK_DIM)

        Returns:
            Status string reported by Telldus Live (normally "success")

        Raises:
            TelldusAPIError: If Telldus Live reports an error
        """
        params: Dict[str, Any] = {"id": device_id, "method": method}
        if value is not None:
            params["value"] = value

        name = endpoints.METHOD_NAMES.get(method, str(method))
        logger.info(f"Sending {name} to device {device_id}")
        payload = self._checked(self.get_json(endpoints.DEVICE_COMMAND, params))
        return str(payload.get("status", "unknown"))

    def turn_on(self, device_id: str) -> str:
        return self.device_command(device_id, endpoints.TELLSTICK_TURNON)

    def turn_off(self, device_id: str) -> str:
        return self.device_command(device_id, endpoints.TELLSTICK_TURNOFF)

    def dim(self, device_id: str, level: int) -> str:
        """Dim a device to ``level`` (0-255)."""
        if not 0 <= level <= 255:
            raise ValueError(f"dim level must be between 0 and 255, got {level}")
        return self.device_command(device_id, endpoints.TELLSTICK_DIM, level)

    def bell(self, device_id: str) -> str:
        return self.device_command(device_id, endpoints.TELLSTICK_BELL)

    def up(self, device_id: str) -> str:
        return self.device_command(device_id, endpoints.TELLSTICK_UP)

    def down(self, device_id: str) -> str:
        return self.device_command(device_id, endpoints.TELLSTICK_DOWN)

    def stop(self, device_id: str) -> str:
        return self.device_command(device_id, endpoints.TELLSTICK_STOP)

    @staticmethod
    def _checked(payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise TelldusAPIError(f"unexpected Telldus response: {payload!r}")
        if "error" in payload:
            raise TelldusAPIError(f"Telldus Live error: {payload['error']}")
        return payload
