"""
Telldus Live API client module.

This module provides access to the Telldus Live REST API using the
access token obtained by the OAuth module. It includes:

- TelldusClient: Authenticated HTTP client for API calls
- Listing endpoints: controllers, devices, sensors
- Device control: on, off, dim, bell, up, down, stop
- Data models: Category, Entry
"""

from .client import RateLimiter, TelldusClient
from .exceptions import TelldusAPIError, TelldusAuthenticationError, TelldusRateLimitError
from .models import Category, Entry

__all__ = [
    "TelldusClient",
    "RateLimiter",
    "TelldusAPIError",
    "TelldusAuthenticationError",
    "TelldusRateLimitError",
    "Category",
    "Entry",
]
