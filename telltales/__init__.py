"""
Telldus Live command-line client.

Authenticates against the Telldus Live cloud API with OAuth 1.0a and
exposes commands for listing and controlling controllers, devices
and sensors registered to the account.
"""

__version__ = "0.1.0"
