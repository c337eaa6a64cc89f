"""
Credential storage for Telldus Live.

This module provides file-based persistence for the consumer key pair
and the OAuth access token pair. Credentials are stored in plaintext
YAML (user-only permissions) under ``~/.config/telltales``.
"""

import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import List, Optional

import click
import yaml

logger = logging.getLogger(__name__)

CONFIG_SUBDIR = ".config/telltales"
CONFIG_FILE = "credentials.yaml"


class CredentialStoreError(Exception):
    """Credential file could not be read, parsed or written."""

    pass


@dataclass
class TelldusCredentials:
    """
    Telldus Live credentials.

    Attributes:
        public_key: Consumer key issued by Telldus Live
        private_key: Consumer secret issued by Telldus Live
        token: OAuth access token (empty until authorized)
        token_secret: OAuth access token secret (empty until authorized)
    """

    public_key: str = ""
    private_key: str = ""
    token: str = ""
    token_secret: str = ""

    def missing_fields(self) -> List[str]:
        """Names of the consumer key fields that are blank."""
        missing = []
        if not self.public_key.strip():
            missing.append("public_key")
        if not self.private_key.strip():
            missing.append("private_key")
        return missing

    def is_complete(self) -> bool:
        return not self.missing_fields()

    def has_access_token(self) -> bool:
        return bool(self.token.strip()) and bool(self.token_secret.strip())

    def with_tokens(self, token: str, token_secret: str) -> "TelldusCredentials":
        """Copy of these credentials holding a new access token pair."""
        return replace(self, token=token, token_secret=token_secret)

    def without_tokens(self) -> "TelldusCredentials":
        return replace(self, token="", token_secret="")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TelldusCredentials":
        """
        Create credentials from a mapping.

        Unknown keys are ignored and missing keys default to empty strings,
        so partially filled files load cleanly.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key in known and value is not None:
                values[key] = str(value)
        return cls(**values)


def default_credentials_path() -> Path:
    """
    Get default credentials file path.

    Honours TELLTALES_CREDENTIALS_FILE, otherwise
    ``~/.config/telltales/credentials.yaml``.
    """
    override = os.environ.get("TELLTALES_CREDENTIALS_FILE")
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_SUBDIR / CONFIG_FILE


class CredentialStore:
    """
    File-based credential storage (plaintext YAML).

    The caller owns the credentials; the store only reads and writes the
    file. A request token never reaches this class.
    """

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize credential storage.

        Args:
            path: Credentials file (default: ~/.config/telltales/credentials.yaml)
        """
        self.path = Path(path).expanduser() if path else default_credentials_path()

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[TelldusCredentials]:
        """
        Load credentials from file.

        Returns:
            TelldusCredentials if the file exists, None otherwise

        Raises:
            CredentialStoreError: If the file cannot be read or is not a YAML mapping
        """
        if not self.path.exists():
            logger.debug(f"No credentials file found at {self.path}")
            return None

        try:
            with open(self.path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CredentialStoreError(
                f"failed to parse configuration file {self.path}: {e}"
            ) from e
        except OSError as e:
            raise CredentialStoreError(
                f"failed to read configuration file {self.path}: {e}"
            ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise CredentialStoreError(
                f"failed to parse configuration file {self.path}: expected a mapping"
            )

        logger.debug(f"Credentials loaded from {self.path}")
        return TelldusCredentials.from_dict(data)

    def save(self, credentials: TelldusCredentials) -> None:
        """
        Save credentials to file.

        Writes YAML with secure permissions (chmod 600).

        Raises:
            CredentialStoreError: If the directory or file cannot be written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CredentialStoreError(
                f"failed to create configuration directory {self.path.parent}: {e}"
            ) from e

        try:
            with open(self.path, "w") as f:
                yaml.safe_dump(credentials.to_dict(), f, default_flow_style=False)
        except OSError as e:
            raise CredentialStoreError(
                f"failed to write configuration file {self.path}: {e}"
            ) from e

        self._set_secure_permissions()
        logger.info(f"Credentials saved to {self.path}")

    def _set_secure_permissions(self) -> None:
        """Set file permissions to user-only read/write (600)."""
        try:
            self.path.chmod(0o600)
        except OSError as e:
            logger.warning(f"Could not set secure permissions: {e}")


def _prompt_field(label: str, current: str, secret: bool) -> str:
    if current.strip():
        click.echo(f"{label} already present; leave blank to keep.")
        value = click.prompt(
            label, default="", show_default=False, hide_input=secret
        )
        return value.strip() or current

    while True:
        value = click.prompt(label, hide_input=secret, confirmation_prompt=secret)
        if value.strip():
            return value.strip()
        click.echo(f"A value is required for {label}.")


def prompt_for_missing(
    credentials: TelldusCredentials, store: CredentialStore
) -> TelldusCredentials:
    """
    Interactively ask for the consumer key pair.

    Returns:
        New credentials with the prompted values; access token fields untouched
    """
    click.echo(
        f"Telldus Live credentials are required. Values are stored in {store.path}."
    )

    public_key = _prompt_field("Public API key", credentials.public_key, secret=False)
    private_key = _prompt_field("Private API key", credentials.private_key, secret=True)

    if credentials.has_access_token():
        click.echo("Existing OAuth access token details detected; leaving untouched.")
    else:
        click.echo(
            "OAuth access token details are optional for validation "
            "and can be set later via the OAuth flow."
        )

    return replace(credentials, public_key=public_key, private_key=private_key)


def ensure_credentials(store: CredentialStore) -> TelldusCredentials:
    """
    Load credentials, prompting for any missing consumer key.

    Prompted values are saved immediately.
    """
    credentials = store.load() or TelldusCredentials()
    if not credentials.is_complete():
        credentials = prompt_for_missing(credentials, store)
        store.save(credentials)
    return credentials
