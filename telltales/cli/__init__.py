"""
Click CLI implementation for telltales.

This module provides the command-line interface for the Telldus Live
client, split into authentication and device command groups. Running
``telltales`` without a command validates the stored credentials.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Optional

import click

from .. import __version__
from ..credentials import CredentialStore
from ..oauth.config import TelldusOAuthConfig
from ..oauth.exceptions import ConfigurationError
from .auth_commands import auth, validate
from .device_commands import devices, sensors
from .utils import print_error


@dataclass
class CLIContext:
    """Context object passed to all CLI commands.

    Attributes:
        config: Telldus Live API and OAuth settings
        store: Credentials file
        open_browser: Open the consent page automatically during OAuth
        verbose: Verbose output enabled
        json: JSON output enabled
    """

    config: TelldusOAuthConfig
    store: CredentialStore
    open_browser: bool
    verbose: bool
    json: bool


@click.group(invoke_without_command=True)
@click.option(
    "--credentials-file",
    type=click.Path(dir_okay=False),
    help="Credentials file path (default: ~/.config/telltales/credentials.yaml)",
    envvar="TELLTALES_CREDENTIALS_FILE",
)
@click.option(
    "--open-browser/--no-browser",
    default=False,
    help="Open the Telldus Live consent page automatically",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--json", "output_json", is_flag=True, help="JSON output (where supported)")
@click.version_option(__version__, prog_name="telltales")
@click.pass_context
def cli(
    ctx: click.Context,
    credentials_file: Optional[str],
    open_browser: bool,
    verbose: bool,
    output_json: bool,
) -> None:
    """
    Telldus Live CLI.

    Authenticate with Telldus Live and list or control your controllers,
    devices and sensors.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        config = TelldusOAuthConfig.from_env()
    except ConfigurationError as e:
        print_error(str(e))
        sys.exit(1)

    ctx.obj = CLIContext(
        config=config,
        store=CredentialStore(credentials_file),
        open_browser=open_browser,
        verbose=verbose,
        json=output_json,
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(validate)


cli.add_command(auth)
cli.add_command(devices)
cli.add_command(sensors)


def main() -> None:
    """CLI entry point."""
    cli()
