"""
CLI utility functions for telltales.

This module provides helpers for output formatting, error reporting and
the authentication step shared by every command.
"""

import functools
import json
import sys
from typing import Callable, List

import click

from ..credentials import CredentialStoreError, ensure_credentials
from ..oauth.coordinator import AuthOutcome, OAuthCoordinator
from ..oauth.exceptions import TelldusAuthError
from ..telldus.exceptions import TelldusAPIError
from ..telldus.models import Entry


def get_cli_context(ctx: click.Context):
    """Get the CLIContext from click context."""
    return ctx.find_root().obj


def print_error(message: str) -> None:
    """Print error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


def print_success(message: str) -> None:
    """Print success message."""
    click.secho(message, fg="green")


def exit_on_error(func: Callable) -> Callable:
    """Report known failures as ``Error: ...`` and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (TelldusAuthError, TelldusAPIError, CredentialStoreError) as e:
            print_error(str(e))
            sys.exit(1)

    return wrapper


def authenticate(cli_ctx) -> AuthOutcome:
    """
    Load credentials and make sure they hold a working access token.

    Refreshed credentials are saved before returning.
    """
    credentials = ensure_credentials(cli_ctx.store)
    click.echo(f"Using credentials file at {cli_ctx.store.path}")

    coordinator = OAuthCoordinator(config=cli_ctx.config, open_browser=cli_ctx.open_browser)
    outcome = coordinator.validate(credentials)

    if outcome.tokens_refreshed:
        cli_ctx.store.save(outcome.credentials)
        click.echo("Stored refreshed OAuth access token.")

    return outcome


def print_entries(entries: List[Entry], as_json: bool = False) -> None:
    """Print a resource listing as a table (or JSON)."""
    if as_json:
        click.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    if not entries:
        click.echo("No resources returned for the selected filter.")
        return

    click.echo()
    click.echo(f"{'TYPE':<12} {'ID':<12} {'NAME':<32} DETAILS")
    for entry in entries:
        click.echo(
            f"{entry.category.value:<12} {entry.id:<12} {entry.name:<32} {entry.details or '-'}"
        )


def print_info(info: dict, as_json: bool = False) -> None:
    """Print a single resource's fields."""
    if as_json:
        click.echo(json.dumps(info, indent=2))
        return

    for key in sorted(info):
        value = info[key]
        if isinstance(value, (dict, list)):
            value = json.dumps(value)
        click.echo(f"{key:<20} {value}")
