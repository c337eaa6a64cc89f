"""
Authentication commands for the telltales CLI.

This module provides commands for validating stored credentials (running
the OAuth flow when needed) and for dropping the local access token.
"""

import click

from ..credentials import TelldusCredentials
from .utils import authenticate, exit_on_error, get_cli_context, print_success


@click.group(invoke_without_command=True)
@click.pass_context
def auth(ctx: click.Context) -> None:
    """Manage Telldus Live authentication."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(validate)


@auth.command()
@click.pass_context
@exit_on_error
def validate(ctx: click.Context) -> None:
    """
    Ensure credentials are present and valid.

    Prompts for missing API keys, runs the OAuth authorization flow when no
    access token is stored (or the stored one is rejected), and saves any
    refreshed token.
    """
    cli_ctx = get_cli_context(ctx)
    outcome = authenticate(cli_ctx)

    if outcome.account_name:
        print_success(f"Authenticated as {outcome.account_name}.")
    else:
        print_success("Credentials verified with Telldus Live.")


@auth.command()
@click.pass_context
@exit_on_error
def revoke(ctx: click.Context) -> None:
    """
    Forget the stored OAuth access token.

    The API keys are kept. This does NOT revoke the token on Telldus Live;
    the next command will run the authorization flow again.
    """
    cli_ctx = get_cli_context(ctx)
    credentials = cli_ctx.store.load()

    if credentials is None or not credentials.has_access_token():
        click.echo("No stored access token.")
        return

    stripped: TelldusCredentials = credentials.without_tokens()
    cli_ctx.store.save(stripped)
    print_success("Stored access token removed. Re-authorization required.")
