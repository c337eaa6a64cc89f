"""
Device and sensor commands for the telltales CLI.

This module provides commands for listing Telldus Live resources,
inspecting single devices and sensors, and sending device methods.
"""

import click

from ..telldus.client import TelldusClient
from ..telldus.parsers import sort_entries
from .utils import (
    authenticate,
    exit_on_error,
    get_cli_context,
    print_entries,
    print_info,
    print_success,
)

KIND_CHOICES = ["all", "controllers", "devices", "sensors"]


def _client(ctx: click.Context) -> TelldusClient:
    cli_ctx = get_cli_context(ctx)
    outcome = authenticate(cli_ctx)
    if outcome.account_name:
        click.echo(f"Authenticated as {outcome.account_name}.")
    return TelldusClient(outcome.credentials, config=cli_ctx.config)


@click.group(invoke_without_command=True)
@click.pass_context
def devices(ctx: click.Context) -> None:
    """Interact with Telldus Live devices."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_resources)


@devices.command(name="list")
@click.option(
    "--kind",
    "-k",
    default="all",
    type=click.Choice(KIND_CHOICES),
    help="Filter to a specific resource category",
)
@click.pass_context
@exit_on_error
def list_resources(ctx: click.Context, kind: str = "all") -> None:
    """
    List Telldus Live resources.

    \b
    Examples:
      telltales devices list
      telltales devices list --kind sensors
    """
    client = _client(ctx)

    if kind == "controllers":
        entries = client.list_controllers()
    elif kind == "devices":
        entries = client.list_devices()
    elif kind == "sensors":
        entries = client.list_sensors()
    else:
        entries = client.list_all()

    print_entries(sort_entries(entries), as_json=get_cli_context(ctx).json)


@devices.command()
@click.argument("device_id")
@click.pass_context
@exit_on_error
def info(ctx: click.Context, device_id: str) -> None:
    """Show details of a device."""
    client = _client(ctx)
    print_info(client.device_info(device_id), as_json=get_cli_context(ctx).json)


def _method_command(name: str, client_method: str, help_text: str):
    @devices.command(name=name, help=help_text)
    @click.argument("device_id")
    @click.pass_context
    @exit_on_error
    def command(ctx: click.Context, device_id: str) -> None:
        client = _client(ctx)
        status = getattr(client, client_method)(device_id)
        print_success(f"Sent {name} to device {device_id}: {status}")

    return command


turn_on = _method_command("on", "turn_on", "Turn a device on.")
turn_off = _method_command("off", "turn_off", "Turn a device off.")
bell = _method_command("bell", "bell", "Send the bell command to a device.")
up = _method_command("up", "up", "Send the up command to a device.")
down = _method_command("down", "down", "Send the down command to a device.")
stop = _method_command("stop", "stop", "Send the stop command to a device.")


@devices.command()
@click.argument("device_id")
@click.argument("level", type=click.IntRange(0, 255))
@click.pass_context
@exit_on_error
def dim(ctx: click.Context, device_id: str, level: int) -> None:
    """Dim a device to LEVEL (0-255)."""
    client = _client(ctx)
    status = client.dim(device_id, level)
    print_success(f"Dimmed device {device_id} to {level}: {status}")


@click.group()
def sensors() -> None:
    """Inspect Telldus Live sensors."""


@sensors.command(name="info")
@click.argument("sensor_id")
@click.pass_context
@exit_on_error
def sensor_info(ctx: click.Context, sensor_id: str) -> None:
    """Show details and latest values of a sensor."""
    client = _client(ctx)
    print_info(client.sensor_info(sensor_id), as_json=get_cli_context(ctx).json)
