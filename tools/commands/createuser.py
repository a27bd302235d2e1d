"""createuser command -- create an API key on the bridge."""

from __future__ import annotations

import sys

import click

from hue_py.client import HueClient
from hue_py.errors import HueBaseError
from tools.connection import run_command
from tools.formatting import print_error


@click.command()
@click.option(
    "--application",
    "-a",
    default="ph",
    show_default=True,
    help="Application name to register.",
)
@click.pass_context
def createuser(ctx: click.Context, application: str) -> None:
    """Create an API key.  Press the link button on the bridge first."""

    async def _run(client: HueClient) -> str:
        return await client.get_api_key(application)

    try:
        api_key = run_command(ctx.obj, _run)
    except HueBaseError as e:
        print_error(str(e))
        sys.exit(1)
    print(api_key)
