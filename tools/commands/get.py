"""get command -- read a resource from the bridge."""

from __future__ import annotations

import sys
from typing import Any

import click

from hue_py.client import HueClient
from hue_py.errors import HueBaseError
from tools.connection import run_command
from tools.formatting import print_error, print_json
from tools.parsers import parse_resource


@click.command()
@click.argument("resource", default="/")
@click.option("--sort", "sort_keys", is_flag=True, default=False, help="Sort object keys.")
@click.pass_context
def get(ctx: click.Context, resource: str, sort_keys: bool) -> None:
    """Retrieve RESOURCE from the bridge.

    RESOURCE is an API v1 resource or attribute (e.g. /lights/1/state/on),
    or an API v2 resource (e.g. /light or /resource/light/<id>).
    """
    resource = parse_resource(resource)

    async def _run(client: HueClient) -> Any:
        return await client.get(resource)

    try:
        body = run_command(ctx.obj, _run)
    except HueBaseError as e:
        print_error(str(e))
        sys.exit(1)
    print_json(body, sort_keys=sort_keys)
