"""put, post, and delete commands -- write a resource on the bridge."""

from __future__ import annotations

import sys

import click

from hue_py.client import HueClient
from hue_py.errors import HueBaseError
from hue_py.response import HueResponse
from tools.connection import run_command
from tools.formatting import print_error, print_json
from tools.parsers import parse_body, parse_resource


def _write(ctx: click.Context, method: str, resource: str, body: str | None) -> None:
    resource = parse_resource(resource)
    parsed = parse_body(body)

    async def _run(client: HueClient) -> HueResponse:
        return await getattr(client, method)(resource, parsed)

    try:
        response = run_command(ctx.obj, _run)
    except HueBaseError as e:
        print_error(str(e))
        sys.exit(1)
    for error in response.errors:
        print_error(str(error))
    print_json(response.success if response.success else response.body)


@click.command()
@click.argument("resource")
@click.argument("body", required=False)
@click.pass_context
def put(ctx: click.Context, resource: str, body: str | None) -> None:
    """Update RESOURCE with the JSON BODY.

    Example: put /lights/1/state '{"on": true, "bri": 254}'
    """
    _write(ctx, "put", resource, body)


@click.command()
@click.argument("resource")
@click.argument("body", required=False)
@click.pass_context
def post(ctx: click.Context, resource: str, body: str | None) -> None:
    """Create a resource under RESOURCE from the JSON BODY."""
    _write(ctx, "post", resource, body)


@click.command()
@click.argument("resource")
@click.argument("body", required=False)
@click.pass_context
def delete(ctx: click.Context, resource: str, body: str | None) -> None:
    """Delete RESOURCE."""
    _write(ctx, "delete", resource, body)
