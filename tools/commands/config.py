"""config command -- show the public configuration of the bridge."""

from __future__ import annotations

import asyncio
import sys

import click

from hue_py.discovery import HueDiscovery
from hue_py.errors import HueBaseError
from hue_py.session import ProtocolGeneration, detect_generation
from tools.formatting import print_error, print_json, print_kv


@click.command()
@click.option("--json", "use_json", is_flag=True, default=False, help="Output raw JSON.")
@click.pass_context
def config(ctx: click.Context, use_json: bool) -> None:
    """Retrieve the public configuration of the bridge (no API key needed)."""
    discovery = HueDiscovery(timeout=ctx.obj["timeout"])
    try:
        body = asyncio.run(discovery.config(ctx.obj["host"]))
    except HueBaseError as e:
        print_error(str(e))
        sys.exit(1)
    if use_json:
        print_json(body)
        return
    generation = detect_generation(body)
    print_kv(
        [
            ("Name", body.get("name")),
            ("Bridge ID", body.get("bridgeid")),
            ("Model", body.get("modelid")),
            ("Firmware", body.get("swversion")),
            ("API version", body.get("apiversion")),
            ("HTTPS", generation != ProtocolGeneration.LEGACY_HTTP),
            ("API v2", generation == ProtocolGeneration.MODERN),
        ]
    )
