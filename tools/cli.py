"""Click CLI group and global options for the Hue CLI."""

from __future__ import annotations

import logging
import sys

import click

from tools.commands.config import config
from tools.commands.createuser import createuser
from tools.commands.eventlog import eventlog
from tools.commands.get import get
from tools.commands.write import delete, post, put


@click.group()
@click.option(
    "--host",
    "-H",
    envvar="PH_HOST",
    required=True,
    help="Hue bridge host name or IP address (env PH_HOST).",
)
@click.option(
    "--api-key",
    "-K",
    envvar="PH_API_KEY",
    default=None,
    help="API key for the bridge (env PH_API_KEY).",
)
@click.option(
    "--force-http",
    is_flag=True,
    default=False,
    help="Use plain HTTP instead of HTTPS.",
)
@click.option(
    "--timeout",
    "-t",
    default=5,
    type=click.IntRange(1, 60),
    show_default=True,
    help="Request timeout in seconds.",
)
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    host: str,
    api_key: str | None,
    force_http: bool,
    timeout: int,
    verbose: bool,
) -> None:
    """Command line interface to the Hue bridge API, powered by hue-py."""
    ctx.ensure_object(dict)
    ctx.obj["host"] = host
    ctx.obj["api_key"] = api_key
    ctx.obj["force_http"] = force_http
    ctx.obj["timeout"] = timeout

    # Configure logging
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


# Register commands
cli.add_command(config)
cli.add_command(createuser)
cli.add_command(get)
cli.add_command(put)
cli.add_command(post)
cli.add_command(delete)
cli.add_command(eventlog)


if __name__ == "__main__":
    cli()
