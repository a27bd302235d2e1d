"""eventlog command -- log change events from the bridge event stream."""

from __future__ import annotations

import json
import sys
from datetime import datetime

import click

from hue_py.client import HueClient
from hue_py.errors import HueBaseError
from hue_py.events import ChangeEvent, EventStreamClient, Notification, StreamError
from tools.connection import run_command
from tools.formatting import print_error


def format_outcome(outcome: ChangeEvent | Notification | StreamError) -> str:
    """Format a stream outcome as a single log line."""
    if isinstance(outcome, ChangeEvent):
        return f"{outcome.resource}: {json.dumps(outcome.attributes)}"
    if isinstance(outcome, Notification):
        return f"notification: {json.dumps(outcome.payload)}"
    return f"error: {outcome.error}"


@click.command()
@click.option(
    "--version",
    "-v",
    "version",
    default=1,
    type=click.IntRange(1, 2),
    show_default=True,
    help="Log API v1 (1) or API v2 (2) style change events.",
)
@click.option("--raw", is_flag=True, default=False, help="Log raw notifications.")
@click.option(
    "--retry",
    "retry_time",
    default=10,
    type=click.IntRange(0, 120),
    show_default=True,
    help="Seconds to wait before reconnecting; 0 to exit instead.",
)
@click.pass_context
def eventlog(ctx: click.Context, version: int, raw: bool, retry_time: int) -> None:
    """Log change events from the bridge event stream until interrupted."""

    async def _run(client: HueClient) -> None:
        stream = EventStreamClient(client, version=version, raw=raw, retry_time=retry_time)
        async with stream:
            async for outcome in stream:
                timestamp = datetime.now().isoformat(timespec="seconds")
                print(f"{timestamp}  {format_outcome(outcome)}", flush=True)

    try:
        run_command(ctx.obj, _run)
    except HueBaseError as e:
        print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        pass
