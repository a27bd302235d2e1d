"""Async bridge between Click (sync) and HueClient (async)."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

from hue_py.client import HueClient
from hue_py.discovery import HueDiscovery
from hue_py.session import ClientConfig

T = TypeVar("T")


def run_command(
    obj: dict[str, Any],
    coro_factory: Callable[[HueClient], Coroutine[Any, Any, T]],
) -> T:
    """Verify the bridge, build a client, and run a coroutine.

    This bridges Click's synchronous world with the async HueClient API.

    Args:
        obj: The Click context object holding the global options.
        coro_factory: Callable that receives a HueClient and returns
            a coroutine to execute.

    Returns:
        The return value of the coroutine.
    """

    async def _run() -> T:
        bridge_config = await HueDiscovery(timeout=obj["timeout"]).config(obj["host"])
        config = ClientConfig(
            obj["host"],
            bridge_config,
            api_key=obj["api_key"],
            force_http=obj["force_http"],
            timeout=obj["timeout"],
        )
        async with HueClient(config) as client:
            return await coro_factory(client)

    return asyncio.run(_run())
