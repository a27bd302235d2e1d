"""Monitor change events from the Hue bridge event stream.

Prints API v1 style change events for 60 seconds.  The stream reconnects
ten seconds after the connection to the bridge is lost.

Usage::

    python examples/monitor_events.py
"""

import asyncio
import contextlib

from hue_py import (
    ChangeEvent,
    ClientConfig,
    EventStreamClient,
    HueClient,
    HueDiscovery,
    Notification,
    StreamError,
)

BRIDGE_HOST = "192.168.1.50"
API_KEY = "your-api-key"


async def main() -> None:
    """Print change events, notifications, and stream errors."""
    bridge_config = await HueDiscovery().config(BRIDGE_HOST)
    config = ClientConfig(BRIDGE_HOST, bridge_config, api_key=API_KEY)

    async with HueClient(config) as client:
        stream = EventStreamClient(client, version=1, retry_time=10)
        stream.on_state_change = lambda state: print(f"[stream {state.name.lower()}]")

        async def consume() -> None:
            async for outcome in stream:
                if isinstance(outcome, ChangeEvent):
                    print(f"{outcome.resource}: {outcome.attributes}")
                elif isinstance(outcome, Notification):
                    print(f"notification: {outcome.payload}")
                elif isinstance(outcome, StreamError):
                    print(f"error: {outcome.error}")

        async with stream:
            print("Listening for 60 seconds (Ctrl+C to stop)...\n")
            with contextlib.suppress(TimeoutError):
                async with asyncio.timeout(60):
                    await consume()


if __name__ == "__main__":
    asyncio.run(main())
