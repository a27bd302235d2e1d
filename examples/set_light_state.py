"""Switch a light and a group, showing the write throttle and error handling.

Writes are throttled per bridge: a group write holds the next write back
for about one second per Zigbee message.  Non-critical API errors are
returned in the response; critical ones are raised.

Usage::

    python examples/set_light_state.py
"""

import asyncio

from hue_py import ClientConfig, HueApiError, HueClient, HueDiscovery

BRIDGE_HOST = "192.168.1.50"
API_KEY = "your-api-key"


async def main() -> None:
    """Turn light 1 on at half brightness, then all lights off."""
    bridge_config = await HueDiscovery().config(BRIDGE_HOST)
    config = ClientConfig(BRIDGE_HOST, bridge_config, api_key=API_KEY)

    async with HueClient(config) as client:
        client.on_error = lambda error: print(f"  bridge reported: {error}")

        response = await client.put("/lights/1/state", {"on": True, "bri": 127})
        print(f"Light 1: {response.success}")
        for error in response.errors:
            print(f"  non-critical: {error.description}")

        try:
            response = await client.put("/groups/0/action", {"on": False})
            print(f"All lights: {response.success}")
        except HueApiError as e:
            print(f"Group write failed: {e}")


if __name__ == "__main__":
    asyncio.run(main())
