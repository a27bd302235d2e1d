"""Read lights from a Hue bridge using API v1 and API v2 resources.

Fetches the public bridge configuration, then reads the v1 ``/lights``
collection and the v2 ``/light`` resources.

Usage::

    python examples/read_lights.py
"""

import asyncio

from hue_py import ClientConfig, HueClient, HueDiscovery

BRIDGE_HOST = "192.168.1.50"
API_KEY = "your-api-key"


async def main() -> None:
    """Print the name and on/off state of each light."""
    bridge_config = await HueDiscovery().config(BRIDGE_HOST)
    config = ClientConfig(BRIDGE_HOST, bridge_config, api_key=API_KEY)

    async with HueClient(config) as client:
        lights = await client.get("/lights")
        for light_id, light in lights.items():
            print(f"  /lights/{light_id}  {light['name']}: on={light['state']['on']}")

        if client.is_hue2:
            # API v2 returns a list of typed resources
            for light in await client.get("/light"):
                print(f"  /light/{light['id']}  {light['metadata']['name']}: {light['on']['on']}")


if __name__ == "__main__":
    asyncio.run(main())
