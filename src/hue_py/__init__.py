"""hue-py: Asynchronous Hue bridge API v1/v2 client for Python 3.13+.

Typical usage::

    from hue_py import ClientConfig, EventStreamClient, HueClient, HueDiscovery

    bridge_config = await HueDiscovery().config("192.168.1.50")
    async with HueClient(ClientConfig("192.168.1.50", bridge_config, api_key=key)) as client:
        state = await client.get("/lights/1/state")
        async with EventStreamClient(client) as stream:
            async for outcome in stream:
                print(outcome)
"""

__version__ = "1.0.0"

from hue_py.client import HueClient
from hue_py.discovery import HueDiscovery
from hue_py.errors import (
    HueApiError,
    HueBaseError,
    NotFoundError,
    ProtocolError,
    TransportError,
    ValidationError,
)
from hue_py.events import (
    ChangeCategory,
    ChangeEvent,
    EventStreamClient,
    EventStreamState,
    Notification,
    StreamError,
)
from hue_py.response import HueResponse
from hue_py.routing import ApiGeneration, ResourceRoute, route
from hue_py.session import BridgeSession, ClientConfig, ProtocolGeneration
from hue_py.throttle import WriteThrottle, number_of_zigbee_messages

__all__ = [
    "ApiGeneration",
    "BridgeSession",
    "ChangeCategory",
    "ChangeEvent",
    "ClientConfig",
    "EventStreamClient",
    "EventStreamState",
    "HueApiError",
    "HueBaseError",
    "HueClient",
    "HueDiscovery",
    "HueResponse",
    "Notification",
    "NotFoundError",
    "ProtocolError",
    "ProtocolGeneration",
    "ResourceRoute",
    "StreamError",
    "TransportError",
    "ValidationError",
    "WriteThrottle",
    "__version__",
    "number_of_zigbee_messages",
    "route",
]
