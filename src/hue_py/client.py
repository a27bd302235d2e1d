"""REST client for a Hue bridge speaking API v1 and API v2.

Typical usage::

    from hue_py import ClientConfig, HueClient, HueDiscovery

    bridge_config = await HueDiscovery().config("192.168.1.50")
    config = ClientConfig("192.168.1.50", bridge_config, api_key="...")
    async with HueClient(config) as client:
        lights = await client.get("/lights")
        await client.put("/lights/1/state", {"on": True, "bri": 254})
        on = await client.get("/light/<id>/on/on")
"""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import TYPE_CHECKING, Any

from hue_py.errors import (
    API_ERROR_BRIDGE_BUSY,
    HueApiError,
    HueBaseError,
    NotFoundError,
    ProtocolError,
    TransportError,
    ValidationError,
)
from hue_py.response import HueResponse, normalize_v1, normalize_v2
from hue_py.routing import V2_BASE_PATH, ApiGeneration, route
from hue_py.session import BridgeSession, ClientConfig, is_hue2_bridge, is_hue_bridge
from hue_py.transport.http import HttpTransport

if TYPE_CHECKING:
    from collections.abc import Callable

    from hue_py.transport.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

# Maximum number of resends after a transient failure.
MAX_RESENDS = 5


def _is_transient(error: HueBaseError) -> bool:
    """Connection reset, HTTP 503, or bridge too busy."""
    if isinstance(error, TransportError):
        return error.code == "ECONNRESET" or error.status_code == 503
    return isinstance(error, HueApiError) and error.type == API_ERROR_BRIDGE_BUSY


def _navigate(body: Any, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if isinstance(body, dict):
            body = body.get(key)
        elif isinstance(body, list) and key.isdigit() and int(key) < len(body):
            body = body[int(key)]
        else:
            return None
    return body


class HueClient:
    """REST API client for a Hue bridge.

    Resources under the API v1 collections (``/lights``, ``/groups``,
    ``/config``, ...) are served by API v1; everything else, including
    ``/resource/...``, by API v2.  See :func:`hue_py.routing.route`.

    Writes are throttled to limit the Zigbee traffic to about 20 unicast
    messages or 1 broadcast message per second.  Requests failing with a
    connection reset, HTTP status 503, or API error 901 are resent up to
    five times.

    Diagnostics are reported through the optional callbacks
    :attr:`on_error`, :attr:`on_request` and :attr:`on_response`.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: HttpTransport | None = None,
    ) -> None:
        self._config = config
        self.session = BridgeSession(config)
        if transport is None:
            anchor = self.session.trust_anchor
            transport = HttpTransport(
                config.host,
                ssl_context=anchor.build_ssl_context() if anchor else None,
                identity_check=anchor.check_server_identity if anchor else None,
                timeout=config.timeout,
                max_sockets=config.max_sockets,
                keep_alive=config.keep_alive,
                name=config.config.get("name"),
            )
        self.transport = transport
        self.transport.on_request = self._emit_request
        self.transport.on_response = self._emit_response

        # Callbacks
        self.on_error: Callable[[HueBaseError], None] | None = None
        self.on_request: Callable[[HttpRequest], None] | None = None
        self.on_response: Callable[[HttpResponse], None] | None = None

    @staticmethod
    def is_hue_bridge(config: dict[str, Any]) -> bool:
        """Whether the public bridge *config* describes a Hue bridge."""
        return is_hue_bridge(config)

    @staticmethod
    def is_hue2_bridge(config: dict[str, Any]) -> bool:
        """Whether the public bridge *config* describes a bridge with API v2."""
        return is_hue2_bridge(config)

    @property
    def config(self) -> ClientConfig:
        """The client configuration."""
        return self._config

    @property
    def bridge_id(self) -> str | None:
        """The bridge id (MAC address based)."""
        return self.session.bridge_id

    @property
    def is_hue(self) -> bool:
        """Whether connected to a Hue bridge."""
        return self.session.is_hue

    @property
    def is_hue2(self) -> bool:
        """Whether connected to a Hue bridge with API v2."""
        return self.session.is_hue2

    @property
    def api_key(self) -> str | None:
        """The API key."""
        return self.session.api_key

    @api_key.setter
    def api_key(self, value: str | None) -> None:
        self.session.api_key = value

    async def __aenter__(self) -> HueClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Release throttled writers and close the pooled connections."""
        self.session.throttle.reset()
        await self.transport.close()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _emit_error(self, error: HueBaseError) -> None:
        if self.on_error:
            self.on_error(error)

    def _emit_request(self, request: HttpRequest) -> None:
        if self.on_request:
            self.on_request(request)

    def _emit_response(self, response: HttpResponse) -> None:
        if self.on_response:
            self.on_response(response)

    # ------------------------------------------------------------------
    # Resource access
    # ------------------------------------------------------------------

    async def get(self, resource: str) -> Any:
        """Issue a GET of an API v1 or API v2 resource.

        *resource* might be a resource as exposed by the API, e.g.
        ``/lights/1``, or an attribute within it, e.g. ``/lights/1/state/on``
        or ``/light/<id>/on/on``.

        :returns: The parsed body, navigated to the requested attribute.
        :raises ValidationError: If *resource* is malformed.
        :raises NotFoundError: If the attribute is not in the resource.
        :raises HueBaseError: On any other failure.
        """
        r = route(resource, self.session.api_path)
        if r.generation == ApiGeneration.V1:
            response = await self._request_v1("GET", r.resource)
        else:
            response = await self._request_v2("GET", r.resource)
        if not r.remainder:
            return response.body
        body = _navigate(response.body, r.remainder)
        if body is None:
            raise NotFoundError("/" + "/".join(r.remainder), r.resource)
        return body

    async def put(self, resource: str, body: Any = None) -> HueResponse:
        """Issue a PUT of an API v1 or API v2 resource.

        :raises HueApiError: For a critical API error.  Non-critical errors
            are returned in :attr:`HueResponse.errors`.
        """
        return await self._write("PUT", resource, body)

    async def post(self, resource: str, body: Any = None) -> HueResponse:
        """Issue a POST to an API v1 or API v2 resource."""
        return await self._write("POST", resource, body)

    async def delete(self, resource: str, body: Any = None) -> HueResponse:
        """Issue a DELETE of an API v1 or API v2 resource."""
        return await self._write("DELETE", resource, body)

    async def _write(self, method: str, resource: str, body: Any) -> HueResponse:
        r = route(resource, self.session.api_path, navigate=False)
        await self.session.throttle.acquire(resource, body)
        if r.generation == ApiGeneration.V1:
            return await self._request_v1(method, r.resource, body)
        return await self._request_v2(method, r.resource, body)

    # ------------------------------------------------------------------
    # Bridge management
    # ------------------------------------------------------------------

    async def get_api_key(self, application: str) -> str:
        """Create an API key and set :attr:`api_key`.

        The link button on the bridge must have been pressed.

        :param application: Name of the application.
        :returns: The new API key.
        """
        if not isinstance(application, str) or not application:
            msg = f"{application!r}: invalid application name"
            raise ValidationError(msg)
        api_key = self.session.api_key
        body = {"devicetype": f"{application}#{socket.gethostname().split('.')[0]}"}
        self.session.api_key = None
        try:
            response = await self._request_v1("POST", "/", body)
            username = response.success.get("username")
            if not isinstance(username, str):
                msg = "/: no username in response"
                raise ProtocolError(msg, response.request)
        except HueBaseError:
            self.session.api_key = api_key
            raise
        self.session.api_key = username
        logger.info("Created API key for %s", application)
        return username

    async def get_application_key(self) -> str | None:
        """Return the API v2 application id of the current API key."""
        response = await self._request_v2("GET", "/auth/v1", base_path="")
        return response.headers.get("hue-application-id")

    async def unlock(self) -> HueResponse:
        """Allow creating a new API key, like pressing the link button."""
        return await self.put("/config", {"linkbutton": True})

    async def touchlink(self) -> HueResponse:
        """Initiate touchlink pairing."""
        return await self.put("/config", {"touchlink": True})

    async def search(self) -> HueResponse:
        """Search for new Zigbee devices."""
        return await self.post("/lights")

    async def restart(self) -> HueResponse:
        """Restart the bridge."""
        return await self.put("/config", {"reboot": True})

    # ------------------------------------------------------------------
    # Request execution
    # ------------------------------------------------------------------

    async def _request_v1(self, method: str, resource: str, body: Any = None) -> HueResponse:
        path = self.session.api_path if resource == "/" else self.session.api_path + resource
        return await self._send(method, path, body, None, normalize_v1)

    async def _request_v2(
        self,
        method: str,
        resource: str,
        body: Any = None,
        *,
        base_path: str = V2_BASE_PATH,
    ) -> HueResponse:
        path = base_path if resource == "/" else base_path + resource
        return await self._send(method, path, body, self.session.headers, normalize_v2)

    async def _send(
        self,
        method: str,
        path: str,
        body: Any,
        headers: dict[str, str] | None,
        normalize: Callable[..., HueResponse],
    ) -> HueResponse:
        delay = self._config.wait_time_resend
        retry = 0
        while True:
            try:
                response = await self.transport.request(method, path, body, headers)
                return normalize(response, self._emit_error)
            except HueBaseError as error:
                if (
                    _is_transient(error)
                    and error.request is not None
                    and delay > 0
                    and retry < MAX_RESENDS
                ):
                    retry += 1
                    logger.warning(
                        "%s %s: %s - retry in %dms (%d/%d)",
                        method,
                        path,
                        error,
                        delay,
                        retry,
                        MAX_RESENDS,
                    )
                    if not isinstance(error, HueApiError):
                        self._emit_error(error)
                    await asyncio.sleep(delay / 1000)
                    continue
                if not isinstance(error, HueApiError):
                    self._emit_error(error)
                raise
