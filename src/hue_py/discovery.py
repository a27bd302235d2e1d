"""Verification of a Hue bridge at a known host.

Searching for bridges (mDNS, UPnP, discovery portal) is left to the
caller; :class:`HueDiscovery` fetches and validates the public
configuration of a given host, which :class:`~hue_py.client.HueClient`
needs to select HTTPS and API v2.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from hue_py.errors import HueBaseError, ProtocolError, ValidationError
from hue_py.transport.http import HttpTransport

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

_BRIDGE_ID_RE = re.compile(r"[0-9A-Fa-f]{16}")
_DECONZ_ID_RE = re.compile(r"^00212E[0-9A-F]{10}$")


class HueDiscovery:
    """Fetch the public configuration of a Hue bridge.

    :param timeout: Request timeout in seconds (1-60).
    """

    def __init__(self, *, timeout: int = 5) -> None:
        if isinstance(timeout, bool) or not isinstance(timeout, int) or not 1 <= timeout <= 60:
            msg = f"timeout: {timeout!r}: must be an integer between 1 and 60"
            raise ValidationError(msg)
        self._timeout = timeout
        self.on_error: Callable[[HueBaseError], None] | None = None

    def _transport(self, host: str) -> HttpTransport:
        return HttpTransport(host, timeout=self._timeout)

    async def config(self, host: str) -> dict[str, Any]:
        """Issue an unauthenticated GET of ``/api/config`` to *host*.

        :returns: The public bridge configuration.
        :raises ProtocolError: If *host* does not answer like a Hue bridge.
        :raises TransportError: If *host* cannot be reached.
        """
        if not isinstance(host, str) or not host.strip():
            msg = f"host: {host!r}: invalid host"
            raise ValidationError(msg)
        transport = self._transport(host)
        try:
            response = await transport.request("GET", "/api/config")
        except HueBaseError as error:
            self._emit(error)
            raise
        finally:
            await transport.close()
        body = response.body
        if (
            not isinstance(body, dict)
            or not isinstance(body.get("apiversion"), str)
            or not isinstance(body.get("bridgeid"), str)
            or _BRIDGE_ID_RE.search(body["bridgeid"]) is None
            or not isinstance(body.get("name"), str)
            or not isinstance(body.get("swversion"), str)
        ):
            error = ProtocolError(f"{host}: invalid response", response.request)
            self._emit(error)
            raise error
        if _DECONZ_ID_RE.match(body["bridgeid"]):
            error = ProtocolError(f"{host}: deCONZ gateway no longer supported", response.request)
            self._emit(error)
            raise error
        logger.debug("%s: bridge %s, firmware %s", host, body["bridgeid"], body["swversion"])
        return body

    def _emit(self, error: HueBaseError) -> None:
        if self.on_error:
            self.on_error(error)
