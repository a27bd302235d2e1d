"""Shared test utilities for hue-py tests."""

from __future__ import annotations

import asyncio
import contextlib
from collections import deque
from typing import Any

from hue_py.client import HueClient
from hue_py.errors import TransportError
from hue_py.session import ClientConfig
from hue_py.transport.http import HttpRequest, HttpResponse

HOST = "192.168.1.50"
API_KEY = "testkey"

HUE2_CONFIG = {
    "name": "Philips hue",
    "datastoreversion": "163",
    "swversion": "1968096020",
    "apiversion": "1.68.0",
    "mac": "00:17:88:12:34:56",
    "bridgeid": "001788FFFE123456",
    "modelid": "BSB002",
}

HTTPS_CONFIG = {**HUE2_CONFIG, "swversion": "1941132080", "apiversion": "1.46.0"}
HTTP_CONFIG = {**HUE2_CONFIG, "swversion": "1711151408", "apiversion": "1.22.0"}
EMULATOR_CONFIG = {**HUE2_CONFIG, "modelid": "BSB002", "bridgeid": "0123456789ABCDEF"}


def reset_error(request: HttpRequest) -> TransportError:
    return TransportError("socket hang up", request, code="ECONNRESET")


class FakeTransport:
    """Scripted stand-in for :class:`~hue_py.transport.http.HttpTransport`.

    *responses* are consumed in order by :meth:`request`: a
    ``(status, body)`` or ``(status, body, headers)`` tuple, an exception,
    or a callable taking the :class:`HttpRequest` and returning either.
    *streams* are consumed by :meth:`stream`: a list of chunks, or an
    exception.  A stream stays open after its chunks while *hold_open* is
    set.
    """

    def __init__(
        self,
        responses: list[Any] | None = None,
        streams: list[Any] | None = None,
        *,
        hold_open: bool = False,
    ) -> None:
        self.responses: deque[Any] = deque(responses or [])
        self.streams: deque[Any] = deque(streams or [])
        self.hold_open = hold_open
        self.sent: list[tuple[str, str, Any, dict[str, str] | None]] = []
        self.sent_times: list[float] = []
        self.stream_opens: list[tuple[str, dict[str, str] | None]] = []
        self.base_url = f"https://{HOST}"
        self.closed = False
        self._request_id = 0
        self.on_request = None
        self.on_response = None

    def _new_request(self, method: str, path: str, body: Any) -> HttpRequest:
        self._request_id += 1
        request = HttpRequest(self._request_id, method, path, self.base_url + path, body)
        if self.on_request:
            self.on_request(request)
        return request

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        request = self._new_request(method, path, body)
        self.sent.append((method, path, body, dict(headers) if headers else None))
        self.sent_times.append(asyncio.get_running_loop().time())
        item = self.responses.popleft()
        if callable(item):
            item = item(request)
        if isinstance(item, BaseException):
            raise item
        status, body, *rest = item
        response = HttpResponse(request, status, "", rest[0] if rest else {}, body)
        if not 200 <= status < 300:
            raise TransportError(
                f"http status {status}", request, status_code=status, response=response
            )
        if self.on_response:
            self.on_response(response)
        return response

    @contextlib.asynccontextmanager
    async def stream(self, path: str, headers: dict[str, str] | None = None):
        self._new_request("GET", path, None)
        self.stream_opens.append((path, dict(headers) if headers else None))
        item = self.streams.popleft() if self.streams else []
        if isinstance(item, BaseException):
            raise item

        async def chunks():
            for chunk in item:
                await asyncio.sleep(0)
                yield chunk
            if self.hold_open:
                await asyncio.Event().wait()

        yield chunks()

    async def close(self) -> None:
        self.closed = True


def make_client(
    responses: list[Any] | None = None,
    *,
    bridge_config: dict[str, Any] | None = None,
    streams: list[Any] | None = None,
    hold_open: bool = False,
    api_key: str | None = API_KEY,
    **kwargs: Any,
) -> tuple[HueClient, FakeTransport]:
    """Build a client on a :class:`FakeTransport`."""
    transport = FakeTransport(responses, streams, hold_open=hold_open)
    config = ClientConfig(HOST, bridge_config or HUE2_CONFIG, api_key=api_key, **kwargs)
    return HueClient(config, transport=transport), transport


def frame(*containers: str) -> bytes:
    """Build one event stream frame from JSON notification containers."""
    lines = [": hi", "id: 1700000000:0"]
    lines.extend(f"data: {c}" for c in containers)
    return ("\n".join(lines) + "\n\n").encode()
