"""HTTP(S) transport to a Hue bridge, built on ``aiohttp``.

Provides plain request/response values and the two calls the adapter
needs: a JSON request/response exchange and a long-lived streaming GET
for the event stream.
"""

from __future__ import annotations

import contextlib
import errno
import json
import logging
import ssl
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import aiohttp

from hue_py.errors import ProtocolError, TransportError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HttpRequest:
    """An HTTP request as sent to the bridge."""

    id: int
    method: str
    resource: str
    url: str
    body: Any = None
    name: str | None = None


@dataclass(slots=True)
class HttpResponse:
    """An HTTP response from the bridge.

    *headers* has lower-case keys; *body* is the parsed JSON body, or
    ``None`` for an empty body.
    """

    request: HttpRequest
    status: int
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None


def _error_code(exc: BaseException) -> str | None:
    """Map a transport exception to a symbolic socket error code."""
    if isinstance(exc, aiohttp.ServerDisconnectedError | ConnectionResetError):
        return "ECONNRESET"
    if isinstance(exc, aiohttp.ClientSSLError | ssl.SSLError):
        return "ECERT"
    if isinstance(exc, TimeoutError):
        return "ETIMEDOUT"
    if isinstance(exc, OSError) and exc.errno is not None:
        return errno.errorcode.get(exc.errno)
    return None


class HttpTransport:
    """Pooled HTTP client for one bridge.

    :param host: Host name or IP address of the bridge, optionally with
        ``:port``.
    :param ssl_context: TLS context; ``None`` selects plain HTTP.
    :param identity_check: Called with the DER peer certificate of each
        HTTPS response; raises :class:`ssl.SSLError` to reject it.  It runs
        once the response headers arrive, so the request itself, headers
        included, has already reached a peer holding a certificate issued
        by one of the trusted roots.  A rejected response is never parsed
        nor returned.
    :param timeout: Per-request timeout in seconds.
    :param max_sockets: Maximum number of simultaneous connections.
    :param keep_alive: Keep connections open between requests.
    :param name: Name used in request records and log messages.
    """

    def __init__(
        self,
        host: str,
        *,
        ssl_context: ssl.SSLContext | None = None,
        identity_check: Callable[[bytes | None], None] | None = None,
        timeout: float = 5,
        max_sockets: int = 20,
        keep_alive: bool = False,
        name: str | None = None,
    ) -> None:
        self._host = host
        self._ssl_context = ssl_context
        self._identity_check = identity_check
        self._timeout = timeout
        self._max_sockets = max_sockets
        self._keep_alive = keep_alive
        self._name = name or host
        self._session: aiohttp.ClientSession | None = None
        self._request_id = 0

        # Callbacks
        self.on_request: Callable[[HttpRequest], None] | None = None
        self.on_response: Callable[[HttpResponse], None] | None = None

    @property
    def https(self) -> bool:
        """Whether requests use HTTPS."""
        return self._ssl_context is not None

    @property
    def host(self) -> str:
        """Host (and port) of the bridge."""
        return self._host

    @property
    def base_url(self) -> str:
        """Scheme and host part of request URLs."""
        return ("https://" if self.https else "http://") + self._host

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self._max_sockets,
                ssl=self._ssl_context if self._ssl_context is not None else False,
                force_close=not self._keep_alive,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
        return self._session

    async def close(self) -> None:
        """Close all pooled connections."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    def _new_request(self, method: str, path: str, body: Any) -> HttpRequest:
        self._request_id += 1
        request = HttpRequest(
            id=self._request_id,
            method=method,
            resource=path,
            url=self.base_url + path,
            body=body,
            name=self._name,
        )
        logger.debug("%s: request %d: %s %s", self._name, request.id, method, request.url)
        if self.on_request:
            self.on_request(request)
        return request

    def _check_identity(self, resp: aiohttp.ClientResponse) -> None:
        # aiohttp offers no hook between handshake and request.
        if self._identity_check is None or resp.connection is None:
            return
        transport = resp.connection.transport
        ssl_object = transport.get_extra_info("ssl_object") if transport is not None else None
        if ssl_object is not None:
            self._identity_check(ssl_object.getpeercert(binary_form=True))

    def _transport_error(self, exc: BaseException, request: HttpRequest) -> TransportError:
        code = _error_code(exc)
        message = str(exc) or type(exc).__name__
        logger.debug("%s: request %d: %s (%s)", self._name, request.id, message, code)
        return TransportError(message, request, code=code)

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        """Issue a request and parse the JSON response.

        :raises TransportError: On a connection failure, timeout, rejected
            certificate, or non-2xx HTTP status.
        :raises ProtocolError: If the response body is not valid JSON.
        """
        request = self._new_request(method, path, body)
        session = self._ensure_session()
        kwargs: dict[str, Any] = {"headers": dict(headers or {})}
        if body is not None:
            kwargs["json"] = body
        try:
            async with session.request(method, request.url, **kwargs) as resp:
                self._check_identity(resp)
                text = await resp.text()
                response_headers = {k.lower(): v for k, v in resp.headers.items()}
                status, reason = resp.status, resp.reason or ""
        except (aiohttp.ClientError, TimeoutError, ssl.SSLError, OSError) as exc:
            raise self._transport_error(exc, request) from exc

        parsed = None
        if response_headers.get("content-length") != "0" and text.strip():
            try:
                parsed = json.loads(text)
            except ValueError as exc:
                msg = f"{request.resource}: invalid JSON response"
                raise ProtocolError(msg, request) from exc
        response = HttpResponse(request, status, reason, response_headers, parsed)
        logger.debug("%s: request %d: http status %d %s", self._name, request.id, status, reason)
        if not 200 <= status < 300:
            msg = f"http status {status} {reason}".rstrip()
            raise TransportError(msg, request, status_code=status, response=response)
        if self.on_response:
            self.on_response(response)
        return response

    @contextlib.asynccontextmanager
    async def stream(
        self,
        path: str,
        headers: Mapping[str, str] | None = None,
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open a long-lived ``text/event-stream`` GET.

        Yields an async iterator over the raw chunks of the response body.
        The per-request timeout only bounds connecting.

        :raises TransportError: On a connection failure or non-200 status.
        """
        request = self._new_request("GET", path, None)
        session = self._ensure_session()
        stream_headers = {**(headers or {}), "Accept": "text/event-stream"}
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self._timeout)
        try:
            async with session.get(request.url, headers=stream_headers, timeout=timeout) as resp:
                self._check_identity(resp)
                if resp.status != 200:
                    msg = f"http status {resp.status} {resp.reason or ''}".rstrip()
                    raise TransportError(msg, request, status_code=resp.status)
                if self.on_response:
                    self.on_response(HttpResponse(request, resp.status, resp.reason or ""))
                yield resp.content.iter_any()
        except (aiohttp.ClientError, TimeoutError, ssl.SSLError, OSError) as exc:
            raise self._transport_error(exc, request) from exc
