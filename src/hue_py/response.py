"""Normalisation of Hue API v1 and API v2 response bodies.

API v1 write responses are a list of per-attribute results::

    [{"success": {"/lights/1/state/on": true}},
     {"error": {"type": 7, "address": "/lights/1/state/bri", "description": "..."}}]

API v2 responses wrap the payload in ``{"data": [...], "errors": [...]}``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from hue_py.errors import HueApiError

if TYPE_CHECKING:
    from collections.abc import Callable

    from hue_py.transport.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)


@dataclass
class HueResponse:
    """Response envelope of a Hue API call.

    Wraps the :class:`~hue_py.transport.http.HttpResponse` it was built
    from.

    :param response: The underlying HTTP response.
    :param body: The normalised body: the parsed JSON for API v1, the
        ``data`` array for API v2.
    :param success: The ``success`` results of an API v1 write, keyed by
        the last segment of the attribute path.
    :param errors: The API v1 ``error`` results, in response order.
    """

    response: HttpResponse
    body: Any = None
    success: dict[str, Any] = field(default_factory=dict)
    errors: list[HueApiError] = field(default_factory=list)

    @property
    def request(self) -> HttpRequest:
        """The request this is the response to."""
        return self.response.request

    @property
    def status(self) -> int:
        """The HTTP status code."""
        return self.response.status

    @property
    def headers(self) -> dict[str, str]:
        """The HTTP response headers, lower-case keys."""
        return self.response.headers


def _emit(on_error: Callable[[HueApiError], None] | None, error: HueApiError) -> None:
    logger.debug("%s", error)
    if on_error:
        on_error(error)


def normalize_v1(
    response: HttpResponse,
    on_error: Callable[[HueApiError], None] | None = None,
) -> HueResponse:
    """Fold an API v1 response into a :class:`HueResponse`.

    Each ``error`` entry is reported to *on_error*.  Non-critical errors
    are collected and processing continues; the first critical error is
    raised, leaving later entries unprocessed.

    :raises HueApiError: For a critical API error.
    """
    result = HueResponse(response, response.body)
    if not isinstance(response.body, list):
        return result
    for item in response.body:
        if not isinstance(item, dict):
            continue
        e = item.get("error")
        if isinstance(e, dict):
            error = HueApiError.from_v1(e, response.request)
            result.errors.append(error)
            _emit(on_error, error)
            if not error.non_critical:
                raise error
        s = item.get("success")
        if isinstance(s, dict):
            for path, value in s.items():
                result.success[path.split("/")[-1]] = value
    return result


def normalize_v2(
    response: HttpResponse,
    on_error: Callable[[HueApiError], None] | None = None,
) -> HueResponse:
    """Fold an API v2 response into a :class:`HueResponse`.

    The ``data`` array becomes the body.  Entries of the ``errors`` array
    are reported to *on_error* only; they are not collected.
    """
    body = response.body
    if not isinstance(body, dict):
        return HueResponse(response, body)
    for e in body.get("errors") or []:
        if isinstance(e, dict) and e.get("description"):
            _emit(on_error, HueApiError.from_v2(e, response.request))
    return HueResponse(response, body.get("data"))
