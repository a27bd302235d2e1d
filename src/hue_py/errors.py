"""Error types raised by the Hue bridge adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hue_py.transport.http import HttpRequest, HttpResponse

# API errors that could still cause (part of) a write to be executed.
NON_CRITICAL_API_ERROR_TYPES = frozenset(
    {
        6,  # parameter not available
        7,  # invalid value for parameter
        8,  # parameter not modifiable
        201,  # parameter not modifiable, device is set to off
    }
)

# Bridge is too busy to handle the request.
API_ERROR_BRIDGE_BUSY = 901


class HueBaseError(Exception):
    """Base exception for all adapter errors."""

    request: HttpRequest | None = None


class TransportError(HueBaseError):
    """Network or HTTP level failure.

    :param message: Human readable description.
    :param request: The request that failed, if it was sent.
    :param code: Symbolic socket error code, e.g. ``ECONNRESET``.
    :param status_code: HTTP status code, for an unexpected HTTP status.
    :param response: The response carrying the unexpected status.
    """

    def __init__(
        self,
        message: str,
        request: HttpRequest | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        response: HttpResponse | None = None,
    ) -> None:
        super().__init__(message)
        self.request = request
        self.code = code
        self.status_code = status_code
        self.response = response


class ProtocolError(HueBaseError):
    """Malformed or unexpected response from the bridge. Never retried."""

    def __init__(self, message: str, request: HttpRequest | None = None) -> None:
        super().__init__(message)
        self.request = request


class HueApiError(HueBaseError):
    """Error reported by the bridge API.

    API v1 errors carry a numeric ``type`` and the offending ``address``;
    API v2 errors only carry a ``description``.  A non-critical v1 error
    means the remainder of the same write might still have succeeded.
    """

    def __init__(
        self,
        description: str,
        *,
        type: int | None = None,  # noqa: A002
        address: str | None = None,
        request: HttpRequest | None = None,
        status_code: int | None = None,
    ) -> None:
        self.type = type
        self.description = description
        self.address = address
        self.request = request
        self.status_code = status_code
        self.non_critical = type in NON_CRITICAL_API_ERROR_TYPES
        if type is None:
            super().__init__(description)
        else:
            prefix = f"{address}: " if address else ""
            super().__init__(f"{prefix}api error {type}: {description}")

    @classmethod
    def from_v1(cls, error: dict, request: HttpRequest | None = None) -> HueApiError:
        """Build from an API v1 ``{"error": {...}}`` entry."""
        return cls(
            str(error.get("description", "")),
            type=error.get("type"),
            address=error.get("address", ""),
            request=request,
        )

    @classmethod
    def from_v2(cls, error: dict, request: HttpRequest | None = None) -> HueApiError:
        """Build from an entry of an API v2 ``errors`` array."""
        return cls(str(error.get("description", "")), request=request)


class ValidationError(HueBaseError, ValueError):
    """Invalid resource path or session configuration."""


class NotFoundError(HueBaseError, LookupError):
    """Attribute path not found in the returned resource."""

    def __init__(self, path: str, resource: str) -> None:
        self.path = path
        self.resource = resource
        super().__init__(f"{path}: not found in resource {resource}")
