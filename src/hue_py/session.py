"""Bridge session configuration and protocol generation detection."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from hue_py.errors import ValidationError
from hue_py.throttle import WriteThrottle
from hue_py.transport.tls import TrustAnchor

logger = logging.getLogger(__name__)

HUE_MAC_PREFIXES = ("001788", "ECB5FA", "C42996")

# Firmware thresholds (``swversion``) for HTTPS and for API v2.
HTTPS_SWVERSION = 1804201116
API_V2_SWVERSION = 1948086000

API_V2_HEADER = "hue-application-key"

_MODEL_ID_RE = re.compile(r"BSB00[1-3]")


def _swversion(config: dict[str, Any]) -> int:
    try:
        return int(config.get("swversion", 0))
    except (TypeError, ValueError):
        return 0


def is_hue_bridge(config: dict[str, Any]) -> bool:
    """Whether the public bridge *config* describes a Signify Hue bridge."""
    model_id = config.get("modelid")
    bridge_id = config.get("bridgeid")
    return (
        isinstance(model_id, str)
        and _MODEL_ID_RE.search(model_id) is not None
        and isinstance(bridge_id, str)
        and bridge_id[:6].upper() in HUE_MAC_PREFIXES
    )


def is_hue2_bridge(config: dict[str, Any]) -> bool:
    """Whether the public bridge *config* describes a bridge with API v2."""
    return is_hue_bridge(config) and _swversion(config) >= API_V2_SWVERSION


class ProtocolGeneration(IntEnum):
    """Protocol spoken by a bridge."""

    LEGACY_HTTP = 0
    LEGACY_HTTPS = 1
    MODERN = 2


def detect_generation(config: dict[str, Any]) -> ProtocolGeneration:
    """Derive the protocol generation from the public bridge config."""
    if not is_hue_bridge(config):
        return ProtocolGeneration.LEGACY_HTTP
    swversion = _swversion(config)
    if swversion >= API_V2_SWVERSION:
        return ProtocolGeneration.MODERN
    if swversion >= HTTPS_SWVERSION:
        return ProtocolGeneration.LEGACY_HTTPS
    return ProtocolGeneration.LEGACY_HTTP


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        msg = f"{name}: {value!r}: must be an integer between {low} and {high}"
        raise ValidationError(msg)


@dataclass
class ClientConfig:
    """Configuration for a :class:`~hue_py.client.HueClient`.

    :param host: Host name or IP address of the bridge, optionally with
        ``:port``.
    :param config: The public bridge configuration, as returned by
        :meth:`~hue_py.discovery.HueDiscovery.config`.
    :param api_key: The API key (username) for the bridge, if known.
    :param force_http: Use plain HTTP even if the bridge supports HTTPS.
    :param keep_alive: Keep server connections open.
    :param max_sockets: Maximum number of parallel connections (1-20).
    :param timeout: Request timeout in seconds (1-60).
    :param wait_time_put: Write hold per Zigbee message for single-device
        writes, in milliseconds (0-50).
    :param wait_time_put_group: Write hold per Zigbee message for group
        writes, in milliseconds (0-1000).
    :param wait_time_resend: Delay before resending a request after a
        connection reset, HTTP 503, or API error 901, in milliseconds
        (0-1000).  ``0`` disables resending.
    """

    host: str
    config: dict[str, Any] = field(default_factory=dict)
    api_key: str | None = None
    force_http: bool = False
    keep_alive: bool = False
    max_sockets: int = 20
    timeout: int = 5  # seconds
    wait_time_put: int = 50  # milliseconds
    wait_time_put_group: int = 1000  # milliseconds
    wait_time_resend: int = 300  # milliseconds

    def __post_init__(self) -> None:
        if not isinstance(self.host, str) or not self.host.strip():
            msg = f"host: {self.host!r}: invalid host"
            raise ValidationError(msg)
        if not isinstance(self.config, dict):
            msg = "config: not a bridge configuration"
            raise ValidationError(msg)
        if self.api_key is not None and not isinstance(self.api_key, str):
            msg = "api_key: not a string"
            raise ValidationError(msg)
        _check_range("max_sockets", self.max_sockets, 1, 20)
        _check_range("timeout", self.timeout, 1, 60)
        _check_range("wait_time_put", self.wait_time_put, 0, 50)
        _check_range("wait_time_put_group", self.wait_time_put_group, 0, 1000)
        _check_range("wait_time_resend", self.wait_time_resend, 0, 1000)


class BridgeSession:
    """Per-bridge state shared by the request executor and event stream.

    Holds the host, API key, detected protocol generation, trust anchor,
    and the single write throttle of the session.
    """

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self.host = config.host
        self.bridge_config = config.config
        self.generation = detect_generation(config.config)
        self.https = self.generation != ProtocolGeneration.LEGACY_HTTP and not config.force_http
        bridge_id = str(config.config.get("bridgeid", "")).upper()
        self.trust_anchor: TrustAnchor | None = TrustAnchor(bridge_id) if self.https else None
        if config.force_http and self.generation != ProtocolGeneration.LEGACY_HTTP:
            logger.warning("%s: plain HTTP forced, bridge supports HTTPS", self.host)
        self.throttle = WriteThrottle(config.wait_time_put, config.wait_time_put_group)
        self.api_path = "/api"
        self.headers: dict[str, str] = {}
        self.api_key = config.api_key

    @property
    def api_key(self) -> str | None:
        """The API key; setting it re-derives the v1 path and v2 header."""
        return self._api_key

    @api_key.setter
    def api_key(self, value: str | None) -> None:
        self._api_key = value
        self.api_path = "/api" if value is None else f"/api/{value}"
        self.headers = {} if value is None else {API_V2_HEADER: value}

    @property
    def bridge_id(self) -> str | None:
        """The bridge id from the public config."""
        return self.bridge_config.get("bridgeid")

    @property
    def is_hue(self) -> bool:
        """Whether the session is connected to a Signify Hue bridge."""
        return is_hue_bridge(self.bridge_config)

    @property
    def is_hue2(self) -> bool:
        """Whether the bridge exposes API v2 and its event stream."""
        return self.generation == ProtocolGeneration.MODERN

    def __repr__(self) -> str:
        key_display = "'<REDACTED>'" if self._api_key else "None"
        return (
            f"BridgeSession(host={self.host!r}, generation={self.generation.name}, "
            f"https={self.https!r}, api_key={key_display})"
        )
