"""Write throttle for commands forwarded onto the bridge's Zigbee network.

The bridge relays state changes as Zigbee messages and copes with about
20 unicast messages or 1 broadcast message per second.  Each write closes
a session-wide gate for an estimated hold time; writes arriving while the
gate is closed wait, and all of them are released together when it
reopens.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Body fields per Zigbee message group, API v1 and API v2 names.
_ON_FIELDS = frozenset({"on"})
_BRI_FIELDS = frozenset({"bri", "bri_inc", "dimming", "dimming_delta"})
_COLOR_FIELDS = frozenset(
    {"xy", "ct", "hue", "sat", "effect", "color", "color_temperature", "effects"}
)

# Resources whose writes go out as Zigbee broadcasts.
_GROUP_PREFIXES = ("/groups", "/grouped_light", "/resource/grouped_light")


def number_of_zigbee_messages(body: Any = None) -> int:
    """Estimate the number of Zigbee messages resulting from writing *body*.

    Counts one message for each of the on/off, brightness and colour field
    groups present in *body*, with a minimum of one.
    """
    keys = set(body) if isinstance(body, dict) else set()
    n = sum(1 for group in (_ON_FIELDS, _BRI_FIELDS, _COLOR_FIELDS) if keys & group)
    return n or 1


def is_group_resource(resource: str) -> bool:
    """Whether a write to *resource* is addressed to a group of devices."""
    return resource.startswith(_GROUP_PREFIXES)


@dataclass
class ThrottleTicket:
    """State of the single pending write window."""

    closed: bool = False
    waiters: set[asyncio.Future[None]] = field(default_factory=set)
    reopen_at: float = 0.0
    handle: asyncio.TimerHandle | None = None


class WriteThrottle:
    """Timed broadcast gate serialising writes to one bridge.

    :param wait_time_put: Hold per Zigbee message for single-device
        writes, in milliseconds.
    :param wait_time_put_group: Hold per Zigbee message for group writes,
        in milliseconds.
    """

    def __init__(self, wait_time_put: int = 50, wait_time_put_group: int = 1000) -> None:
        self.wait_time_put = wait_time_put
        self.wait_time_put_group = wait_time_put_group
        self._ticket = ThrottleTicket()

    @property
    def closed(self) -> bool:
        """Whether the gate is currently closed."""
        return self._ticket.closed

    @property
    def waiting(self) -> int:
        """Number of writers blocked on the gate."""
        return len(self._ticket.waiters)

    def hold_time(self, resource: str, body: Any = None) -> float:
        """Return the gate hold time for a write, in seconds."""
        if is_group_resource(resource):
            per_message = self.wait_time_put_group
        else:
            per_message = self.wait_time_put
        return number_of_zigbee_messages(body) * per_message / 1000

    async def acquire(self, resource: str, body: Any = None) -> None:
        """Wait for the gate to open, then close it for this write.

        Writers released by the same reopening proceed together.
        """
        ticket = self._ticket
        if ticket.closed:
            future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            ticket.waiters.add(future)
            logger.debug("Write to %s waiting for throttle (%d waiting)", resource, self.waiting)
            try:
                await future
            finally:
                ticket.waiters.discard(future)
        hold = self.hold_time(resource, body)
        if hold > 0:
            self._close(hold)

    def _close(self, hold: float) -> None:
        loop = asyncio.get_running_loop()
        ticket = self._ticket
        reopen_at = loop.time() + hold
        if ticket.closed and reopen_at <= ticket.reopen_at:
            return
        if ticket.handle is not None:
            ticket.handle.cancel()
        ticket.closed = True
        ticket.reopen_at = reopen_at
        ticket.handle = loop.call_at(reopen_at, self._reopen)
        logger.debug("Throttle closed for %.3fs", hold)

    def _reopen(self) -> None:
        ticket = self._ticket
        ticket.closed = False
        ticket.handle = None
        waiters = list(ticket.waiters)
        ticket.waiters.clear()
        for future in waiters:
            if not future.done():
                future.set_result(None)

    def reset(self) -> None:
        """Open the gate immediately, releasing all waiters."""
        if self._ticket.handle is not None:
            self._ticket.handle.cancel()
        self._reopen()
