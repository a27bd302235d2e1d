"""Client for the Hue API v2 event stream.

The bridge pushes change notifications over a long-lived
``text/event-stream`` response at ``/eventstream/clip/v2``.  Each frame
ends in a blank line and carries ``data: <json>`` lines, each holding a
list of notification objects.  ``update`` notifications are decoded into
:class:`ChangeEvent` outcomes, either re-shaped into API v1 resources and
attributes (version 1) or passed on in API v2 form (version 2).

Typical usage::

    async with EventStreamClient(client, version=1) as stream:
        async for outcome in stream:
            if isinstance(outcome, ChangeEvent):
                print(outcome.resource, outcome.attributes)
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import json
import logging
import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any

from hue_py.errors import HueBaseError, ProtocolError, ValidationError
from hue_py.routing import ApiGeneration

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from hue_py.client import HueClient

logger = logging.getLogger(__name__)

EVENT_STREAM_PATH = "/eventstream/clip/v2"

# Offset of the API v1 buttonevent for each API v2 button event.
BUTTON_EVENT_OFFSETS = {
    "initial_press": 0,
    "repeat": 1,
    "short_release": 2,
    "long_release": 3,
}

# API v2 keys identifying a resource rather than describing its state.
_IDENTITY_KEYS = frozenset({"id", "id_v1", "owner", "type"})


class EventStreamState(IntEnum):
    """Event stream connection states."""

    IDLE = 0
    CONNECTING = 1
    LISTENING = 2
    CLOSED = 3
    ERROR = 4


class ChangeCategory(Enum):
    """API v1 sub-resource a change event applies to."""

    ATTRIBUTES = "attributes"
    STATE = "state"
    CONFIG = "config"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """Changed attributes of a resource.

    :param resource: The changed resource: an API v1 resource, or its
        ``/state`` or ``/config`` sub-resource, for version 1; an API v2
        ``/<type>/<id>`` for version 2.
    :param attributes: The changed attributes and their new values.
    :param category: The API v1 sub-resource, ``None`` for version 2.
    """

    resource: str
    attributes: dict[str, Any] = field(default_factory=dict)
    category: ChangeCategory | None = None


@dataclass(frozen=True, slots=True)
class Notification:
    """A notification passed on as received."""

    payload: Any


@dataclass(frozen=True, slots=True)
class StreamError:
    """An error on the event stream; the stream carries on or reconnects."""

    error: HueBaseError


StreamOutcome = ChangeEvent | Notification | StreamError


def _round(value: float) -> int:
    """Round half away from zero for non-negative values."""
    return math.floor(value + 0.5)


def _timestamp(value: str) -> str:
    """Strip the trailing zone marker from an ISO 8601 UTC timestamp."""
    return value[:-1] if value.endswith("Z") else value


def _decode_entry_v1(
    obj: dict[str, Any], data: dict[str, Any], button_map: dict[str, int]
) -> list[StreamOutcome]:
    outcomes: list[StreamOutcome] = []
    resource = data.get("id_v1") or None
    attr: dict[str, Any] = {}
    state: dict[str, Any] = {}
    config: dict[str, Any] = {}
    for key, value in data.items():
        match key:
            case "on":
                state["on"] = value["on"]
            case "dimming":
                state["bri"] = _round(value["brightness"] * 2.54)
            case "color":
                state["xy"] = [value["xy"]["x"], value["xy"]["y"]]
            case "color_temperature":
                if value.get("mirek_valid"):
                    state["ct"] = value["mirek"]
            case "status":
                if (resource or "").startswith("/sensors"):
                    config["reachable"] = value == "connected"
                elif (resource or "").startswith("/scenes"):
                    attr["active"] = value["active"]
                else:
                    state["reachable"] = value == "connected"
            case "button":
                report = value.get("button_report")
                if report is None:
                    continue
                base = button_map.get(data.get("id"))
                offset = BUTTON_EVENT_OFFSETS.get(report.get("event"))
                if base is not None and offset is not None:
                    state["buttonevent"] = base + offset
                state["lastupdated"] = _timestamp(report["updated"])
            case "relative_rotary":
                report = value["rotary_report"]
                rotation = report["rotation"]
                direction = 1 if rotation["direction"] == "clock_wise" else -1
                state["rotaryevent"] = 1 if report["action"] == "start" else 2
                state["expectedrotation"] = rotation["steps"] * direction
                state["expectedeventduration"] = rotation["duration"]
                state["lastupdated"] = _timestamp(report["updated"])
            case "motion":
                if value.get("motion_valid"):
                    state["presence"] = value["motion"]
                    state["lastupdated"] = _timestamp(obj["creationtime"])
            case "light":
                if value.get("light_level_valid"):
                    state["lightlevel"] = value["light_level"]
                    state["lastupdated"] = _timestamp(obj["creationtime"])
            case "temperature":
                if value.get("temperature_valid"):
                    state["temperature"] = _round(value["temperature"] * 100)
                    state["lastupdated"] = _timestamp(obj["creationtime"])
            case "enabled":
                config["on"] = value
            case "metadata":
                if "name" in value:
                    attr["name"] = value["name"]
    emitted = False
    if resource is not None:
        for suffix, category, attributes in (
            ("", ChangeCategory.ATTRIBUTES, attr),
            ("/state", ChangeCategory.STATE, state),
            ("/config", ChangeCategory.CONFIG, config),
        ):
            if attributes:
                outcomes.append(ChangeEvent(resource + suffix, attributes, category))
                emitted = True
    if not emitted:
        outcomes.append(Notification(obj))
    return outcomes


def _decode_entry_v2(
    obj: dict[str, Any], data: dict[str, Any], button_map: dict[str, int]
) -> list[StreamOutcome]:
    resource = f"/{data.get('type')}/{data.get('id')}"
    attr = {k: v for k, v in data.items() if k not in _IDENTITY_KEYS}
    if attr:
        return [ChangeEvent(resource, attr)]
    return [Notification(obj)]


def _decode_update(
    obj: dict[str, Any],
    button_map: dict[str, int],
    decode_entry: Callable[..., list[StreamOutcome]],
) -> list[StreamOutcome]:
    """Decode each changed resource of *obj*; a malformed one yields a StreamError."""
    outcomes: list[StreamOutcome] = []
    for data in obj.get("data", []):
        try:
            outcomes.extend(decode_entry(obj, data, button_map))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            msg = f"{EVENT_STREAM_PATH}: malformed update notification: {exc!r}"
            outcomes.append(StreamError(ProtocolError(msg)))
    return outcomes


def decode_update_v1(obj: dict[str, Any], button_map: dict[str, int]) -> list[StreamOutcome]:
    """Decode an ``update`` notification into API v1 change events."""
    return _decode_update(obj, button_map, _decode_entry_v1)


def decode_update_v2(obj: dict[str, Any], button_map: dict[str, int]) -> list[StreamOutcome]:
    """Decode an ``update`` notification into API v2 change events."""
    return _decode_update(obj, button_map, _decode_entry_v2)


_DECODERS: dict[ApiGeneration, Callable[[dict[str, Any], dict[str, int]], list[StreamOutcome]]] = {
    ApiGeneration.V1: decode_update_v1,
    ApiGeneration.V2: decode_update_v2,
}

_END = object()


class EventStreamClient:
    """Consumer of the event stream of one bridge.

    Iterate over the client to receive :class:`ChangeEvent`,
    :class:`Notification` and :class:`StreamError` outcomes in the order
    the bridge sent them.  The stream is read into a bounded queue; once
    *queue_size* outcomes are pending, reading pauses until the consumer
    catches up.

    :param client: The client for the bridge.
    :param retry_time: Seconds to wait before reconnecting after the
        connection was lost (0-120).  ``0`` disables reconnecting.
    :param raw: Pass each notification container on untouched as a
        :class:`Notification`, instead of decoding it.
    :param version: ``1`` for API v1 style change events, ``2`` for API v2
        style.
    :param queue_size: Maximum number of undelivered outcomes.
    """

    def __init__(
        self,
        client: HueClient,
        *,
        retry_time: float = 10,
        raw: bool = False,
        version: int = 1,
        queue_size: int = 100,
    ) -> None:
        if isinstance(retry_time, bool) or not 0 <= retry_time <= 120:
            msg = f"retry_time: {retry_time!r}: must be between 0 and 120"
            raise ValidationError(msg)
        if version not in (1, 2):
            msg = f"version: {version!r}: must be 1 or 2"
            raise ValidationError(msg)
        self._client = client
        self._retry_time = retry_time
        self._raw = raw
        self._version = ApiGeneration(version)
        self._decoder = _DECODERS[self._version]
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=queue_size)
        self._button_map: dict[str, int] | None = None
        self._buffer = ""
        self._decoder_state = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._state = EventStreamState.IDLE
        self._task: asyncio.Task[None] | None = None
        self._closing = False

        # Callbacks
        self.on_state_change: Callable[[EventStreamState], None] | None = None

    @property
    def state(self) -> EventStreamState:
        """Current connection state."""
        return self._state

    @property
    def url(self) -> str:
        """URL of the event stream."""
        return self._client.transport.base_url + EVENT_STREAM_PATH

    @property
    def button_map(self) -> dict[str, int] | None:
        """API v2 button id to API v1 buttonevent base, once initialised."""
        return self._button_map

    def _set_state(self, state: EventStreamState) -> None:
        if state == self._state:
            return
        logger.debug("Event stream %s: %s -> %s", self.url, self._state.name, state.name)
        self._state = state
        if self.on_state_change:
            self.on_state_change(state)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Build the button lookup table for version 1 change events."""
        if self._version != ApiGeneration.V1 or self._button_map is not None:
            return
        buttons = await self._client.get("/button")
        self._button_map = {
            button["id"]: button["metadata"]["control_id"] * 1000 for button in buttons or []
        }
        logger.debug("Event stream button map: %d buttons", len(self._button_map))

    async def listen(self) -> None:
        """Open the event stream in the background.

        :raises ValidationError: If the bridge has no event stream or no
            API key has been set.
        """
        if not self._client.session.is_hue2:
            msg = "event stream requires a bridge with API v2"
            raise ValidationError(msg)
        if self._client.api_key is None:
            msg = "event stream requires an API key"
            raise ValidationError(msg)
        if self._task is not None and not self._task.done():
            return
        await self.init()
        self._closing = False
        # Drop the end marker and leftovers of a previous run.
        self._queue = asyncio.Queue(maxsize=self._queue.maxsize)
        self._task = asyncio.create_task(self._run())

    async def close(self) -> None:
        """Close the event stream without reconnecting.

        Ends iteration; undelivered outcomes are discarded.
        """
        self._closing = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        if self._state in (EventStreamState.CONNECTING, EventStreamState.LISTENING):
            logger.info("Event stream closed: %s", self.url)
        self._set_state(EventStreamState.CLOSED)
        self._end()

    async def __aenter__(self) -> EventStreamClient:
        await self.listen()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def __aiter__(self) -> AsyncIterator[StreamOutcome]:
        return self.events()

    async def events(self) -> AsyncIterator[StreamOutcome]:
        """Yield stream outcomes until the stream is closed for good."""
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            yield item

    def _end(self) -> None:
        while self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(_END)

    # ------------------------------------------------------------------
    # Connection loop
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        """Connect, read until the connection drops, and maybe reconnect."""
        while True:
            self._set_state(EventStreamState.CONNECTING)
            try:
                async with self._client.transport.stream(
                    EVENT_STREAM_PATH, self._client.session.headers
                ) as chunks:
                    self._buffer = ""
                    self._decoder_state.reset()
                    self._set_state(EventStreamState.LISTENING)
                    logger.info("Event stream listening: %s", self.url)
                    async for chunk in chunks:
                        for outcome in self.feed(chunk):
                            await self._queue.put(outcome)
                logger.info("Event stream closed: %s", self.url)
                self._set_state(EventStreamState.CLOSED)
            except HueBaseError as error:
                logger.warning("Event stream error: %s", error)
                self._set_state(EventStreamState.ERROR)
                await self._queue.put(StreamError(error))
            except Exception as exc:
                logger.warning("Event stream failed: %r", exc)
                self._set_state(EventStreamState.ERROR)
                msg = f"{EVENT_STREAM_PATH}: unexpected error: {exc!r}"
                await self._queue.put(StreamError(ProtocolError(msg)))
            if self._closing or self._retry_time <= 0:
                break
            logger.info("Event stream reconnecting in %gs", self._retry_time)
            await asyncio.sleep(self._retry_time)
        await self._queue.put(_END)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def feed(self, chunk: bytes | str) -> list[StreamOutcome]:
        """Append received data and decode any completed frame."""
        if isinstance(chunk, bytes):
            chunk = self._decoder_state.decode(chunk)
        self._buffer += chunk
        if not self._buffer.endswith("\n\n"):
            return []
        frame = self._buffer.strip()
        self._buffer = ""
        outcomes: list[StreamOutcome] = []
        for line in frame.split("\n"):
            name, sep, value = line.partition(": ")
            if name != "data" or not sep:
                continue
            try:
                container = json.loads(value)
            except ValueError as exc:
                msg = f"{EVENT_STREAM_PATH}: invalid notification: {exc}"
                outcomes.append(StreamError(ProtocolError(msg)))
                continue
            outcomes.extend(self.decode_container(container))
        return outcomes

    def decode_container(self, container: Any) -> list[StreamOutcome]:
        """Decode one notification container (a list of notifications)."""
        if self._raw:
            return [Notification(container)]
        if not isinstance(container, list):
            msg = f"{EVENT_STREAM_PATH}: notification container is not a list"
            return [StreamError(ProtocolError(msg))]
        outcomes: list[StreamOutcome] = []
        for obj in container:
            if not isinstance(obj, dict) or obj.get("type") != "update":
                outcomes.append(Notification(obj))
                continue
            try:
                outcomes.extend(self._decoder(obj, self._button_map or {}))
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                msg = f"{EVENT_STREAM_PATH}: malformed update notification: {exc!r}"
                outcomes.append(StreamError(ProtocolError(msg)))
        return outcomes
