"""Resource routing between the Hue API v1 and API v2 dialects.

A resource path is a ``/``-separated string.  Its first segment decides
which API generation serves it:

* ``/``, ``/capabilities``, ``/config`` and the legacy collections
  (``/lights``, ``/groups``, ...) go to API v1 under ``/api/<key>``.
* ``/resource/...`` and any other first segment go to API v2 under
  ``/clip/v2/resource``.

For reads, segments beyond the addressed resource form a navigation
remainder that is resolved against the parsed response body.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from hue_py.errors import ValidationError

V2_BASE_PATH = "/clip/v2/resource"

# Top-level v1 resources that address a single object as ``type/id``.
V1_COLLECTIONS = frozenset(
    {
        "info",
        "lights",
        "groups",
        "schedules",
        "scenes",
        "sensors",
        "rules",
        "resourcelinks",
    }
)

# Top-level v1 resources without an id level.
V1_ROOT_RESOURCES = frozenset({"", "capabilities", "config"})

V1_RESOURCES = V1_ROOT_RESOURCES | V1_COLLECTIONS


class ApiGeneration(IntEnum):
    """Hue API dialect."""

    V1 = 1
    V2 = 2


@dataclass(frozen=True, slots=True)
class ResourceRoute:
    """Result of routing a resource path.

    :param generation: API generation serving the resource.
    :param base_path: Transport base path (``/api/<key>`` or
        ``/clip/v2/resource``).
    :param resource: Resource to request, relative to *base_path*.
    :param remainder: Keys to walk into the response body after a GET.
    """

    generation: ApiGeneration
    base_path: str
    resource: str
    remainder: tuple[str, ...] = ()

    @property
    def url_path(self) -> str:
        """Full request path on the bridge."""
        if self.resource == "/":
            return self.base_path or "/"
        return self.base_path.rstrip("/") + self.resource


def split_path(path: str) -> list[str]:
    """Split a resource path into segments.

    :raises ValidationError: If *path* is not a string starting with ``/``.
    """
    if not isinstance(path, str) or not path.startswith("/"):
        msg = f"{path}: invalid resource"
        raise ValidationError(msg)
    return path[1:].split("/")


def generation_for(path: str) -> ApiGeneration:
    """Return the API generation serving *path*."""
    return ApiGeneration.V1 if split_path(path)[0] in V1_RESOURCES else ApiGeneration.V2


def route(path: str, api_path: str = "/api", *, navigate: bool = True) -> ResourceRoute:
    """Route a resource path to an API generation and base path.

    :param path: Resource path, e.g. ``/lights/1/state/on`` or
        ``/light/<uuid>/on``.
    :param api_path: v1 base path for the session, ``/api/<key>``.
    :param navigate: Split off a navigation remainder.  Only reads
        navigate; writes address *path* as a whole.
    :raises ValidationError: If *path* is malformed.
    """
    segments = split_path(path)
    head = segments[0]

    if head in V1_RESOURCES:
        if not navigate:
            return ResourceRoute(ApiGeneration.V1, api_path, path)
        depth = 1 if head in V1_ROOT_RESOURCES else 2
        if head == "" or len(segments) <= depth:
            return ResourceRoute(ApiGeneration.V1, api_path, path)
        resource = "/" + "/".join(segments[:depth])
        return ResourceRoute(ApiGeneration.V1, api_path, resource, tuple(segments[depth:]))

    if head == "resource":
        segments = segments[1:]
    if segments == [""]:
        segments = []
    if not navigate:
        resource = "/" + "/".join(segments) if segments else "/"
        return ResourceRoute(ApiGeneration.V2, V2_BASE_PATH, resource)
    if len(segments) >= 2:
        resource = "/" + "/".join(segments[:2])
        # Lookup by id returns a list with a single element.
        remainder = ("0", *segments[2:])
        return ResourceRoute(ApiGeneration.V2, V2_BASE_PATH, resource, remainder)
    resource = "/" + segments[0] if segments else "/"
    return ResourceRoute(ApiGeneration.V2, V2_BASE_PATH, resource)
