"""Input parsing utilities for the Hue CLI."""

from __future__ import annotations

import json
from typing import Any

import click


def parse_resource(value: str) -> str:
    """Normalise a resource argument to start with ``/``."""
    value = value.strip()
    return value if value.startswith("/") else "/" + value


def parse_body(value: str | None) -> Any:
    """Parse a JSON request body.

    Raises:
        click.BadParameter: If *value* is not valid JSON.
    """
    if value is None or value == "":
        return None
    try:
        return json.loads(value)
    except ValueError as e:
        msg = f"invalid JSON body: {e}"
        raise click.BadParameter(msg) from e
