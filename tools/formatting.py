"""Output formatting for the Hue CLI."""

from __future__ import annotations

import json
import sys
from typing import Any


def print_json(data: Any, *, sort_keys: bool = False) -> None:
    """Print data as formatted JSON."""
    print(json.dumps(data, indent=2, sort_keys=sort_keys, default=str))


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


def print_kv(pairs: list[tuple[str, Any]]) -> None:
    """Print key-value pairs aligned on the colon."""
    if not pairs:
        return
    max_key = max(len(k) for k, _ in pairs)
    for key, value in pairs:
        print(f"  {key.ljust(max_key)}  {value}")
