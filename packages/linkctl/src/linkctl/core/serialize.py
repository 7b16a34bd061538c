"""Canonical JSON for plans, reports and CLI payloads."""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Mapping


def canonical(value: Any) -> Any:
    """Plain JSON data with a stable order: sets sorted, mappings key-sorted, enums by value."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): canonical(v) for k, v in sorted(value.items(), key=lambda kv: str(kv[0]))}
    if isinstance(value, (set, frozenset)):
        return sorted(canonical(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [canonical(v) for v in value]
    return value


def dumps_json(payload: Any, pretty: bool = False) -> str:
    data = canonical(payload)
    if pretty:
        return json.dumps(data, indent=2, sort_keys=True)
    return json.dumps(data, sort_keys=True)
