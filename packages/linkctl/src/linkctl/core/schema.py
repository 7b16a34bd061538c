from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema

from ..errors import ConfigError

SCHEMAS_ROOT = Path(__file__).resolve().parents[1] / "schemas"


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    path = SCHEMAS_ROOT / f"{name}.schema.json"
    return json.loads(path.read_text(encoding="utf-8"))


def validate_payload(payload: Any, schema_name: str, source: str) -> None:
    schema = load_schema(schema_name)
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as exc:
        pointer = "/".join(str(p) for p in exc.absolute_path)
        loc = pointer or "<root>"
        raise ConfigError(f"{source}: schema validation failed at {loc}: {exc.message}") from exc
