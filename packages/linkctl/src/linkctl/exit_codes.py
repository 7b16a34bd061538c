from __future__ import annotations

import json
from pathlib import Path

ERROR_REGISTRY = Path(__file__).resolve().parent / "_meta" / "error-registry.json"


def _load_registry() -> dict[str, int]:
    payload = json.loads(ERROR_REGISTRY.read_text(encoding="utf-8"))
    mapping: dict[str, int] = {}
    for row in payload.get("codes", []):
        mapping[str(row["name"])] = int(row["code"])
    return mapping


_REG = _load_registry()

OK = 0
ERR_USAGE = 2
ERR_CONFIG = _REG["LINKCTL_ERR_CONFIG"]
ERR_LOCATOR = _REG["LINKCTL_ERR_LOCATOR"]
ERR_ADAPTER = _REG["LINKCTL_ERR_ADAPTER"]
ERR_VERIFICATION = _REG["LINKCTL_ERR_VERIFICATION"]
ERR_ARTIFACT = _REG["LINKCTL_ERR_ARTIFACT"]
ERR_POLICY = _REG["LINKCTL_ERR_POLICY"]
ERR_INTERNAL = _REG["LINKCTL_ERR_INTERNAL"]
