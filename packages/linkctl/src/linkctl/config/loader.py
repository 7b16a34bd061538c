from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..core.schema import validate_payload
from ..core.yaml_utils import DuplicateKeyError, load_yaml
from ..errors import AmbiguousOverride, ConfigError
from ..model import LanguageRuntime, LibcVariant, TargetSpec, parse_libc_variant
from ..overrides import OverrideTable

DEFAULTS_PATH = Path(__file__).resolve().parents[1] / "configs" / "defaults.yaml"
CONFIG_ENV = "LINKCTL_CONFIG"


@dataclass(frozen=True)
class SearchPathSet:
    system: tuple[str, ...]
    custom: tuple[str, ...]

    def ordered(self) -> tuple[str, ...]:
        return self.system + self.custom


@dataclass(frozen=True)
class LinkSettings:
    libc_family: frozenset[str]
    runtime_support: Mapping[str, str]
    builtins: frozenset[str]
    search_paths: Mapping[LibcVariant, SearchPathSet]
    source: str

    def __hash__(self) -> int:
        return hash((self.libc_family, self.builtins, self.source))

    def runtime_support_for(self, runtime: LanguageRuntime) -> str | None:
        return self.runtime_support.get(runtime.value)

    def search_paths_for(self, spec: TargetSpec, base_dir: Path) -> tuple[Path, ...]:
        """Concrete candidate directories for a target, system paths first."""
        rendered: list[Path] = []
        for template in self.search_paths[spec.libc_variant].ordered():
            raw = Path(template.format(cpu=spec.cpu, arch=spec.architecture, component=spec.component))
            path = raw if raw.is_absolute() else base_dir / raw
            if path not in rendered:
                rendered.append(path)
        return tuple(rendered)

    def to_dict(self) -> dict[str, object]:
        return {
            "schema_version": 1,
            "libc_family": sorted(self.libc_family),
            "runtime_support": dict(sorted(self.runtime_support.items())),
            "builtins": sorted(self.builtins),
            "search_paths": {
                variant.value: {"system": list(paths.system), "custom": list(paths.custom)}
                for variant, paths in self.search_paths.items()
            },
        }


def _read_yaml(path: Path) -> Any:
    if not path.is_file():
        raise ConfigError(f"config file not found: {path}")
    try:
        return load_yaml(path)
    except DuplicateKeyError:
        raise
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc


def settings_from_payload(payload: dict[str, Any], source: str) -> LinkSettings:
    validate_payload(payload, "linkctl-config", source)
    search = payload["search_paths"]
    return LinkSettings(
        libc_family=frozenset(str(x) for x in payload["libc_family"]),
        runtime_support={str(k): str(v) for k, v in payload["runtime_support"].items()},
        builtins=frozenset(str(x) for x in payload["builtins"]),
        search_paths={
            LibcVariant(variant): SearchPathSet(
                system=tuple(str(p) for p in search[variant]["system"]),
                custom=tuple(str(p) for p in search[variant]["custom"]),
            )
            for variant in (LibcVariant.FULLY_STATIC.value, LibcVariant.DYNAMIC_LIBC.value)
        },
        source=source,
    )


def load_settings(path: Path | None = None) -> LinkSettings:
    """Packaged defaults, with top-level keys replaced by the user file if any."""
    try:
        payload = dict(_read_yaml(DEFAULTS_PATH))
        source = str(DEFAULTS_PATH)
        if path is None and os.environ.get(CONFIG_ENV):
            path = Path(os.environ[CONFIG_ENV])
        if path is not None:
            user = _read_yaml(path) or {}
            if not isinstance(user, dict):
                raise ConfigError(f"{path}: root must be mapping")
            payload.update(user)
            source = str(path)
    except DuplicateKeyError as exc:
        raise ConfigError(f"{path or DEFAULTS_PATH}: {exc.problem}") from exc
    return settings_from_payload(payload, source)


def expand_targets(payload: dict[str, Any], source: str) -> list[TargetSpec]:
    validate_payload(payload, "targets", source)
    specs: list[TargetSpec] = []
    seen: set[str] = set()
    for row in payload["targets"]:
        for arch in row["architectures"]:
            for variant in row["libc_variants"]:
                spec = TargetSpec.from_json(
                    {
                        "component": row["component"],
                        "language_runtime": row["language_runtime"],
                        "libc_variant": parse_libc_variant(variant).value,
                        "architecture": arch,
                        "requirements": row.get("requirements", []),
                    }
                )
                if spec.target_id in seen:
                    raise ConfigError(f"{source}: target `{spec.target_id}` is declared more than once")
                seen.add(spec.target_id)
                specs.append(spec)
    return specs


def load_targets(path: Path) -> list[TargetSpec]:
    try:
        payload = _read_yaml(path)
    except DuplicateKeyError as exc:
        raise ConfigError(f"{path}: {exc.problem}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"{path}: root must be mapping")
    return expand_targets(payload, str(path))


def load_overrides(path: Path | None) -> OverrideTable:
    if path is None:
        return OverrideTable.empty()
    try:
        payload = _read_yaml(path)
    except DuplicateKeyError as exc:
        raise AmbiguousOverride(
            f"{path}: override for `{exc.key}` is defined more than once",
            library=exc.key,
        ) from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"{path}: root must be mapping")
    validate_payload(payload, "overrides", str(path))
    return OverrideTable.from_pairs(
        ((str(k), str(v)) for k, v in payload["overrides"].items()),
        source=str(path),
    )
