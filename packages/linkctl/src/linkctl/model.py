"""Value types shared by the locator, policy engine, adapters and verifier."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from .core.serialize import canonical
from .errors import ExtraDependency


class LanguageRuntime(str, Enum):
    NATIVE = "native"
    CGO = "cgo"
    RUST = "rust"


class LibcVariant(str, Enum):
    FULLY_STATIC = "fully-static"
    DYNAMIC_LIBC = "dynamic-libc-static-rest"


class PreferredMode(str, Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    SYSTEM_DEFAULT = "system-default"


class ArtifactKind(str, Enum):
    ARCHIVE = "archive-file-path"
    DYNAMIC_FLAG = "dynamic-link-flag"
    BUILTIN = "build-system-builtin"


class AdapterKind(str, Enum):
    PLAIN = "plain-linker-invocation"
    LIBTOOL = "libtool-mediated"
    PKG_CONFIG = "pkg-config-mediated"


class Verdict(str, Enum):
    PASS = "pass"
    FAIL = "fail"


# Aliases accepted on the command line and in target files.
LIBC_VARIANT_ALIASES = {
    "static": LibcVariant.FULLY_STATIC,
    "musl": LibcVariant.FULLY_STATIC,
    "glibc": LibcVariant.DYNAMIC_LIBC,
    "hybrid": LibcVariant.DYNAMIC_LIBC,
}
ADAPTER_ALIASES = {
    "plain": AdapterKind.PLAIN,
    "libtool": AdapterKind.LIBTOOL,
    "pkg-config": AdapterKind.PKG_CONFIG,
}
_CPU_ALIASES = {
    "amd64": "x86_64",
    "x86-64": "x86_64",
    "x86_64": "x86_64",
    "arm64": "aarch64",
    "aarch64": "aarch64",
}
_SONAME_RE = re.compile(r"^(?P<stem>.+?)\.so(?:\.[0-9A-Za-z_.]+)?$")


def parse_libc_variant(raw: str | LibcVariant) -> LibcVariant:
    if isinstance(raw, LibcVariant):
        return raw
    value = str(raw).strip().lower()
    if value in LIBC_VARIANT_ALIASES:
        return LIBC_VARIANT_ALIASES[value]
    return LibcVariant(value)


def parse_adapter_kind(raw: str | AdapterKind) -> AdapterKind:
    if isinstance(raw, AdapterKind):
        return raw
    value = str(raw).strip().lower()
    if value in ADAPTER_ALIASES:
        return ADAPTER_ALIASES[value]
    return AdapterKind(value)


def normalize_cpu(architecture: str) -> str:
    """Map `amd64`, `arm64` or a `<cpu>-<vendor>-<os>` triple to the CPU name."""
    head = architecture.strip().lower().split("-unknown-")[0].split("-linux")[0]
    return _CPU_ALIASES.get(head, head)


def library_stem(name: str) -> str:
    """`libfoo` -> `foo`; bare `foo` stays `foo`."""
    return name[3:] if name.startswith("lib") and len(name) > 3 else name


def short_link_flag(name: str) -> str:
    return f"-l{library_stem(name)}"


def library_name_from_flag(flag: str) -> str:
    """`-lfoo` -> `libfoo`."""
    stem = flag[2:] if flag.startswith("-l") else flag
    return f"lib{stem}"


def normalize_soname(soname: str) -> str:
    """Reduce a soname to the library name used in closures.

    Every dynamic loader collapses to `ld-linux` so closures compare equal
    across architectures.
    """
    base = Path(soname.strip()).name
    if base.startswith("ld-linux"):
        return "ld-linux"
    match = _SONAME_RE.match(base)
    return match.group("stem") if match else base


@dataclass(frozen=True)
class LibraryRequirement:
    name: str
    preferred_mode: PreferredMode = PreferredMode.SYSTEM_DEFAULT
    required_symbols: tuple[str, ...] = ()
    grouped: bool = False

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> "LibraryRequirement":
        return cls(
            name=str(payload["name"]),
            preferred_mode=PreferredMode(str(payload.get("preferred_mode", PreferredMode.SYSTEM_DEFAULT.value))),
            required_symbols=tuple(str(s) for s in payload.get("required_symbols", [])),
            grouped=bool(payload.get("grouped", False)),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "preferred_mode": self.preferred_mode.value,
            "required_symbols": list(self.required_symbols),
            "grouped": self.grouped,
        }


@dataclass(frozen=True)
class TargetSpec:
    component: str
    language_runtime: LanguageRuntime
    libc_variant: LibcVariant
    architecture: str
    requirements: tuple[LibraryRequirement, ...] = ()

    @property
    def cpu(self) -> str:
        return normalize_cpu(self.architecture)

    @property
    def target_id(self) -> str:
        return f"{self.component}/{self.architecture}/{self.libc_variant.value}"

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> "TargetSpec":
        return cls(
            component=str(payload["component"]),
            language_runtime=LanguageRuntime(str(payload["language_runtime"])),
            libc_variant=parse_libc_variant(str(payload["libc_variant"])),
            architecture=str(payload["architecture"]),
            requirements=tuple(LibraryRequirement.from_json(row) for row in payload.get("requirements", [])),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "component": self.component,
            "language_runtime": self.language_runtime.value,
            "libc_variant": self.libc_variant.value,
            "architecture": self.architecture,
            "requirements": [r.to_dict() for r in self.requirements],
        }


@dataclass(frozen=True)
class ResolvedLibrary:
    requirement: LibraryRequirement
    artifact_kind: ArtifactKind
    path_or_flag: str

    @property
    def name(self) -> str:
        return self.requirement.name

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "artifact_kind": self.artifact_kind.value, "path_or_flag": self.path_or_flag}


@dataclass(frozen=True)
class LinkPlan:
    target: TargetSpec
    resolved: tuple[ResolvedLibrary, ...]
    base_flags: tuple[str, ...]
    env: Mapping[str, str]
    predicted_closure: frozenset[str]
    requires_static_group: bool

    def __hash__(self) -> int:
        return hash((self.target, self.resolved, self.base_flags, tuple(sorted(self.env.items())), self.predicted_closure))

    def to_dict(self) -> dict[str, object]:
        return {
            "target": self.target.target_id,
            "libraries": [r.to_dict() for r in self.resolved],
            "base_flags": list(self.base_flags),
            "env": canonical(self.env),
            "predicted_closure": canonical(self.predicted_closure),
            "requires_static_group": self.requires_static_group,
        }


class LinkPlanBuilder:
    """Append-only accumulator; `freeze()` hands out the immutable plan."""

    def __init__(self, target: TargetSpec) -> None:
        self._target = target
        self._resolved: list[ResolvedLibrary] = []
        self._flags: list[str] = []
        self._env: dict[str, str] = {}
        self._closure: set[str] = set()
        self._frozen = False

    def _check_open(self) -> None:
        if self._frozen:
            raise RuntimeError(f"link plan for {self._target.target_id} is already frozen")

    def add_library(self, resolved: ResolvedLibrary) -> None:
        self._check_open()
        self._resolved.append(resolved)

    def add_flag(self, flag: str) -> None:
        self._check_open()
        self._flags.append(flag)

    def set_env(self, key: str, value: str) -> None:
        self._check_open()
        if key in self._env:
            raise RuntimeError(f"env hint `{key}` already set for {self._target.target_id}")
        self._env[key] = value

    def allow_dependency(self, name: str) -> None:
        self._check_open()
        self._closure.add(name)

    def freeze(self) -> LinkPlan:
        self._check_open()
        self._frozen = True
        resolved = tuple(self._resolved)
        return LinkPlan(
            target=self._target,
            resolved=resolved,
            base_flags=tuple(self._flags),
            env=MappingProxyType(dict(self._env)),
            predicted_closure=frozenset(self._closure),
            requires_static_group=any(
                r.requirement.grouped and r.artifact_kind is ArtifactKind.ARCHIVE for r in resolved
            ),
        )


@dataclass(frozen=True)
class BuildInvocation:
    target_id: str
    adapter: AdapterKind
    args: tuple[str, ...]
    env: Mapping[str, str]

    def to_dict(self) -> dict[str, object]:
        return {
            "target": self.target_id,
            "adapter": self.adapter.value,
            "args": list(self.args),
            "env": canonical(self.env),
        }


@dataclass(frozen=True)
class VerificationReport:
    target_id: str
    artifact: str
    actual_closure: frozenset[str]
    predicted_closure: frozenset[str]

    @property
    def extra(self) -> frozenset[str]:
        return self.actual_closure - self.predicted_closure

    @property
    def missing(self) -> frozenset[str]:
        return self.predicted_closure - self.actual_closure

    @property
    def verdict(self) -> Verdict:
        return Verdict.PASS if not self.extra else Verdict.FAIL

    def raise_for_verdict(self) -> None:
        if self.verdict is Verdict.FAIL:
            extra = sorted(self.extra)
            raise ExtraDependency(
                f"{self.artifact} links unexpected shared objects: {', '.join(extra)}",
                target=self.target_id,
                library=extra[0],
            )

    def to_dict(self) -> dict[str, object]:
        return {
            "target": self.target_id,
            "artifact": self.artifact,
            "actual_closure": canonical(self.actual_closure),
            "predicted_closure": canonical(self.predicted_closure),
            "extra": canonical(self.extra),
            "missing": canonical(self.missing),
            "verdict": self.verdict.value,
        }
