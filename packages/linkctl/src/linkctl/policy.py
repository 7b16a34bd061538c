"""Turn a target specification into a frozen link plan.

A wrong resolution is rejected here, before any build time is spent: the only
dynamic entries a plan may carry are libc family libraries under
dynamic-libc-static-rest.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .config.loader import LinkSettings, load_settings
from .errors import ForbiddenDynamicDependency
from .locator import LibraryLocator
from .model import (
    ArtifactKind,
    LanguageRuntime,
    LibcVariant,
    LinkPlan,
    LinkPlanBuilder,
    ResolvedLibrary,
    TargetSpec,
)
from .overrides import OverrideTable


def predicted_closure(runtime: LanguageRuntime, variant: LibcVariant, settings: LinkSettings) -> frozenset[str]:
    if variant is LibcVariant.FULLY_STATIC:
        return frozenset()
    allowed = set(settings.libc_family)
    support = settings.runtime_support_for(runtime)
    if support:
        allowed.add(support)
    return frozenset(allowed)


def check_dynamic_entries(
    spec: TargetSpec,
    resolved: Iterable[ResolvedLibrary],
    libc_family: frozenset[str],
) -> None:
    for entry in resolved:
        if entry.artifact_kind is not ArtifactKind.DYNAMIC_FLAG:
            continue
        if spec.libc_variant is LibcVariant.FULLY_STATIC:
            reason = "fully-static targets allow no dynamic dependency"
        elif entry.name not in libc_family:
            reason = "only libc family libraries may stay dynamic"
        else:
            continue
        raise ForbiddenDynamicDependency(
            f"{spec.target_id}: `{entry.name}` resolved to {entry.path_or_flag}; {reason}",
            target=spec.target_id,
            library=entry.name,
        )


def _runtime_hints(builder: LinkPlanBuilder, spec: TargetSpec) -> None:
    static = spec.libc_variant is LibcVariant.FULLY_STATIC
    if spec.language_runtime is LanguageRuntime.NATIVE:
        if static:
            builder.add_flag("-static")
    elif spec.language_runtime is LanguageRuntime.CGO:
        builder.set_env("CGO_ENABLED", "1")
        if static:
            builder.add_flag("-static")
            builder.set_env("GO_EXTLDFLAGS", "-static")
            builder.set_env("GO_LDFLAGS", "-linkmode external -extldflags '-static'")
    elif spec.language_runtime is LanguageRuntime.RUST:
        libc = "musl" if static else "gnu"
        builder.set_env("CARGO_BUILD_TARGET", f"{spec.cpu}-unknown-linux-{libc}")
        builder.set_env("RUSTFLAGS", f"-C target-feature={'+' if static else '-'}crt-static")


class PolicyEngine:
    def __init__(self, settings: LinkSettings, base_dir: Path | None = None) -> None:
        self.settings = settings
        self.base_dir = (base_dir or Path.cwd()).absolute()

    def locator_for(self, spec: TargetSpec, overrides: OverrideTable) -> LibraryLocator:
        return LibraryLocator.create(
            search_paths=self.settings.search_paths_for(spec, self.base_dir),
            libc_family=self.settings.libc_family,
            overrides=overrides,
            builtins=self.settings.builtins,
            target_id=spec.target_id,
        )

    def build_plan(self, spec: TargetSpec, overrides: OverrideTable | None = None) -> LinkPlan:
        table = overrides if overrides is not None else OverrideTable.empty()
        locator = self.locator_for(spec, table)
        resolved = [locator.locate(req, spec.libc_variant) for req in spec.requirements]
        check_dynamic_entries(spec, resolved, self.settings.libc_family)

        builder = LinkPlanBuilder(spec)
        _runtime_hints(builder, spec)
        for entry in resolved:
            builder.add_library(entry)
        for name in sorted(predicted_closure(spec.language_runtime, spec.libc_variant, self.settings)):
            builder.allow_dependency(name)
        return builder.freeze()


def build_plan(
    spec: TargetSpec,
    overrides: OverrideTable | None = None,
    settings: LinkSettings | None = None,
    base_dir: Path | None = None,
) -> LinkPlan:
    return PolicyEngine(settings or load_settings(), base_dir).build_plan(spec, overrides)
