"""Expand libraries through pkg-config before locating them.

A static archive may depend on others that the requirement never names; only
`pkg-config --static` lists them. The query is always made in static mode,
even for dynamic-libc targets, because the one library linked statically still
needs its private dependencies.
"""

from __future__ import annotations

import shlex
from typing import Sequence

from ..core.process import CommandRunner, run_command
from ..errors import AdapterError, ScriptError
from ..locator import LibraryLocator
from ..model import (
    AdapterKind,
    ArtifactKind,
    BuildInvocation,
    LibraryRequirement,
    LinkPlan,
    ResolvedLibrary,
    library_name_from_flag,
    library_stem,
)
from ..policy import check_dynamic_entries
from .plain import library_args


class PkgConfig:
    def __init__(self, executable: str = "pkg-config", runner: CommandRunner | None = None, static: bool = True) -> None:
        if not static:
            raise AdapterError(
                "pkg-config must be queried with --static; default mode omits private dependencies",
            )
        self.executable = executable
        self._runner = runner or (lambda cmd: run_command(cmd))

    def static_libraries(self, name: str, target_id: str | None = None) -> list[str]:
        """Library names from `--static --libs-only-l`, in pkg-config's order."""
        attempts: list[str] = []
        for module in dict.fromkeys((name, library_stem(name))):
            cmd = [self.executable, "--static", "--libs-only-l", module]
            try:
                res = self._runner(cmd)
            except OSError as exc:
                raise AdapterError(
                    f"cannot run {self.executable}: {exc}", kind="metadata_unavailable", target=target_id, library=name
                ) from exc
            if res.code == 0:
                return [library_name_from_flag(tok) for tok in shlex.split(res.stdout) if tok.startswith("-l")]
            attempts.append(f"{module}: {res.combined_output or f'exit {res.code}'}")
        raise AdapterError(
            f"no pkg-config metadata for `{name}` ({'; '.join(attempts)})",
            kind="metadata_unavailable",
            target=target_id,
            library=name,
        )


def expand_libraries(plan: LinkPlan, locator: LibraryLocator, pkg_config: PkgConfig) -> list[ResolvedLibrary]:
    spec = plan.target
    expanded: list[ResolvedLibrary] = []
    for entry in plan.resolved:
        if entry.artifact_kind is not ArtifactKind.ARCHIVE:
            expanded.append(entry)
            continue
        names = pkg_config.static_libraries(entry.name, spec.target_id) or [entry.name]
        for name in names:
            if name == entry.name:
                expanded.append(entry)
            else:
                expanded.append(locator.locate(LibraryRequirement(name=name), spec.libc_variant))
    # Keep the last occurrence: a dependency must stay after everything that needs it.
    last_index = {r.path_or_flag: i for i, r in enumerate(expanded)}
    return [r for i, r in enumerate(expanded) if last_index[r.path_or_flag] == i]


def translate_pkg_config(
    plan: LinkPlan,
    objects: Sequence[str],
    locator: LibraryLocator | None,
    pkg_config: PkgConfig | None,
) -> BuildInvocation:
    target_id = plan.target.target_id
    if locator is None:
        raise AdapterError(f"{target_id}: pkg-config-mediated translation needs a library locator", target=target_id)
    try:
        resolved = expand_libraries(plan, locator, pkg_config or PkgConfig())
    except ScriptError as exc:
        if exc.target is None:
            exc.target = target_id
        raise
    check_dynamic_entries(plan.target, resolved, locator.libc_family)
    env = dict(plan.env)
    env["PKG_CONFIG"] = "pkg-config --static"
    return BuildInvocation(
        target_id=target_id,
        adapter=AdapterKind.PKG_CONFIG,
        args=tuple([*objects, *plan.base_flags, *library_args(resolved)]),
        env=env,
    )
