"""libtool rewrites its own link command.

Wrapping flags such as --start-group are dropped and `-lname` flags are
re-resolved (usually to the shared object), so archives are passed as literal
absolute paths, which libtool leaves untouched.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from ..errors import AdapterError
from ..model import AdapterKind, ArtifactKind, BuildInvocation, LinkPlan

# libtool reads plain -static as "prefer static libtool archives"; -all-static links everything statically.
_FLAG_REWRITES = {"-static": "-all-static"}


def translate_libtool(plan: LinkPlan, objects: Sequence[str]) -> BuildInvocation:
    target_id = plan.target.target_id
    if plan.requires_static_group:
        grouped = [r.name for r in plan.resolved if r.requirement.grouped]
        raise AdapterError(
            f"{target_id}: libtool-mediated builds cannot honour a static-group bracket "
            f"(requested for {', '.join(grouped)}); use plain-linker-invocation",
            target=target_id,
            library=grouped[0] if grouped else None,
        )
    libs: list[str] = []
    for entry in plan.resolved:
        if entry.artifact_kind is ArtifactKind.BUILTIN:
            continue
        if entry.artifact_kind is ArtifactKind.ARCHIVE and not Path(entry.path_or_flag).is_absolute():
            raise AdapterError(
                f"{target_id}: archive for `{entry.name}` must be an absolute path, got {entry.path_or_flag}",
                target=target_id,
                library=entry.name,
            )
        libs.append(entry.path_or_flag)
    flags = [_FLAG_REWRITES.get(flag, flag) for flag in plan.base_flags]
    env = dict(plan.env)
    env["LIBS"] = " ".join(libs)
    if flags:
        env["LDFLAGS"] = " ".join(flags)
    return BuildInvocation(
        target_id=target_id,
        adapter=AdapterKind.LIBTOOL,
        args=tuple([*objects, *flags, *libs]),
        env=env,
    )
