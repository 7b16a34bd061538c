from __future__ import annotations

from typing import Iterable, Sequence

from ..model import AdapterKind, ArtifactKind, BuildInvocation, LinkPlan, ResolvedLibrary

START_GROUP = "-Wl,--start-group"
END_GROUP = "-Wl,--end-group"
GROUP_MARKERS = frozenset({START_GROUP, END_GROUP})


def library_args(resolved: Iterable[ResolvedLibrary]) -> list[str]:
    """Libraries in order, each maximal run of archives inside one static group."""
    args: list[str] = []
    in_group = False
    for entry in resolved:
        if entry.artifact_kind is ArtifactKind.BUILTIN:
            continue
        if entry.artifact_kind is ArtifactKind.ARCHIVE:
            if not in_group:
                args.append(START_GROUP)
                in_group = True
        elif in_group:
            args.append(END_GROUP)
            in_group = False
        args.append(entry.path_or_flag)
    if in_group:
        args.append(END_GROUP)
    return args


def translate_plain(plan: LinkPlan, objects: Sequence[str]) -> BuildInvocation:
    # Objects always precede the libraries that satisfy their symbols.
    args = [*objects, *plan.base_flags, *library_args(plan.resolved)]
    return BuildInvocation(
        target_id=plan.target.target_id,
        adapter=AdapterKind.PLAIN,
        args=tuple(args),
        env=dict(plan.env),
    )
