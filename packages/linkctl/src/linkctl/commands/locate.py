from __future__ import annotations

import argparse

from ..cli.output import build_base_payload, emit
from ..core.context import RunContext
from ..core.logging import log_event
from ..model import LanguageRuntime, LibraryRequirement, PreferredMode, TargetSpec, parse_libc_variant
from ._shared import add_overrides_arg, add_variant_arg, engine_from_ns, overrides_from_ns


def configure_locate_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("locate", help="resolve one library to the artifact given to the linker")
    p.add_argument("name", help="library name, e.g. libseccomp")
    add_variant_arg(p)
    p.add_argument("--arch", default="amd64", help="target architecture (amd64, arm64, or a triple)")
    p.add_argument("--component", default="adhoc", help="component used in search path templates")
    p.add_argument("--mode", choices=[m.value for m in PreferredMode], default=PreferredMode.SYSTEM_DEFAULT.value)
    add_overrides_arg(p)
    p.add_argument("--json", action="store_true", help="emit JSON output")


def run_locate_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    requirement = LibraryRequirement(name=ns.name, preferred_mode=PreferredMode(ns.mode))
    spec = TargetSpec(
        component=ns.component,
        language_runtime=LanguageRuntime.NATIVE,
        libc_variant=parse_libc_variant(ns.libc),
        architecture=ns.arch,
        requirements=(requirement,),
    )
    engine = engine_from_ns(ctx, ns)
    locator = engine.locator_for(spec, overrides_from_ns(ns))
    log_event(ctx, "debug", "locate", "search", library=ns.name, paths=[str(p) for p in locator.search_paths])
    resolved = locator.locate(requirement, spec.libc_variant)
    if ns.json or ctx.as_json:
        payload = build_base_payload(ctx, "resolved-library")
        payload["target"] = spec.target_id
        payload["library"] = resolved.to_dict()
        emit(payload, True)
    else:
        print(f"{resolved.name}: {resolved.artifact_kind.value} {resolved.path_or_flag}")
    return 0
