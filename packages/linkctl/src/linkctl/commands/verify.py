from __future__ import annotations

import argparse
from pathlib import Path

from ..cli.output import build_base_payload, emit
from ..config.loader import load_targets
from ..core.context import RunContext
from ..core.logging import log_event
from ..errors import ConfigError
from ..model import LanguageRuntime, TargetSpec, Verdict, parse_libc_variant
from ..verify import INSPECTORS, verify
from ._shared import RUNTIME_CHOICES, VARIANT_CHOICES, add_overrides_arg, engine_from_ns, overrides_from_ns


def configure_verify_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("verify", help="check a built binary's dynamic dependencies against its plan")
    p.add_argument("artifact", help="path to the built binary")
    p.add_argument("--targets", help="targets file (YAML); requires --target")
    p.add_argument("--target", help="target id component/arch/variant from --targets")
    p.add_argument("--component", help="component name when no targets file is given")
    p.add_argument("--runtime", choices=RUNTIME_CHOICES, default=LanguageRuntime.NATIVE.value)
    p.add_argument("--libc", choices=VARIANT_CHOICES, default="fully-static")
    p.add_argument("--arch", default="amd64")
    p.add_argument("--inspector", choices=sorted(INSPECTORS), default="readelf")
    add_overrides_arg(p)
    p.add_argument("--json", action="store_true", help="emit JSON output")


def _target_from_ns(ns: argparse.Namespace) -> TargetSpec:
    if ns.targets:
        if not ns.target:
            raise ConfigError("--targets requires --target")
        for spec in load_targets(Path(ns.targets)):
            if spec.target_id == ns.target:
                return spec
        raise ConfigError(f"unknown target id: {ns.target}")
    return TargetSpec(
        component=ns.component or Path(ns.artifact).name,
        language_runtime=LanguageRuntime(ns.runtime),
        libc_variant=parse_libc_variant(ns.libc),
        architecture=ns.arch,
    )


def run_verify_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    spec = _target_from_ns(ns)
    plan = engine_from_ns(ctx, ns).build_plan(spec, overrides_from_ns(ns))
    report = verify(Path(ns.artifact), plan, INSPECTORS[ns.inspector]())
    log_event(ctx, "info", "verify", "report", target=report.target_id, verdict=report.verdict.value)
    payload = build_base_payload(ctx, "verification-report", "ok" if report.verdict is Verdict.PASS else "fail")
    payload["report"] = report.to_dict()
    if ns.json or ctx.as_json:
        emit(payload, True)
    else:
        print(f"{report.target_id}: {report.verdict.value}")
        print(f"  actual:    {', '.join(sorted(report.actual_closure)) or '(static)'}")
        print(f"  allowed:   {', '.join(sorted(report.predicted_closure)) or '(none)'}")
        if report.extra:
            print(f"  extra:     {', '.join(sorted(report.extra))}")
    report.raise_for_verdict()
    return 0
