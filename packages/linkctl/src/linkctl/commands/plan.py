from __future__ import annotations

import argparse
from pathlib import Path

from ..adapters import PkgConfig
from ..cli.output import build_base_payload, emit
from ..config.loader import load_targets
from ..core.context import RunContext
from ..core.serialize import dumps_json
from ..errors import ConfigError
from ..model import AdapterKind, parse_adapter_kind
from ..pipeline import run_targets
from ._shared import add_overrides_arg, engine_from_ns, overrides_from_ns

ADAPTER_CHOICES = ["plain", "libtool", "pkg-config", *[k.value for k in AdapterKind]]


def configure_plan_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("plan", help="resolve, plan and translate link arguments for build targets")
    p.add_argument("--targets", required=True, help="targets file (YAML)")
    p.add_argument("--only", action="append", default=[], help="restrict to target id component/arch/variant (repeatable)")
    p.add_argument("--adapter", choices=ADAPTER_CHOICES, default="plain", help="build-system adapter")
    p.add_argument("--object", dest="objects", action="append", default=[], help="object file placed before libraries")
    p.add_argument("--pkg-config", dest="pkg_config", default="pkg-config", help="pkg-config executable")
    p.add_argument("--jobs", type=int, default=1, help="plan targets in parallel")
    p.add_argument("--out-file", help="also write the JSON payload to this path")
    add_overrides_arg(p)
    p.add_argument("--json", action="store_true", help="emit JSON output")


def run_plan_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    adapter = parse_adapter_kind(ns.adapter)
    engine = engine_from_ns(ctx, ns)
    overrides = overrides_from_ns(ns)
    specs = load_targets(Path(ns.targets))
    if ns.only:
        known = {s.target_id for s in specs}
        unknown = sorted(set(ns.only) - known)
        if unknown:
            raise ConfigError(f"unknown target id(s): {', '.join(unknown)}")
        specs = [s for s in specs if s.target_id in set(ns.only)]
    pkg_config = PkgConfig(ns.pkg_config) if adapter is AdapterKind.PKG_CONFIG else None
    outcomes = run_targets(ctx, engine, specs, overrides, adapter, ns.objects, max(1, ns.jobs), pkg_config)
    failed = [o for o in outcomes if o.error is not None]

    payload = build_base_payload(ctx, "link-plans", "ok" if not failed else "fail")
    payload.update(
        {
            "adapter": adapter.value,
            "failed_count": len(failed),
            "total_count": len(outcomes),
            "targets": [o.to_dict() for o in outcomes],
        }
    )
    if ns.out_file:
        out = Path(ns.out_file)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(dumps_json(payload, pretty=True) + "\n", encoding="utf-8")
    if ns.json or ctx.as_json:
        emit(payload, True)
    else:
        for outcome in outcomes:
            if outcome.invocation is not None:
                print(f"{outcome.target_id}: pass")
                print(f"  args: {' '.join(outcome.invocation.args)}")
                for key, value in sorted(outcome.invocation.env.items()):
                    print(f"  env: {key}={value}")
            elif outcome.error is not None:
                print(f"{outcome.target_id}: fail [{outcome.error.kind}] {outcome.error}")
        print(f"planned {len(outcomes) - len(failed)}/{len(outcomes)} targets")
    return 0 if not failed else failed[0].error.code
