from __future__ import annotations

import argparse
from pathlib import Path

from ..cli.output import build_base_payload, emit
from ..core.context import RunContext
from ..exit_codes import ERR_VERIFICATION
from ..model import LanguageRuntime, parse_libc_variant
from ..smoke import run_smoke
from ..verify import INSPECTORS
from ._shared import RUNTIME_CHOICES, add_variant_arg, settings_from_ns


def configure_smoke_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("smoke", help="smoke-test every binary under <install-dir>/bin")
    p.add_argument("install_dir", help="install prefix, e.g. build/podman-amd64/install")
    add_variant_arg(p, required=False)
    p.add_argument("--runtime", choices=RUNTIME_CHOICES, default=LanguageRuntime.NATIVE.value)
    p.add_argument("--inspector", choices=sorted(INSPECTORS), default="ldd")
    p.add_argument("--no-version", action="store_true", help="do not execute `--version`")
    p.add_argument("--json", action="store_true", help="emit JSON output")


def run_smoke_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    results = run_smoke(
        ctx,
        Path(ns.install_dir),
        parse_libc_variant(ns.libc),
        LanguageRuntime(ns.runtime),
        settings_from_ns(ns),
        inspector=INSPECTORS[ns.inspector](),
        run_version=not ns.no_version,
    )
    failed = [r for r in results if r.status != "pass"]
    payload = build_base_payload(ctx, "smoke-report", "ok" if not failed else "fail")
    payload.update(
        {
            "install_dir": ns.install_dir,
            "total_count": len(results),
            "failed_count": len(failed),
            "binaries": [r.to_dict() for r in results],
        }
    )
    if ns.json or ctx.as_json:
        emit(payload, True)
    else:
        for result in results:
            print(f"{Path(result.binary).name}: {result.status} (version: {result.version_check})")
            if result.report is not None and result.report.extra:
                print(f"  unexpected: {', '.join(sorted(result.report.extra))}")
            if result.libc_missing:
                print("  expected glibc dependencies not found")
            if result.error is not None:
                print(f"  error: {result.error}")
        print(f"passed {len(results) - len(failed)}/{len(results)} binaries")
    return 0 if not failed else ERR_VERIFICATION
