from __future__ import annotations

import argparse
import importlib
import os
import platform
import sys
from pathlib import Path

from .. import __version__
from ..core.context import RunContext
from ..core.logging import log_event
from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG, ERR_INTERNAL, ERR_USAGE, OK
from .output import build_base_payload, emit, render_error, resolve_output_format

# (command, module, configure hook, run hook)
COMMANDS = (
    ("locate", "linkctl.commands.locate", "configure_locate_parser", "run_locate_command"),
    ("plan", "linkctl.commands.plan", "configure_plan_parser", "run_plan_command"),
    ("verify", "linkctl.commands.verify", "configure_verify_parser", "run_verify_command"),
    ("smoke", "linkctl.commands.smoke", "configure_smoke_parser", "run_smoke_command"),
    ("config", "linkctl.commands.config", "configure_config_parser", "run_config_command"),
)


def _import_attr(module_name: str, attr: str):
    return getattr(importlib.import_module(module_name), attr)


def _version_string() -> str:
    return f"linkctl {__version__}"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="linkctl", description="link policy resolver and verifier")
    p.add_argument("--version", action="version", version=_version_string())
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--run-id", help="run identifier for logs and payloads")
    p.add_argument("--config", help="settings file (YAML); defaults to $LINKCTL_CONFIG or packaged defaults")
    p.add_argument("--cwd", help="base directory for relative search paths and inputs")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    version_p = sub.add_parser("version", help="print version and git context")
    version_p.add_argument("--json", action="store_true", help="emit JSON output")
    for _name, module_name, configure, _run in COMMANDS:
        _import_attr(module_name, configure)(sub)
    return p


def main(argv: list[str] | None = None) -> int:
    raw_argv = argv if argv is not None else sys.argv[1:]
    p = build_parser()
    ns = p.parse_args(raw_argv)
    if ns.format and "--json" in raw_argv and ns.format != "json":
        print(render_error(as_json=False, message="conflicting output flags: use either --format json or --json", code=ERR_CONFIG), file=sys.stderr)
        return ERR_CONFIG
    if ns.cwd:
        os.chdir(ns.cwd)
    fmt = resolve_output_format(cli_json=("--json" in raw_argv), cli_format=ns.format, ci_present=bool(os.environ.get("CI")))
    ctx = RunContext.from_args(ns.run_id, fmt, ns.verbose, ns.quiet, Path.cwd())
    try:
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "version":
            payload = build_base_payload(ctx, "version")
            payload.update(
                {
                    "linkctl_version": __version__,
                    "python_version": platform.python_version(),
                    "git_dirty": ctx.git_dirty,
                }
            )
            if ctx.as_json or ns.json:
                emit(payload, True)
            else:
                print(f"{_version_string()} (git {ctx.git_sha})")
            return OK
        for name, module_name, _configure, run in COMMANDS:
            if ns.cmd == name:
                return _import_attr(module_name, run)(ctx, ns)
        return ERR_USAGE
    except ScriptError as exc:
        log_event(ctx, "error", "cli", "failed", cmd=ns.cmd, kind=exc.kind, code=exc.code)
        print(
            render_error(
                as_json=ctx.as_json,
                message=str(exc),
                code=exc.code,
                kind=exc.kind,
                target=exc.target,
                library=exc.library,
            ),
            file=sys.stderr,
        )
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(render_error(as_json=ctx.as_json, message=f"internal error: {exc}", code=ERR_INTERNAL), file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
