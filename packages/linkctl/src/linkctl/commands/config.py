from __future__ import annotations

import argparse

from ..cli.output import build_base_payload, emit
from ..core.context import RunContext
from ..core.yaml_utils import dump_yaml
from ._shared import settings_from_ns


def configure_config_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("config", help="settings commands")
    p_sub = p.add_subparsers(dest="config_cmd", required=True)
    validate = p_sub.add_parser("validate", help="load and validate settings")
    validate.add_argument("--json", action="store_true", help="emit JSON output")
    dump = p_sub.add_parser("dump", help="print effective settings")
    dump.add_argument("--json", action="store_true", help="emit JSON output")


def run_config_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    settings = settings_from_ns(ns)
    as_json = ns.json or ctx.as_json
    if ns.config_cmd == "validate":
        payload = build_base_payload(ctx, "config-validate")
        payload["source"] = settings.source
        if as_json:
            emit(payload, True)
        else:
            print(f"config ok: {settings.source}")
        return 0
    if as_json:
        payload = build_base_payload(ctx, "config-dump")
        payload["source"] = settings.source
        payload["settings"] = settings.to_dict()
        emit(payload, True)
    else:
        print(f"# source: {settings.source}")
        print(dump_yaml(settings.to_dict()), end="")
    return 0
