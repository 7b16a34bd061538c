from __future__ import annotations

import argparse
from pathlib import Path

from ..config.loader import LinkSettings, load_overrides, load_settings
from ..core.context import RunContext
from ..model import LanguageRuntime, LibcVariant
from ..overrides import OverrideTable
from ..policy import PolicyEngine

VARIANT_CHOICES = ["fully-static", "dynamic-libc-static-rest", "static", "glibc"]
RUNTIME_CHOICES = [r.value for r in LanguageRuntime]


def settings_from_ns(ns: argparse.Namespace) -> LinkSettings:
    return load_settings(Path(ns.config) if getattr(ns, "config", None) else None)


def overrides_from_ns(ns: argparse.Namespace) -> OverrideTable:
    return load_overrides(Path(ns.overrides) if getattr(ns, "overrides", None) else None)


def engine_from_ns(ctx: RunContext, ns: argparse.Namespace) -> PolicyEngine:
    return PolicyEngine(settings_from_ns(ns), base_dir=ctx.work_root)


def add_overrides_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument("--overrides", help="override table (YAML: name -> archive path | force-dynamic)")


def add_variant_arg(p: argparse.ArgumentParser, required: bool = True) -> None:
    p.add_argument(
        "--libc",
        dest="libc",
        choices=VARIANT_CHOICES,
        required=required,
        default=None if required else LibcVariant.FULLY_STATIC.value,
        help="libc variant",
    )
