"""Smoke-test an install tree: linking closure, architecture, `--version`."""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass
from pathlib import Path

from .config.loader import LinkSettings
from .core.context import RunContext
from .core.logging import log_event
from .core.process import CommandRunner, run_command
from .errors import ArtifactError, ScriptError
from .model import LanguageRuntime, LibcVariant, VerificationReport, normalize_cpu
from .policy import predicted_closure
from .verify.elf import Inspector, ReadelfInspector, elf_machine
from .verify.verifier import compare_closure

VERSION_PASS = "pass"
VERSION_FAIL = "fail"
VERSION_SKIPPED_CROSS = "skipped-cross"
VERSION_SKIPPED = "skipped"

# A dynamic-libc binary must actually load glibc; one of these has to be in its closure.
GLIBC_MARKERS = frozenset({"libc", "ld-linux"})


@dataclass(frozen=True)
class SmokeResult:
    binary: str
    machine: str | None
    report: VerificationReport | None
    version_check: str
    version_output: str = ""
    error: ScriptError | None = None
    libc_missing: bool = False

    @property
    def status(self) -> str:
        if self.error is not None or self.report is None:
            return "fail"
        if self.report.extra or self.libc_missing or self.version_check == VERSION_FAIL:
            return "fail"
        return "pass"

    def to_dict(self) -> dict[str, object]:
        return {
            "binary": self.binary,
            "machine": self.machine,
            "status": self.status,
            "report": self.report.to_dict() if self.report else None,
            "libc_missing": self.libc_missing,
            "version_check": self.version_check,
            "version_output": self.version_output,
            "error": self.error.to_dict() if self.error else None,
        }


def find_binaries(install_dir: Path) -> list[Path]:
    bin_dir = install_dir / "bin"
    if not bin_dir.is_dir():
        raise ArtifactError(f"directory not found: {bin_dir}")
    binaries = sorted(p for p in bin_dir.rglob("*") if p.is_file() and os.access(p, os.X_OK))
    if not binaries:
        raise ArtifactError(f"no binaries found in {bin_dir}")
    return binaries


def host_cpu() -> str:
    return normalize_cpu(platform.machine())


def _version_check(binary: Path, machine: str | None, runner: CommandRunner) -> tuple[str, str]:
    if machine is not None and machine != host_cpu():
        return VERSION_SKIPPED_CROSS, ""
    try:
        res = runner([str(binary), "--version"])
    except OSError as exc:
        return VERSION_FAIL, str(exc)
    lines = res.combined_output.splitlines()
    return (VERSION_PASS if res.code == 0 else VERSION_FAIL), "\n".join(lines[:3])


def smoke_binary(
    binary: Path,
    variant: LibcVariant,
    allowed: frozenset[str],
    inspector: Inspector,
    runner: CommandRunner | None,
) -> SmokeResult:
    try:
        machine = elf_machine(binary)
        target_id = f"{binary.name}/{machine or 'unknown'}/{variant.value}"
        report = compare_closure(target_id, str(binary), inspector(binary), allowed)
    except ScriptError as exc:
        return SmokeResult(binary=str(binary), machine=None, report=None, version_check=VERSION_SKIPPED, error=exc)
    libc_missing = variant is LibcVariant.DYNAMIC_LIBC and not report.actual_closure & GLIBC_MARKERS
    check, output = (VERSION_SKIPPED, "") if runner is None else _version_check(binary, machine, runner)
    return SmokeResult(
        binary=str(binary),
        machine=machine,
        report=report,
        version_check=check,
        version_output=output,
        libc_missing=libc_missing,
    )


def run_smoke(
    ctx: RunContext,
    install_dir: Path,
    variant: LibcVariant,
    runtime: LanguageRuntime,
    settings: LinkSettings,
    inspector: Inspector | None = None,
    run_version: bool = True,
    runner: CommandRunner | None = None,
) -> list[SmokeResult]:
    allowed = predicted_closure(runtime, variant, settings)
    inspect = inspector or ReadelfInspector()
    version_runner = (runner or (lambda cmd: run_command(cmd, timeout_seconds=30))) if run_version else None
    results: list[SmokeResult] = []
    for binary in find_binaries(install_dir):
        result = smoke_binary(binary, variant, allowed, inspect, version_runner)
        log_event(
            ctx,
            "info" if result.status == "pass" else "error",
            "smoke",
            "binary",
            binary=binary.name,
            status=result.status,
            version_check=result.version_check,
            libc_missing=result.libc_missing,
        )
        results.append(result)
    return results
