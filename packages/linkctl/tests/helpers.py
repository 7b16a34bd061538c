from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

from linkctl.config.loader import LinkSettings, settings_from_payload

ROOT = Path(__file__).resolve().parents[3]
SRC = ROOT / "packages/linkctl/src"

LIBC_FAMILY = ["libc", "libm", "libresolv", "libpthread", "libdl", "librt", "ld-linux"]


def run_linkctl(*args: str, cwd: Path | None = None, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    full_env = os.environ.copy()
    full_env["PYTHONPATH"] = str(SRC)
    full_env.setdefault("RUN_ID", "pytest-run")
    full_env.pop("CI", None)
    full_env.pop("LINKCTL_CONFIG", None)
    full_env.update(env or {})
    return subprocess.run(
        [sys.executable, "-m", "linkctl.cli", *args],
        cwd=(cwd or ROOT),
        env=full_env,
        text=True,
        capture_output=True,
        check=False,
    )


def settings_payload(
    system: list[str],
    custom: list[str] | None = None,
    builtins: list[str] | None = None,
    runtime_support: dict[str, str] | None = None,
) -> dict[str, object]:
    path_set = {"system": list(system), "custom": list(custom or [])}
    return {
        "schema_version": 1,
        "libc_family": list(LIBC_FAMILY),
        "runtime_support": {"rust": "libgcc_s"} if runtime_support is None else runtime_support,
        "builtins": list(builtins or []),
        "search_paths": {"fully-static": path_set, "dynamic-libc-static-rest": path_set},
    }


def make_settings(
    system: list[str],
    custom: list[str] | None = None,
    builtins: list[str] | None = None,
    runtime_support: dict[str, str] | None = None,
) -> LinkSettings:
    return settings_from_payload(settings_payload(system, custom, builtins, runtime_support), "<test>")


def touch(path: Path, content: bytes = b"!<arch>\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


def elf_header(machine: int, little_endian: bool = True) -> bytes:
    """Minimal 64-bit ELF header prefix: enough for magic and e_machine reads."""
    order = "little" if little_endian else "big"
    ident = b"\x7fELF" + bytes([2, 1 if little_endian else 2, 1, 0]) + b"\x00" * 8
    return ident + (2).to_bytes(2, order) + machine.to_bytes(2, order) + b"\x00" * 44
