"""Dynamic dependency introspection for built artifacts."""

from __future__ import annotations

import re
import struct
from pathlib import Path
from typing import Callable

from ..core.process import CommandRunner, run_command
from ..errors import ArtifactError
from ..model import normalize_soname

ELF_MAGIC = b"\x7fELF"
# e_machine values for the architectures we build.
ELF_MACHINES = {62: "x86_64", 183: "aarch64"}
KERNEL_PROVIDED = frozenset({"linux-vdso", "linux-gate"})

_NEEDED_RE = re.compile(r"\(NEEDED\)\s+Shared library:\s+\[(.+?)\]")
_LDD_ARROW_RE = re.compile(r"^\s*(\S+)\s+=>")
_LDD_PLAIN_RE = re.compile(r"^\s*(\S+)\s+\(0x[0-9a-fA-F]+\)\s*$")

Inspector = Callable[[Path], frozenset[str]]


def elf_machine(path: Path) -> str | None:
    """CPU name from the ELF header, or None for non-ELF or unknown machines."""
    try:
        with path.open("rb") as f:
            header = f.read(20)
    except OSError as exc:
        raise ArtifactError(f"cannot read {path}: {exc}") from exc
    if len(header) < 20 or header[:4] != ELF_MAGIC:
        return None
    byteorder = "<" if header[5] == 1 else ">"
    (machine,) = struct.unpack(f"{byteorder}H", header[18:20])
    return ELF_MACHINES.get(machine)


def closure_from_sonames(sonames: list[str]) -> frozenset[str]:
    names = {normalize_soname(s) for s in sonames}
    return frozenset(n for n in names if n not in KERNEL_PROVIDED)


def parse_readelf_dynamic(text: str) -> frozenset[str]:
    return closure_from_sonames(_NEEDED_RE.findall(text))


def parse_ldd_output(text: str) -> frozenset[str]:
    if "not a dynamic executable" in text or "statically linked" in text:
        return frozenset()
    sonames: list[str] = []
    for line in text.splitlines():
        match = _LDD_ARROW_RE.match(line) or _LDD_PLAIN_RE.match(line)
        if match:
            sonames.append(match.group(1))
    return closure_from_sonames(sonames)


class ReadelfInspector:
    """DT_NEEDED entries via `readelf -d`; no dynamic section means an empty closure."""

    def __init__(self, executable: str = "readelf", runner: CommandRunner | None = None) -> None:
        self.executable = executable
        self._runner = runner or (lambda cmd: run_command(cmd, timeout_seconds=30))

    def __call__(self, artifact: Path) -> frozenset[str]:
        if not artifact.is_file():
            raise ArtifactError(f"artifact not found: {artifact}")
        try:
            res = self._runner([self.executable, "-d", "--wide", str(artifact)])
        except OSError as exc:
            raise ArtifactError(f"cannot run {self.executable}: {exc}") from exc
        if res.code != 0:
            raise ArtifactError(f"{self.executable} failed on {artifact}: {res.combined_output}")
        return parse_readelf_dynamic(res.stdout)


class LddInspector:
    def __init__(self, executable: str = "ldd", runner: CommandRunner | None = None) -> None:
        self.executable = executable
        self._runner = runner or (lambda cmd: run_command(cmd, timeout_seconds=30))

    def __call__(self, artifact: Path) -> frozenset[str]:
        if not artifact.is_file():
            raise ArtifactError(f"artifact not found: {artifact}")
        try:
            res = self._runner([self.executable, str(artifact)])
        except OSError as exc:
            raise ArtifactError(f"cannot run {self.executable}: {exc}") from exc
        # ldd exits non-zero for static binaries; its text is still authoritative.
        text = res.stdout + res.stderr
        if res.code != 0 and "not a dynamic executable" not in text:
            raise ArtifactError(f"{self.executable} failed on {artifact}: {text.strip()}")
        return parse_ldd_output(text)


INSPECTORS: dict[str, Callable[[], Inspector]] = {
    "readelf": ReadelfInspector,
    "ldd": LddInspector,
}
