"""Dependency verification of produced binaries."""
from .elf import INSPECTORS, LddInspector, ReadelfInspector, elf_machine, parse_ldd_output, parse_readelf_dynamic
from .verifier import compare_closure, verify

__all__ = [
    "INSPECTORS",
    "LddInspector",
    "ReadelfInspector",
    "compare_closure",
    "elf_machine",
    "parse_ldd_output",
    "parse_readelf_dynamic",
    "verify",
]
