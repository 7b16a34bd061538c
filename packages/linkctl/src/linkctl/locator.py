"""Resolve a library requirement to the artifact handed to the linker.

Lookups are read-only. Candidate directories are searched in the order given
(system paths before custom install paths); an override for the name always
wins over the search.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .errors import LibraryNotFound, NoStaticArtifact
from .model import (
    ArtifactKind,
    LibcVariant,
    LibraryRequirement,
    ResolvedLibrary,
    library_stem,
    short_link_flag,
)
from .overrides import OverrideTable

AR_MAGIC = (b"!<arch>\n", b"!<thin>\n")


def is_static_archive(path: Path) -> bool:
    """True for ar archives, judged by magic rather than file name."""
    try:
        with path.open("rb") as f:
            return f.read(8) in AR_MAGIC
    except OSError:
        return False


@dataclass(frozen=True)
class LibraryLocator:
    search_paths: tuple[Path, ...]
    libc_family: frozenset[str]
    overrides: OverrideTable
    builtins: frozenset[str] = frozenset()
    target_id: str | None = None

    @classmethod
    def create(
        cls,
        search_paths: Sequence[Path],
        libc_family: frozenset[str],
        overrides: OverrideTable | None = None,
        builtins: frozenset[str] = frozenset(),
        target_id: str | None = None,
    ) -> "LibraryLocator":
        return cls(
            search_paths=tuple(Path(p) for p in search_paths),
            libc_family=frozenset(libc_family),
            overrides=overrides if overrides is not None else OverrideTable.empty(),
            builtins=frozenset(builtins),
            target_id=target_id,
        )

    def locate(self, requirement: LibraryRequirement, variant: LibcVariant) -> ResolvedLibrary:
        name = requirement.name
        dynamic_libc = variant is LibcVariant.DYNAMIC_LIBC and name in self.libc_family
        override = self.overrides.get(name)
        if override is not None:
            if override.force_dynamic:
                return ResolvedLibrary(requirement, ArtifactKind.DYNAMIC_FLAG, short_link_flag(name))
            if override.path is None or not override.path.is_file():
                raise LibraryNotFound(
                    f"override for `{name}` points at a missing file: {override.path}",
                    target=self.target_id,
                    library=name,
                )
            if is_static_archive(override.path):
                return ResolvedLibrary(requirement, ArtifactKind.ARCHIVE, str(override.path.absolute()))
            if dynamic_libc:
                return ResolvedLibrary(requirement, ArtifactKind.DYNAMIC_FLAG, short_link_flag(name))
            raise NoStaticArtifact(
                f"override for `{name}` is not a static archive: {override.path}",
                target=self.target_id,
                library=name,
            )
        if name in self.builtins:
            return ResolvedLibrary(requirement, ArtifactKind.BUILTIN, name)
        if dynamic_libc:
            return ResolvedLibrary(requirement, ArtifactKind.DYNAMIC_FLAG, short_link_flag(name))
        return ResolvedLibrary(requirement, ArtifactKind.ARCHIVE, str(self.find_static_archive(name)))

    def find_static_archive(self, name: str) -> Path:
        archive = f"lib{library_stem(name)}.a"
        for directory in self.search_paths:
            candidate = directory / archive
            if candidate.is_file():
                return candidate.absolute()
        shared = self.find_shared_objects(name)
        if shared:
            raise NoStaticArtifact(
                f"no static archive {archive} for `{name}`; only shared objects found: "
                + ", ".join(str(p) for p in shared),
                target=self.target_id,
                library=name,
            )
        raise LibraryNotFound(
            f"`{name}` not found in any of: " + ", ".join(str(p) for p in self.search_paths),
            target=self.target_id,
            library=name,
        )

    def find_shared_objects(self, name: str) -> list[Path]:
        stem = f"lib{library_stem(name)}.so"
        found: list[Path] = []
        for directory in self.search_paths:
            if not directory.is_dir():
                continue
            exact = directory / stem
            if exact.exists():
                found.append(exact)
            found.extend(sorted(directory.glob(f"{stem}.*")))
        return found
