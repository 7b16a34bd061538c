from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from .errors import AmbiguousOverride

FORCE_DYNAMIC = "force-dynamic"


@dataclass(frozen=True)
class Override:
    name: str
    path: Path | None = None
    force_dynamic: bool = False

    @classmethod
    def parse(cls, name: str, raw: str) -> "Override":
        value = raw.strip()
        if value == FORCE_DYNAMIC:
            return cls(name=name, force_dynamic=True)
        return cls(name=name, path=Path(value))

    def render(self) -> str:
        return FORCE_DYNAMIC if self.force_dynamic else str(self.path)


class OverrideTable(Mapping[str, Override]):
    """Immutable name -> override mapping; a repeated name is a configuration error."""

    def __init__(self, entries: Mapping[str, Override] | None = None, source: str = "<memory>") -> None:
        self._entries: Mapping[str, Override] = MappingProxyType(dict(entries or {}))
        self.source = source

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]], source: str = "<memory>") -> "OverrideTable":
        entries: dict[str, Override] = {}
        for name, raw in pairs:
            if name in entries:
                raise AmbiguousOverride(
                    f"{source}: override for `{name}` is defined more than once "
                    f"({entries[name].render()} and {raw})",
                    library=name,
                )
            entries[name] = Override.parse(name, raw)
        return cls(entries, source=source)

    @classmethod
    def empty(cls) -> "OverrideTable":
        return cls()

    def __getitem__(self, name: str) -> Override:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OverrideTable):
            return NotImplemented
        return dict(self._entries) == dict(other._entries)

    def __hash__(self) -> int:
        return hash(tuple(sorted((k, v.render()) for k, v in self._entries.items())))

    def to_dict(self) -> dict[str, str]:
        return {name: entry.render() for name, entry in sorted(self._entries.items())}
