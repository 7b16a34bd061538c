"""Build-system adapters: one translate function per adapter kind."""

from __future__ import annotations

from typing import Sequence

from ..locator import LibraryLocator
from ..model import AdapterKind, BuildInvocation, LinkPlan, parse_adapter_kind
from .libtool import translate_libtool
from .pkgconfig import PkgConfig, translate_pkg_config
from .plain import END_GROUP, GROUP_MARKERS, START_GROUP, translate_plain

__all__ = [
    "END_GROUP",
    "GROUP_MARKERS",
    "PkgConfig",
    "START_GROUP",
    "translate",
]


def translate(
    plan: LinkPlan,
    adapter_kind: AdapterKind | str,
    objects: Sequence[str] = (),
    *,
    locator: LibraryLocator | None = None,
    pkg_config: PkgConfig | None = None,
) -> BuildInvocation:
    kind = parse_adapter_kind(adapter_kind)
    if kind is AdapterKind.PLAIN:
        return translate_plain(plan, objects)
    if kind is AdapterKind.LIBTOOL:
        return translate_libtool(plan, objects)
    return translate_pkg_config(plan, objects, locator, pkg_config)
