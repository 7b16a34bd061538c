from __future__ import annotations

import socket
from pathlib import Path

import pytest
from hypothesis import settings

from linkctl.config.loader import LinkSettings
from tests.helpers import make_settings, touch

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

settings.register_profile("linkctl", deadline=None, max_examples=50)
settings.load_profile("linkctl")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture(autouse=True)
def no_user_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LINKCTL_CONFIG", raising=False)


@pytest.fixture
def lib_tree(tmp_path: Path) -> Path:
    """system/ and custom/ library directories with a few archives and shared objects."""
    root = tmp_path / "libs"
    touch(root / "system" / "libc.a")
    touch(root / "system" / "libm.a")
    touch(root / "system" / "libseccomp.a")
    touch(root / "custom" / "libseccomp.a")
    touch(root / "custom" / "libgpgme.a")
    touch(root / "custom" / "libassuan.a")
    touch(root / "custom" / "libgpg-error.a")
    touch(root / "system" / "libcap.so.2")
    (root / "empty").mkdir(parents=True)
    return root


@pytest.fixture
def tree_settings(lib_tree: Path) -> LinkSettings:
    return make_settings([str(lib_tree / "system")], [str(lib_tree / "custom")])
