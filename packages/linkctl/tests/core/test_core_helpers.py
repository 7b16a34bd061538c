from __future__ import annotations

import json
import sys
from pathlib import Path
from types import MappingProxyType

import pytest

from linkctl.core.context import RunContext
from linkctl.core.git import read_git_context
from linkctl.core.logging import log_event
from linkctl.core.process import run_command
from linkctl.core.schema import validate_payload
from linkctl.core.serialize import canonical, dumps_json
from linkctl.core.yaml_utils import DuplicateKeyError, load_yaml_text
from linkctl.errors import ConfigError
from linkctl.model import LibcVariant


def test_run_command_captures_output_and_duration(tmp_path: Path) -> None:
    res = run_command([sys.executable, "-c", "print('ok')"], tmp_path)
    assert res.code == 0
    assert res.stdout.strip() == "ok"
    assert res.duration_ms >= 0


def test_run_command_nonzero_exit(tmp_path: Path) -> None:
    res = run_command([sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"], tmp_path)
    assert res.code == 3
    assert res.combined_output == "boom"


def test_git_context_outside_repo(tmp_path: Path) -> None:
    ctx = read_git_context(tmp_path)
    assert ctx.sha
    assert isinstance(ctx.is_dirty, bool)


def test_strict_yaml_rejects_duplicate_keys() -> None:
    with pytest.raises(DuplicateKeyError) as exc:
        load_yaml_text("a: 1\nb: 2\na: 3\n")
    assert exc.value.key == "a"


def test_strict_yaml_allows_same_key_in_sibling_maps() -> None:
    assert load_yaml_text("x: {a: 1}\ny: {a: 2}\n") == {"x": {"a": 1}, "y": {"a": 2}}


def test_strict_yaml_keeps_merge_keys() -> None:
    doc = "base: &b {a: 1}\nchild:\n  <<: *b\n  c: 2\n"
    assert load_yaml_text(doc)["child"] == {"a": 1, "c": 2}


def test_schema_error_names_location() -> None:
    with pytest.raises(ConfigError) as exc:
        validate_payload({"schema_version": 1, "overrides": {"libfoo": ""}}, "overrides", "inline")
    assert "inline: schema validation failed at overrides/libfoo" in str(exc.value)


def test_dumps_json_is_sorted() -> None:
    assert dumps_json({"b": 1, "a": [2]}) == '{"a": [2], "b": 1}'
    assert dumps_json({"a": 1}, pretty=True) == '{\n  "a": 1\n}'


def test_canonical_orders_sets_mappings_and_enums() -> None:
    payload = {
        "closure": frozenset({"libm", "libc", "ld-linux"}),
        "env": MappingProxyType({"RUSTFLAGS": "-C x", "CGO_ENABLED": "1"}),
        "variant": LibcVariant.DYNAMIC_LIBC,
        "archive": Path("/opt/lib/libz.a"),
    }
    assert canonical(payload) == {
        "archive": "/opt/lib/libz.a",
        "closure": ["ld-linux", "libc", "libm"],
        "env": {"CGO_ENABLED": "1", "RUSTFLAGS": "-C x"},
        "variant": "dynamic-libc-static-rest",
    }
    assert list(canonical(payload)["env"]) == ["CGO_ENABLED", "RUSTFLAGS"]
    assert dumps_json({"c": {"b", "a"}}) == '{"c": ["a", "b"]}'


def test_run_id_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RUN_ID", "ci-42")
    assert RunContext.from_args(None, work_root=tmp_path).run_id == "ci-42"
    assert RunContext.from_args("explicit", work_root=tmp_path).run_id == "explicit"


def test_log_event_text_and_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    text_ctx = RunContext.from_args("r1", "text", work_root=tmp_path)
    log_event(text_ctx, "info", "policy", "planned", target="crun/amd64/fully-static")
    log_event(text_ctx, "debug", "policy", "hidden")
    json_ctx = RunContext.from_args("r2", "json", work_root=tmp_path)
    log_event(json_ctx, "error", "verify", "report", verdict="fail")
    lines = capsys.readouterr().err.splitlines()
    assert len(lines) == 2
    assert "component=policy action=planned target=crun/amd64/fully-static" in lines[0]
    row = json.loads(lines[1])
    assert row["run_id"] == "r2"
    assert row["verdict"] == "fail"


def test_quiet_keeps_only_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    ctx = RunContext.from_args("r", "text", quiet=True, work_root=tmp_path)
    log_event(ctx, "info", "smoke", "binary")
    log_event(ctx, "error", "smoke", "binary")
    assert len(capsys.readouterr().err.splitlines()) == 1


def test_verbose_shows_debug(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    ctx = RunContext.from_args("r", "text", verbose=True, work_root=tmp_path)
    log_event(ctx, "debug", "cli", "start")
    assert "level=debug" in capsys.readouterr().err
