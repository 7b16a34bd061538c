from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest

from linkctl.core.schema import load_schema
from linkctl.exit_codes import ERR_ADAPTER, ERR_ARTIFACT, ERR_CONFIG, ERR_LOCATOR
from tests.helpers import run_linkctl, settings_payload, touch

TARGETS = """\
schema_version: 1
targets:
  - component: crun
    language_runtime: native
    architectures: [amd64]
    libc_variants: [static, glibc]
    requirements:
      - name: libseccomp
        grouped: true
      - name: libc
  - component: conmon
    language_runtime: native
    architectures: [amd64]
    libc_variants: [glibc]
    requirements:
      - name: libcap
        preferred_mode: static
"""


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    libs = tmp_path / "libs"
    touch(libs / "libseccomp.a")
    touch(libs / "libc.a")
    touch(libs / "libcap.so.2")
    (tmp_path / "linkctl.yaml").write_text(json.dumps(settings_payload([str(libs)])), encoding="utf-8")
    (tmp_path / "targets.yaml").write_text(TARGETS, encoding="utf-8")
    return tmp_path


def _linkctl(workspace: Path, *args: str):
    return run_linkctl("--config", str(workspace / "linkctl.yaml"), *args, cwd=workspace)


def test_version_works_outside_git(tmp_path: Path) -> None:
    proc = run_linkctl("--version", cwd=tmp_path)
    assert proc.returncode == 0
    assert "linkctl 0.1.0" in proc.stdout


def test_version_json(tmp_path: Path) -> None:
    proc = run_linkctl("--json", "version", cwd=tmp_path)
    assert proc.returncode == 0
    payload = json.loads(proc.stdout)
    assert payload["tool"] == "linkctl"
    assert payload["run_id"] == "pytest-run"


def test_config_validate_defaults(tmp_path: Path) -> None:
    proc = run_linkctl("config", "validate", "--json", cwd=tmp_path)
    assert proc.returncode == 0, proc.stderr
    assert json.loads(proc.stdout)["source"].endswith("defaults.yaml")


def test_config_validate_rejects_bad_file(tmp_path: Path) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("libc_family: []\n", encoding="utf-8")
    proc = run_linkctl("--config", str(bad), "config", "validate", cwd=tmp_path)
    assert proc.returncode == ERR_CONFIG
    assert "error[invalid_config]" in proc.stderr


def test_config_dump_is_yaml(workspace: Path) -> None:
    proc = _linkctl(workspace, "config", "dump")
    assert proc.returncode == 0
    assert "libc_family:" in proc.stdout


def test_locate_json(workspace: Path) -> None:
    proc = _linkctl(workspace, "locate", "libseccomp", "--libc", "static", "--json")
    assert proc.returncode == 0, proc.stderr
    library = json.loads(proc.stdout)["library"]
    assert library["artifact_kind"] == "archive-file-path"
    assert library["path_or_flag"] == str(workspace / "libs" / "libseccomp.a")


def test_locate_missing_archive(workspace: Path) -> None:
    proc = _linkctl(workspace, "--json", "locate", "libcap", "--libc", "glibc", "--mode", "static")
    assert proc.returncode == ERR_LOCATOR
    err = json.loads(proc.stderr.strip().splitlines()[-1])["errors"][0]
    assert err["kind"] == "no_static_artifact"
    assert err["library"] == "libcap"


def test_plan_reports_every_target(workspace: Path) -> None:
    proc = _linkctl(workspace, "plan", "--targets", "targets.yaml", "--object", "main.o", "--json", "--jobs", "2")
    assert proc.returncode == ERR_LOCATOR
    payload = json.loads(proc.stdout)
    jsonschema.validate(payload, load_schema("plan-output"))
    assert payload["total_count"] == 3
    assert payload["failed_count"] == 1
    by_target = {row["target"]: row for row in payload["targets"]}
    static = by_target["crun/amd64/fully-static"]["invocation"]["args"]
    assert static[:3] == ["main.o", "-static", "-Wl,--start-group"]
    assert by_target["conmon/amd64/dynamic-libc-static-rest"]["error"]["kind"] == "no_static_artifact"


def test_plan_only_and_out_file(workspace: Path) -> None:
    out = workspace / "out" / "plans.json"
    proc = _linkctl(
        workspace, "plan", "--targets", "targets.yaml", "--only", "crun/amd64/dynamic-libc-static-rest", "--out-file", str(out)
    )
    assert proc.returncode == 0, proc.stderr
    assert "planned 1/1 targets" in proc.stdout
    assert json.loads(out.read_text(encoding="utf-8"))["total_count"] == 1


def test_plan_unknown_only(workspace: Path) -> None:
    proc = _linkctl(workspace, "plan", "--targets", "targets.yaml", "--only", "nope/amd64/fully-static")
    assert proc.returncode == ERR_CONFIG


def test_plan_libtool_refuses_group(workspace: Path) -> None:
    proc = _linkctl(
        workspace, "plan", "--targets", "targets.yaml", "--adapter", "libtool", "--only", "crun/amd64/fully-static", "--json"
    )
    assert proc.returncode == ERR_ADAPTER
    row = json.loads(proc.stdout)["targets"][0]
    assert row["error"]["kind"] == "unsupported_operation"


def test_ambiguous_override_is_config_error(workspace: Path) -> None:
    overrides = workspace / "overrides.yaml"
    overrides.write_text("schema_version: 1\noverrides:\n  libc: force-dynamic\n  libc: force-dynamic\n", encoding="utf-8")
    proc = _linkctl(workspace, "plan", "--targets", "targets.yaml", "--overrides", str(overrides))
    assert proc.returncode == ERR_CONFIG
    assert "ambiguous_override" in proc.stderr


def test_verify_non_elf_is_artifact_error(workspace: Path) -> None:
    junk = touch(workspace / "not-a-binary", b"plain text\n")
    proc = _linkctl(workspace, "verify", str(junk), "--libc", "static")
    assert proc.returncode == ERR_ARTIFACT


def test_verify_missing_artifact(workspace: Path) -> None:
    proc = _linkctl(workspace, "--json", "verify", str(workspace / "absent"))
    assert proc.returncode == ERR_ARTIFACT
    assert json.loads(proc.stderr.strip().splitlines()[-1])["errors"][0]["kind"] == "artifact_unreadable"


def test_verify_target_requires_id(workspace: Path) -> None:
    proc = _linkctl(workspace, "verify", "bin/crun", "--targets", "targets.yaml")
    assert proc.returncode == ERR_CONFIG


def test_smoke_missing_bin_dir(tmp_path: Path) -> None:
    proc = run_linkctl("smoke", str(tmp_path), "--no-version", cwd=tmp_path)
    assert proc.returncode == ERR_ARTIFACT


def test_conflicting_output_flags(tmp_path: Path) -> None:
    proc = run_linkctl("--format", "text", "--json", "version", cwd=tmp_path)
    assert proc.returncode == ERR_CONFIG
