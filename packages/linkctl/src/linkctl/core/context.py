from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .clock import utc_stamp
from .git import read_git_context

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    work_root: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool
    git_sha: str
    git_dirty: bool

    @property
    def as_json(self) -> bool:
        return self.output_format == "json"

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        work_root: Path | None = None,
    ) -> "RunContext":
        root = (work_root or Path.cwd()).resolve()
        git_ctx = read_git_context(root)
        default_run = f"linkctl-{utc_stamp()}-{git_ctx.sha}"
        resolved_run_id = run_id or os.environ.get("RUN_ID", default_run)
        return cls(
            run_id=resolved_run_id,
            work_root=root,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=output_format == "json",
            git_sha=git_ctx.sha,
            git_dirty=git_ctx.is_dirty,
        )
