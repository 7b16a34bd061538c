from __future__ import annotations

from pathlib import Path

from ..model import LinkPlan, VerificationReport
from .elf import Inspector, ReadelfInspector


def compare_closure(target_id: str, artifact: str, actual: frozenset[str], predicted: frozenset[str]) -> VerificationReport:
    return VerificationReport(
        target_id=target_id,
        artifact=artifact,
        actual_closure=frozenset(actual),
        predicted_closure=frozenset(predicted),
    )


def verify(artifact_path: Path, plan: LinkPlan, inspector: Inspector | None = None) -> VerificationReport:
    """Inspect the artifact once and compare against the plan; never retried."""
    inspect = inspector or ReadelfInspector()
    actual = inspect(Path(artifact_path))
    return compare_closure(plan.target.target_id, str(artifact_path), actual, plan.predicted_closure)
