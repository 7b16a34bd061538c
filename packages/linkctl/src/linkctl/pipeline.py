"""Plan many targets independently; one outcome per target."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

from .adapters import PkgConfig, translate
from .core.context import RunContext
from .core.logging import log_event
from .errors import ScriptError
from .model import AdapterKind, BuildInvocation, LinkPlan, TargetSpec
from .overrides import OverrideTable
from .policy import PolicyEngine


@dataclass(frozen=True)
class TargetOutcome:
    target_id: str
    plan: LinkPlan | None = None
    invocation: BuildInvocation | None = None
    error: ScriptError | None = None

    @property
    def status(self) -> str:
        return "pass" if self.error is None else "fail"

    def to_dict(self) -> dict[str, object]:
        row: dict[str, object] = {"target": self.target_id, "status": self.status}
        if self.plan is not None:
            row["plan"] = self.plan.to_dict()
        if self.invocation is not None:
            row["invocation"] = self.invocation.to_dict()
        if self.error is not None:
            row["error"] = self.error.to_dict()
        return row


def plan_target(
    engine: PolicyEngine,
    spec: TargetSpec,
    overrides: OverrideTable,
    adapter: AdapterKind,
    objects: Sequence[str] = (),
    pkg_config: PkgConfig | None = None,
) -> TargetOutcome:
    try:
        plan = engine.build_plan(spec, overrides)
        locator = engine.locator_for(spec, overrides) if adapter is AdapterKind.PKG_CONFIG else None
        invocation = translate(plan, adapter, objects, locator=locator, pkg_config=pkg_config)
    except ScriptError as exc:
        if exc.target is None:
            exc.target = spec.target_id
        return TargetOutcome(target_id=spec.target_id, error=exc)
    return TargetOutcome(target_id=spec.target_id, plan=plan, invocation=invocation)


def run_targets(
    ctx: RunContext,
    engine: PolicyEngine,
    specs: Sequence[TargetSpec],
    overrides: OverrideTable,
    adapter: AdapterKind,
    objects: Sequence[str] = (),
    jobs: int = 1,
    pkg_config: PkgConfig | None = None,
) -> list[TargetOutcome]:
    log_event(ctx, "debug", "pipeline", "start", targets=len(specs), adapter=adapter.value, jobs=jobs)

    def _one(spec: TargetSpec) -> TargetOutcome:
        return plan_target(engine, spec, overrides, adapter, objects, pkg_config)

    if jobs <= 1 or len(specs) <= 1:
        outcomes = [_one(spec) for spec in specs]
    else:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            outcomes = list(pool.map(_one, specs))

    for outcome in outcomes:
        if outcome.error is None:
            log_event(ctx, "info", "pipeline", "planned", target=outcome.target_id)
        else:
            log_event(
                ctx,
                "error",
                "pipeline",
                "rejected",
                target=outcome.target_id,
                kind=outcome.error.kind,
                library=outcome.error.library,
            )
    return outcomes
