"""Ordered step execution with a guaranteed unwind phase."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .context import InstallContext
from .outcome import InstallError, Outcome, StepFailedError

logger = logging.getLogger(__name__)

StepRunner = Callable[[InstallContext], Optional[Outcome]]

STATUS_OK = "ok"
STATUS_FAILED = "failed"
STATUS_SOFT_SKIP = "soft_skip"
STATUS_NOT_RUN = "skipped"


@dataclass(frozen=True)
class StepSpec:
    slug: str
    runner: StepRunner
    description: str = ""
    cleanup: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "slug": self.slug,
            "description": self.description,
            "cleanup": self.cleanup,
        }


@dataclass
class StepReport:
    name: str
    status: str
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"name": self.name, "status": self.status}
        if self.message:
            payload["message"] = self.message
        return payload


@dataclass
class PipelineResult:
    status: str = "ok"
    error: Optional[BaseException] = None
    reports: List[StepReport] = field(default_factory=list)
    skip_reason: Optional[str] = None
    unwound: int = 0
    next_steps: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status in ("ok", "skipped")

    @property
    def executed(self) -> List[str]:
        return [report.name for report in self.reports if report.status != STATUS_NOT_RUN]

    def raise_for_status(self) -> None:
        if self.error is not None and not self.ok:
            raise self.error

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status,
            "error": str(self.error) if self.error else None,
            "skip_reason": self.skip_reason,
            "steps": [report.to_dict() for report in self.reports],
            "next_steps": list(self.next_steps),
        }


def _invoke(step: StepSpec, context: InstallContext) -> Outcome:
    try:
        outcome = step.runner(context)
    except InstallError as exc:
        return Outcome.fail(exc)
    except Exception as exc:
        return Outcome.fail(StepFailedError(step.slug, exc))
    if outcome is None:
        return Outcome.proceed()
    return outcome


def _run_cleanup(step: StepSpec, context: InstallContext) -> StepReport:
    outcome = _invoke(step, context)
    if outcome.is_fail:
        logger.warning("Cleanup step '%s' failed: %s", step.slug, outcome.error)
        return StepReport(name=step.slug, status=STATUS_FAILED, message=str(outcome.error))
    return StepReport(name=step.slug, status=STATUS_OK)


def unwind(context: InstallContext) -> int:
    """Restore the working directory the run started in."""

    return context.directories.unwind()


def run_pipeline(steps: Sequence[StepSpec], context: InstallContext) -> PipelineResult:
    """Run ``steps`` in order.

    The first failing step stops regular steps; later ``cleanup`` steps still
    run. A soft skip stops everything after it and counts as success. The
    directory stack is unwound exactly once on every exit path.
    """

    result = PipelineResult()
    stopped = False
    try:
        for step in steps:
            if stopped:
                if result.status == "error" and step.cleanup:
                    result.reports.append(_run_cleanup(step, context))
                else:
                    result.reports.append(StepReport(name=step.slug, status=STATUS_NOT_RUN))
                continue

            logger.debug("step %s", step.slug)
            outcome = _invoke(step, context)
            if outcome.is_continue:
                result.reports.append(StepReport(name=step.slug, status=STATUS_OK))
            elif outcome.is_soft_skip:
                result.reports.append(StepReport(name=step.slug, status=STATUS_SOFT_SKIP, message=outcome.reason))
                result.status = "skipped"
                result.skip_reason = outcome.reason
                stopped = True
            else:
                result.reports.append(StepReport(name=step.slug, status=STATUS_FAILED, message=str(outcome.error)))
                result.status = "error"
                result.error = outcome.error
                stopped = True
    finally:
        result.unwound = unwind(context)

    result.next_steps = list(context.next_steps)
    return result


def list_steps(steps: Iterable[StepSpec]) -> List[dict[str, object]]:
    return [step.to_dict() for step in steps]


__all__ = [
    "PipelineResult",
    "StepReport",
    "StepRunner",
    "StepSpec",
    "list_steps",
    "run_pipeline",
    "unwind",
]
