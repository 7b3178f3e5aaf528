"""Result models for scenario runs.

Pydantic v2 models capturing the structured outcome of a scenario: one
:class:`StepResult` per wait or assertion, rolled up into a
:class:`ScenarioResult`. The CLI prints them with ``model_dump_json`` and
maps :attr:`ScenarioResult.overall_status` to the process exit code.

Status derivation in ``mark_complete()``:

- every step passed → ``PASSED``
- a step failed with a convergence error (timeout, stability, membership,
  illegal phase edge) → ``FAILED``
- anything else went wrong (kubectl mutation failed, a bug) → ``ERROR``

Tags:
    results, models, pydantic, scenario, status, reporting
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from converge.core.errors import ConvergeError, ErrorCategory, categorize_error


class OverallStatus(str, Enum):
    """Overall status of a scenario or step."""

    PASSED = "PASSED"
    FAILED = "FAILED"
    ERROR = "ERROR"
    RUNNING = "RUNNING"
    PENDING = "PENDING"


_FAILURE_CATEGORIES = frozenset({
    ErrorCategory.CONVERGENCE,
    ErrorCategory.STABILITY,
    ErrorCategory.MEMBERSHIP,
    ErrorCategory.STATE,
})


def classify_failure(exc: BaseException) -> OverallStatus:
    """FAILED for convergence outcomes, ERROR for everything else."""
    if categorize_error(exc) in _FAILURE_CATEGORIES:
        return OverallStatus.FAILED
    return OverallStatus.ERROR


def _now() -> str:
    return datetime.now(UTC).isoformat()


class StepResult(BaseModel):
    """One wait, hold or assertion inside a scenario."""

    name: str
    started_at: str = Field(default_factory=_now)
    completed_at: str | None = None
    duration_seconds: float = 0.0
    status: OverallStatus = OverallStatus.RUNNING
    attempts: int | None = None
    observed: str | None = None
    detail: dict[str, Any] = Field(default_factory=dict)
    error: dict[str, Any] | None = None

    def finish(self, status: OverallStatus, **detail: Any) -> None:
        self.completed_at = _now()
        start = datetime.fromisoformat(self.started_at)
        end = datetime.fromisoformat(self.completed_at)
        self.duration_seconds = (end - start).total_seconds()
        self.status = status
        self.detail.update(detail)

    def fail(self, exc: BaseException) -> None:
        if isinstance(exc, ConvergeError):
            self.error = exc.to_dict()
        else:
            self.error = {
                "error_type": type(exc).__name__,
                "message": str(exc),
                "category": categorize_error(exc).value,
            }
        self.finish(classify_failure(exc))


class ScenarioResult(BaseModel):
    """Outcome of one scenario run."""

    scenario: str
    run_id: str
    namespace: str
    started_at: str = Field(default_factory=_now)
    completed_at: str | None = None
    duration_seconds: float = 0.0
    steps: list[StepResult] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    overall_status: OverallStatus = OverallStatus.PENDING
    error: dict[str, Any] | None = None
    teardown: bool = True
    summary: str = ""

    @property
    def passed(self) -> bool:
        return self.overall_status == OverallStatus.PASSED

    @property
    def failed_step(self) -> StepResult | None:
        for step in self.steps:
            if step.status in (OverallStatus.FAILED, OverallStatus.ERROR):
                return step
        return None

    def record_error(self, exc: BaseException) -> None:
        if isinstance(exc, ConvergeError):
            self.error = exc.to_dict()
        else:
            self.error = {
                "error_type": type(exc).__name__,
                "message": str(exc),
                "category": categorize_error(exc).value,
            }
        self.overall_status = classify_failure(exc)

    def mark_complete(self, status: OverallStatus | None = None) -> None:
        """Finalise timestamps, duration, status and summary."""
        self.completed_at = _now()
        start = datetime.fromisoformat(self.started_at)
        end = datetime.fromisoformat(self.completed_at)
        self.duration_seconds = (end - start).total_seconds()

        if status:
            self.overall_status = status
        elif self.error is None and self.overall_status in (
            OverallStatus.PENDING,
            OverallStatus.RUNNING,
        ):
            failed = self.failed_step
            self.overall_status = failed.status if failed else OverallStatus.PASSED

        passed = sum(1 for s in self.steps if s.status == OverallStatus.PASSED)
        self.summary = f"{passed}/{len(self.steps)} steps passed"
        failed = self.failed_step
        if failed is not None:
            self.summary += f"; failed at {failed.name}"


__all__ = ["OverallStatus", "ScenarioResult", "StepResult", "classify_failure"]
