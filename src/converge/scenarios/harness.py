"""
Convergence harness: the wait/hold/reconcile sequence scenarios run after
every mutation.

::

    mutate (deploy / scale)
      │
      ▼
    await_phase(Ready) ──► hold_phase(Ready) ──► await_aggregator()
                                                   │  count == 1
                                                   │  ready == True
                                                   ▼
                                             verify_membership()

Every call is recorded as a :class:`StepResult` on the bound
:class:`ScenarioResult`. Terminal errors are recorded on the step and then
propagate unchanged; the harness never retries past them.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from converge.cluster.aggregator import Aggregator
from converge.cluster.control_plane import ControlPlane
from converge.cluster.phase import Phase, PhaseTracker
from converge.cluster.probes import (
    instance_count_probe,
    phase_probe,
    pod_tracer,
    readiness_probe,
)
from converge.cluster.resources import Resource, expected_membership
from converge.core.logging import get_logger
from converge.core.settings import ConvergeSettings
from converge.membership.reconciler import MembershipReport, reconcile
from converge.polling.poller import Clock, Poller, PollResult, Sleep
from converge.polling.spec import PollSpec
from converge.polling.stability import StabilityReport, StabilityVerifier
from converge.scenarios.results import OverallStatus, ScenarioResult, StepResult

logger = get_logger(__name__)


class ConvergenceHarness:
    """Runs the post-mutation convergence checks for one namespace.

    Parameters
    ----------
    control_plane, aggregator
        Cluster clients.
    poll_spec
        Budget for every phase, count and readiness wait.
    stability_spec
        Hold window for steady-state checks.
    prefix
        Product prefix used to derive expected peer tokens.
    trace_pods
        Log the namespace pod table on every phase sample.
    result
        Scenario result that steps are appended to.
    """

    def __init__(
        self,
        control_plane: ControlPlane,
        aggregator: Aggregator,
        *,
        poll_spec: PollSpec,
        stability_spec: PollSpec,
        prefix: str = "splunk",
        trace_pods: bool = False,
        result: ScenarioResult | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = time.sleep,
    ) -> None:
        self.control_plane = control_plane
        self.aggregator = aggregator
        self.prefix = prefix
        self.trace_pods = trace_pods
        self.result = result
        self.poller = Poller(poll_spec, clock=clock, sleep=sleep)
        self.verifier = StabilityVerifier(stability_spec, clock=clock, sleep=sleep)

    @classmethod
    def from_settings(
        cls,
        settings: ConvergeSettings,
        control_plane: ControlPlane,
        aggregator: Aggregator,
        **kwargs: Any,
    ) -> ConvergenceHarness:
        return cls(
            control_plane,
            aggregator,
            poll_spec=settings.poll_spec(),
            stability_spec=settings.stability_spec(),
            prefix=settings.product_prefix,
            trace_pods=settings.trace_pods,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Step recording
    # ------------------------------------------------------------------

    @contextmanager
    def step(self, name: str) -> Iterator[StepResult]:
        """Record the enclosed block as one step of the scenario result."""
        step = StepResult(name=name)
        if self.result is not None:
            self.result.steps.append(step)
        logger.info("step.started", step=name)
        try:
            yield step
        except Exception as exc:
            step.fail(exc)
            logger.error("step.failed", step=name, error=str(exc))
            raise
        if step.status == OverallStatus.RUNNING:
            step.finish(OverallStatus.PASSED)
        logger.info("step.passed", step=name, duration=step.duration_seconds)

    # ------------------------------------------------------------------
    # Phase checks
    # ------------------------------------------------------------------

    def tracker(self, resource: Resource, *, strict: bool = False) -> PhaseTracker:
        """Phase probe for ``resource`` that records observed phases."""
        trace = pod_tracer(self.aggregator, resource.namespace) if self.trace_pods else None
        probe = phase_probe(self.control_plane, resource, trace=trace)
        return PhaseTracker(probe, strict=strict)

    def await_phase(
        self,
        target: Resource | PhaseTracker,
        phase: Phase = Phase.READY,
    ) -> PollResult[Phase]:
        tracker = target if isinstance(target, PhaseTracker) else self.tracker(target)
        with self.step(f"await {tracker.description} == {phase.value}") as step:
            outcome = self.poller.wait_until(tracker, phase)
            step.attempts = outcome.attempts
            step.observed = outcome.value.value
            step.detail["phases"] = [p.value for p in tracker.history]
        return outcome

    def hold_phase(
        self,
        target: Resource | PhaseTracker,
        phase: Phase = Phase.READY,
    ) -> StabilityReport[Phase]:
        tracker = target if isinstance(target, PhaseTracker) else self.tracker(target)
        with self.step(f"hold {tracker.description} == {phase.value}") as step:
            report = self.verifier.assert_stable(tracker, phase)
            step.attempts = report.samples
            step.observed = report.value.value
        return report

    # ------------------------------------------------------------------
    # Aggregator checks
    # ------------------------------------------------------------------

    def await_aggregator(self, namespace: str, instances: int = 1) -> None:
        """Wait for exactly ``instances`` aggregator pods, then readiness.

        The count wait is best-effort with respect to pod replacement: a
        transient 0 or 2 during a rollout simply reads as "not yet".
        """
        with self.step(f"await aggregator instances == {instances}") as step:
            outcome = self.poller.wait_until(
                instance_count_probe(self.aggregator, namespace), instances
            )
            step.attempts = outcome.attempts
            step.observed = str(outcome.value)

        with self.step("await aggregator ready") as step:
            outcome = self.poller.wait_until(
                readiness_probe(self.aggregator, namespace), True
            )
            step.attempts = outcome.attempts
            step.observed = str(outcome.value)

    def verify_membership(
        self,
        namespace: str,
        resources: Iterable[Resource],
        *,
        strict: bool = True,
    ) -> MembershipReport:
        """Read the aggregator's peers once and reconcile them."""
        resources = list(resources)
        expected = expected_membership(resources, self.prefix)
        with self.step(f"verify aggregator peers ({len(expected)} expected)") as step:
            actual = self.aggregator.read_peer_list(namespace)
            step.detail["expected"] = sorted(expected)
            step.detail["actual"] = list(actual)
            report = reconcile(actual, expected, strict=strict)
            step.observed = f"{len(report.matches)}/{len(expected)} matched"
        return report

    # ------------------------------------------------------------------
    # Composite cycles
    # ------------------------------------------------------------------

    def converge(
        self,
        resource: Resource,
        members: Iterable[Resource],
        *,
        strict: bool = True,
    ) -> MembershipReport:
        """Full cycle after deploying ``resource``."""
        tracker = self.tracker(resource)
        self.await_phase(tracker, Phase.READY)
        self.hold_phase(tracker, Phase.READY)
        self.await_aggregator(resource.namespace)
        return self.verify_membership(resource.namespace, members, strict=strict)

    def converge_scale_up(
        self,
        resource: Resource,
        members: Iterable[Resource],
        *,
        strict: bool = True,
    ) -> MembershipReport:
        """Full cycle after scaling ``resource`` up.

        ``ScalingUp`` must be observed before the final ``Ready``.
        """
        tracker = self.tracker(resource, strict=True)
        self.await_phase(tracker, Phase.SCALING_UP)
        self.await_phase(tracker, Phase.READY)
        self.hold_phase(tracker, Phase.READY)
        self.await_aggregator(resource.namespace)
        return self.verify_membership(resource.namespace, members, strict=strict)


__all__ = ["ConvergenceHarness"]
