"""Scenario runner.

Resolves a scenario by name, prepares a namespace and a :class:`Deployment`,
runs the scenario under a bound logging context and returns a
:class:`ScenarioResult`. A failed scenario skips teardown so the cluster
state can be inspected; ``keep=True`` skips it unconditionally.

Example::

    runner = ScenarioRunner(get_settings())
    result = runner.run("standalone-scale-up")
    print(result.model_dump_json(indent=2))
"""

from __future__ import annotations

import time
import uuid

from converge.cluster.aggregator import Aggregator, KubectlAggregator
from converge.cluster.control_plane import ControlPlane, KubectlControlPlane
from converge.cluster.kubectl import Kubectl
from converge.core.errors import ConvergeError
from converge.core.logging import LogContext, get_logger
from converge.core.settings import ConvergeSettings
from converge.polling.poller import Clock, Sleep
from converge.scenarios.catalog import get_scenario
from converge.scenarios.deployment import Deployment, random_dns_name
from converge.scenarios.harness import ConvergenceHarness
from converge.scenarios.results import OverallStatus, ScenarioResult

logger = get_logger(__name__)


class ScenarioRunner:
    """Runs registered scenarios against a cluster.

    Parameters
    ----------
    settings
        Harness settings.
    control_plane, aggregator
        Cluster clients; kubectl-backed ones are built from ``settings``
        when omitted.
    kubectl
        Used for namespace lifecycle when the runner generates a namespace.
        ``None`` disables namespace creation and deletion.
    """

    def __init__(
        self,
        settings: ConvergeSettings,
        control_plane: ControlPlane | None = None,
        aggregator: Aggregator | None = None,
        *,
        kubectl: Kubectl | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = time.sleep,
    ) -> None:
        self.settings = settings
        self.control_plane = control_plane or KubectlControlPlane.from_settings(settings)
        self.aggregator = aggregator or KubectlAggregator.from_settings(settings)
        self.kubectl = kubectl
        self._clock = clock
        self._sleep = sleep

    def run(
        self,
        name: str,
        *,
        namespace: str | None = None,
        keep: bool | None = None,
    ) -> ScenarioResult:
        """Run one scenario to completion.

        Raises:
            ScenarioNotFoundError: If ``name`` is not registered.
        """
        scenario = get_scenario(name)
        run_id = uuid.uuid4().hex[:12]
        base_name = random_dns_name(3)
        namespace = namespace or self.settings.namespace
        generated = namespace is None
        if namespace is None:
            namespace = f"converge-{base_name}"
        keep = self.settings.skip_teardown if keep is None else keep

        result = ScenarioResult(scenario=name, run_id=run_id, namespace=namespace)
        result.overall_status = OverallStatus.RUNNING

        with LogContext(scenario=name, namespace=namespace, run_id=run_id):
            logger.info("scenario.started", deployment=base_name)
            deployment = Deployment(
                base_name, namespace, self.control_plane, self.aggregator
            )
            harness = ConvergenceHarness.from_settings(
                self.settings,
                self.control_plane,
                self.aggregator,
                result=result,
                clock=self._clock,
                sleep=self._sleep,
            )

            try:
                if generated and self.kubectl is not None:
                    self.kubectl.create_namespace(namespace)
                scenario(harness, deployment)
            except Exception as e:
                result.record_error(e)
                logger.error(
                    "scenario.failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
            finally:
                result.resources = [r.ref for r in deployment.resources]
                if keep or result.error is not None:
                    result.teardown = False
                    logger.info("teardown.skipped", keep=keep, failed=result.error is not None)
                else:
                    self._teardown(deployment, namespace if generated else None)
                result.mark_complete()

            logger.info(
                "scenario.complete",
                status=result.overall_status.value,
                summary=result.summary,
                duration=round(result.duration_seconds, 2),
            )
        return result

    def _teardown(self, deployment: Deployment, namespace: str | None) -> None:
        deployment.teardown()
        if namespace is not None and self.kubectl is not None:
            try:
                self.kubectl.delete_namespace(namespace)
            except ConvergeError as e:
                logger.warning("teardown.namespace_failed", error=str(e))


__all__ = ["ScenarioRunner"]
