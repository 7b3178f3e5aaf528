"""
Scenario registry and the monitoring-console scenarios.

A scenario is a function ``(harness, deployment) -> None`` that performs
mutations through the :class:`Deployment` and proves convergence after
each one through the :class:`ConvergenceHarness`. Register new ones with
the :func:`scenario` decorator::

    @scenario("my-scenario", "Deploy X, expect Y")
    def my_scenario(harness: ConvergenceHarness, deployment: Deployment) -> None:
        ...

Standalone scenarios reconcile peers strictly (the peer count must equal
the number of expected members). Search head cluster scenarios only
require every expected member to be present, because the aggregator may
list cluster support roles alongside the search heads.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from converge.core.errors import ScenarioError, ScenarioNotFoundError
from converge.scenarios.deployment import Deployment
from converge.scenarios.harness import ConvergenceHarness

ScenarioFunc = Callable[[ConvergenceHarness, Deployment], None]


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str
    func: ScenarioFunc

    def __call__(self, harness: ConvergenceHarness, deployment: Deployment) -> None:
        self.func(harness, deployment)


_REGISTRY: dict[str, Scenario] = {}


def scenario(name: str, description: str) -> Callable[[ScenarioFunc], ScenarioFunc]:
    """Register the decorated function under ``name``."""

    def decorator(func: ScenarioFunc) -> ScenarioFunc:
        if name in _REGISTRY:
            raise ScenarioError(f"Scenario already registered: {name}")
        _REGISTRY[name] = Scenario(name=name, description=description, func=func)
        return func

    return decorator


def get_scenario(name: str) -> Scenario:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise ScenarioNotFoundError(name) from None


def list_scenarios() -> list[Scenario]:
    return sorted(_REGISTRY.values(), key=lambda s: s.name)


# ---------------------------------------------------------------------------
# Monitoring console scenarios
# ---------------------------------------------------------------------------


@scenario(
    "standalone-pair",
    "Deploy a standalone, then a second one; the aggregator tracks both",
)
def standalone_pair(harness: ConvergenceHarness, deployment: Deployment) -> None:
    first = deployment.deploy_standalone(deployment.name)
    harness.converge(first, [first])

    second = deployment.deploy_standalone(f"{deployment.name}-two")
    harness.converge(second, [first, second])


@scenario(
    "standalone-scale-up",
    "Deploy a standalone, scale it to 2 replicas; the aggregator tracks both",
)
def standalone_scale_up(harness: ConvergenceHarness, deployment: Deployment) -> None:
    standalone = deployment.deploy_standalone(deployment.name)
    harness.converge(standalone, [standalone])

    standalone = deployment.scale(standalone, 2)
    harness.converge_scale_up(standalone, [standalone])


@scenario(
    "search-head-cluster-scale-up",
    "Deploy a search head cluster, scale it from 3 to 4 members",
)
def search_head_cluster_scale_up(
    harness: ConvergenceHarness, deployment: Deployment
) -> None:
    shc = deployment.deploy_search_head_cluster(deployment.name)
    harness.converge(shc, [shc], strict=False)

    shc = deployment.scale(shc, 4)
    harness.converge_scale_up(shc, [shc], strict=False)


@scenario(
    "search-head-cluster-and-standalone",
    "Deploy a search head cluster, then a standalone; the aggregator tracks all",
)
def search_head_cluster_and_standalone(
    harness: ConvergenceHarness, deployment: Deployment
) -> None:
    shc = deployment.deploy_search_head_cluster(deployment.name)
    harness.converge(shc, [shc], strict=False)

    standalone = deployment.deploy_standalone(deployment.name)
    harness.converge(standalone, [shc, standalone], strict=False)


__all__ = ["Scenario", "get_scenario", "list_scenarios", "scenario"]
