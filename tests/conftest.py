"""
Shared pytest fixtures for converge tests.

This module provides:
- ``FakeClock``: deterministic clock/sleep pair for the wait primitives
- ``ScriptedProbe``: probe that replays a fixed sequence of readings
- ``FakeCluster``: in-memory control plane and aggregator

Usage:
    def test_something(clock, fake_cluster):
        harness = ConvergenceHarness(
            fake_cluster.control_plane, fake_cluster.aggregator, ...,
            clock=clock, sleep=clock.sleep,
        )
"""

from __future__ import annotations

from typing import Any, Generator

import pytest
import structlog

from converge.cluster.phase import Phase
from converge.cluster.resources import Resource
from converge.core.errors import TransientFetchError
from converge.core.settings import ConvergeSettings, clear_settings_cache


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test not tagged ``cluster`` as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if "cluster" not in markers:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Clear cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any logging configuration a test applied."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Time
# =============================================================================


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class ScriptedProbe:
    """Returns readings in order; the last one repeats forever."""

    def __init__(self, readings: list[Any], description: str = "scripted") -> None:
        self.readings = list(readings)
        self.description = description
        self.calls = 0

    def sample(self) -> Any:
        index = min(self.calls, len(self.readings) - 1)
        self.calls += 1
        return self.readings[index]


# =============================================================================
# Cluster
# =============================================================================


def _next(script: list[Any]) -> Any:
    return script.pop(0) if len(script) > 1 else script[0]


class FakeCluster:
    """Shared in-memory cluster state behind a fake control plane and aggregator.

    Phase reads replay a per-resource script (last entry sticky). Deploy
    installs ``deploy_script`` and scale installs ``scale_script``; a script
    set with :meth:`script` before deploy wins. Aggregator peers are derived
    from the deployed resources unless ``peer_override`` is set.
    """

    def __init__(self, prefix: str = "splunk") -> None:
        self.prefix = prefix
        self.resources: dict[str, Resource] = {}
        self.phase_scripts: dict[str, list[Phase]] = {}
        self.deploy_script = [Phase.PENDING, Phase.PENDING, Phase.READY]
        self.scale_script = [Phase.READY, Phase.SCALING_UP, Phase.SCALING_UP, Phase.READY]
        self.instance_counts: list[int] = [1]
        self.readiness: list[bool] = [True]
        self.peer_override: list[str] | None = None
        self.phase_failures = 0
        self.deleted: list[str] = []
        self.aggregator_deleted: list[str] = []
        self.control_plane = FakeControlPlane(self)
        self.aggregator = FakeAggregator(self)

    @staticmethod
    def key(resource: Resource) -> str:
        return f"{resource.kind.value}/{resource.name}"

    def script(self, key: str, phases: list[Phase]) -> None:
        self.phase_scripts[key] = list(phases)


class FakeControlPlane:
    def __init__(self, cluster: FakeCluster) -> None:
        self.cluster = cluster

    def deploy(self, resource: Resource) -> None:
        key = self.cluster.key(resource)
        self.cluster.resources[key] = resource
        self.cluster.phase_scripts.setdefault(key, list(self.cluster.deploy_script))

    def get_instance_phase(self, resource: Resource) -> Phase:
        if self.cluster.phase_failures:
            self.cluster.phase_failures -= 1
            raise TransientFetchError("phase read failed")
        key = self.cluster.key(resource)
        if key not in self.cluster.resources:
            raise TransientFetchError(f"{key} not found")
        return _next(self.cluster.phase_scripts[key])

    def scale_resource(self, resource: Resource, replicas: int) -> Resource:
        scaled = resource.with_replicas(replicas)
        key = self.cluster.key(scaled)
        self.cluster.resources[key] = scaled
        self.cluster.phase_scripts[key] = list(self.cluster.scale_script)
        return scaled

    def delete(self, resource: Resource) -> None:
        key = self.cluster.key(resource)
        self.cluster.resources.pop(key, None)
        self.cluster.deleted.append(key)


class FakeAggregator:
    def __init__(self, cluster: FakeCluster) -> None:
        self.cluster = cluster

    def count_instances(self, namespace: str) -> int:
        return _next(self.cluster.instance_counts)

    def is_ready(self, namespace: str) -> bool:
        return _next(self.cluster.readiness)

    def read_peer_list(self, namespace: str) -> list[str]:
        if self.cluster.peer_override is not None:
            return list(self.cluster.peer_override)
        return [
            f"{token}.{namespace}.svc.cluster.local:8089"
            for resource in self.cluster.resources.values()
            if resource.namespace == namespace
            for token in resource.expected_tokens(self.cluster.prefix)
        ]

    def delete(self, namespace: str) -> None:
        self.cluster.aggregator_deleted.append(namespace)

    def dump_pods(self, namespace: str) -> str:
        return "NAME  READY  STATUS  RESTARTS  AGE\n"


@pytest.fixture
def scripted() -> type[ScriptedProbe]:
    """The :class:`ScriptedProbe` factory."""
    return ScriptedProbe


@pytest.fixture
def fake_cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def settings() -> ConvergeSettings:
    """Small budgets that the fake clock walks through instantly."""
    return ConvergeSettings(
        deploy_timeout_seconds=60,
        poll_interval_seconds=5,
        consistent_duration_seconds=2,
        consistent_interval_seconds=0.5,
        namespace="ns-test",
        trace_pods=False,
        skip_teardown=False,
    )
