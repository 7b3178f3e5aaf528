"""Tests for converge.scenarios.runner.

Every scenario runs end to end against the in-memory cluster with a fake
clock, so the full deploy/scale/converge/teardown path executes in
milliseconds.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from converge.cluster.kubectl import Kubectl
from converge.core.errors import CommandError, ScenarioNotFoundError
from converge.core.settings import ConvergeSettings
from converge.scenarios.catalog import list_scenarios
from converge.scenarios.results import OverallStatus
from converge.scenarios.runner import ScenarioRunner

SCENARIO_NAMES = [s.name for s in list_scenarios()]


@pytest.fixture
def runner(settings, fake_cluster, clock) -> ScenarioRunner:
    return ScenarioRunner(
        settings,
        fake_cluster.control_plane,
        fake_cluster.aggregator,
        clock=clock,
        sleep=clock.sleep,
    )


class TestScenarioRunner:
    @pytest.mark.parametrize("name", SCENARIO_NAMES)
    def test_scenario_passes(self, runner, name):
        result = runner.run(name)
        assert result.overall_status == OverallStatus.PASSED, result.summary
        assert result.error is None
        assert result.namespace == "ns-test"
        assert result.steps
        assert result.summary == f"{len(result.steps)}/{len(result.steps)} steps passed"

    def test_teardown_after_success(self, runner, fake_cluster):
        result = runner.run("standalone-pair")
        assert result.teardown is True
        base = result.resources[0].split("/", 1)[1]
        assert fake_cluster.deleted == [f"Standalone/{base}-two", f"Standalone/{base}"]
        assert fake_cluster.aggregator_deleted == ["ns-test"]
        assert fake_cluster.resources == {}

    def test_records_resources(self, runner):
        result = runner.run("search-head-cluster-and-standalone")
        kinds = [ref.split("/", 1)[0] for ref in result.resources]
        assert kinds == ["shc", "standalone"]

    def test_keep_skips_teardown(self, runner, fake_cluster):
        result = runner.run("standalone-scale-up", keep=True)
        assert result.passed
        assert result.teardown is False
        assert fake_cluster.deleted == []

    def test_skip_teardown_setting(self, settings, fake_cluster, clock):
        settings = settings.model_copy(update={"skip_teardown": True})
        runner = ScenarioRunner(
            settings, fake_cluster.control_plane, fake_cluster.aggregator,
            clock=clock, sleep=clock.sleep,
        )
        assert runner.run("standalone-pair").teardown is False
        assert fake_cluster.deleted == []

    def test_aggregator_never_ready_fails(self, runner, fake_cluster):
        fake_cluster.readiness = [False]
        result = runner.run("standalone-pair")

        assert result.overall_status == OverallStatus.FAILED
        assert result.error["category"] == "CONVERGENCE"
        assert result.failed_step.name == "await aggregator ready"
        assert "failed at await aggregator ready" in result.summary
        assert result.teardown is False
        assert fake_cluster.deleted == []

    def test_membership_mismatch_fails(self, runner, fake_cluster):
        fake_cluster.peer_override = []
        result = runner.run("standalone-scale-up")
        assert result.overall_status == OverallStatus.FAILED
        assert result.error["category"] == "MEMBERSHIP"
        assert result.failed_step.name.startswith("verify aggregator peers")

    def test_mutation_failure_is_error(self, runner, fake_cluster, monkeypatch):
        def refuse(resource):
            raise CommandError("kubectl failed (exit 1): apply", returncode=1)

        monkeypatch.setattr(fake_cluster.control_plane, "deploy", refuse)
        result = runner.run("standalone-pair")
        assert result.overall_status == OverallStatus.ERROR
        assert result.error["error_type"] == "CommandError"
        assert result.steps == []
        assert result.resources == []

    def test_unknown_scenario(self, runner):
        with pytest.raises(ScenarioNotFoundError):
            runner.run("no-such-scenario")

    def test_explicit_namespace_wins(self, runner):
        assert runner.run("standalone-pair", namespace="ns-other").namespace == "ns-other"


class TestGeneratedNamespace:
    @pytest.fixture
    def settings(self) -> ConvergeSettings:
        return ConvergeSettings(
            deploy_timeout_seconds=60,
            poll_interval_seconds=5,
            consistent_duration_seconds=2,
            consistent_interval_seconds=0.5,
            namespace=None,
            trace_pods=False,
            skip_teardown=False,
            _env_file=None,
        )

    def test_generated_name(self, runner):
        result = runner.run("standalone-pair")
        assert result.passed
        assert result.namespace.startswith("converge-")

    def test_namespace_lifecycle(self, settings, fake_cluster, clock):
        kubectl = MagicMock(spec=Kubectl)
        runner = ScenarioRunner(
            settings, fake_cluster.control_plane, fake_cluster.aggregator,
            kubectl=kubectl, clock=clock, sleep=clock.sleep,
        )
        result = runner.run("standalone-pair")
        kubectl.create_namespace.assert_called_once_with(result.namespace)
        kubectl.delete_namespace.assert_called_once_with(result.namespace)

    def test_namespace_kept_on_failure(self, settings, fake_cluster, clock):
        fake_cluster.readiness = [False]
        kubectl = MagicMock(spec=Kubectl)
        runner = ScenarioRunner(
            settings, fake_cluster.control_plane, fake_cluster.aggregator,
            kubectl=kubectl, clock=clock, sleep=clock.sleep,
        )
        runner.run("standalone-pair")
        kubectl.create_namespace.assert_called_once()
        kubectl.delete_namespace.assert_not_called()
