"""Tests for the folding cluster probes."""

from __future__ import annotations

import pytest

from converge.cluster.phase import Phase, PhaseTracker
from converge.cluster.probes import (
    instance_count_probe,
    phase_probe,
    pod_tracer,
    readiness_probe,
)
from converge.cluster.resources import Resource, ResourceKind
from converge.core.errors import CommandError, ConvergenceTimeout
from converge.polling.poller import wait_until
from converge.polling.spec import PollSpec


class _FailingAggregator:
    def count_instances(self, namespace):
        raise CommandError("kubectl failed")

    def is_ready(self, namespace):
        raise CommandError("kubectl failed")

    def dump_pods(self, namespace):
        raise CommandError("kubectl failed")


class TestPhaseProbe:
    def test_reads_phase(self, fake_cluster):
        resource = Resource("foo", "ns", ResourceKind.STANDALONE)
        fake_cluster.control_plane.deploy(resource)
        fake_cluster.script(fake_cluster.key(resource), [Phase.READY])
        probe = phase_probe(fake_cluster.control_plane, resource)
        assert probe.sample() is Phase.READY
        assert probe.description == "standalone/foo phase"

    def test_missing_resource_folds_to_error(self, fake_cluster):
        probe = phase_probe(
            fake_cluster.control_plane, Resource("ghost", "ns", ResourceKind.STANDALONE)
        )
        assert probe.sample() is Phase.ERROR

    def test_wait_survives_transient_failures(self, fake_cluster, clock):
        resource = Resource("foo", "ns", ResourceKind.STANDALONE)
        fake_cluster.control_plane.deploy(resource)
        fake_cluster.phase_failures = 2
        probe = phase_probe(fake_cluster.control_plane, resource)

        result = wait_until(
            probe, Phase.READY, PollSpec(timeout=60, interval=5), clock=clock, sleep=clock.sleep
        )
        assert result.value is Phase.READY
        # two folded failures, then Pending, Pending, Ready
        assert result.attempts == 5

    def test_trace_called_after_each_read(self, fake_cluster):
        resource = Resource("foo", "ns", ResourceKind.STANDALONE)
        fake_cluster.control_plane.deploy(resource)
        calls = []
        probe = phase_probe(fake_cluster.control_plane, resource, trace=lambda: calls.append(1))
        probe.sample()
        probe.sample()
        assert len(calls) == 2

    def test_strict_tracker_tolerates_failed_read_while_terminating(self, fake_cluster, clock):
        resource = Resource("foo", "ns", ResourceKind.STANDALONE)
        fake_cluster.control_plane.deploy(resource)
        fake_cluster.script(fake_cluster.key(resource), [Phase.TERMINATING])
        tracker = PhaseTracker(phase_probe(fake_cluster.control_plane, resource), strict=True)

        assert tracker.sample() is Phase.TERMINATING
        # deletion completes; every later read fails and folds to Error
        del fake_cluster.resources[fake_cluster.key(resource)]

        with pytest.raises(ConvergenceTimeout) as exc_info:
            wait_until(
                tracker, Phase.READY, PollSpec(timeout=10, interval=5),
                clock=clock, sleep=clock.sleep,
            )
        assert exc_info.value.last_observed is Phase.ERROR
        assert tracker.history == (Phase.TERMINATING, Phase.ERROR)


class TestAggregatorProbes:
    def test_count_folds_to_zero(self):
        assert instance_count_probe(_FailingAggregator(), "ns").sample() == 0

    def test_readiness_folds_to_false(self):
        assert readiness_probe(_FailingAggregator(), "ns").sample() is False

    def test_count_reads_through(self, fake_cluster):
        fake_cluster.instance_counts = [2]
        assert instance_count_probe(fake_cluster.aggregator, "ns").sample() == 2

    def test_tracer_swallows_transient_failure(self):
        pod_tracer(_FailingAggregator(), "ns")()
