"""Cluster model and clients: phases, resources, kubectl, control plane, aggregator."""

from converge.cluster.aggregator import Aggregator, KubectlAggregator
from converge.cluster.control_plane import ControlPlane, KubectlControlPlane
from converge.cluster.kubectl import Kubectl
from converge.cluster.phase import (
    PHASE_VALID_TRANSITIONS,
    Phase,
    PhaseTracker,
    validate_phase_transition,
)
from converge.cluster.probes import instance_count_probe, phase_probe, readiness_probe
from converge.cluster.resources import Resource, ResourceKind, expected_membership

__all__ = [
    "Aggregator",
    "ControlPlane",
    "Kubectl",
    "KubectlAggregator",
    "KubectlControlPlane",
    "PHASE_VALID_TRANSITIONS",
    "Phase",
    "PhaseTracker",
    "Resource",
    "ResourceKind",
    "expected_membership",
    "instance_count_probe",
    "phase_probe",
    "readiness_probe",
    "validate_phase_transition",
]
