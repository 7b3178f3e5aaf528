"""
Cluster-backed probes.

Each factory binds an immutable identifier (a resource or a namespace) to
a client read and wraps it in a :class:`FoldingProbe` with the sentinel
for its type:

=========================  =========  =========================
probe                      type       sentinel on fetch failure
=========================  =========  =========================
``phase_probe``            ``Phase``  ``Phase.ERROR``
``instance_count_probe``   ``int``    ``0``
``readiness_probe``        ``bool``   ``False``
=========================  =========  =========================
"""

from __future__ import annotations

from collections.abc import Callable

from converge.cluster.aggregator import Aggregator
from converge.cluster.control_plane import ControlPlane
from converge.cluster.phase import Phase
from converge.cluster.resources import Resource
from converge.core.errors import TransientFetchError
from converge.core.logging import get_logger
from converge.polling.probes import FoldingProbe

logger = get_logger(__name__)


def pod_tracer(aggregator: Aggregator, namespace: str) -> Callable[[], None]:
    """Callable that logs the namespace pod table at DEBUG."""

    def trace() -> None:
        try:
            table = aggregator.dump_pods(namespace)
        except TransientFetchError as exc:
            logger.debug("pods.dump_failed", namespace=namespace, error=str(exc))
            return
        logger.debug("pods.dump", namespace=namespace, pods=table)

    return trace


def phase_probe(
    control_plane: ControlPlane,
    resource: Resource,
    *,
    trace: Callable[[], None] | None = None,
) -> FoldingProbe[Phase]:
    def fetch() -> Phase:
        phase = control_plane.get_instance_phase(resource)
        logger.debug("phase.sampled", resource=resource.ref, phase=phase.value)
        if trace is not None:
            trace()
        return phase

    return FoldingProbe(
        fetch=fetch,
        fallback=Phase.ERROR,
        description=f"{resource.ref} phase",
    )


def instance_count_probe(aggregator: Aggregator, namespace: str) -> FoldingProbe[int]:
    return FoldingProbe(
        fetch=lambda: aggregator.count_instances(namespace),
        fallback=0,
        description=f"aggregator instances in {namespace}",
    )


def readiness_probe(aggregator: Aggregator, namespace: str) -> FoldingProbe[bool]:
    return FoldingProbe(
        fetch=lambda: aggregator.is_ready(namespace),
        fallback=False,
        description=f"aggregator readiness in {namespace}",
    )


__all__ = ["instance_count_probe", "phase_probe", "pod_tracer", "readiness_probe"]
