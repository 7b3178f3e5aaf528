"""
Per-scenario deployment bookkeeping.

A :class:`Deployment` owns a random base name and every custom resource a
scenario creates through it, so teardown can remove exactly those
resources (and the aggregator deployment the operator created for them).
"""

from __future__ import annotations

import random
import string

from converge.cluster.aggregator import Aggregator
from converge.cluster.control_plane import ControlPlane
from converge.cluster.resources import Resource, ResourceKind
from converge.core.errors import ConvergeError
from converge.core.logging import get_logger

logger = get_logger(__name__)


def random_dns_name(length: int = 3) -> str:
    """Random DNS-1123 label: lowercase letters and digits, letter first."""
    if length < 1:
        raise ValueError("length must be >= 1")
    first = random.choice(string.ascii_lowercase)
    rest = random.choices(string.ascii_lowercase + string.digits, k=length - 1)
    return first + "".join(rest)


class Deployment:
    """Resources created by one scenario run in one namespace.

    Parameters
    ----------
    name
        Base name; the first resource of each scenario is named after it.
    namespace
        Namespace every resource is created in.
    control_plane, aggregator
        Cluster clients.
    """

    def __init__(
        self,
        name: str,
        namespace: str,
        control_plane: ControlPlane,
        aggregator: Aggregator,
    ) -> None:
        self.name = name
        self.namespace = namespace
        self.control_plane = control_plane
        self.aggregator = aggregator
        self._resources: dict[str, Resource] = {}

    @property
    def resources(self) -> list[Resource]:
        """Tracked resources in creation order, at their current replica count."""
        return list(self._resources.values())

    def _key(self, resource: Resource) -> str:
        return f"{resource.kind.value}/{resource.name}"

    def deploy(self, kind: ResourceKind, name: str | None = None, replicas: int = 0) -> Resource:
        resource = Resource(
            name=name or self.name,
            namespace=self.namespace,
            kind=kind,
            replicas=replicas,
        )
        self.control_plane.deploy(resource)
        self._resources[self._key(resource)] = resource
        return resource

    def deploy_standalone(self, name: str | None = None, replicas: int = 1) -> Resource:
        return self.deploy(ResourceKind.STANDALONE, name, replicas)

    def deploy_search_head_cluster(
        self, name: str | None = None, replicas: int = 3
    ) -> Resource:
        return self.deploy(ResourceKind.SEARCH_HEAD_CLUSTER, name, replicas)

    def scale(self, resource: Resource, replicas: int) -> Resource:
        scaled = self.control_plane.scale_resource(resource, replicas)
        self._resources[self._key(scaled)] = scaled
        return scaled

    def teardown(self) -> None:
        """Delete tracked resources (newest first), then the aggregator.

        Individual delete failures are logged and do not stop the rest of
        the teardown.
        """
        for resource in reversed(self.resources):
            try:
                self.control_plane.delete(resource)
            except ConvergeError as exc:
                logger.warning(
                    "teardown.failed", resource=resource.ref, error=str(exc)
                )
        self._resources.clear()

        try:
            self.aggregator.delete(self.namespace)
        except ConvergeError as exc:
            logger.warning("teardown.aggregator_failed", error=str(exc))


__all__ = ["Deployment", "random_dns_name"]
