"""
Monitoring-aggregator client.

The aggregator (the monitoring console) runs as its own pod in each
namespace and records the peers it tracks in a conf file inside that pod.
Everything here is read from two places:

- the ``kubectl get pods -n NS`` table, where any row containing the
  aggregator match string is an aggregator pod;
- the assets conf file, read with ``kubectl exec ... cat``.

Readiness follows the pod table columns: READY must contain ``1/1`` and
STATUS must contain ``Running``. Only the first aggregator row counts, so
during a replacement the old pod's state is what gets reported until it
disappears from the table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from converge.cluster.kubectl import Kubectl
from converge.core.logging import get_logger
from converge.core.settings import ConvergeSettings
from converge.membership.parser import parse_peer_artifact

logger = get_logger(__name__)


class Aggregator(Protocol):
    """Operations the harness needs from the monitoring aggregator."""

    def count_instances(self, namespace: str) -> int: ...

    def is_ready(self, namespace: str) -> bool: ...

    def read_peer_list(self, namespace: str) -> list[str]: ...

    def delete(self, namespace: str) -> None: ...

    def dump_pods(self, namespace: str) -> str: ...


@dataclass(frozen=True)
class PodRow:
    """One row of the ``kubectl get pods`` table."""

    name: str
    ready: str
    status: str

    @property
    def is_ready(self) -> bool:
        return "1/1" in self.ready and "Running" in self.status


def parse_pod_table(text: str, match: str) -> list[PodRow]:
    """Rows of a pod table whose line contains ``match``, in table order."""
    rows = []
    for line in text.splitlines():
        if match not in line:
            continue
        fields = line.split()
        if len(fields) < 3:
            continue
        rows.append(PodRow(name=fields[0], ready=fields[1], status=fields[2]))
    return rows


class KubectlAggregator:
    """:class:`Aggregator` backed by the ``kubectl`` binary.

    All reads may raise :class:`~converge.core.errors.CommandError`.
    """

    def __init__(
        self,
        kubectl: Kubectl,
        *,
        match: str = "monitoring-console",
        deployment: str = "splunk-default-monitoring-console",
        peer_file: str,
        peer_key: str = "configuredPeers",
    ) -> None:
        self.kubectl = kubectl
        self.match = match
        self.deployment = deployment
        self.peer_file = peer_file
        self.peer_key = peer_key

    @classmethod
    def from_settings(cls, settings: ConvergeSettings) -> KubectlAggregator:
        return cls(
            Kubectl.from_settings(settings),
            match=settings.aggregator_match,
            deployment=settings.aggregator_deployment,
            peer_file=settings.peer_file,
            peer_key=settings.peer_key,
        )

    def pods(self, namespace: str) -> list[PodRow]:
        return parse_pod_table(self.kubectl.get_pods(namespace), self.match)

    def count_instances(self, namespace: str) -> int:
        return len(self.pods(namespace))

    def is_ready(self, namespace: str) -> bool:
        rows = self.pods(namespace)
        if not rows:
            return False
        first = rows[0]
        logger.debug(
            "aggregator.pod",
            pod=first.name,
            ready=first.ready,
            status=first.status,
        )
        return first.is_ready

    def instance_name(self, namespace: str) -> str | None:
        rows = self.pods(namespace)
        return rows[0].name if rows else None

    def read_peer_list(self, namespace: str) -> list[str]:
        """Peer descriptors configured on the aggregator.

        An empty list when no aggregator pod exists yet or its conf file has
        no peer line.
        """
        pod = self.instance_name(namespace)
        if pod is None:
            logger.info("aggregator.absent", namespace=namespace)
            return []
        artifact = self.kubectl.exec_cat(namespace, pod, self.peer_file)
        peers = parse_peer_artifact(artifact, key=self.peer_key)
        logger.info("aggregator.peers", pod=pod, count=len(peers), peers=peers)
        return peers

    def delete(self, namespace: str) -> None:
        self.kubectl.delete("deployment", self.deployment, namespace)
        logger.info(
            "aggregator.deleted", deployment=self.deployment, namespace=namespace
        )

    def dump_pods(self, namespace: str) -> str:
        return self.kubectl.get_pods(namespace)


__all__ = ["Aggregator", "KubectlAggregator", "PodRow", "parse_pod_table"]
