"""
Resource identity and expected aggregator membership.

A :class:`Resource` is the harness-side record of one custom resource it
created: name, namespace, kind and declared replica count. The set of
peer tokens the monitoring aggregator should list for it is a pure
function of those fields, rebuilt every time the replica count changes::

    Resource("foo", "ns-1", ResourceKind.STANDALONE, replicas=2)
        .expected_tokens("splunk")
    -> ["splunk-foo-standalone-0", "splunk-foo-standalone-1"]
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum


class ResourceKind(str, Enum):
    """Custom resource kinds the harness deploys.

    The value is the Kubernetes ``kind``. Each kind also knows the pod role
    segment used in pod names, its short name for ``kubectl``, and the
    replica count the operator creates when none is requested.
    """

    STANDALONE = "Standalone"
    SEARCH_HEAD_CLUSTER = "SearchHeadCluster"

    @property
    def role(self) -> str:
        return _ROLES[self]

    @property
    def cli_name(self) -> str:
        return _CLI_NAMES[self]

    @property
    def default_replicas(self) -> int:
        return _DEFAULT_REPLICAS[self]

    @classmethod
    def from_cli(cls, name: str) -> ResourceKind:
        """Resolve a kind from its short name, kind name, or role."""
        lowered = name.lower()
        for kind in cls:
            if lowered in (kind.cli_name, kind.value.lower(), kind.role):
                return kind
        raise ValueError(f"Unknown resource kind: {name!r}")


_ROLES = {
    ResourceKind.STANDALONE: "standalone",
    ResourceKind.SEARCH_HEAD_CLUSTER: "search-head",
}

_CLI_NAMES = {
    ResourceKind.STANDALONE: "standalone",
    ResourceKind.SEARCH_HEAD_CLUSTER: "shc",
}

_DEFAULT_REPLICAS = {
    ResourceKind.STANDALONE: 1,
    ResourceKind.SEARCH_HEAD_CLUSTER: 3,
}


def member_token(prefix: str, name: str, role: str, index: int) -> str:
    """``<prefix>-<name>-<role>-<index>``."""
    return f"{prefix}-{name}-{role}-{index}"


@dataclass(frozen=True)
class Resource:
    """A named, namespaced custom resource created by the harness."""

    name: str
    namespace: str
    kind: ResourceKind
    replicas: int = 0

    def __post_init__(self) -> None:
        if self.replicas <= 0:
            object.__setattr__(self, "replicas", self.kind.default_replicas)

    @property
    def ref(self) -> str:
        """``kind/name`` reference used in log events and kubectl calls."""
        return f"{self.kind.cli_name}/{self.name}"

    def expected_tokens(self, prefix: str) -> list[str]:
        return [
            member_token(prefix, self.name, self.kind.role, index)
            for index in range(self.replicas)
        ]

    def with_replicas(self, replicas: int) -> Resource:
        if replicas < 1:
            raise ValueError(f"replicas must be >= 1, got {replicas}")
        return replace(self, replicas=replicas)


def expected_membership(resources: Iterable[Resource], prefix: str) -> set[str]:
    """Union of expected peer tokens over every resource in a namespace."""
    tokens: set[str] = set()
    for resource in resources:
        tokens.update(resource.expected_tokens(prefix))
    return tokens


__all__ = ["Resource", "ResourceKind", "expected_membership", "member_token"]
