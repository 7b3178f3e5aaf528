"""
Control-plane client: deploy, scale, delete and read the phase of custom
resources managed by the operator.

:class:`ControlPlane` is the interface scenarios depend on;
:class:`KubectlControlPlane` implements it on top of :class:`Kubectl`.
Reads raise :class:`~converge.core.errors.TransientFetchError` when the
phase cannot be determined, so they can be wrapped by a folding probe.
"""

from __future__ import annotations

from typing import Any, Protocol

from converge.cluster.kubectl import Kubectl
from converge.cluster.phase import Phase
from converge.cluster.resources import Resource, ResourceKind
from converge.core.errors import TransientFetchError
from converge.core.logging import get_logger
from converge.core.settings import ConvergeSettings

logger = get_logger(__name__)

PVC_FINALIZER = "enterprise.splunk.com/delete-pvc"


class ControlPlane(Protocol):
    """Operations the harness needs from the cluster control plane."""

    def deploy(self, resource: Resource) -> None: ...

    def get_instance_phase(self, resource: Resource) -> Phase: ...

    def scale_resource(self, resource: Resource, replicas: int) -> Resource: ...

    def delete(self, resource: Resource) -> None: ...


def build_manifest(resource: Resource, api_version: str) -> dict[str, Any]:
    """Custom resource manifest for ``kubectl apply``."""
    spec: dict[str, Any] = {}
    if resource.kind is ResourceKind.STANDALONE:
        spec["replicas"] = resource.replicas
    elif resource.replicas != resource.kind.default_replicas:
        spec["replicas"] = resource.replicas
    return {
        "apiVersion": api_version,
        "kind": resource.kind.value,
        "metadata": {
            "name": resource.name,
            "namespace": resource.namespace,
            "finalizers": [PVC_FINALIZER],
        },
        "spec": spec,
    }


class KubectlControlPlane:
    """:class:`ControlPlane` backed by the ``kubectl`` binary."""

    def __init__(self, kubectl: Kubectl, api_version: str) -> None:
        self.kubectl = kubectl
        self.api_version = api_version

    @classmethod
    def from_settings(cls, settings: ConvergeSettings) -> KubectlControlPlane:
        return cls(Kubectl.from_settings(settings), settings.api_version)

    def deploy(self, resource: Resource) -> None:
        manifest = build_manifest(resource, self.api_version)
        self.kubectl.apply(manifest, resource.namespace)
        logger.info(
            "resource.deployed",
            resource=resource.ref,
            namespace=resource.namespace,
            replicas=resource.replicas,
        )

    def get_instance_phase(self, resource: Resource) -> Phase:
        """Current ``status.phase`` of ``resource``.

        Raises:
            TransientFetchError: If the resource cannot be read or reports a
                phase this harness does not know.
        """
        document = self.kubectl.get_json(
            resource.kind.cli_name, resource.name, resource.namespace
        )
        raw = (document.get("status") or {}).get("phase") or ""
        try:
            return Phase.parse(raw)
        except ValueError as exc:
            raise TransientFetchError(
                f"Unrecognised phase {raw!r} on {resource.ref}", cause=exc
            ).with_context(namespace=resource.namespace, resource=resource.ref) from exc

    def scale_resource(self, resource: Resource, replicas: int) -> Resource:
        """Request a new replica count and return the updated resource."""
        scaled = resource.with_replicas(replicas)
        self.kubectl.scale(
            resource.kind.cli_name, resource.name, resource.namespace, replicas
        )
        logger.info(
            "resource.scaled",
            resource=resource.ref,
            namespace=resource.namespace,
            previous=resource.replicas,
            replicas=replicas,
        )
        return scaled

    def delete(self, resource: Resource) -> None:
        self.kubectl.delete(resource.kind.cli_name, resource.name, resource.namespace)
        logger.info("resource.deleted", resource=resource.ref, namespace=resource.namespace)


__all__ = ["ControlPlane", "KubectlControlPlane", "PVC_FINALIZER", "build_manifest"]
