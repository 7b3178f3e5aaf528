"""
Thin ``kubectl`` wrapper.

Every cluster read and mutation the harness performs goes through
:class:`Kubectl`, which shells out to the ``kubectl`` binary with
``subprocess.run``. Non-zero exits, timeouts and a missing binary all
surface as :class:`~converge.core.errors.CommandError`, which is a
``TransientFetchError``: a probe built on top of this wrapper folds it into
its sentinel, while mutating callers let it propagate.

Example::

    kubectl = Kubectl.from_settings(get_settings())
    kubectl.scale("standalone", "foo", "ns-abc", replicas=2)
    print(kubectl.get_pods("ns-abc"))
"""

from __future__ import annotations

import json
import shutil
import subprocess
from typing import Any

from converge.core.errors import CommandError
from converge.core.logging import get_logger
from converge.core.settings import ConvergeSettings

logger = get_logger(__name__)


class Kubectl:
    """Runs ``kubectl`` commands against the current (or given) kubeconfig.

    Parameters
    ----------
    binary
        Name or path of the kubectl executable.
    kubeconfig
        Optional kubeconfig path passed as ``--kubeconfig``.
    timeout
        Per-command timeout in seconds.
    """

    def __init__(
        self,
        binary: str = "kubectl",
        kubeconfig: str | None = None,
        timeout: int = 60,
    ) -> None:
        self.binary = binary
        self.kubeconfig = kubeconfig
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: ConvergeSettings) -> Kubectl:
        return cls(
            binary=settings.kubectl_binary,
            kubeconfig=settings.kubeconfig,
            timeout=settings.kubectl_timeout_seconds,
        )

    def is_available(self) -> bool:
        """Check whether the kubectl binary is on PATH."""
        return shutil.which(self.binary) is not None

    # ------------------------------------------------------------------
    # Raw invocation
    # ------------------------------------------------------------------

    def run(
        self,
        args: list[str],
        *,
        input: str | None = None,
        check: bool = True,
        timeout: int | None = None,
    ) -> subprocess.CompletedProcess[str]:
        """Run a kubectl command and return the completed process."""
        cmd = [self.binary]
        if self.kubeconfig:
            cmd += ["--kubeconfig", self.kubeconfig]
        cmd += args
        timeout = timeout or self.timeout
        logger.debug("kubectl.exec", cmd=" ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                input=input,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandError(
                f"kubectl timed out after {timeout}s: {' '.join(args)}",
                argv=cmd,
                cause=exc,
            ) from exc
        except OSError as exc:
            raise CommandError(
                f"kubectl could not be started: {exc}",
                argv=cmd,
                cause=exc,
            ) from exc

        if check and result.returncode != 0:
            raise CommandError(
                f"kubectl failed (exit {result.returncode}): {' '.join(args)}",
                argv=cmd,
                returncode=result.returncode,
                stderr=result.stderr.strip(),
            )
        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_json(self, resource: str, name: str, namespace: str) -> dict[str, Any]:
        """``kubectl get RESOURCE NAME -n NS -o json``, decoded."""
        result = self.run(["get", resource, name, "-n", namespace, "-o", "json"])
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise CommandError(
                f"kubectl returned invalid JSON for {resource}/{name}",
                argv=[self.binary, "get", resource, name],
                cause=exc,
            ) from exc

    def get_pods(self, namespace: str) -> str:
        """The plain ``kubectl get pods`` table for a namespace."""
        return self.run(["get", "pods", "-n", namespace]).stdout

    def exec_cat(self, namespace: str, pod: str, path: str) -> str:
        """Contents of a file inside a pod."""
        return self.run(["exec", "-n", namespace, pod, "--", "cat", path]).stdout

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def apply(self, manifest: dict[str, Any], namespace: str) -> None:
        """Apply a manifest passed on stdin."""
        self.run(["apply", "-n", namespace, "-f", "-"], input=json.dumps(manifest))

    def scale(self, resource: str, name: str, namespace: str, replicas: int) -> None:
        self.run(["scale", resource, "-n", namespace, name, f"--replicas={replicas}"])

    def delete(self, resource: str, name: str, namespace: str) -> None:
        self.run(["delete", resource, name, "-n", namespace, "--ignore-not-found"])

    def create_namespace(self, namespace: str) -> None:
        self.run(["create", "namespace", namespace])

    def delete_namespace(self, namespace: str) -> None:
        self.run(
            ["delete", "namespace", namespace, "--ignore-not-found", "--wait=false"]
        )


__all__ = ["Kubectl"]
