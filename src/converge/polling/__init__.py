"""Generic bounded-wait and steady-state primitives.

- :func:`wait_until` / :class:`Poller`: wait for a probe to report a target
- :func:`assert_stable` / :class:`StabilityVerifier`: assert a value holds
- :class:`FoldingProbe`: fold transient fetch errors into a sentinel
"""

from converge.polling.poller import PollResult, Poller, wait_until
from converge.polling.probes import FoldingProbe, Probe, as_sampler
from converge.polling.spec import PollSpec
from converge.polling.stability import StabilityReport, StabilityVerifier, assert_stable

__all__ = [
    "FoldingProbe",
    "PollResult",
    "PollSpec",
    "Poller",
    "Probe",
    "StabilityReport",
    "StabilityVerifier",
    "as_sampler",
    "assert_stable",
    "wait_until",
]
