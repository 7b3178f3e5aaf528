"""
Bounded wait-until-condition primitive.

:func:`wait_until` samples a probe immediately, then every
``spec.interval`` seconds, until the reading equals the target or the
budget runs out. It returns as soon as the target is seen; on timeout it
raises :class:`~converge.core.errors.ConvergenceTimeout` carrying the last
reading so the failure reads as expected-vs-seen.

Timing model::

    t=0        t=I        t=2I   ...   t=T
    sample ──► sample ──► sample ...  sample ──► ConvergenceTimeout
      │ == target?
      └────────► PollResult(value, attempts, elapsed)

The sleep before the final sample is clipped to the remaining budget, so
the last sample fires at the deadline and the probe runs at most
``ceil(T/I) + 1`` times. Elapsed time at timeout lies in
``[timeout, timeout + interval)`` for a fast probe.

The loop never catches exceptions. Probes are expected to fold transient
fetch errors into a sentinel themselves (see
:class:`~converge.polling.probes.FoldingProbe`).

``clock`` and ``sleep`` are injectable so tests can drive the loop
deterministically.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from converge.core.errors import ConvergenceTimeout
from converge.core.logging import get_logger
from converge.polling.probes import ProbeLike, as_sampler, describe
from converge.polling.spec import DEADLINE_TOLERANCE, PollSpec

logger = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]
Sleep = Callable[[float], None]


@dataclass(frozen=True)
class PollResult(Generic[T]):
    """Outcome of a successful wait.

    Attributes:
        value: The reading that matched the target.
        attempts: Number of probe invocations, including the matching one.
        elapsed: Seconds from the first sample to the matching one.
    """

    value: T
    attempts: int
    elapsed: float


class Poller:
    """Waits for probes to report a target value within a :class:`PollSpec`.

    A poller holds no per-wait state, so one instance may serve any number
    of sequential waits; concurrent waits should use independent instances.

    Example::

        poller = Poller(PollSpec(timeout=600, interval=5))
        poller.wait_until(phase_probe, Phase.READY, description="standalone/foo phase")
    """

    def __init__(
        self,
        spec: PollSpec,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = time.sleep,
    ) -> None:
        self.spec = spec
        self._clock = clock
        self._sleep = sleep

    def wait_until(
        self,
        probe: ProbeLike[T],
        target: T,
        *,
        description: str | None = None,
    ) -> PollResult[T]:
        """Block until ``probe`` reports ``target``.

        Raises:
            ConvergenceTimeout: If the budget runs out first.
        """
        sampler = as_sampler(probe)
        label = description or describe(probe)
        start = self._clock()
        deadline = start + self.spec.timeout
        attempts = 0

        logger.info(
            "poll.started",
            probe=label,
            target=repr(target),
            timeout=self.spec.timeout,
            interval=self.spec.interval,
        )

        while True:
            value = sampler()
            attempts += 1
            now = self._clock()
            elapsed = now - start

            if value == target:
                logger.info(
                    "poll.converged",
                    probe=label,
                    target=repr(target),
                    attempts=attempts,
                    elapsed=round(elapsed, 3),
                )
                return PollResult(value=value, attempts=attempts, elapsed=elapsed)

            logger.debug(
                "poll.waiting",
                probe=label,
                target=repr(target),
                observed=repr(value),
                attempt=attempts,
            )

            remaining = deadline - now
            if remaining <= DEADLINE_TOLERANCE:
                logger.warning(
                    "poll.timeout",
                    probe=label,
                    target=repr(target),
                    last_observed=repr(value),
                    attempts=attempts,
                )
                raise ConvergenceTimeout(
                    description=label,
                    expected=target,
                    last_observed=value,
                    attempts=attempts,
                    elapsed=elapsed,
                    timeout=self.spec.timeout,
                )

            self._sleep(min(self.spec.interval, remaining))


def wait_until(
    probe: ProbeLike[T],
    target: T,
    spec: PollSpec,
    *,
    description: str | None = None,
    clock: Clock = time.monotonic,
    sleep: Sleep = time.sleep,
) -> PollResult[T]:
    """Functional form of :meth:`Poller.wait_until`."""
    return Poller(spec, clock=clock, sleep=sleep).wait_until(
        probe, target, description=description
    )


__all__ = ["Clock", "PollResult", "Poller", "Sleep", "wait_until"]
