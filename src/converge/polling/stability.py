"""
Steady-state hold check.

Reaching a target once is weak evidence of convergence: an operator in the
middle of a partial reconciliation can report ``Ready`` and flip back a
tick later. :func:`assert_stable` samples a probe every ``interval`` for
the whole ``duration`` (it never exits early on success) and fails on the
first sample that differs from the expected value. A single deviation is
treated as a genuine failure; there is no retry past it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Generic, TypeVar

from converge.core.errors import StabilityViolation
from converge.core.logging import get_logger
from converge.polling.poller import Clock, Sleep
from converge.polling.probes import ProbeLike, as_sampler, describe
from converge.polling.spec import DEADLINE_TOLERANCE, PollSpec

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StabilityReport(Generic[T]):
    """Outcome of a hold window in which every sample matched."""

    value: T
    samples: int
    elapsed: float


class StabilityVerifier:
    """Asserts a probe holds a value for a full window.

    ``spec.timeout`` is the window length and ``spec.interval`` the
    sampling period.
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

    def assert_stable(
        self,
        probe: ProbeLike[T],
        expected: T,
        *,
        description: str | None = None,
    ) -> StabilityReport[T]:
        """Sample ``probe`` for the whole window.

        Raises:
            StabilityViolation: At the first sample not equal to ``expected``.
        """
        sampler = as_sampler(probe)
        label = description or describe(probe)
        start = self._clock()
        deadline = start + self.spec.timeout
        index = 0

        while True:
            value = sampler()
            now = self._clock()
            elapsed = now - start

            if value != expected:
                logger.warning(
                    "stability.violated",
                    probe=label,
                    expected=repr(expected),
                    observed=repr(value),
                    sample=index,
                    elapsed=round(elapsed, 3),
                )
                raise StabilityViolation(
                    description=label,
                    expected=expected,
                    observed=value,
                    sample_index=index,
                    elapsed=elapsed,
                )

            index += 1
            remaining = deadline - now
            if remaining <= DEADLINE_TOLERANCE:
                break
            self._sleep(min(self.spec.interval, remaining))

        logger.info(
            "stability.held",
            probe=label,
            expected=repr(expected),
            samples=index,
            elapsed=round(elapsed, 3),
        )
        return StabilityReport(value=expected, samples=index, elapsed=elapsed)


def assert_stable(
    probe: ProbeLike[T],
    expected: T,
    duration: float,
    interval: float,
    *,
    description: str | None = None,
    clock: Clock = time.monotonic,
    sleep: Sleep = time.sleep,
) -> StabilityReport[T]:
    """Functional form of :meth:`StabilityVerifier.assert_stable`."""
    spec = PollSpec(timeout=duration, interval=interval)
    return StabilityVerifier(spec, clock=clock, sleep=sleep).assert_stable(
        probe, expected, description=description
    )


__all__ = ["StabilityReport", "StabilityVerifier", "assert_stable"]
