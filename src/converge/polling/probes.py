"""
Probe abstraction for the wait primitives.

A probe is anything that produces a fresh reading of external state each
time it is asked: either an object with a ``sample()`` method or a plain
zero-argument callable. The poller and the stability verifier only ever
compare readings against a target, so they stay ignorant of I/O failures.

Folding fetch errors into a sentinel is the job of :class:`FoldingProbe`,
the adapter every cluster-backed probe is built from: a failed read
(:class:`~converge.core.errors.TransientFetchError`) becomes the
``fallback`` value (``Phase.ERROR``, ``0``, ``False``), which the wait loop
treats as "not yet". Any other exception is a bug and propagates.

Example::

    probe = FoldingProbe(
        fetch=lambda: aggregator.count_instances("ns-abc"),
        fallback=0,
        description="aggregator instances in ns-abc",
    )
    probe.sample()  # -> 1, or 0 if kubectl failed
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from converge.core.errors import TransientFetchError
from converge.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class Probe(Protocol[T_co]):
    """Single-method reader of external state."""

    def sample(self) -> T_co: ...


ProbeLike = Probe[T] | Callable[[], T]


def as_sampler(probe: ProbeLike[T]) -> Callable[[], T]:
    """Normalize a probe object or bare callable to a zero-arg callable."""
    sample = getattr(probe, "sample", None)
    if callable(sample):
        return sample
    if callable(probe):
        return probe
    raise TypeError(f"Probe must be callable or define sample(), got {type(probe).__name__}")


def describe(probe: Any) -> str:
    """Human-readable label for log events and error messages."""
    label = getattr(probe, "description", None)
    if label:
        return str(label)
    return getattr(probe, "__name__", repr(probe))


@dataclass
class FoldingProbe(Generic[T]):
    """Probe adapter mapping transient fetch failures to a sentinel value.

    Attributes:
        fetch: Reads the current value; may raise ``TransientFetchError``.
        fallback: Value reported when ``fetch`` fails.
        description: Label used in logs and timeout messages.
    """

    fetch: Callable[[], T]
    fallback: T
    description: str = "probe"

    def sample(self) -> T:
        try:
            return self.fetch()
        except TransientFetchError as exc:
            logger.warning(
                "probe.fetch_failed",
                probe=self.description,
                fallback=repr(self.fallback),
                error=str(exc),
            )
            return self.fallback

    def __call__(self) -> T:
        return self.sample()


__all__ = ["FoldingProbe", "Probe", "ProbeLike", "as_sampler", "describe"]
