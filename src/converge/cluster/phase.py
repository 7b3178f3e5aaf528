"""
Resource phase model.

The operator under test publishes a ``status.phase`` field on every custom
resource it manages. The harness treats that field as an observable state
machine: it never drives transitions itself, it only watches them.

State machine::

                 ┌──────────────────────────────────────────┐
                 ▼                                          │
    Pending ──► Ready ◄──► Updating                         │
       │        ▲  │                                        │
       │        │  ├──► ScalingUp ───┐                      │
       │        │  └──► ScalingDown ─┤                      │
       │        └────────────────────┘                      │
       └──────────────► Error ──────────────────────────────┘
                          (any phase may fall into Error;
                           Error may move to any phase)

    Terminating is terminal: once a resource is being deleted it never
    returns to an active phase. It may still read as Error when the fetch
    fails mid-deletion.

``Error`` doubles as the folding sentinel for failed phase reads, which is
why edges into and out of it are always legal.

Transitions are enforced via ``PHASE_VALID_TRANSITIONS``. Use
:func:`validate_phase_transition` or a strict :class:`PhaseTracker` when
asserting on observed sequences.
"""

from __future__ import annotations

from enum import Enum

from converge.core.errors import InvalidPhaseTransition
from converge.core.logging import get_logger
from converge.polling.probes import ProbeLike, as_sampler, describe

logger = get_logger(__name__)


class Phase(str, Enum):
    """Value of a custom resource's ``status.phase`` field."""

    PENDING = "Pending"
    READY = "Ready"
    UPDATING = "Updating"
    SCALING_UP = "ScalingUp"
    SCALING_DOWN = "ScalingDown"
    TERMINATING = "Terminating"
    ERROR = "Error"

    @property
    def is_terminal(self) -> bool:
        return self is Phase.TERMINATING

    @classmethod
    def parse(cls, raw: str) -> Phase:
        """Parse a raw ``status.phase`` string.

        A resource the operator has not reconciled yet has no phase at all;
        that reads as ``Pending``.

        Raises:
            ValueError: If ``raw`` is not a known phase.
        """
        text = raw.strip()
        if not text:
            return cls.PENDING
        return cls(text)


_ACTIVE = frozenset({
    Phase.PENDING,
    Phase.READY,
    Phase.UPDATING,
    Phase.SCALING_UP,
    Phase.SCALING_DOWN,
})

PHASE_VALID_TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.PENDING: frozenset({
        Phase.READY,
        Phase.UPDATING,
        Phase.SCALING_UP,
        Phase.ERROR,
        Phase.TERMINATING,
    }),
    Phase.READY: frozenset({
        Phase.PENDING,  # resource edited, requeued
        Phase.UPDATING,
        Phase.SCALING_UP,
        Phase.SCALING_DOWN,
        Phase.ERROR,
        Phase.TERMINATING,
    }),
    Phase.UPDATING: frozenset({
        Phase.PENDING,
        Phase.READY,
        Phase.SCALING_UP,
        Phase.SCALING_DOWN,
        Phase.ERROR,
        Phase.TERMINATING,
    }),
    Phase.SCALING_UP: frozenset({
        Phase.PENDING,
        Phase.READY,
        Phase.UPDATING,
        Phase.ERROR,
        Phase.TERMINATING,
    }),
    Phase.SCALING_DOWN: frozenset({
        Phase.PENDING,
        Phase.READY,
        Phase.UPDATING,
        Phase.ERROR,
        Phase.TERMINATING,
    }),
    Phase.ERROR: _ACTIVE | {Phase.TERMINATING},
    Phase.TERMINATING: frozenset({Phase.ERROR}),
}


def validate_phase_transition(current: Phase, target: Phase) -> None:
    """Raise if ``current → target`` is not a legal phase edge.

    Staying in the same phase is always legal.

    Example:
        >>> validate_phase_transition(Phase.READY, Phase.SCALING_UP)
        >>> validate_phase_transition(Phase.TERMINATING, Phase.READY)
        Traceback (most recent call last):
            ...
        converge.core.errors.InvalidPhaseTransition: Invalid Phase transition: Terminating → Ready
    """
    if current == target:
        return
    allowed = PHASE_VALID_TRANSITIONS.get(current, frozenset())
    if target not in allowed:
        raise InvalidPhaseTransition(current.value, target.value)


class PhaseTracker:
    """Phase probe wrapper that records the sequence of distinct phases seen.

    The tracker is itself a probe, so it can be handed to the poller in
    place of the probe it wraps. Consecutive duplicate readings collapse
    into one entry, which lets a scenario ask whether a transient phase
    such as ``ScalingUp`` was ever observed before the final ``Ready``.

    Args:
        probe: The underlying phase probe.
        strict: Validate every recorded edge against
            ``PHASE_VALID_TRANSITIONS`` and raise on an illegal one.
    """

    def __init__(self, probe: ProbeLike[Phase], *, strict: bool = False) -> None:
        self._sample = as_sampler(probe)
        self.description = describe(probe)
        self.strict = strict
        self._history: list[Phase] = []

    @property
    def history(self) -> tuple[Phase, ...]:
        return tuple(self._history)

    @property
    def last(self) -> Phase | None:
        return self._history[-1] if self._history else None

    def sample(self) -> Phase:
        phase = self._sample()
        previous = self.last
        if previous != phase:
            if self.strict and previous is not None:
                validate_phase_transition(previous, phase)
            if previous is not None:
                logger.info(
                    "phase.changed",
                    probe=self.description,
                    previous=previous.value,
                    current=phase.value,
                )
            self._history.append(phase)
        return phase

    __call__ = sample

    def observed(self, phase: Phase) -> bool:
        return phase in self._history

    def observed_before(self, first: Phase, then: Phase) -> bool:
        """True if ``first`` was seen and ``then`` was seen after it."""
        try:
            index = self._history.index(first)
        except ValueError:
            return False
        return then in self._history[index + 1 :]

    def reset(self) -> None:
        self._history.clear()


__all__ = [
    "PHASE_VALID_TRANSITIONS",
    "Phase",
    "PhaseTracker",
    "validate_phase_transition",
]
