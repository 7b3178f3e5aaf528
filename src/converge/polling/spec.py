"""Poll budget model shared by the poller and the stability verifier."""

from __future__ import annotations

import math
from dataclasses import dataclass

from converge.core.errors import InvalidConfigError

# Remaining budget at or below this counts as spent. Absorbs the float drift
# of summing a fractional interval (ten sleeps of 0.1 stop short of 1.0).
DEADLINE_TOLERANCE = 1e-9


@dataclass(frozen=True)
class PollSpec:
    """Timeout and sampling interval for a bounded wait.

    For :func:`~converge.polling.poller.wait_until` the ``timeout`` is an
    upper bound on how long to wait; for
    :func:`~converge.polling.stability.assert_stable` it is the length of
    the hold window.

    Attributes:
        timeout: Total budget in seconds.
        interval: Delay between samples in seconds. Must be below ``timeout``.

    Example:
        >>> spec = PollSpec(timeout=30.0, interval=5.0)
        >>> spec.max_samples
        7
    """

    timeout: float
    interval: float

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise InvalidConfigError("timeout", self.timeout, f"timeout must be positive, got {self.timeout}")
        if self.interval <= 0:
            raise InvalidConfigError("interval", self.interval, f"interval must be positive, got {self.interval}")
        if self.interval >= self.timeout:
            raise InvalidConfigError(
                "interval",
                self.interval,
                f"interval ({self.interval}s) must be shorter than timeout ({self.timeout}s)",
            )

    @property
    def max_samples(self) -> int:
        """Upper bound on probe invocations within one budget."""
        return math.ceil(self.timeout / self.interval) + 1


__all__ = ["DEADLINE_TOLERANCE", "PollSpec"]
