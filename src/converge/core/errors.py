"""
Structured error types for the convergence harness.

Every failure the harness can report is a typed error carrying a category,
a retry flag, structured context and an optional chained cause. The
hierarchy mirrors the four outcomes a convergence check can have:

- **Transient fetch failure:** a probe's underlying read failed. Folded into
  a sentinel value by the probe adapter and retried on the next tick.
- **Convergence timeout:** the observed value never reached the target.
- **Stability violation:** the value reached the target, then moved.
- **Membership mismatch:** the aggregator's peer list is missing members.

Only the first is ever absorbed. The other three are terminal and propagate
to the scenario boundary unchanged.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       ConvergeError                           │
        │        (category, retryable, context, cause)                  │
        ├──────────────────────────────────────────────────────────────┤
        │  TransientError          ConvergenceTimeout                   │
        │  (retryable=True)        StabilityViolation                   │
        │       │                  MembershipMismatch                   │
        │  TransientFetchError     InvalidPhaseTransition               │
        │       │                                                       │
        │  CommandError            ConfigError                          │
        │                            │                                  │
        │                          InvalidConfigError                   │
        │                                                               │
        │  ScenarioError ── ScenarioNotFoundError                       │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = TransientFetchError("kubectl get failed")
    >>> error.retryable
    True

    >>> try:
    ...     raise ConnectionError("API server unreachable")
    ... except ConnectionError as e:
    ...     error = CommandError("get pods failed", cause=e)
    >>> error.cause
    ConnectionError('API server unreachable')

Tags:
    error-handling, exception-hierarchy, convergence, timeout, membership
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and reporting."""

    # Infrastructure (usually transient)
    NETWORK = "NETWORK"  # kubectl / API server reachability
    COMMAND = "COMMAND"  # a CLI invocation returned non-zero

    # Convergence outcomes
    CONVERGENCE = "CONVERGENCE"  # target never reached
    STABILITY = "STABILITY"  # target reached, then lost
    MEMBERSHIP = "MEMBERSHIP"  # aggregator peers disagree with resources
    STATE = "STATE"  # illegal phase transition

    # Configuration (never retryable)
    CONFIG = "CONFIG"

    # Orchestration
    SCENARIO = "SCENARIO"

    # Internal
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover the identifiers every harness error can be traced to
    (scenario, namespace, resource). Anything else goes in ``metadata``.

    Examples:
        >>> ctx = ErrorContext(scenario="standalone-pair", namespace="ns-abc")
        >>> ctx.to_dict()
        {'scenario': 'standalone-pair', 'namespace': 'ns-abc'}
    """

    scenario: str | None = None
    step: str | None = None
    namespace: str | None = None
    resource: str | None = None
    run_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["scenario", "step", "namespace", "resource", "run_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ConvergeError(Exception):
    """
    Base exception for all harness errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    their domain sensible defaults; both can be overridden per instance.

    Examples:
        >>> error = ConvergeError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(namespace="ns-1").context.namespace
        'ns-1'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ConvergeError:
        """
        Add context to this error (fluent API).

        Usage:
            raise CommandError("scale failed").with_context(
                namespace="ns-1",
                resource="standalone/foo",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (absorbed by folding probes)
# =============================================================================


class TransientError(ConvergeError):
    """Temporary error that may succeed on the next attempt."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class TransientFetchError(TransientError):
    """
    A probe's underlying read failed.

    Raised by the cluster clients (control plane, aggregator) when a read
    cannot produce a value. Folding probes catch exactly this type and
    substitute their sentinel, so it never reaches the poll loop.
    """


class CommandError(TransientFetchError):
    """A ``kubectl`` invocation failed, timed out, or could not be started."""

    default_category = ErrorCategory.COMMAND

    def __init__(
        self,
        message: str,
        *,
        argv: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.argv = argv or []
        self.returncode = returncode
        self.stderr = stderr

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.argv:
            result["command"] = " ".join(self.argv)
        if self.returncode is not None:
            result["returncode"] = self.returncode
        if self.stderr:
            result["stderr"] = self.stderr
        return result


# =============================================================================
# TERMINAL CONVERGENCE ERRORS
# =============================================================================


class ConvergenceTimeout(ConvergeError, TimeoutError):
    """
    A bounded wait ended without the probe reporting the target value.

    Inherits from the built-in ``TimeoutError`` so generic handlers still
    catch it. Carries the last observed value so the failure message reads
    as expected-vs-seen.
    """

    default_category = ErrorCategory.CONVERGENCE

    def __init__(
        self,
        *,
        description: str,
        expected: Any,
        last_observed: Any,
        attempts: int,
        elapsed: float,
        timeout: float,
        **kwargs: Any,
    ):
        self.description = description
        self.expected = expected
        self.last_observed = last_observed
        self.attempts = attempts
        self.elapsed = elapsed
        self.timeout = timeout
        super().__init__(
            f"{description}: expected {expected!r} within {timeout}s, "
            f"last observed {last_observed!r} after {attempts} attempt(s) "
            f"({elapsed:.2f}s)",
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result.update(
            expected=repr(self.expected),
            last_observed=repr(self.last_observed),
            attempts=self.attempts,
            elapsed=round(self.elapsed, 3),
            timeout=self.timeout,
        )
        return result


class StabilityViolation(ConvergeError):
    """A value that had reached its target deviated during the hold window."""

    default_category = ErrorCategory.STABILITY

    def __init__(
        self,
        *,
        description: str,
        expected: Any,
        observed: Any,
        sample_index: int,
        elapsed: float,
        **kwargs: Any,
    ):
        self.description = description
        self.expected = expected
        self.observed = observed
        self.sample_index = sample_index
        self.elapsed = elapsed
        super().__init__(
            f"{description}: expected {expected!r} to hold, sample #{sample_index} "
            f"at {elapsed:.2f}s observed {observed!r}",
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result.update(
            expected=repr(self.expected),
            observed=repr(self.observed),
            sample_index=self.sample_index,
            elapsed=round(self.elapsed, 3),
        )
        return result


class MembershipMismatch(ConvergeError):
    """The aggregator's peer list does not cover the expected members."""

    default_category = ErrorCategory.MEMBERSHIP

    def __init__(
        self,
        *,
        missing: list[str],
        actual: list[str],
        unexpected: list[str] | None = None,
        **kwargs: Any,
    ):
        self.missing = list(missing)
        self.actual = list(actual)
        self.unexpected = list(unexpected or [])
        parts = []
        if self.missing:
            parts.append(f"missing {self.missing}")
        if self.unexpected:
            parts.append(f"unexpected {self.unexpected}")
        super().__init__(
            f"Peer list mismatch: {', '.join(parts)}; configured peers {self.actual}",
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result.update(missing=self.missing, actual=self.actual)
        if self.unexpected:
            result["unexpected"] = self.unexpected
        return result


class InvalidPhaseTransition(ConvergeError, ValueError):
    """A resource moved between two phases that have no legal edge."""

    default_category = ErrorCategory.STATE

    def __init__(self, current: str, target: str, **kwargs: Any) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid Phase transition: {current} → {target}", **kwargs)


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(ConvergeError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# SCENARIO ERRORS
# =============================================================================


class ScenarioError(ConvergeError):
    """Scenario registration or dispatch error."""

    default_category = ErrorCategory.SCENARIO


class ScenarioNotFoundError(ScenarioError):
    """Scenario name not present in the registry."""

    def __init__(self, name: str):
        self.scenario_name = name
        super().__init__(f"Scenario not found: {name}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Category of any exception; foreign ones map to NETWORK or UNKNOWN."""
    if isinstance(error, ConvergeError):
        return error.category
    if isinstance(error, OSError):
        return ErrorCategory.NETWORK
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ConvergeError",
    # Transient
    "TransientError",
    "TransientFetchError",
    "CommandError",
    # Terminal
    "ConvergenceTimeout",
    "StabilityViolation",
    "MembershipMismatch",
    "InvalidPhaseTransition",
    # Config
    "ConfigError",
    "InvalidConfigError",
    # Scenario
    "ScenarioError",
    "ScenarioNotFoundError",
    # Utilities
    "categorize_error",
]
