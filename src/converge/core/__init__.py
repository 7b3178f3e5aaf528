"""Core primitives: error hierarchy, structured logging, settings.

Settings live in :mod:`converge.core.settings` and are imported from there
directly; they depend on :mod:`converge.polling`.
"""

from converge.core.errors import (
    CommandError,
    ConfigError,
    ConvergeError,
    ConvergenceTimeout,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    InvalidPhaseTransition,
    MembershipMismatch,
    ScenarioNotFoundError,
    StabilityViolation,
    TransientError,
    TransientFetchError,
)
from converge.core.logging import LogContext, configure_logging, get_logger

__all__ = [
    "CommandError",
    "ConfigError",
    "ConvergeError",
    "ConvergenceTimeout",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "InvalidPhaseTransition",
    "LogContext",
    "MembershipMismatch",
    "ScenarioNotFoundError",
    "StabilityViolation",
    "TransientError",
    "TransientFetchError",
    "configure_logging",
    "get_logger",
]
