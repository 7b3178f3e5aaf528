"""
Structured logging for the convergence harness.

A single structlog configuration shared by every module. Wait loops emit
one event per tick, so the output has to be machine-filterable: each event
is a dotted name plus keyword fields rather than a formatted sentence.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="converge")
            │
            ▼
        processor chain (_processors):
          1. TimeStamper (iso, UTC)
          2. merge_contextvars   ← LogContext(scenario=..., namespace=..., run_id=...)
          3. add_log_level, add_logger_name
          4. _stamp_service
          5. _to_ecs_fields (JSON only)
          6. JSONRenderer | ConsoleRenderer
            │
            ▼
        PrintLogger(sys.stderr)

    Usage::

        logger = get_logger(__name__)
        logger.info("poll.converged", target="Ready", attempts=4)

Guardrails:
    - Everything goes to stderr; stdout is reserved for CLI output
    - JSON when stderr is not a TTY, unless ``json_format`` says otherwise
    - JSON field names follow ECS (``@timestamp``, ``log.level``)

Tags:
    logging, structlog, observability, context
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_service = "converge"

# structlog key -> ECS key, applied in JSON mode
_ECS_FIELDS = {
    "timestamp": "@timestamp",
    "level": "log.level",
    "logger": "log.logger",
}


def _stamp_service(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service.name", _service)
    return event_dict


def _to_ecs_fields(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename structlog's default keys to their ECS equivalents."""
    for source, target in _ECS_FIELDS.items():
        if source in event_dict:
            event_dict[target] = event_dict.pop(source)
    return event_dict


class _NamedPrintLogger(structlog.PrintLogger):
    """PrintLogger carrying the name ``add_logger_name`` reads."""

    def __init__(self, file: Any, name: str) -> None:
        super().__init__(file)
        self.name = name


def _stderr_logger_factory(*args: Any) -> _NamedPrintLogger:
    # Resolve sys.stderr per logger so redirected streams are honoured.
    name = args[0] if args and isinstance(args[0], str) else _service
    return _NamedPrintLogger(sys.stderr, name)


def _processors(json_format: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _stamp_service,
    ]
    if json_format:
        chain += [
            _to_ecs_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "converge",
) -> None:
    """Configure structlog for the whole process.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR).
        json_format: JSON lines when True, human console output when False;
            None picks JSON unless stderr is a terminal.
        service: Value of ``service.name`` on every event.
    """
    global _service
    _service = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    structlog.configure(
        processors=_processors(json_format),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Structured logger named ``name`` (usually ``__name__``).

    The name is passed through to the logger factory, so the returned proxy
    stays lazy and picks up whatever :func:`configure_logging` installs later.
    """
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every event logged from this context onwards."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind fields for the duration of a ``with`` block.

    The scenario runner wraps each run in one::

        with LogContext(scenario="standalone-pair", namespace="ns-abc", run_id=run_id):
            logger.info("scenario.started")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields

    def __enter__(self) -> LogContext:
        bind_context(**self.fields)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        unbind_context(*self.fields)


__all__ = [
    "LogContext",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
]
