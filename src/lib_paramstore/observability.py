"""Structured logging helpers distilled into tiny orchestration phrases.

Purpose
    Keep every emission of logging data predictable, contextual, and ready for
    downstream aggregation pipelines without forcing applications to adopt a
    specific logging backend.

Contents
    - ``TRACE_ID``: context variable storing the active trace identifier.
    - ``get_logger``: returns the shared package logger (quiet by default).
    - ``bind_trace_id``: binds or clears the active trace identifier.
    - ``new_trace_id``: generates and binds a fresh identifier for one operation.
    - ``log_debug`` / ``log_info`` / ``log_error``: emit structured entries via a
      single private emitter.
    - ``make_event``: convenience builder for structured event payloads.

System Integration
    Used by the snapshot fetcher, the poller, the adapters, and the composition
    root so all diagnostics carry the same trace metadata. Parameter values are
    never passed to these helpers; only names, counts, and versions.
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_paramstore_trace_id", default=None)
"""Current trace identifier propagated through logging helpers.

Why
    A ``read`` call and each poll tick span several page fetches; sharing one
    identifier lets log processors group them. Context variables are
    per-thread, so the poller binds its own identifier on every tick.
"""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_paramstore")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers.

    Why
        Leaves the library silent by default while giving host applications full
        control over handler and formatter configuration.
    """

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

    Examples
    --------
    >>> bind_trace_id('abc123')
    >>> TRACE_ID.get()
    'abc123'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def new_trace_id() -> str:
    """Generate, bind, and return a fresh trace identifier.

    Examples
    --------
    >>> trace = new_trace_id()
    >>> TRACE_ID.get() == trace
    True
    >>> bind_trace_id(None)
    """

    trace_id = uuid.uuid4().hex
    bind_trace_id(trace_id)
    return trace_id


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry that includes the trace context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry that includes the trace context."""

    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a structured error log entry that includes the trace context."""

    _emit(logging.ERROR, message, fields)


def make_event(
    operation: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured logging payload for provider lifecycle events.

    Why
        Keeps event construction consistent so downstream log processors can rely
        on stable keys.
    Inputs
        operation: Name of the provider operation (``read``, ``tick`` ...).
        path: Parameter path the operation works on, if any.
        payload: Optional mapping with extra diagnostic detail.

    Examples
    --------
    >>> make_event('tick', '/app', {'changes': 2})
    {'operation': 'tick', 'path': '/app', 'changes': 2}
    """

    event: dict[str, Any] = {"operation": operation, "path": path}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Attach the current trace identifier to the provided structured fields."""

    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context
