"""Per-request logging context.

One context variable holds a read-only mapping of the request id, the
authenticated user and the current action. Every update swaps in a new
mapping, so threads and asyncio tasks never see each other's values.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

from opentelemetry import trace

_EMPTY: Mapping[str, Any] = MappingProxyType({})

_log_context: ContextVar[Mapping[str, Any]] = ContextVar("log_context", default=_EMPTY)


def set_context(
    request_id: Optional[str] = None,
    user_id: Optional[int] = None,
    user_email: Optional[str] = None,
    action: Optional[str] = None,
) -> None:
    """Merge values into the current context; ``None`` leaves a key untouched."""
    updates = {
        "request_id": request_id,
        "user_id": user_id,
        "user_email": user_email,
        "action": action,
    }
    merged = dict(_log_context.get())
    merged.update((key, value) for key, value in updates.items() if value is not None)
    _log_context.set(MappingProxyType(merged))


def get_context() -> Dict[str, Any]:
    """Copy of the current context, empty values omitted."""
    return {key: value for key, value in _log_context.get().items() if value}


def clear_context() -> None:
    _log_context.set(_EMPTY)


@contextmanager
def operation_context(
    action: str,
    request_id: Optional[str] = None,
    user_id: Optional[int] = None,
    user_email: Optional[str] = None,
) -> Iterator[None]:
    """Run a block with ``action`` (and any given ids) set, then restore.

    Used by background tasks, which have no request to set the context for
    them. The action is copied onto the current span when it is recording.

    Example:
        with operation_context("refresh_tokens.purge"):
            logger.info("Sweeping")
    """
    token = _log_context.set(_log_context.get())
    try:
        set_context(
            request_id=request_id, user_id=user_id, user_email=user_email, action=action
        )
        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("action", action)
            if user_id is not None:
                span.set_attribute("user.id", user_id)
        yield
    finally:
        _log_context.reset(token)


def get_trace_context() -> Dict[str, str]:
    """``trace_id`` and ``span_id`` of the recording span, or ``{}``."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }
