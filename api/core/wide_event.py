"""Request-scoped wide event for canonical log lines.

A wide event is a single dict accumulated over the life of one request and
emitted once by RequestTimingMiddleware when the response completes. Handlers and
repositories enrich it instead of writing extra log lines.

Usage:
    from core.wide_event import set_wide_event_fields

    set_wide_event_fields(entity="authors", action="update", entity_id=3)
"""

from contextvars import ContextVar
from typing import Any

_wide_event: ContextVar[dict[str, Any]] = ContextVar("wide_event")


def init_wide_event() -> dict[str, Any]:
    """Start a new wide event for the current async context."""
    event: dict[str, Any] = {}
    _wide_event.set(event)
    return event


def get_wide_event() -> dict[str, Any]:
    """Get the current wide event dict. Returns empty dict if not initialized."""
    try:
        return _wide_event.get()
    except LookupError:
        return {}


def set_wide_event_fields(**kwargs: Any) -> None:
    """Set fields on the current wide event.

    No-op outside a request (CLI, tests without middleware).
    """
    event = _wide_event.get(None)
    if event is not None:
        event.update(kwargs)


def clear_wide_event() -> None:
    _wide_event.set({})
