"""Correlation ids tying together the log lines of one publish.

A story publish spans many awaits: pointer lookup, one submission per
segment, retries and confirmation polls. The id is kept in a ContextVar so
every log line emitted inside the publishing task carries the same value,
and a concurrent reconstruction in another task keeps its own.

Usage:
    ensure_correlation_id()          # at the start of publish() or retry()
    processors = [..., correlation_id_processor, ...]
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4

from structlog.typing import EventDict

# Empty string means no operation is in progress
_current: ContextVar[str] = ContextVar("verum_correlation_id", default="")


def generate_correlation_id() -> str:
    """Return a fresh random id."""
    return uuid4().hex


def get_correlation_id() -> str:
    """Return the id of the current operation, or an empty string."""
    return _current.get()


def set_correlation_id(correlation_id: str) -> None:
    """Make correlation_id current. An empty string clears it."""
    _current.set(correlation_id)


def ensure_correlation_id() -> str:
    """Keep the current id, or start a new one if there is none.

    retry() after a failed publish in the same task reuses the publish's
    id, so both attempts can be found together.
    """
    correlation_id = _current.get()
    if correlation_id:
        return correlation_id
    correlation_id = generate_correlation_id()
    _current.set(correlation_id)
    return correlation_id


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """Structlog processor adding correlation_id when an operation is active."""
    correlation_id = _current.get()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict
