"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

from typing import TextIO

from verum.infrastructure.observability import configure_structlog as _configure_structlog


def configure_logging(
    environment: str,
    *,
    level: int | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for the given environment."""
    _configure_structlog(environment=environment, level=level, stream=stream)


__all__ = ["configure_logging"]
