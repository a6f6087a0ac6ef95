"""structlog setup for the engine and the CLI.

"production" renders one JSON object per line for log shippers; any other
environment renders readable console lines. Every event gets the level, an
ISO timestamp and, inside a publish, its correlation id.

The CLI writes its results to stdout, so it passes stream=sys.stderr to keep
log lines out of the output.
"""

import logging
import os
from typing import TextIO, cast

import structlog
from structlog.typing import Processor

from verum.infrastructure.observability.correlation import correlation_id_processor

LOG_LEVEL_ENV = "VERUM_LOG_LEVEL"


def _level_from_environment() -> int:
    """Read VERUM_LOG_LEVEL (a level name such as DEBUG), defaulting to INFO."""
    name = os.environ.get(LOG_LEVEL_ENV, "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_structlog(
    environment: str = "production",
    *,
    level: int | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog process-wide.

    Args:
        environment: "production" for JSON lines, anything else for console
            output.
        level: Minimum level. Defaults to VERUM_LOG_LEVEL.
        stream: Destination of log lines. Defaults to stdout.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        cast(Processor, correlation_id_processor),
        structlog.processors.StackInfoRenderer(),
    ]
    if environment == "production":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            _level_from_environment() if level is None else level
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )
