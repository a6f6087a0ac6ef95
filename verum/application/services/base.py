"""Logging mixin shared by the publisher and reader services.

Services bind their class name and a component label once, then derive a
logger per operation. The correlation id of the running publish or
reconstruction is added by the structlog processor chain, not here.

Usage:
    class ChainTraversalService(LoggingMixin):
        def __init__(self, indexer: IndexerPort) -> None:
            self._indexer = indexer
            self._init_logger(component="reader")

        async def walk_chain(self, address: str) -> ChainWalk:
            log = self._log_operation("walk_chain", address=address)
            log.debug("chain_walk_started")
"""

from typing import Literal

import structlog

Component = Literal["publisher", "reader"]


class LoggingMixin:
    """Gives a service a bound structlog logger.

    Attributes:
        _log: Logger bound with service and component.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: Component) -> None:
        """Bind the service logger. Call at the end of __init__."""
        self._log = structlog.get_logger(__name__).bind(
            service=type(self).__name__,
            component=component,
        )

    def _log_operation(self, operation: str, **context: object) -> structlog.BoundLogger:
        """Return a logger for one call of operation, with extra context bound."""
        return self._log.bind(operation=operation, **context)
