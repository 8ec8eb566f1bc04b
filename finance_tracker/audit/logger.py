"""
Change Logger

DESIGN DECISION: Every store mutation is logged. This provides:
1. Traceability of balance adjustments
2. Debugging capability when a balance looks wrong
3. A short in-memory history for the settings screen

The change logger:
- Is a plain store subscriber, attached like any view
- Never raises back into the store
"""

import logging
from collections import deque
from typing import Callable, Optional

import structlog

from finance_tracker.models.events import StoreChange
from finance_tracker.store.base import PersistedStore


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure structlog on top of the standard library logger.

    JSON output for files and log shippers, console rendering for
    local development.
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ChangeLogger:
    """
    Logs store changes and keeps the most recent ones.

    Attach it to any number of stores.
    """

    def __init__(self, history_size: int = 100):
        self._logger = structlog.get_logger(__name__)
        self._history: deque[StoreChange] = deque(maxlen=history_size)

    def log(self, change: StoreChange) -> None:
        """Log a change and add it to the history."""
        self._history.append(change)
        self._logger.info("store_change", **change.to_log_dict())

    def attach(self, store: PersistedStore) -> Callable[[], None]:
        """
        Subscribe to a store.

        Returns the unsubscribe function.
        """
        return store.subscribe(self.log)

    def recent(self, limit: Optional[int] = None) -> list[StoreChange]:
        """Most recent changes, newest first."""
        changes = list(reversed(self._history))
        return changes[:limit] if limit is not None else changes
