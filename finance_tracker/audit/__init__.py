"""Change logging package."""

from finance_tracker.audit.logger import ChangeLogger, configure_logging

__all__ = ["ChangeLogger", "configure_logging"]
