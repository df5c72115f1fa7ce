"""Utility modules for marathon-notifier."""

from marathon_notifier.utils.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
