"""Inbound Marathon event sources."""

from marathon_notifier.listener.server import CallbackServer
from marathon_notifier.listener.stream import EventStreamConsumer, SSEParser, parse_sse_lines

__all__ = ["CallbackServer", "EventStreamConsumer", "SSEParser", "parse_sse_lines"]
