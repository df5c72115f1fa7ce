"""Observer hooks for render and delivery notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from marathon_notifier.models import RenderedMessage
from marathon_notifier.utils.logging import get_logger

log = get_logger(__name__)


class Observer(ABC):
    @abstractmethod
    def on_received_event(self, info: dict[str, Any]) -> None:
        """Called with ``{timestamp, eventType, data}`` before rendering."""
        ...

    @abstractmethod
    def on_sent_message(self, message: RenderedMessage) -> None: ...

    @abstractmethod
    def on_received_reply(self, body: Any) -> None: ...

    @abstractmethod
    def on_error(self, error: Exception) -> None: ...


class LoggingObserver(Observer):
    """Reports every notification to the structured log."""

    def on_received_event(self, info: dict[str, Any]) -> None:
        log.info("received_event", event_type=info["eventType"], timestamp=info["timestamp"])
        log.debug("received_event_data", data=info["data"])

    def on_sent_message(self, message: RenderedMessage) -> None:
        log.info(
            "sent_message",
            title=message.attachments[0].title if message.attachments else None,
            projects=message.projects,
        )

    def on_received_reply(self, body: Any) -> None:
        log.debug("received_reply", body=body)

    def on_error(self, error: Exception) -> None:
        log.error("delivery_error", error=str(error), error_type=type(error).__name__)


class RecordingObserver(Observer):
    """Keeps every notification in memory."""

    def __init__(self) -> None:
        self.received_events: list[dict[str, Any]] = []
        self.sent_messages: list[RenderedMessage] = []
        self.replies: list[Any] = []
        self.errors: list[Exception] = []

    def on_received_event(self, info: dict[str, Any]) -> None:
        self.received_events.append(info)

    def on_sent_message(self, message: RenderedMessage) -> None:
        self.sent_messages.append(message)

    def on_received_reply(self, body: Any) -> None:
        self.replies.append(body)

    def on_error(self, error: Exception) -> None:
        self.errors.append(error)
