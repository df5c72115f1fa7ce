"""Resolve webhook destinations and deliver rendered messages."""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

from marathon_notifier.config import SlackConfig
from marathon_notifier.errors import MissingWebhookError, UnknownProjectError
from marathon_notifier.models import RenderedMessage
from marathon_notifier.observer import Observer
from marathon_notifier.utils.logging import get_logger, redact_url

log = get_logger(__name__)


class Poster(Protocol):
    async def post_json(self, url: str, body: dict[str, Any]) -> Any: ...


class Dispatcher:
    """Fire-and-forget delivery, one independent task per destination.

    Messages routed to projects go only to those projects' webhooks;
    messages without projects go only to the default webhook.
    """

    def __init__(self, config: SlackConfig, poster: Poster, observer: Observer) -> None:
        self._config = config
        self._poster = poster
        self._observer = observer
        self._pending: set[asyncio.Task[None]] = set()

    def destinations(self, message: RenderedMessage) -> list[str]:
        """Webhook URLs for a message. Unknown projects are reported and skipped."""
        if not message.projects:
            if not self._config.webhook_url:
                self._observer.on_error(MissingWebhookError())
                return []
            return [self._config.webhook_url]

        projects = message.projects
        if self._config.dedupe_projects:
            projects = list(dict.fromkeys(projects))

        urls: list[str] = []
        for project in projects:
            url = self._config.projects.get(project)
            if url is None:
                self._observer.on_error(UnknownProjectError(project))
                continue
            urls.append(url)
        return urls

    def dispatch(self, message: RenderedMessage) -> list[asyncio.Task[None]]:
        """Schedule delivery and return without waiting for completion.

        Must be called from a running event loop. The returned tasks may be
        awaited; they never raise.
        """
        tasks = []
        body = message.to_payload()
        for url in self.destinations(message):
            task = asyncio.create_task(self._deliver(url, message, body))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            tasks.append(task)
        log.debug("dispatch_scheduled", destinations=len(tasks), channel=self._config.channel)
        return tasks

    async def drain(self) -> None:
        """Wait for all in-flight deliveries."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _deliver(self, url: str, message: RenderedMessage, body: dict[str, Any]) -> None:
        try:
            reply = await self._poster.post_json(url, body)
        except Exception as e:
            log.warning("delivery_failed", url=redact_url(url), error=str(e))
            self._observer.on_error(e)
            return
        try:
            self._observer.on_sent_message(message)
            self._observer.on_received_reply(reply)
        except Exception:
            log.exception("observer_hook_failed", url=redact_url(url))
