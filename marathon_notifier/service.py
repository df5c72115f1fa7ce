"""Render-and-dispatch service shared by the listeners."""

from __future__ import annotations

import asyncio

from marathon_notifier.config import Settings
from marathon_notifier.delivery.dispatcher import Dispatcher, Poster
from marathon_notifier.delivery.http import HttpxPoster
from marathon_notifier.models import Event
from marathon_notifier.observer import LoggingObserver, Observer
from marathon_notifier.rendering.renderer import EventRenderer
from marathon_notifier.utils.logging import get_logger

log = get_logger(__name__)


class Notifier:
    """Turns one Marathon event into one delivered Slack message."""

    def __init__(
        self,
        settings: Settings,
        poster: Poster | None = None,
        observer: Observer | None = None,
        dry_run: bool = False,
    ) -> None:
        self.settings = settings
        self.dry_run = dry_run
        self.observer = observer or LoggingObserver()
        self._http: HttpxPoster | None = None
        if poster is None:
            self._http = HttpxPoster(timeout=settings.slack.timeout)
            poster = self._http
        self.renderer = EventRenderer(settings.slack, self.observer)
        self.dispatcher = Dispatcher(settings.slack, poster, self.observer)

    async def start(self) -> None:
        if self._http is not None:
            await self._http.start()
        log.info(
            "notifier_started",
            channel=self.settings.slack.channel,
            environment=self.settings.slack.environment,
            region=self.settings.slack.region,
            projects=sorted(self.settings.slack.projects),
            dry_run=self.dry_run,
        )

    async def stop(self) -> None:
        await self.dispatcher.drain()
        if self._http is not None:
            await self._http.close()
        log.info("notifier_stopped")

    def accepts(self, event_type: str) -> bool:
        wanted = self.settings.events.event_types
        return not wanted or event_type in wanted

    def handle(self, event: Event) -> list[asyncio.Task[None]]:
        """Render and dispatch one event. Render faults propagate."""
        if not self.accepts(event.type):
            log.debug("event_filtered", event_type=event.type)
            return []

        message = self.renderer.render(event)

        if self.dry_run:
            log.info("dry_run_message", event_type=event.type, payload=message.to_payload())
            return []

        return self.dispatcher.dispatch(message)
