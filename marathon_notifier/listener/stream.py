"""Marathon server-sent event stream consumer (``/v2/events``)."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Iterable, Iterator

import httpx

from marathon_notifier.config import StreamConfig
from marathon_notifier.models import Event
from marathon_notifier.service import Notifier
from marathon_notifier.utils.logging import get_logger

log = get_logger(__name__)

# Marathon reports this consumer's own (un)subscription on the stream
SUBSCRIPTION_EVENTS = frozenset({"event_stream_attached", "event_stream_detached"})


class SSEParser:
    """Incremental parser for ``text/event-stream`` lines."""

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []

    def feed(self, line: str) -> tuple[str, str] | None:
        """Consume one line; return ``(event, data)`` when a block completes."""
        line = line.rstrip("\r\n")
        if not line:
            if not self._data:
                self._event = ""
                return None
            result = (self._event or "message", "\n".join(self._data))
            self._event = ""
            self._data = []
            return result

        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        value = value.removeprefix(" ")
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        return None


def parse_sse_lines(lines: Iterable[str]) -> Iterator[tuple[str, str]]:
    parser = SSEParser()
    for line in lines:
        block = parser.feed(line)
        if block is not None:
            yield block


class EventStreamConsumer:
    """Subscribes to Marathon's event stream and feeds the notifier.

    Reconnects after ``reconnect_delay`` when the stream drops.
    """

    def __init__(
        self,
        config: StreamConfig,
        notifier: Notifier,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._notifier = notifier
        self._client = client
        self._owns_client = client is None
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def url(self) -> str:
        return self._config.marathon_url.rstrip("/") + "/v2/events"

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(10.0, read=None))
        self._running = True
        self._task = asyncio.create_task(self._run(), name="marathon-event-stream")
        log.info("event_stream_started", url=self.url)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        log.info("event_stream_stopped")

    async def _run(self) -> None:
        while self._running:
            try:
                await self.consume_once()
            except httpx.HTTPError as e:
                log.warning("event_stream_unavailable", url=self.url, error=str(e))
            except Exception:
                log.exception("event_stream_error")
            if self._running:
                await asyncio.sleep(self._config.reconnect_delay)

    async def consume_once(self) -> int:
        """Read the stream until it closes. Returns the number of events handled."""
        assert self._client is not None
        handled = 0
        parser = SSEParser()
        async with self._client.stream(
            "GET", self.url, headers={"Accept": "text/event-stream"}
        ) as resp:
            resp.raise_for_status()
            log.info("event_stream_attached", url=self.url)
            async for line in resp.aiter_lines():
                block = parser.feed(line)
                if block is None:
                    continue
                if self._process(*block):
                    handled += 1
        return handled

    def _process(self, event_name: str, raw: str) -> bool:
        try:
            payload: dict[str, Any] = json.loads(raw)
        except json.JSONDecodeError:
            log.debug("event_stream_parse_error", event=event_name, data=raw[:200])
            return False
        if not isinstance(payload, dict):
            return False

        payload.setdefault("eventType", event_name)
        event = Event.from_payload(payload)
        if event.type in SUBSCRIPTION_EVENTS:
            log.debug("event_stream_subscription_event", event_type=event.type)
            return False
        try:
            self._notifier.handle(event)
        except Exception:
            log.exception("render_failed", event_type=event.type)
            return False
        return True
