"""HTTP callback receiver for Marathon event subscriptions, using aiohttp."""

from __future__ import annotations

from typing import Any

from aiohttp import web

from marathon_notifier.config import ListenerConfig
from marathon_notifier.models import Event
from marathon_notifier.service import Notifier
from marathon_notifier.utils.logging import get_logger

log = get_logger(__name__)


class CallbackServer:
    """Receives events POSTed by Marathon and hands them to the notifier."""

    def __init__(self, config: ListenerConfig, notifier: Notifier) -> None:
        self._config = config
        self._notifier = notifier
        self._runner: web.AppRunner | None = None

    @property
    def path(self) -> str:
        path = self._config.path
        return path if path.startswith("/") else f"/{path}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        app = self._build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.bind, self._config.port)
        await site.start()
        log.info(
            "callback_server_started",
            bind=self._config.bind,
            port=self._config.port,
            path=self.path,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        log.info("callback_server_stopped")

    def _build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(self.path, self._handle_event)
        app.router.add_get("/health", self._handle_health)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_event(self, request: web.Request) -> web.Response:
        try:
            payload: dict[str, Any] = await request.json()
        except ValueError:
            return web.Response(status=400, text="Invalid JSON")

        if not isinstance(payload, dict) or "eventType" not in payload:
            return web.Response(status=400, text="Missing eventType")

        event = Event.from_payload(payload)
        try:
            self._notifier.handle(event)
        except Exception:
            log.exception("render_failed", event_type=event.type)
            return web.Response(status=422, text="Malformed event")

        log.info("event_received", event_type=event.type)
        return web.Response(status=200, text="OK")

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})
