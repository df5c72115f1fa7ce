"""Tests for the render-and-dispatch service."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from marathon_notifier.config import EventsConfig, Settings, SlackConfig
from marathon_notifier.models import Event
from marathon_notifier.observer import RecordingObserver
from marathon_notifier.service import Notifier

TS = "2020-01-01T00:00:00.000Z"


@pytest.fixture
def settings():
    return Settings(
        slack=SlackConfig(
            webhook_url="https://hooks.example.com/default",
            projects={"proj1": "https://hooks.example.com/proj1"},
        )
    )


@pytest.fixture
def poster():
    poster = MagicMock()
    poster.post_json = AsyncMock(return_value="ok")
    return poster


class TestNotifier:
    async def test_handle_renders_and_dispatches(self, settings, poster):
        observer = RecordingObserver()
        notifier = Notifier(settings, poster=poster, observer=observer)

        tasks = notifier.handle(Event("deployment_failed", {"id": "d1", "timestamp": TS}))
        await asyncio.gather(*tasks)

        assert len(observer.received_events) == 1
        assert len(observer.sent_messages) == 1
        poster.post_json.assert_awaited_once()
        assert poster.post_json.await_args.args[0] == "https://hooks.example.com/default"

    async def test_deployment_success_routed_to_project(self, settings, poster):
        notifier = Notifier(settings, poster=poster, observer=RecordingObserver())
        event = Event("deployment_success", {
            "id": "d1",
            "timestamp": TS,
            "plan": {
                "id": "d1",
                "steps": [{"actions": [{"action": "RestartApplication", "app": "/proj1/svc"}]}],
                "target": {"apps": [], "groups": []},
            },
        })
        await asyncio.gather(*notifier.handle(event))
        assert poster.post_json.await_args.args[0] == "https://hooks.example.com/proj1"

    def test_render_fault_propagates(self, settings, poster):
        notifier = Notifier(settings, poster=poster, observer=RecordingObserver())
        with pytest.raises(KeyError):
            notifier.handle(Event("group_change_failed", {"timestamp": TS}))

    def test_filtered_event_types(self, poster):
        settings = Settings(events=EventsConfig(event_types=["deployment_failed"]))
        observer = RecordingObserver()
        notifier = Notifier(settings, poster=poster, observer=observer)

        assert notifier.handle(Event("status_update_event", {"timestamp": TS})) == []
        assert observer.received_events == []

    def test_dry_run_skips_delivery(self, settings, poster):
        observer = RecordingObserver()
        notifier = Notifier(settings, poster=poster, observer=observer, dry_run=True)

        assert notifier.handle(Event("deployment_failed", {"id": "d1", "timestamp": TS})) == []
        assert len(observer.received_events) == 1
        poster.post_json.assert_not_called()

    async def test_start_stop_with_default_poster(self, settings):
        notifier = Notifier(settings, observer=RecordingObserver())
        await notifier.start()
        await notifier.stop()
