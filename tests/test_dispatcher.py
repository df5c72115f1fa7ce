"""Tests for webhook destination resolution and delivery."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from marathon_notifier.config import SlackConfig
from marathon_notifier.delivery.dispatcher import Dispatcher
from marathon_notifier.errors import DeliveryError, MissingWebhookError, UnknownProjectError
from marathon_notifier.models import Attachment, RenderedMessage
from marathon_notifier.observer import RecordingObserver

DEFAULT = "https://hooks.example.com/default"
P1 = "https://hooks.example.com/p1"
P2 = "https://hooks.example.com/p2"


def make_message(projects=None):
    return RenderedMessage(
        username="bot",
        icon_url="http://icon",
        attachments=[Attachment(fallback="f", title="t", text="x", color="#7CD197", ts=1)],
        projects=projects or [],
    )


@pytest.fixture
def config():
    return SlackConfig(webhook_url=DEFAULT, projects={"p1": P1, "p2": P2})


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def poster():
    poster = MagicMock()
    poster.post_json = AsyncMock()
    return poster


@pytest.fixture
def dispatcher(config, poster, observer):
    return Dispatcher(config, poster, observer)


class TestDestinations:
    def test_default_when_no_projects(self, dispatcher):
        assert dispatcher.destinations(make_message()) == [DEFAULT]

    def test_projects_replace_default(self, dispatcher):
        assert dispatcher.destinations(make_message(["p1", "p2"])) == [P1, P2]

    def test_duplicates_collapsed(self, dispatcher):
        assert dispatcher.destinations(make_message(["p1", "p2", "p1"])) == [P1, P2]

    def test_duplicates_kept_when_disabled(self, poster, observer):
        config = SlackConfig(webhook_url=DEFAULT, projects={"p1": P1}, dedupe_projects=False)
        dispatcher = Dispatcher(config, poster, observer)
        assert dispatcher.destinations(make_message(["p1", "p1"])) == [P1, P1]

    def test_unknown_project_reported(self, dispatcher, observer):
        assert dispatcher.destinations(make_message(["ghost", "p2"])) == [P2]
        assert len(observer.errors) == 1
        assert isinstance(observer.errors[0], UnknownProjectError)
        assert observer.errors[0].project == "ghost"

    def test_missing_default_reported(self, poster, observer):
        dispatcher = Dispatcher(SlackConfig(), poster, observer)
        assert dispatcher.destinations(make_message()) == []
        assert isinstance(observer.errors[0], MissingWebhookError)


class TestDispatch:
    async def test_single_post_to_default(self, dispatcher, poster, observer):
        poster.post_json.return_value = "ok"
        msg = make_message()
        tasks = dispatcher.dispatch(msg)
        await asyncio.gather(*tasks)

        poster.post_json.assert_awaited_once_with(DEFAULT, msg.to_payload())
        assert observer.sent_messages == [msg]
        assert observer.replies == ["ok"]
        assert observer.errors == []

    async def test_one_post_per_project(self, dispatcher, poster):
        poster.post_json.return_value = "ok"
        msg = make_message(["p1", "p2"])
        await asyncio.gather(*dispatcher.dispatch(msg))

        urls = [call.args[0] for call in poster.post_json.await_args_list]
        assert sorted(urls) == [P1, P2]
        assert DEFAULT not in urls
        for call in poster.post_json.await_args_list:
            assert call.args[1]["projects"] == ["p1", "p2"]

    async def test_failure_isolated_per_destination(self, dispatcher, poster, observer):
        async def post(url, body):
            if url == P1:
                raise DeliveryError(url, "boom", status=500)
            return {"ok": True}

        poster.post_json.side_effect = post
        msg = make_message(["p1", "p2"])
        tasks = dispatcher.dispatch(msg)
        results = await asyncio.gather(*tasks)

        assert results == [None, None]
        assert len(observer.errors) == 1
        assert isinstance(observer.errors[0], DeliveryError)
        assert observer.sent_messages == [msg]
        assert observer.replies == [{"ok": True}]

    async def test_dispatch_returns_before_delivery(self, dispatcher, poster, observer):
        gate = asyncio.Event()

        async def post(url, body):
            await gate.wait()
            return "ok"

        poster.post_json.side_effect = post
        tasks = dispatcher.dispatch(make_message())
        assert observer.sent_messages == []

        gate.set()
        await asyncio.gather(*tasks)
        assert len(observer.sent_messages) == 1

    async def test_drain_waits_for_pending(self, dispatcher, poster, observer):
        poster.post_json.return_value = "ok"
        dispatcher.dispatch(make_message(["p1", "p2"]))
        await dispatcher.drain()
        assert observer.replies == ["ok", "ok"]

    async def test_nothing_scheduled_without_destinations(self, poster, observer):
        dispatcher = Dispatcher(SlackConfig(), poster, observer)
        assert dispatcher.dispatch(make_message()) == []
        poster.post_json.assert_not_awaited()

    async def test_observer_hook_failure_contained(self, config, poster):
        observer = MagicMock()
        observer.on_sent_message.side_effect = RuntimeError("hook broke")
        poster.post_json.return_value = "ok"
        dispatcher = Dispatcher(config, poster, observer)

        results = await asyncio.gather(*dispatcher.dispatch(make_message(["p1", "p2"])))

        assert results == [None, None]
        assert observer.on_sent_message.call_count == 2
        observer.on_error.assert_not_called()
