"""Tests for observer implementations."""

from marathon_notifier.models import Attachment, RenderedMessage
from marathon_notifier.observer import LoggingObserver, RecordingObserver


def make_message():
    return RenderedMessage(
        username="bot",
        icon_url="http://icon",
        attachments=[Attachment(fallback="f", title="t", text="x", color="#0066cc", ts=1)],
    )


class TestRecordingObserver:
    def test_records_each_hook(self):
        observer = RecordingObserver()
        msg = make_message()
        error = RuntimeError("boom")

        observer.on_received_event({"timestamp": "t", "eventType": "x", "data": {}})
        observer.on_sent_message(msg)
        observer.on_received_reply("ok")
        observer.on_error(error)

        assert observer.received_events[0]["eventType"] == "x"
        assert observer.sent_messages == [msg]
        assert observer.replies == ["ok"]
        assert observer.errors == [error]


class TestLoggingObserver:
    def test_hooks_do_not_raise(self):
        observer = LoggingObserver()
        observer.on_received_event({"timestamp": "t", "eventType": "x", "data": {}})
        observer.on_sent_message(make_message())
        observer.on_received_reply({"ok": True})
        observer.on_error(RuntimeError("boom"))
