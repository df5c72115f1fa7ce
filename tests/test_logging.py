"""Tests for log redaction."""

from marathon_notifier.utils.logging import _filter_sensitive, redact_url


class TestRedaction:
    def test_redact_slack_url(self):
        url = "https://hooks.slack.com/services/T000/B000/abcdef"
        assert redact_url(url) == "https://hooks.slack.com/services/***REDACTED***"

    def test_other_urls_untouched(self):
        assert redact_url("https://hooks.example.com/x") == "https://hooks.example.com/x"

    def test_filter_processor(self):
        event = {
            "event": "delivery_failed",
            "url": "https://hooks.slack.com/services/T000/B000/abcdef",
            "detail": "token=abc123",
            "count": 3,
        }
        result = _filter_sensitive(None, "info", event)
        assert "abcdef" not in result["url"]
        assert result["detail"] == "token=***REDACTED***"
        assert result["count"] == 3
