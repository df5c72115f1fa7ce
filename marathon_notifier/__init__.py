"""marathon-notifier - Marathon lifecycle events to Slack webhooks."""

__version__ = "0.1.0"
