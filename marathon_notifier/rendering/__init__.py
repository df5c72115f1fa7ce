"""Event classification and Slack message rendering."""

from marathon_notifier.rendering.renderer import EventRenderer
from marathon_notifier.rendering.timestamps import date_token, to_unix_timestamp

__all__ = ["EventRenderer", "date_token", "to_unix_timestamp"]
