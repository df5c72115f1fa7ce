"""Webhook delivery."""

from marathon_notifier.delivery.dispatcher import Dispatcher, Poster
from marathon_notifier.delivery.http import HttpxPoster

__all__ = ["Dispatcher", "HttpxPoster", "Poster"]
