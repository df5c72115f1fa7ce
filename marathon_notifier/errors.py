"""Delivery error types reported through the observer."""

from __future__ import annotations


class NotifierError(Exception):
    pass


class DeliveryError(NotifierError):
    """A POST to a webhook failed (transport error or non-2xx reply)."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"Delivery failed ({status or 'no response'}): {reason}")


class UnknownProjectError(NotifierError):
    def __init__(self, project: str) -> None:
        self.project = project
        super().__init__(f"No webhook configured for project '{project}'")


class MissingWebhookError(NotifierError):
    def __init__(self) -> None:
        super().__init__("No default webhook URL configured")
