"""httpx-backed JSON poster."""

from __future__ import annotations

import json
from typing import Any

import httpx

from marathon_notifier.errors import DeliveryError
from marathon_notifier.utils.logging import get_logger, redact_url

log = get_logger(__name__)


class HttpxPoster:
    """POSTs JSON bodies with a shared ``httpx.AsyncClient``."""

    def __init__(self, timeout: float = 10.0, client: httpx.AsyncClient | None = None) -> None:
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def post_json(self, url: str, body: dict[str, Any]) -> Any:
        if self._client is None:
            await self.start()
        assert self._client is not None

        try:
            resp = await self._client.post(url, json=body)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DeliveryError(
                redact_url(url), e.response.text, status=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise DeliveryError(redact_url(url), str(e) or type(e).__name__) from e

        # Slack answers with a plain-text "ok"
        try:
            return resp.json()
        except json.JSONDecodeError:
            return resp.text
