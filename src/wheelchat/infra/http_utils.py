"""Thin async JSON-over-HTTP helpers.

Pure infra, no domain imports.  Each call opens a short-lived
``httpx.AsyncClient`` so nothing is shared between requests.  Tests
inject an ``httpx.MockTransport`` through ``transport``.
"""

from __future__ import annotations

from typing import Any

import httpx

_JSON_CONTENT_TYPE = "application/json"


class HttpClient:
    """Async JSON GET / POST with a mandatory timeout."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def get_json(
        self,
        url: str,
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET *url* and return the decoded JSON body.

        Raises ``httpx.HTTPError`` on transport failures and non-2xx
        responses, ``ValueError`` on an undecodable body.
        """
        async with self._client(timeout) as client:
            response = await client.get(url, headers=headers)
            response.raise_for_status()
            return response.json()

    async def post_json(
        self,
        url: str,
        payload: dict[str, Any],
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST *payload* as JSON and return the decoded JSON body."""
        merged = {"Content-Type": _JSON_CONTENT_TYPE, **(headers or {})}
        async with self._client(timeout) as client:
            response = await client.post(url, json=payload, headers=merged)
            response.raise_for_status()
            return response.json()
