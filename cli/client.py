"""HTTP client for the wheelchat ``POST /chat`` endpoint."""

import logging
from typing import Any, AsyncIterator

import httpx

from .config import CLIConfig

logger = logging.getLogger(__name__)


class ChatAPIError(Exception):
    """The server refused the request or could not be reached."""


def _error_message(response: httpx.Response, body: bytes) -> str:
    try:
        detail = response.json().get("error")
    except ValueError:
        detail = None
    return f"HTTP {response.status_code}: {detail or body.decode(errors='replace')}"


class ChatAPIClient:
    """Streams reply text for a conversation."""

    def __init__(
        self,
        config: CLIConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.client = httpx.AsyncClient(timeout=config.timeout, transport=transport)

    def build_payload(self, messages: list[dict[str, str]]) -> dict[str, Any]:
        return {
            "messages": messages,
            "buildContext": self.config.build_context,
            "isAdmin": self.config.is_admin,
        }

    async def chat(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """Send *messages* and yield reply text as it arrives.

        Raises
        ------
        ChatAPIError
            On a non-200 response, a timeout or a connection failure.
        """
        url = self.config.chat_url
        logger.debug("POST %s with %d message(s)", url, len(messages))
        try:
            async with self.client.stream(
                "POST",
                url,
                json=self.build_payload(messages),
                headers={"Accept": "text/plain"},
            ) as response:
                logger.debug("Response status: %s", response.status_code)
                if response.status_code != 200:
                    body = await response.aread()
                    raise ChatAPIError(_error_message(response, body))

                async for chunk in response.aiter_text():
                    if chunk:
                        yield chunk
        except httpx.TimeoutException as e:
            raise ChatAPIError("Request timed out.") from e
        except httpx.TransportError as e:
            raise ChatAPIError(f"Connection error: {e}") from e

    async def health(self) -> dict[str, Any]:
        response = await self.client.get(f"{self.config.base_url}/health")
        response.raise_for_status()
        return response.json()

    async def close(self):
        await self.client.aclose()
