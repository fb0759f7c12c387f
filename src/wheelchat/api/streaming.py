"""Plain-text streaming for chat responses.

``prime_events`` runs the service generator until the first piece of
reply text exists, so a model failure before that point can still be
answered with a proper HTTP error instead of a 200 with an empty body.
``text_stream`` then turns the remaining domain events into text chunks,
with metrics and an error boundary for failures after headers are sent.
"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator

from wheelchat.core.service.metrics import (
    CHAT_SESSION_DURATION_SECONDS,
    CHAT_SESSIONS_ACTIVE,
    CHAT_SESSIONS_TOTAL,
)
from wheelchat.core.service.models import ContentEvent, StreamEvent, ToolCallEvent

from .exceptions import UpstreamModelError

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_ERROR = "error"
STATUS_CANCELLED = "cancelled"
STATUS_UPSTREAM_ERROR = "upstream_error"

UPSTREAM_ERROR_MESSAGE = "The assistant is temporarily unavailable. Please try again."


def _is_text(event: StreamEvent) -> bool:
    return isinstance(event, ContentEvent) and bool(event.content)


async def _replay(
    buffered: list[StreamEvent], rest: AsyncGenerator[StreamEvent, None]
) -> AsyncGenerator[StreamEvent, None]:
    for event in buffered:
        yield event
    async for event in rest:
        yield event


async def prime_events(
    events: AsyncGenerator[StreamEvent, None],
) -> AsyncGenerator[StreamEvent, None]:
    """Advance *events* to its first text event.

    Raises ``UpstreamModelError`` if the service fails before producing
    text.  The returned generator replays the buffered events first.
    """
    buffered: list[StreamEvent] = []
    try:
        async for event in events:
            buffered.append(event)
            if _is_text(event):
                break
    except asyncio.CancelledError:
        raise
    except Exception as e:
        CHAT_SESSIONS_TOTAL.labels(status=STATUS_UPSTREAM_ERROR).inc()
        logger.warning("Chat failed before any reply text", exc_info=True)
        raise UpstreamModelError(UPSTREAM_ERROR_MESSAGE) from e
    return _replay(buffered, events)


async def text_stream(
    events: AsyncGenerator[StreamEvent, None],
    *,
    interrupted_text: str,
) -> AsyncGenerator[str, None]:
    """Yield reply text chunks; tool events are logged, not sent."""
    code = STATUS_OK
    CHAT_SESSIONS_ACTIVE.inc()
    start = time.monotonic()
    try:
        async for event in events:
            if _is_text(event):
                yield event.content
            elif isinstance(event, ToolCallEvent):
                logger.info(
                    "Tool %s %s", event.name, event.status, extra={"call_id": event.call_id}
                )
    except asyncio.CancelledError:
        code = STATUS_CANCELLED
        logger.info("Client disconnected; chat stream cancelled")
        raise
    except Exception:
        code = STATUS_ERROR
        logger.warning("Chat stream interrupted", exc_info=True)
        yield interrupted_text
    finally:
        CHAT_SESSIONS_ACTIVE.dec()
        CHAT_SESSIONS_TOTAL.labels(status=code).inc()
        CHAT_SESSION_DURATION_SECONDS.observe(time.monotonic() - start)
