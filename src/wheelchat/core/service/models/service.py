"""Abstract chat service base class."""

from abc import ABC, abstractmethod
from typing import AsyncGenerator

from .context import ChatContext
from .events import StreamEvent

__all__ = ["ChatService"]


class ChatService(ABC):
    """Abstract base class for chat services."""

    chat_service_name: str = ""

    @abstractmethod
    def stream_response(self, ctx: ChatContext) -> AsyncGenerator[StreamEvent, None]:
        """Stream response as domain events.

        Args:
            ctx: Per-request context with history, build context and admin flag.

        Yields:
            StreamEvent instances (content, tool_call).
        """
