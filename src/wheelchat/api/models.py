"""Pydantic models for the chat API."""

import logging
from typing import Any, Literal

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import BaseModel, ConfigDict, Field, field_validator

from wheelchat.configs.system import ChatConfig
from wheelchat.core.service.models import BuildContext, ChatContext

logger = logging.getLogger(__name__)

MessageRole = Literal["user", "assistant", "system", "tool", "agent"]


class InvalidChatRequest(ValueError):
    """A well-formed body that the chat endpoint still refuses."""


class ChatMessage(BaseModel):
    """A single message in the conversation, as sent by the widget."""

    model_config = ConfigDict(populate_by_name=True)

    role: MessageRole = Field(description="Message sender role")
    content: str = Field(default="", description="Message content")
    tool_call_id: str | None = Field(
        default=None, alias="toolCallId", description="Set on tool messages"
    )

    @field_validator("content", mode="before")
    @classmethod
    def _null_content(cls, value: Any) -> Any:
        return "" if value is None else value


class ChatRequest(BaseModel):
    """Request model for ``POST /chat``."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(
        min_length=1, description="Conversation so far, oldest first"
    )
    build_context: BuildContext = Field(
        default_factory=BuildContext,
        alias="buildContext",
        description="Snapshot of the customer's in-progress build",
    )
    is_admin: bool = Field(default=False, alias="isAdmin")

    @field_validator("build_context", mode="before")
    @classmethod
    def _null_build_context(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("is_admin", mode="before")
    @classmethod
    def _null_is_admin(cls, value: Any) -> Any:
        return False if value is None else value


def to_langchain_message(message: ChatMessage) -> BaseMessage | None:
    """Convert one widget message; ``tool`` messages are not forwarded.

    A tool result must directly follow the assistant turn that requested
    it, and widget history does not carry those requests.
    """
    if message.role == "user":
        return HumanMessage(content=message.content)
    if message.role in ("assistant", "agent"):
        return AIMessage(content=message.content)
    if message.role == "system":
        return SystemMessage(content=message.content)
    logger.debug("Dropping client-side tool message %s", message.tool_call_id)
    return None


def to_chat_context(request: ChatRequest, config: ChatConfig) -> ChatContext:
    """Validate limits and build the orchestrator input for *request*.

    Only customer turns are length-checked.
    """
    for message in request.messages:
        if message.role == "user" and len(message.content) > config.max_message_length:
            raise InvalidChatRequest(
                f"Message exceeds {config.max_message_length} characters"
            )

    recent = request.messages[-config.max_history_messages :]
    history = [m for m in map(to_langchain_message, recent) if m is not None]
    if not history:
        raise InvalidChatRequest("No user or assistant messages in request")

    return ChatContext(
        history=history,
        build=request.build_context,
        is_admin=request.is_admin,
    )


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""

    error: str = Field(description="Human-readable error message")


class HealthResponse(BaseModel):
    status: Literal["Online"] = "Online"
    provider: str = Field(description="Language model provider")
