"""Domain stream events emitted by the chat service."""

from typing import Any, Literal

from pydantic import BaseModel, Field

__all__ = ["ContentEvent", "StreamEvent", "ToolCallEvent"]


class ContentEvent(BaseModel):
    """User-facing streamed text."""

    type: Literal["content"] = "content"
    content: str = Field(description="Text token content")
    origin: Literal["model", "clarification", "fallback"] = Field(
        default="model",
        description="Whether the text came from the model or was rendered by the service",
    )


class ToolCallEvent(BaseModel):
    """Tool invocation lifecycle event."""

    type: Literal["tool_call"] = "tool_call"
    name: str = Field(description="Tool name, e.g. 'lookup_product'")
    status: Literal["started", "completed", "error", "clarify"] = Field(
        description="Tool call lifecycle status"
    )
    arguments: dict[str, Any] | None = Field(
        default=None, description="Tool arguments (present when started)"
    )
    result: str | None = Field(
        default=None,
        description="Tool result text (present when finished)",
    )
    call_id: str | None = Field(default=None, description="Model tool call ID")


StreamEvent = ContentEvent | ToolCallEvent
