"""Mapping from LangChain message chunks to domain StreamEvents.

The orchestrator streams ``AIMessageChunk`` objects straight from
``astream``.  Text is forwarded chunk by chunk as ``ContentEvent``;
tool calls are only surfaced once the step's chunks have been merged,
because their JSON arguments arrive split across many chunks.
"""

from __future__ import annotations

from langchain_core.messages import AIMessageChunk, ToolCall

from .models import (
    ORIGIN_MODEL,
    TOOL_STATUS_STARTED,
    ContentEvent,
    ToolCallEvent,
)
from .tools.model import ToolOutcome


def chunk_text(chunk: AIMessageChunk) -> str:
    """Return the text carried by *chunk*.

    ``content`` is usually a string; some providers send a list of
    content blocks, of which only the ``text`` blocks are user-facing.
    """
    content = chunk.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


def map_chunk(chunk: AIMessageChunk) -> ContentEvent | None:
    """Map one streamed chunk to a content event, or *None* if it has no text."""
    text = chunk_text(chunk)
    if not text:
        return None
    return ContentEvent(content=text, origin=ORIGIN_MODEL)


def map_tool_call_start(tool_call: ToolCall) -> ToolCallEvent:
    return ToolCallEvent(
        name=tool_call.get("name") or "unknown",
        status=TOOL_STATUS_STARTED,
        arguments=tool_call.get("args") or {},
        call_id=tool_call.get("id"),
    )


def map_tool_outcome(tool_call: ToolCall, outcome: ToolOutcome) -> ToolCallEvent:
    return ToolCallEvent(
        name=outcome.name,
        status=outcome.status,
        result=outcome.content or None,
        call_id=tool_call.get("id"),
    )
