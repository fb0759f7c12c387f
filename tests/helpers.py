"""Test helpers: catalog records and a scripted chat model."""

import json
from typing import Any

from langchain_core.messages import AIMessageChunk, BaseMessage
from langchain_core.messages.tool import tool_call_chunk

from wheelchat.core.catalog.models import ProductRecord, VariantRecord


def make_product(
    title: str,
    *variants: VariantRecord,
    tags: tuple[str, ...] = (),
    lead_time_days: int = 0,
) -> ProductRecord:
    return ProductRecord(
        title=title,
        tags=frozenset(tags),
        variants=list(variants),
        lead_time_days=lead_time_days,
        total_inventory=sum(max(v.inventory_quantity, 0) for v in variants),
    )


def variant(
    title: str = "Default Title", qty: int = 0, oversell: bool = False
) -> VariantRecord:
    return VariantRecord(title=title, inventory_quantity=qty, oversell_allowed=oversell)


def hope_catalog() -> list[ProductRecord]:
    """Two rear-hub variants (3 on hand / special order) and a front hub."""
    return [
        make_product(
            "Hope Pro 5 Rear Hub",
            variant("Black / 148x12 Boost", qty=3),
            variant("Silver / 148x12 Boost", qty=0, oversell=True),
            tags=("component:hub", "brand:hope"),
            lead_time_days=10,
        ),
        make_product(
            "Hope Pro 5 Front Hub",
            variant("Black / 110x15 Boost", qty=5),
            tags=("component:hub", "brand:hope"),
        ),
    ]


# ---------------------------------------------------------------------------
# Scripted chat model
# ---------------------------------------------------------------------------


def text_step(*pieces: str) -> list[AIMessageChunk]:
    return [AIMessageChunk(content=piece) for piece in pieces]


def tool_step(*calls: tuple[str, dict[str, Any]], id_prefix: str = "call") -> list[AIMessageChunk]:
    """One chunk per requested tool call, each with its own index."""
    return [
        AIMessageChunk(
            content="",
            tool_call_chunks=[
                tool_call_chunk(
                    name=name,
                    args=json.dumps(args),
                    id=f"{id_prefix}_{index}",
                    index=index,
                )
            ],
        )
        for index, (name, args) in enumerate(calls)
    ]


class ScriptedChatModel:
    """Plays one scripted step per ``astream`` call.

    A step is a list of chunks or an exception to raise.  Once the script
    runs out, further calls stream nothing.
    """

    def __init__(self, *steps: list[AIMessageChunk] | Exception):
        self.steps = list(steps)
        self.calls: list[list[BaseMessage]] = []
        self.bound_tools: list[dict[str, Any]] | None = None

    def bind_tools(self, tools: list[dict[str, Any]], **kwargs: Any) -> "ScriptedChatModel":
        self.bound_tools = tools
        return self

    async def astream(self, messages: list[BaseMessage], **kwargs: Any):
        self.calls.append(list(messages))
        if not self.steps:
            return
        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        for chunk in step:
            yield chunk


class RepeatingChatModel(ScriptedChatModel):
    """Requests the same tool call on every step, forever."""

    def __init__(self, name: str, args: dict[str, Any]):
        super().__init__()
        self._name = name
        self._args = args

    async def astream(self, messages: list[BaseMessage], **kwargs: Any):
        self.calls.append(list(messages))
        for chunk in tool_step((self._name, self._args), id_prefix=f"call{len(self.calls)}"):
            yield chunk

