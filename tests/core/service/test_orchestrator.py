"""Tests for the tool-calling conversation loop."""

from unittest.mock import AsyncMock

import pytest
from helpers import (
    RepeatingChatModel,
    ScriptedChatModel,
    hope_catalog,
    text_step,
    tool_step,
)
from langchain_core.messages import AIMessageChunk, HumanMessage, SystemMessage, ToolMessage
from langchain_core.messages.tool import tool_call_chunk

from wheelchat.configs.system import ChatConfig
from wheelchat.core.catalog.client import CatalogClient
from wheelchat.core.service.models import (
    BuildContext,
    ChatContext,
    ContentEvent,
    ToolCallEvent,
)
from wheelchat.core.service.orchestrator import ChatOrchestrator, last_tool_output
from wheelchat.core.spoke import SpokeCalculator, SpokeLengths

SPOKE_ARGS = {
    "erd": 600,
    "pcdLeft": 45,
    "pcdRight": 45,
    "flangeLeft": 18,
    "flangeRight": 18,
    "spokeCount": 32,
    "crossPattern": 3,
}


def _collaborators():
    catalog = AsyncMock(spec=CatalogClient)
    catalog.search_products.return_value = hope_catalog()
    spoke = AsyncMock(spec=SpokeCalculator)
    spoke.calculate.return_value = SpokeLengths(left=258, right=258)
    return catalog, spoke


def _ctx(text: str, **build) -> ChatContext:
    return ChatContext(history=[HumanMessage(content=text)], build=BuildContext(**build))


async def _run(orchestrator: ChatOrchestrator, ctx: ChatContext) -> list:
    return [event async for event in orchestrator.stream_response(ctx)]


def _text(events) -> str:
    return "".join(e.content for e in events if isinstance(e, ContentEvent))


class TestTextReplies:
    @pytest.mark.asyncio
    async def test_streams_text_chunks_in_order(self, app_config):
        model = ScriptedChatModel(text_step("We build ", "wheels by hand."))
        orchestrator = ChatOrchestrator(model, *_collaborators(), app_config)

        events = await _run(orchestrator, _ctx("What do you do?"))

        assert [e.content for e in events] == ["We build ", "wheels by hand."]
        assert all(e.origin == "model" for e in events)
        assert len(model.calls) == 1

    @pytest.mark.asyncio
    async def test_prompt_has_system_and_history(self, app_config):
        model = ScriptedChatModel(text_step("ok"))
        orchestrator = ChatOrchestrator(model, *_collaborators(), app_config)

        await _run(orchestrator, _ctx("hi", position="rear", axleSpacing="Boost"))

        system, human = model.calls[0]
        assert isinstance(system, SystemMessage)
        assert "[CURRENT BUILD STATE]" in system.content
        assert "- Position: rear" in system.content
        assert "- Axle Spacing: boost" in system.content
        assert human.content == "hi"
        assert {d["function"]["name"] for d in model.bound_tools} == {
            "lookup_product",
            "calculate_spoke_lengths",
            "check_live_inventory",
        }

    @pytest.mark.asyncio
    async def test_admin_directive(self, app_config):
        model = ScriptedChatModel(text_step("ok"))
        orchestrator = ChatOrchestrator(model, *_collaborators(), app_config)
        ctx = _ctx("hi")
        ctx.is_admin = True

        await _run(orchestrator, ctx)

        assert "[STAFF MODE]" in model.calls[0][0].content


class TestToolLoop:
    @pytest.mark.asyncio
    async def test_hope_rear_hub_end_to_end(self, app_config):
        model = ScriptedChatModel(
            tool_step(("lookup_product", {"query": "Hope rear hub"})),
            text_step("Good news: the Hope Pro 5 rear hub is in stock in black."),
        )
        catalog, spoke = _collaborators()
        orchestrator = ChatOrchestrator(model, catalog, spoke, app_config)

        events = await _run(orchestrator, _ctx("Is the Hope rear hub in stock?"))

        tool_events = [e for e in events if isinstance(e, ToolCallEvent)]
        assert [(e.name, e.status) for e in tool_events] == [
            ("lookup_product", "started"),
            ("lookup_product", "completed"),
        ]
        assert tool_events[0].arguments == {"query": "Hope rear hub"}
        assert _text(events) == "Good news: the Hope Pro 5 rear hub is in stock in black."

        tool_message = model.calls[1][-1]
        assert isinstance(tool_message, ToolMessage)
        assert tool_message.tool_call_id == "call_0"
        assert "Hope Pro 5 Rear Hub: IN STOCK - Black / 148x12 Boost (3 available)" in (
            tool_message.content
        )
        assert "Front Hub" not in tool_message.content

    @pytest.mark.asyncio
    async def test_hope_hub_asks_front_or_rear(self, app_config):
        model = ScriptedChatModel(
            tool_step(("lookup_product", {"query": "Hope hub"})),
            text_step("should never be streamed"),
        )
        catalog, spoke = _collaborators()
        orchestrator = ChatOrchestrator(model, catalog, spoke, app_config)

        events = await _run(orchestrator, _ctx("Do you have the Hope hub?"))

        assert events[-1].origin == "clarification"
        assert "Front or Rear?" in _text(events)
        assert len(model.calls) == 1
        catalog.search_products.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_parallel_tool_calls_in_one_step(self, app_config):
        model = ScriptedChatModel(
            tool_step(
                ("lookup_product", {"query": "Hope front hub"}),
                ("lookup_product", {"query": "Hope rear hub"}),
            ),
            text_step("Both are in stock."),
        )
        catalog, spoke = _collaborators()
        orchestrator = ChatOrchestrator(model, catalog, spoke, app_config)

        await _run(orchestrator, _ctx("Front and rear Hope hubs?"))

        tool_messages = [m for m in model.calls[1] if isinstance(m, ToolMessage)]
        assert [m.tool_call_id for m in tool_messages] == ["call_0", "call_1"]
        assert "Front Hub" in tool_messages[0].content
        assert "Rear Hub" in tool_messages[1].content
        assert catalog.search_products.await_count == 2

    @pytest.mark.asyncio
    async def test_malformed_tool_arguments_are_reported_back(self, app_config):
        bad_call = AIMessageChunk(
            content="",
            tool_call_chunks=[
                tool_call_chunk(name="lookup_product", args="{not json", id="bad", index=0)
            ],
        )
        model = ScriptedChatModel([bad_call], text_step("Which hub did you mean?"))
        catalog, spoke = _collaborators()
        orchestrator = ChatOrchestrator(model, catalog, spoke, app_config)

        events = await _run(orchestrator, _ctx("hub?"))

        tool_message = model.calls[1][-1]
        assert isinstance(tool_message, ToolMessage)
        assert tool_message.tool_call_id == "bad"
        assert tool_message.status == "error"
        assert _text(events) == "Which hub did you mean?"
        catalog.search_products.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_step_budget_terminates_loop(self, app_config):
        config = app_config.model_copy(update={"chat": ChatConfig(max_tool_steps=3)})
        model = RepeatingChatModel("calculate_spoke_lengths", SPOKE_ARGS)
        catalog, spoke = _collaborators()
        orchestrator = ChatOrchestrator(model, catalog, spoke, config)

        events = await _run(orchestrator, _ctx("Spoke lengths please"))

        assert len(model.calls) == 3
        assert spoke.calculate.await_count == 3
        assert events[-1].origin == "fallback"
        assert "Left 258mm, Right 258mm" in events[-1].content


class TestFallback:
    @pytest.mark.asyncio
    async def test_silent_model_after_tool_replies_with_tool_output(self, app_config):
        model = ScriptedChatModel(
            tool_step(("calculate_spoke_lengths", SPOKE_ARGS)),
            [],
        )
        orchestrator = ChatOrchestrator(model, *_collaborators(), app_config)

        events = await _run(orchestrator, _ctx("600 ERD, 45/45 PCD, 18/18, 32h 3x"))

        reply = _text(events)
        assert reply.startswith("Here's what I found:")
        assert "Left 258mm, Right 258mm" in reply
        assert events[-1].origin == "fallback"

    @pytest.mark.asyncio
    async def test_silent_model_without_tools_asks_for_detail(self, app_config):
        model = ScriptedChatModel([AIMessageChunk(content="")])
        orchestrator = ChatOrchestrator(model, *_collaborators(), app_config)

        events = await _run(orchestrator, _ctx("?"))

        assert _text(events) == app_config.prompt.fallback_need_detail

    @pytest.mark.asyncio
    async def test_no_fallback_when_text_was_streamed(self, app_config):
        model = ScriptedChatModel(
            [AIMessageChunk(content="Let me check. ")]
            + tool_step(("calculate_spoke_lengths", SPOKE_ARGS)),
            [],
        )
        orchestrator = ChatOrchestrator(model, *_collaborators(), app_config)

        events = await _run(orchestrator, _ctx("lengths?"))

        assert _text(events) == "Let me check. "
        assert not any(
            isinstance(e, ContentEvent) and e.origin == "fallback" for e in events
        )

    def test_last_tool_output_prefers_most_recent(self):
        messages = [
            ToolMessage(content="first", tool_call_id="a"),
            HumanMessage(content="x"),
            ToolMessage(content="second", tool_call_id="b"),
        ]
        assert last_tool_output(messages) == "second"
        assert last_tool_output([HumanMessage(content="x")]) is None


class TestErrors:
    @pytest.mark.asyncio
    async def test_model_failure_propagates(self, app_config):
        model = ScriptedChatModel(RuntimeError("insufficient_quota"))
        orchestrator = ChatOrchestrator(model, *_collaborators(), app_config)

        with pytest.raises(RuntimeError, match="insufficient_quota"):
            await _run(orchestrator, _ctx("hi"))
