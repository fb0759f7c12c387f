"""Tool-calling conversation loop.

One request runs ``Prompting → (ToolPending → Prompting)* → Done``:

1. Stream the tool-bound model over ``[system, *history]``, forwarding
   every text chunk as it arrives.
2. If the merged reply requests tools, run them concurrently through the
   request's ``ToolDispatcher`` and append one ``ToolMessage`` per call.
3. A clarification outcome ends the turn with a rendered question; the
   model is not prompted again.
4. Otherwise prompt again, at most ``chat.max_tool_steps`` times.  On the
   last step tools still run so their output can reach the fallback.

If no text at all was produced, the reply is synthesized from the last
``ToolMessage`` in the history (or a "need more detail" prompt).  The
history list is the only carrier of tool results.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    AIMessageChunk,
    BaseMessage,
    InvalidToolCall,
    SystemMessage,
    ToolCall,
    ToolMessage,
    message_chunk_to_message,
)
from opentelemetry.trace import Status, StatusCode

from wheelchat.configs.config import AppConfig
from wheelchat.core.catalog.client import CatalogClient
from wheelchat.core.spoke import SpokeCalculator
from wheelchat.infra.telemetry import (
    ATTR_CHAT_OUTCOME,
    ATTR_CHAT_STEPS,
    SPAN_CHAT_STREAM,
    tracer,
)

from .metrics import (
    CLARIFICATIONS_TOTAL,
    FALLBACK_REPLIES_TOTAL,
    ORCHESTRATOR_STEPS,
    STEP_BUDGET_EXHAUSTED_TOTAL,
)
from .models import (
    ORIGIN_CLARIFICATION,
    ORIGIN_FALLBACK,
    TOOL_STATUS_ERROR,
    ChatContext,
    ChatService,
    ContentEvent,
    StreamEvent,
)
from .prompt import build_system_prompt
from .stream import map_chunk, map_tool_call_start, map_tool_outcome
from .tools.model import Clarification, ToolOutcome
from .tools.registry import ToolDispatcher, build_dispatcher

logger = logging.getLogger(__name__)

OUTCOME_ANSWERED = "answered"
OUTCOME_CLARIFIED = "clarified"
OUTCOME_FALLBACK = "fallback"

FALLBACK_REASON_TOOL_OUTPUT = "tool_output"
FALLBACK_REASON_NEED_DETAIL = "need_detail"


def last_tool_output(messages: list[BaseMessage]) -> str | None:
    """Content of the most recent non-empty ``ToolMessage``, if any."""
    for message in reversed(messages):
        if isinstance(message, ToolMessage) and message.content:
            return str(message.content)
    return None


def _with_call_ids(message: AIMessage, step: int) -> AIMessage:
    """Give every tool call an ID so each ``ToolMessage`` can reference it."""
    if all(tc.get("id") for tc in message.tool_calls) and all(
        tc.get("id") for tc in message.invalid_tool_calls
    ):
        return message
    tool_calls = [
        {**tc, "id": tc.get("id") or f"call_{step}_{i}"}
        for i, tc in enumerate(message.tool_calls)
    ]
    invalid = [
        {**tc, "id": tc.get("id") or f"call_{step}_invalid_{i}"}
        for i, tc in enumerate(message.invalid_tool_calls)
    ]
    return message.model_copy(update={"tool_calls": tool_calls, "invalid_tool_calls": invalid})


def _invalid_call_outcome(call: InvalidToolCall) -> ToolOutcome:
    name = call.get("name") or "unknown"
    return ToolOutcome.error(
        name,
        f"Invalid arguments for {name}: the arguments were not valid JSON. "
        "Call the tool again with well-formed arguments.",
    )


def _tool_message(call_id: str, outcome: ToolOutcome) -> ToolMessage:
    return ToolMessage(
        content=outcome.content,
        tool_call_id=call_id,
        name=outcome.name,
        status="error" if outcome.status == TOOL_STATUS_ERROR else "success",
    )


class ChatOrchestrator(ChatService):
    """Runs the tool-calling loop for one request at a time.

    Instances hold only collaborators; all per-request state lives in
    ``stream_response`` locals.
    """

    chat_service_name = "tool_loop"

    def __init__(
        self,
        llm: BaseChatModel,
        catalog: CatalogClient,
        spoke: SpokeCalculator,
        config: AppConfig,
    ) -> None:
        self._llm = llm
        self._catalog = catalog
        self._spoke = spoke
        self._config = config

    def _clarifying_question(self, clarification: Clarification) -> str:
        prompts = self._config.prompt
        questions = {"position": prompts.clarify_position}
        return questions.get(clarification.field, prompts.fallback_need_detail)

    async def _run_tools(
        self,
        dispatcher: ToolDispatcher,
        tool_calls: list[ToolCall],
    ) -> list[ToolOutcome]:
        return list(
            await asyncio.gather(*(dispatcher.dispatch(call) for call in tool_calls))
        )

    async def stream_response(
        self, ctx: ChatContext
    ) -> AsyncGenerator[StreamEvent, None]:
        max_steps = self._config.chat.max_tool_steps
        dispatcher = build_dispatcher(
            ctx.build, self._catalog, self._spoke, self._config.catalog
        )
        model = self._llm.bind_tools(dispatcher.definitions())
        messages: list[BaseMessage] = [
            SystemMessage(
                content=build_system_prompt(self._config.prompt, ctx.build, ctx.is_admin)
            ),
            *ctx.history,
        ]

        emitted_chars = 0
        steps = 0
        outcome_label = OUTCOME_ANSWERED
        # Started without activation: the generator may resume in another task.
        span = tracer.start_span(SPAN_CHAT_STREAM)
        try:
            for step in range(1, max_steps + 1):
                steps = step
                merged: AIMessageChunk | None = None
                async for chunk in model.astream(messages):
                    merged = chunk if merged is None else merged + chunk
                    event = map_chunk(chunk)
                    if event is not None:
                        emitted_chars += len(event.content)
                        yield event

                if merged is None:
                    break
                reply = _with_call_ids(message_chunk_to_message(merged), step)
                messages.append(reply)
                if not reply.tool_calls and not reply.invalid_tool_calls:
                    break

                for call in reply.tool_calls:
                    yield map_tool_call_start(call)

                outcomes = await self._run_tools(dispatcher, reply.tool_calls)
                answered: list[tuple[ToolCall | InvalidToolCall, ToolOutcome]] = list(
                    zip(reply.tool_calls, outcomes)
                )
                answered += [
                    (call, _invalid_call_outcome(call))
                    for call in reply.invalid_tool_calls
                ]
                for call, outcome in answered:
                    messages.append(_tool_message(call["id"], outcome))
                    yield map_tool_outcome(call, outcome)

                clarification = next(
                    (o.clarification for o in outcomes if o.clarification), None
                )
                if clarification is not None:
                    CLARIFICATIONS_TOTAL.labels(field=clarification.field).inc()
                    logger.info("Asking customer to clarify %s", clarification.field)
                    outcome_label = OUTCOME_CLARIFIED
                    yield ContentEvent(
                        content=self._clarifying_question(clarification),
                        origin=ORIGIN_CLARIFICATION,
                    )
                    return

                if step == max_steps:
                    STEP_BUDGET_EXHAUSTED_TOTAL.inc()
                    logger.warning(
                        "Tool step budget (%d) exhausted; finishing with %d chars of text",
                        max_steps,
                        emitted_chars,
                    )

            if emitted_chars == 0:
                outcome_label = OUTCOME_FALLBACK
                yield self._fallback(messages)
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise
        finally:
            ORCHESTRATOR_STEPS.observe(steps)
            span.set_attribute(ATTR_CHAT_STEPS, steps)
            span.set_attribute(ATTR_CHAT_OUTCOME, outcome_label)
            span.end()

    def _fallback(self, messages: list[BaseMessage]) -> ContentEvent:
        prompts = self._config.prompt
        tool_output = last_tool_output(messages)
        if tool_output is not None:
            FALLBACK_REPLIES_TOTAL.labels(reason=FALLBACK_REASON_TOOL_OUTPUT).inc()
            logger.warning("Model produced no text; replying with the last tool output")
            return ContentEvent(
                content=prompts.fallback_intro + tool_output, origin=ORIGIN_FALLBACK
            )
        FALLBACK_REPLIES_TOTAL.labels(reason=FALLBACK_REASON_NEED_DETAIL).inc()
        logger.warning("Model produced no text and no tool ran; asking for detail")
        return ContentEvent(content=prompts.fallback_need_detail, origin=ORIGIN_FALLBACK)
