"""Tool registry and dispatcher for the chat orchestrator."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from langchain_core.messages import ToolCall
from pydantic import ValidationError

from wheelchat.configs.system import CatalogConfig
from wheelchat.core.catalog.client import CatalogClient
from wheelchat.core.service.metrics import TOOL_CALLS_TOTAL
from wheelchat.core.service.models import BuildContext
from wheelchat.core.spoke import SpokeCalculator
from wheelchat.infra.telemetry import (
    ATTR_TOOL_NAME,
    ATTR_TOOL_STATUS,
    SPAN_TOOL_DISPATCH,
    tracer,
)

from .inventory_tool import LiveInventoryTool
from .lookup_tool import LookupProductTool
from .model import ChatTool, ToolOutcome
from .spoke_tool import SpokeLengthTool

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "arguments"
        problems.append(f"{location}: {err['msg']}")
    return "; ".join(problems)


class ToolDispatcher:
    """Routes model tool calls to the registered tools.

    Arguments are validated against each tool's ``args_model`` before the
    tool runs; a call that fails validation (or names an unknown tool)
    returns an error outcome the model can read, and no network call is
    made.
    """

    def __init__(self, tools: Iterable[ChatTool]) -> None:
        self._tools: dict[str, ChatTool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name '{tool.name}'")
            self._tools[tool.name] = tool

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[dict[str, Any]]:
        """OpenAI tool definitions for ``bind_tools``."""
        return [tool.to_tool_definition().to_openai() for tool in self._tools.values()]

    async def dispatch(self, tool_call: ToolCall) -> ToolOutcome:
        name = tool_call.get("name") or ""
        with tracer.start_as_current_span(SPAN_TOOL_DISPATCH) as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            outcome = await self._run(name, tool_call.get("args") or {})
            span.set_attribute(ATTR_TOOL_STATUS, outcome.status)
        TOOL_CALLS_TOTAL.labels(tool_name=name or "unknown", status=outcome.status).inc()
        return outcome

    async def _run(self, name: str, raw_args: dict[str, Any]) -> ToolOutcome:
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("Model requested unknown tool %r", name)
            return ToolOutcome.error(
                name or "unknown",
                f"Unknown tool '{name}'. Available tools: {', '.join(self.tool_names)}.",
            )

        try:
            args = tool.args_model.model_validate(raw_args)
        except ValidationError as e:
            logger.info("Rejected %s arguments: %s", name, e.error_count())
            return ToolOutcome.error(
                name,
                f"Invalid arguments for {name}: {_describe_validation_error(e)}. "
                "Ask the customer for the missing or invalid values.",
            )

        return await tool.execute(args)


def build_dispatcher(
    build: BuildContext,
    catalog: CatalogClient,
    spoke: SpokeCalculator,
    config: CatalogConfig,
) -> ToolDispatcher:
    """Tools for one request; ``lookup_product`` sees the request's build."""
    return ToolDispatcher(
        [
            LookupProductTool(catalog, config, build),
            LiveInventoryTool(catalog),
            SpokeLengthTool(spoke),
        ]
    )
