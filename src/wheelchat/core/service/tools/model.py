"""Tool definition models, tool outcomes and the tool protocol.

``ToolDefinition`` / ``FunctionDefinition`` mirror the OpenAI
chat-completion tool spec as Pydantic models; ``model_dump`` output is
accepted directly by ``ChatOpenAI.bind_tools``.
"""

from __future__ import annotations

import types
from typing import Any, Literal, Protocol, Union, get_args, get_origin

from pydantic import BaseModel, Field

from wheelchat.core.service.models import (
    TOOL_STATUS_CLARIFY,
    TOOL_STATUS_COMPLETED,
    TOOL_STATUS_ERROR,
)

# ---------------------------------------------------------------------------
# JSON Schema sub-models for function parameters
# ---------------------------------------------------------------------------

_JSON_TYPES: dict[type, str] = {
    str: "string",
    float: "number",
    int: "integer",
    bool: "boolean",
}


class PropertyDefinition(BaseModel):
    """Single property inside a JSON Schema ``properties`` block."""

    type: str
    description: str = ""
    enum: list[str] | None = None


class ParametersDefinition(BaseModel):
    """Top-level ``parameters`` object for a function definition."""

    type: Literal["object"] = "object"
    properties: dict[str, PropertyDefinition] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)


class FunctionDefinition(BaseModel):
    """Function definition nested inside a ``ToolDefinition``."""

    name: str
    description: str = ""
    parameters: ParametersDefinition = Field(
        default_factory=ParametersDefinition,
    )


class ToolDefinition(BaseModel):
    """OpenAI-compatible tool definition::

        { "type": "function", "function": { "name": ..., ... } }
    """

    type: Literal["function"] = "function"
    function: FunctionDefinition

    def to_openai(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def _json_type(annotation: Any) -> str:
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        non_null = [a for a in get_args(annotation) if a is not type(None)]
        if len(non_null) == 1:
            return _json_type(non_null[0])
    return _JSON_TYPES.get(annotation, "string")


def parameters_from_model(args_model: type[BaseModel]) -> ParametersDefinition:
    """Build the ``parameters`` block from a Pydantic argument model.

    Property names use field aliases when present, so the model sees the
    same names the argument model validates.
    """
    properties: dict[str, PropertyDefinition] = {}
    required: list[str] = []
    for name, info in args_model.model_fields.items():
        key = info.alias or name
        properties[key] = PropertyDefinition(
            type=_json_type(info.annotation),
            description=info.description or "",
        )
        if info.is_required():
            required.append(key)
    return ParametersDefinition(properties=properties, required=required)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class Clarification(BaseModel):
    """Structured request to ask the customer before searching."""

    needs_clarification: Literal[True] = True
    field: str = Field(description="Build field that must be resolved, e.g. 'position'")
    query: str = Field(default="", description="The query that was held back")


class ToolOutcome(BaseModel):
    """Result of one tool call.

    ``content`` is what the model sees in the ``tool`` message.
    ``clarification`` is interpreted by the orchestrator, never by the
    model.  ``data`` carries machine-readable results where they exist.
    """

    name: str
    content: str
    status: Literal["completed", "error", "clarify"] = TOOL_STATUS_COMPLETED
    clarification: Clarification | None = None
    data: dict[str, Any] | None = None

    @classmethod
    def error(cls, name: str, content: str) -> ToolOutcome:
        return cls(name=name, content=content, status=TOOL_STATUS_ERROR)

    @classmethod
    def clarify(cls, name: str, content: str, clarification: Clarification) -> ToolOutcome:
        return cls(
            name=name,
            content=content,
            status=TOOL_STATUS_CLARIFY,
            clarification=clarification,
        )


# ---------------------------------------------------------------------------
# Tool protocol
# ---------------------------------------------------------------------------


class ChatTool(Protocol):
    """A tool the model can call.

    Arguments are validated against ``args_model`` by the dispatcher
    before ``execute`` runs, so ``execute`` never sees malformed input.
    """

    name: str
    description: str
    args_model: type[BaseModel]

    def to_tool_definition(self) -> ToolDefinition:
        ...

    async def execute(self, args: Any) -> ToolOutcome:
        ...


class BaseChatTool:
    """Shared ``to_tool_definition`` for concrete tools."""

    name: str = ""
    description: str = ""
    args_model: type[BaseModel] = BaseModel

    def to_tool_definition(self) -> ToolDefinition:
        return ToolDefinition(
            function=FunctionDefinition(
                name=self.name,
                description=self.description,
                parameters=parameters_from_model(self.args_model),
            )
        )
