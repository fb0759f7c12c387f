from .inventory_tool import LiveInventoryArgs, LiveInventoryTool
from .lookup_tool import LookupProductArgs, LookupProductTool, needs_position
from .model import (
    BaseChatTool,
    ChatTool,
    Clarification,
    FunctionDefinition,
    ParametersDefinition,
    ToolDefinition,
    ToolOutcome,
)
from .registry import ToolDispatcher, build_dispatcher
from .spoke_tool import SpokeLengthArgs, SpokeLengthTool

__all__ = [
    "BaseChatTool",
    "ChatTool",
    "Clarification",
    "FunctionDefinition",
    "LiveInventoryArgs",
    "LiveInventoryTool",
    "LookupProductArgs",
    "LookupProductTool",
    "ParametersDefinition",
    "SpokeLengthArgs",
    "SpokeLengthTool",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolOutcome",
    "build_dispatcher",
    "needs_position",
]
