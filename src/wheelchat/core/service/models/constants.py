"""Tool status, tool name and content origin constants."""

# Tool call lifecycle statuses
TOOL_STATUS_STARTED = "started"
TOOL_STATUS_COMPLETED = "completed"
TOOL_STATUS_ERROR = "error"
TOOL_STATUS_CLARIFY = "clarify"

# Tool names exposed to the model
TOOL_LOOKUP_PRODUCT = "lookup_product"
TOOL_CALCULATE_SPOKE_LENGTHS = "calculate_spoke_lengths"
TOOL_CHECK_LIVE_INVENTORY = "check_live_inventory"

# Content event origins
ORIGIN_MODEL = "model"
ORIGIN_CLARIFICATION = "clarification"
ORIGIN_FALLBACK = "fallback"
