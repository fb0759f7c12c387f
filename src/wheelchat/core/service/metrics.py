"""Prometheus metrics for the chat service.

Custom business metrics that complement the auto-instrumented HTTP
metrics provided by ``prometheus-fastapi-instrumentator``.

All metrics use the ``wheelchat_`` prefix.
"""

from fastapi import FastAPI
from prometheus_client import Counter, Gauge, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

METRICS_PATH = "/metrics"

# ---------------------------------------------------------------------------
# Chat session metrics
# ---------------------------------------------------------------------------

CHAT_SESSIONS_ACTIVE = Gauge(
    "wheelchat_chat_sessions_active",
    "Number of streaming chat responses currently in progress",
)

CHAT_SESSIONS_TOTAL = Counter(
    "wheelchat_chat_sessions_total",
    "Total number of chat responses, by outcome",
    ["status"],  # "ok" | "error" | "cancelled" | "upstream_error"
)

CHAT_SESSION_DURATION_SECONDS = Histogram(
    "wheelchat_chat_session_duration_seconds",
    "End-to-end duration of a chat streaming response",
    buckets=(0.5, 1, 2, 5, 10, 20, 30, 60, 120),
)

ORCHESTRATOR_STEPS = Histogram(
    "wheelchat_orchestrator_steps",
    "Model prompting steps per request",
    buckets=(1, 2, 3, 4, 5, 6, 8, 10),
)

STEP_BUDGET_EXHAUSTED_TOTAL = Counter(
    "wheelchat_step_budget_exhausted_total",
    "Requests that hit the tool-call step budget",
)

FALLBACK_REPLIES_TOTAL = Counter(
    "wheelchat_fallback_replies_total",
    "Replies synthesized because the model produced no text",
    ["reason"],  # "tool_output" | "need_detail"
)

CLARIFICATIONS_TOTAL = Counter(
    "wheelchat_clarifications_total",
    "Replies that asked the customer a clarifying question",
    ["field"],
)

# ---------------------------------------------------------------------------
# Tool metrics
# ---------------------------------------------------------------------------

TOOL_CALLS_TOTAL = Counter(
    "wheelchat_tool_calls_total",
    "Total tool invocations, by tool name and outcome",
    ["tool_name", "status"],  # status: completed | error | clarify
)

CATALOG_LOOKUPS_TOTAL = Counter(
    "wheelchat_catalog_lookups_total",
    "Product lookups by outcome",
    ["outcome"],  # ok | empty | filtered_out | error | clarify
)


def instrument_app(app: FastAPI) -> None:
    """Attach HTTP metrics and expose them at ``/metrics``."""
    Instrumentator(excluded_handlers=[METRICS_PATH]).instrument(app).expose(
        app, endpoint=METRICS_PATH, include_in_schema=False
    )
