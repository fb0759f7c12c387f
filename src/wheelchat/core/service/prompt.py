"""System prompt assembly: persona + policies + current build state."""

from __future__ import annotations

import json
from typing import Any

from langchain_core.prompts import PromptTemplate

from wheelchat.configs.system import PromptConfig

from .models import BuildContext

NOT_SELECTED = "Not Selected"
UNKNOWN = "Unknown"
STANDARD_LEAD_TIME = "Standard"


def format_subtotal(cents: float | None) -> str:
    """Cents → dollars with two decimals; missing subtotal reads ``0.00``."""
    if cents is None:
        return "0.00"
    return f"{cents / 100:.2f}"


def _json(value: dict[str, Any]) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def build_context_values(build: BuildContext) -> dict[str, str]:
    """Template values for the ``[CURRENT BUILD STATE]`` block."""
    return {
        "step": build.step or UNKNOWN,
        "riding_style": build.riding_style or NOT_SELECTED,
        "position": build.position.value if build.position else NOT_SELECTED,
        "axle_spacing": build.axle_spacing or NOT_SELECTED,
        "brake_interface": (
            build.brake_interface.value if build.brake_interface else NOT_SELECTED
        ),
        "specs": _json(build.specs),
        "components": _json(build.components),
        "weight": (
            f"{build.calculated_weight:g}" if build.calculated_weight else UNKNOWN
        ),
        "subtotal": format_subtotal(build.subtotal),
        "lead_time": (
            str(build.lead_time_days)
            if build.lead_time_days is not None
            else STANDARD_LEAD_TIME
        ),
    }


def build_system_prompt(
    prompts: PromptConfig, build: BuildContext, is_admin: bool = False
) -> str:
    """Render the full system message for one request."""
    template = PromptTemplate.from_template(prompts.context_template)
    injection = template.format(**build_context_values(build))
    prompt = prompts.system_prompt + injection
    if is_admin:
        prompt += prompts.admin_directive
    return prompt
