"""``calculate_spoke_lengths``: delegate wheel geometry to the calculator."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from wheelchat.core.service.models import TOOL_CALCULATE_SPOKE_LENGTHS
from wheelchat.core.spoke import SpokeCalculationError, SpokeCalculator

from .model import BaseChatTool, ToolOutcome

logger = logging.getLogger(__name__)


class SpokeLengthArgs(BaseModel):
    """All seven inputs are required and must be positive."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    erd: float = Field(gt=0, description="Effective Rim Diameter in mm")
    pcd_left: float = Field(
        gt=0, alias="pcdLeft", description="Hub pitch circle diameter, left flange, mm"
    )
    pcd_right: float = Field(
        gt=0, alias="pcdRight", description="Hub pitch circle diameter, right flange, mm"
    )
    flange_left: float = Field(
        gt=0, alias="flangeLeft", description="Hub flange offset left, mm"
    )
    flange_right: float = Field(
        gt=0, alias="flangeRight", description="Hub flange offset right, mm"
    )
    spoke_count: float = Field(
        gt=0, alias="spokeCount", description="Number of spokes (e.g. 28, 32)"
    )
    cross_pattern: float = Field(
        gt=0, alias="crossPattern", description="Lacing cross pattern (e.g. 2 or 3)"
    )


def format_length(value: float) -> str:
    """``258.0`` → ``"258"``, ``258.4`` → ``"258.4"``."""
    return f"{value:g}"


class SpokeLengthTool(BaseChatTool):
    name = TOOL_CALCULATE_SPOKE_LENGTHS
    description = (
        "Calculate precise left and right spoke lengths for a rim/hub "
        "combination. Every argument is required; ask the customer for any "
        "you don't know."
    )
    args_model = SpokeLengthArgs

    def __init__(self, calculator: SpokeCalculator) -> None:
        self._calculator = calculator

    async def execute(self, args: SpokeLengthArgs) -> ToolOutcome:
        try:
            lengths = await self._calculator.calculate(args.model_dump(by_alias=True))
        except SpokeCalculationError:
            logger.warning("Spoke calculation failed", exc_info=True)
            return ToolOutcome.error(
                self.name,
                "I tried to run the math, but there is an issue on our end with "
                "the spoke calculator. Offer an estimate based on similar builds "
                "instead.",
            )

        left, right = format_length(lengths.left), format_length(lengths.right)
        return ToolOutcome(
            name=self.name,
            content=(
                f"Calculated Lengths: Left {left}mm, Right {right}mm. "
                "(Note: We handle final rounding during the build.)"
            ),
            data=lengths.model_dump(),
        )
