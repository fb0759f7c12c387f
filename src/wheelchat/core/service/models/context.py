"""Per-request data passed to the chat service."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from langchain_core.messages import BaseMessage
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

__all__ = ["BrakeInterface", "BuildContext", "ChatContext", "Position"]


class Position(StrEnum):
    FRONT = "front"
    REAR = "rear"


class BrakeInterface(StrEnum):
    CENTERLOCK = "centerlock"
    SIX_BOLT = "6-bolt"


_BRAKE_ALIASES = {
    "centerlock": BrakeInterface.CENTERLOCK,
    "center lock": BrakeInterface.CENTERLOCK,
    "center-lock": BrakeInterface.CENTERLOCK,
    "cl": BrakeInterface.CENTERLOCK,
    "6-bolt": BrakeInterface.SIX_BOLT,
    "6 bolt": BrakeInterface.SIX_BOLT,
    "6bolt": BrakeInterface.SIX_BOLT,
    "six bolt": BrakeInterface.SIX_BOLT,
    "is": BrakeInterface.SIX_BOLT,
}

_UNSET = {"", "unset", "none", "unknown", "not selected"}


class BuildContext(BaseModel):
    """Snapshot of the customer's in-progress wheel build.

    Supplied fresh by the widget on every request and never mutated.
    Field names arrive camelCased (``axleSpacing``); unknown keys are
    ignored.  ``subtotal`` is in cents.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    position: Position | None = None
    axle_spacing: str | None = None
    brake_interface: BrakeInterface | None = None
    components: dict[str, Any] = Field(default_factory=dict)
    subtotal: float | None = None
    lead_time_days: int | None = Field(
        default=None,
        validation_alias=AliasChoices("leadTimeDays", "leadTime", "lead_time_days"),
    )
    step: str | None = None
    riding_style: str | None = None
    specs: dict[str, Any] = Field(default_factory=dict)
    calculated_weight: float | None = None

    @field_validator("position", mode="before")
    @classmethod
    def _normalize_position(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return lowered if lowered in {p.value for p in Position} else None
        return value

    @field_validator("brake_interface", mode="before")
    @classmethod
    def _normalize_brake(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _BRAKE_ALIASES.get(lowered)
        return value

    @field_validator("axle_spacing", mode="before")
    @classmethod
    def _normalize_axle(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip().lower()
        return None if text in _UNSET else text

    @field_validator("lead_time_days", mode="before")
    @classmethod
    def _blank_lead_time(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in _UNSET:
            return None
        return value


@dataclass
class ChatContext:
    """Per-request input to the orchestrator.

    ``history`` holds the converted conversation; the orchestrator copies
    it before appending model and tool messages.
    """

    history: list[BaseMessage]
    build: BuildContext = field(default_factory=BuildContext)
    is_admin: bool = False
