"""Configuration for the terminal client."""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class CLIConfig(BaseModel):
    """Where the chat API lives and what the client sends along."""

    host: str = Field(default="localhost", description="Server host")
    port: int = Field(default=8080, description="Server port")
    api_path: str = Field(default="/chat", description="Chat endpoint path")
    timeout: float = Field(default=120.0, description="Per-request timeout in seconds")
    build_context: dict[str, Any] = Field(
        default_factory=dict,
        description="buildContext sent with every message",
    )
    is_admin: bool = Field(default=False, description="Send isAdmin=true")

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}{self.api_path}"


def load_build_context(path: Path | None) -> dict[str, Any]:
    """Read a buildContext JSON object from *path* (empty when unset)."""
    if path is None:
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data
