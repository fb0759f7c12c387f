"""Chat model factory."""

import logging
from typing import Annotated

from fastapi import Depends
from langchain_openai import ChatOpenAI

from wheelchat.configs.config import get_llm_config
from wheelchat.configs.system import LLMConfig

logger = logging.getLogger(__name__)


def get_llm(
    config: Annotated[LLMConfig, Depends(get_llm_config)],
) -> ChatOpenAI:
    """Create a streaming ``ChatOpenAI`` client from ``LLMConfig``.

    The per-call ``timeout`` bounds every model request; retries are kept
    low so an outage surfaces as a 502 instead of a hung stream.
    """
    if not config.api_key:
        logger.warning("LLM api_key is empty; model calls will be rejected upstream")
    return ChatOpenAI(
        base_url=config.endpoint,
        api_key=config.api_key or "unset",
        model=config.model_name,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout.total_seconds(),
        max_retries=config.max_retries,
        streaming=True,
    )
