"""Centralized FastAPI dependency type aliases.

Each alias corresponds to a single ``get_*`` factory and can be
overridden in tests via ``app.dependency_overrides[get_xxx] = ...``.
"""

from typing import Annotated

from fastapi import Depends

from wheelchat.configs.config import (
    AppConfig,
    get_app_config,
    get_chat_config,
    get_llm_config,
)
from wheelchat.configs.system import ChatConfig, LLMConfig
from wheelchat.core.service.deps import get_chat_service
from wheelchat.core.service.models import ChatService

AppConfigDep = Annotated[AppConfig, Depends(get_app_config)]
ChatConfigDep = Annotated[ChatConfig, Depends(get_chat_config)]
LLMConfigDep = Annotated[LLMConfig, Depends(get_llm_config)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
