"""FastAPI dependency factories for the chat service.

``get_chat_service`` is a per-request ``Depends`` factory with an
explicit parameter chain; every request gets fresh clients and config.
"""

from typing import Annotated

from fastapi import Depends
from langchain_core.language_models import BaseChatModel

from wheelchat.configs.config import AppConfig, get_app_config
from wheelchat.core.catalog.client import CatalogClient
from wheelchat.core.llm import get_llm
from wheelchat.core.spoke import SpokeCalculator

from .models import ChatService
from .orchestrator import ChatOrchestrator


def get_catalog_client(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> CatalogClient:
    return CatalogClient(config.catalog)


def get_spoke_calculator(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> SpokeCalculator:
    return SpokeCalculator(config.spoke_calc)


def get_chat_service(
    llm: Annotated[BaseChatModel, Depends(get_llm)],
    catalog: Annotated[CatalogClient, Depends(get_catalog_client)],
    spoke: Annotated[SpokeCalculator, Depends(get_spoke_calculator)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> ChatService:
    """Create the tool-loop orchestrator for one request."""
    return ChatOrchestrator(llm, catalog, spoke, config)
