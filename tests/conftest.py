"""Shared fixtures."""

import pytest

from wheelchat.configs.config import AppConfig
from wheelchat.configs.system import CatalogConfig, ChatConfig


@pytest.fixture
def catalog_config() -> CatalogConfig:
    return CatalogConfig(
        store_domain="wheels.example.com",
        access_token="shpat_test",
        shop_build_days=5,
        top_n=5,
    )


@pytest.fixture
def app_config(catalog_config: CatalogConfig) -> AppConfig:
    return AppConfig().model_copy(
        update={"catalog": catalog_config, "chat": ChatConfig(max_tool_steps=5)}
    )
