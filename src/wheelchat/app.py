"""FastAPI application entry point.

Run with ``uvicorn wheelchat.app:app``.
"""

import logging

from fastapi import FastAPI

from wheelchat.api import router as chat_router
from wheelchat.api.cors import WidgetCORSMiddleware
from wheelchat.api.exceptions import register_exception_handlers
from wheelchat.configs.config import AppConfig, get_app_config
from wheelchat.core.service.metrics import instrument_app
from wheelchat.infra.logging import setup_logging
from wheelchat.infra.telemetry import init_telemetry

logger = logging.getLogger(__name__)


def get_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or get_app_config()
    setup_logging(config.logging)

    app = FastAPI(
        title="Wheelchat",
        description="Streaming support chat for a custom wheel-building shop",
        version="0.1.0",
    )

    app.add_middleware(
        WidgetCORSMiddleware,
        allow_origins=config.cors.allowed_origins,
        allow_credentials=config.cors.allow_credentials,
        allow_methods=config.cors.allowed_methods,
        allow_headers=config.cors.allowed_headers,
    )

    register_exception_handlers(app)
    app.include_router(chat_router)
    instrument_app(app)
    init_telemetry(app, config.tracing)

    logger.info(
        "Wheelchat ready (model=%s, max_tool_steps=%d)",
        config.llm.model_name,
        config.chat.max_tool_steps,
    )
    return app


app = get_app()
