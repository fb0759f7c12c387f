"""Exception handlers: every error response is ``{"error": "..."}``."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .models import ErrorResponse, InvalidChatRequest

logger = logging.getLogger(__name__)


class UpstreamModelError(Exception):
    """The language model failed before any reply text was produced."""


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump()
    )


def _describe(exc: RequestValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"] if part != "body")
        problems.append(f"{location or 'body'}: {err['msg']}")
    return "Invalid request: " + "; ".join(problems)


def register_exception_handlers(app: FastAPI) -> None:
    """Register the error taxonomy on *app*."""

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _describe(exc))

    @app.exception_handler(InvalidChatRequest)
    async def handle_invalid_chat_request(
        request: Request, exc: InvalidChatRequest
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(UpstreamModelError)
    async def handle_upstream_model_error(
        request: Request, exc: UpstreamModelError
    ) -> JSONResponse:
        return _error(status.HTTP_502_BAD_GATEWAY, str(exc))
