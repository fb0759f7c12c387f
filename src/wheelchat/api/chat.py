"""Chat API endpoints."""

from fastapi import APIRouter, Response, status
from fastapi.responses import StreamingResponse

from .deps import AppConfigDep, ChatConfigDep, ChatServiceDep, LLMConfigDep
from .models import ChatRequest, ErrorResponse, HealthResponse, to_chat_context
from .streaming import prime_events, text_stream

STREAMING_RESPONSE_MEDIA_TYPE = "text/plain; charset=utf-8"
STREAMING_RESPONSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}

router = APIRouter(tags=["chat"])


@router.post(
    "/chat",
    response_class=StreamingResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    },
)
async def chat(
    chat_request: ChatRequest,
    chat_service: ChatServiceDep,
    chat_config: ChatConfigDep,
    app_config: AppConfigDep,
) -> StreamingResponse:
    """Answer the conversation as a streamed ``text/plain`` body.

    Fails with 400 on a malformed body and with 502 when the model fails
    before any text is produced.  Once streaming has started, a failure
    ends the body with a short apology instead.
    """
    ctx = to_chat_context(chat_request, chat_config)
    events = await prime_events(chat_service.stream_response(ctx))
    return StreamingResponse(
        text_stream(events, interrupted_text=app_config.prompt.stream_interrupted),
        media_type=STREAMING_RESPONSE_MEDIA_TYPE,
        headers=STREAMING_RESPONSE_HEADERS,
    )


@router.options("/chat", include_in_schema=False)
async def chat_options() -> Response:
    """Plain OPTIONS; browser preflights are answered by ``WidgetCORSMiddleware``."""
    return Response(status_code=status.HTTP_200_OK)


@router.get("/health", response_model=HealthResponse)
async def health(llm_config: LLMConfigDep) -> HealthResponse:
    return HealthResponse(provider=llm_config.provider)
