"""Assistant API endpoints: the streaming chat turn and item suggestions."""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from pydantic import ValidationError as PydanticValidationError

from wishlist.core.config import settings
from wishlist.core.deps import AppDatabase, AppSettings, CurrentCaller
from wishlist.core.rate_limit import limiter
from wishlist.schemas.assistant import ChatRequest, SuggestionRequest, SuggestionsResponse
from wishlist.services.assistant.dispatcher import stream_assistant_turn
from wishlist.services.assistant.frames import SSE_MEDIA_TYPE
from wishlist.services.suggestion_service import SuggestionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/chat",
    response_class=StreamingResponse,
    summary="Run one assistant turn",
    description="""
    Send the conversation so far and stream the assistant's reply.

    The body is `{"messages": [{"role": ..., "content": ...}]}` with the
    newest user message last. The response is a `text/event-stream` of JSON
    frames: `text-delta`, `tool-call`, `tool-result`, then `finish` (or a
    single `error`).

    Tools run as the authenticated caller and only ever see their items.
    """,
    responses={
        400: {"description": "Malformed message history"},
        401: {"description": "Missing or invalid access token"},
    },
)
@limiter.limit(settings.chat_rate_limit)
async def chat(
    request: Request,
    caller: CurrentCaller,
    database: AppDatabase,
    app_settings: AppSettings,
) -> StreamingResponse:
    """Validate the history and stream frames for one turn."""
    try:
        payload = ChatRequest.model_validate_json(await request.body())
    except PydanticValidationError as e:
        logger.info("Rejected chat request from %s: %d validation errors", caller.id, e.error_count())
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request: a non-empty messages array ending with a user message is required",
        ) from None

    logger.info("Assistant turn: user=%s history=%d", caller.id, len(payload.messages))
    return StreamingResponse(
        stream_assistant_turn(database, caller.id, payload.messages, app_settings),
        media_type=SSE_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post(
    "/suggestions",
    response_model=SuggestionsResponse,
    summary="Suggest similar items",
    description="Ask the model for three items similar to an existing one.",
)
@limiter.limit("10/minute")
async def suggestions(
    request: Request,  # noqa: ARG001 - required by slowapi
    body: SuggestionRequest,
    _caller: CurrentCaller,
    app_settings: AppSettings,
) -> SuggestionsResponse:
    """Generate suggestions for the given item."""
    service = SuggestionService(app_settings)
    return SuggestionsResponse(suggestions=await service.suggest(body))
