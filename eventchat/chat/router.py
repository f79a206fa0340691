"""FastAPI routes for chat turns and conversation reads."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from eventchat.chat.schemas import (
    ChatRequest,
    ChatResponse,
    ConversationResponse,
    EventResponse,
)
from eventchat.chat.service import ChatService
from eventchat.errors import ProviderError, StorageError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


def get_chat_service() -> ChatService:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("ChatService not initialized")


@router.post("")
async def send_message(
    request: ChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    try:
        reply = await service.send(request.message, request.stream_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError:
        logger.exception("Storage failure during chat turn")
        raise HTTPException(status_code=500, detail="Storage error")
    except ProviderError:
        logger.exception("Language model failure during chat turn")
        raise HTTPException(status_code=500, detail="Language model error")
    return ChatResponse.model_validate(reply.model_dump())


@router.get("")
async def get_conversation(
    stream_id: str | None = Query(default=None, alias="streamId"),
    service: ChatService = Depends(get_chat_service),
) -> ConversationResponse:
    if not stream_id:
        raise HTTPException(status_code=400, detail="streamId is required")
    try:
        state = await service.get_conversation(stream_id)
    except StorageError:
        logger.exception("Storage failure reading stream %s", stream_id)
        raise HTTPException(status_code=500, detail="Storage error")
    return ConversationResponse.from_state(state)


@router.get("/events")
async def get_events(
    stream_id: str | None = Query(default=None, alias="streamId"),
    service: ChatService = Depends(get_chat_service),
) -> list[EventResponse]:
    if not stream_id:
        raise HTTPException(status_code=400, detail="streamId is required")
    try:
        events = await service.get_events(stream_id)
    except StorageError:
        logger.exception("Storage failure reading events for stream %s", stream_id)
        raise HTTPException(status_code=500, detail="Storage error")
    return [EventResponse.from_envelope(e) for e in events]
