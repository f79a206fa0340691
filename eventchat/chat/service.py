"""Chat service: orchestrates one conversation turn and event emission."""

import logging
from typing import Any
from uuid import uuid4

from pydantic import BaseModel

from eventchat.config import DEFAULT_SYSTEM_PROMPT
from eventchat.errors import ProviderError, StorageError, ValidationError
from eventchat.events.projector import ConversationProjector
from eventchat.events.store import EventStore
from eventchat.models import (
    AIResponsePayload,
    ConversationState,
    EventEnvelope,
    EventType,
    SystemErrorPayload,
    TokenUsage,
    UserQueryPayload,
)
from eventchat.providers.base import GenerationRequest, LLMProvider

logger = logging.getLogger(__name__)


class ChatReply(BaseModel):
    stream_id: str
    reply: str
    total_tokens: int
    usage: TokenUsage


class ChatService:
    """Runs a chat turn: record the query, call the model, record the answer.

    The provider is constructed once at startup and shared by every turn.
    """

    def __init__(
        self,
        store: EventStore,
        projector: ConversationProjector,
        provider: LLMProvider | None,
        *,
        model: str | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_tokens: int = 2048,
    ) -> None:
        self._store = store
        self._projector = projector
        self._provider = provider
        self._model = model
        self._system_prompt = system_prompt
        self._max_tokens = max_tokens

    async def send(self, message: str | None, stream_id: str | None = None) -> ChatReply:
        """Run one turn on a stream, creating the stream if stream_id is None.

        The USER_QUERY event is appended and projected before the model is
        called, so the prompt history already contains it. If the model call
        fails the query stays recorded and ProviderError propagates.
        """
        if message is None or not message.strip():
            raise ValidationError("Message is required")
        stream_id = stream_id or str(uuid4())

        await self._emit(
            stream_id, EventType.USER_QUERY, UserQueryPayload(content=message).model_dump(),
        )

        state = await self._projector.get_state(stream_id)
        if state is not None:
            history = [entry.model_dump() for entry in state.history]
        else:
            history = [{"role": "user", "content": message}]

        provider = self._provider
        if provider is None:
            error = ProviderError("No language model provider is configured")
            await self._record_failure(stream_id, error)
            raise error

        request = GenerationRequest(
            model=self._model or provider.default_model,
            messages=history,
            system_prompt=self._system_prompt,
            max_tokens=self._max_tokens,
        )
        try:
            result = await provider.generate(request)
        except ProviderError as e:
            await self._record_failure(stream_id, e)
            raise

        meta: dict[str, Any] = {
            "usage": result.usage.model_dump(),
            "model": result.model,
            "provider": provider.name,
            "finish_reason": result.finish_reason,
            "latency_ms": result.latency_ms,
        }
        await self._emit(
            stream_id,
            EventType.AI_RESPONSE,
            AIResponsePayload(content=result.content).model_dump(),
            meta,
        )

        state = await self._projector.get_state(stream_id)
        total_tokens = state.total_tokens if state is not None else result.usage.total_tokens
        return ChatReply(
            stream_id=stream_id,
            reply=result.content,
            total_tokens=total_tokens,
            usage=result.usage,
        )

    async def get_conversation(self, stream_id: str) -> ConversationState:
        """Projected state of a stream, or an empty default for an unknown one."""
        state = await self._projector.get_state(stream_id)
        return state if state is not None else ConversationState.empty(stream_id)

    async def get_events(self, stream_id: str) -> list[EventEnvelope]:
        return await self._store.get_events(stream_id)

    async def _emit(
        self,
        stream_id: str,
        event_type: EventType,
        payload: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> EventEnvelope:
        event = await self._store.append(stream_id, event_type, payload, meta)
        await self._projector.project([event])
        return event

    async def _record_failure(self, stream_id: str, error: ProviderError) -> None:
        """Append a SYSTEM_ERROR event. Failure to record is logged, not raised."""
        payload = SystemErrorPayload(message=str(error), error_type=type(error).__name__)
        try:
            await self._emit(stream_id, EventType.SYSTEM_ERROR, payload.model_dump())
        except StorageError:
            logger.exception("Could not record SYSTEM_ERROR for stream %s", stream_id)
