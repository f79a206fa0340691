"""Shared test helpers: envelope builders, fake providers, and a reference fold."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from eventchat.errors import ProviderError
from eventchat.models import (
    MAX_TOKEN_COUNT,
    ConversationState,
    EventEnvelope,
    EventType,
    HistoryEntry,
    TokenUsage,
    total_tokens_from_meta,
)
from eventchat.providers.base import GenerationRequest, GenerationResult, LLMProvider


def make_envelope(
    stream_id: str | None = None,
    event_type: str = EventType.USER_QUERY,
    content: str = "Hello",
    meta: dict[str, Any] | None = None,
    payload: dict[str, Any] | None = None,
) -> EventEnvelope:
    """Create an EventEnvelope without going through the store."""
    return EventEnvelope(
        event_id=str(uuid4()),
        stream_id=stream_id or str(uuid4()),
        event_type=event_type,
        payload=payload if payload is not None else {"content": content},
        meta=meta or {},
        created_at=datetime.now(UTC),
    )


def fold_events(stream_id: str, events: list[EventEnvelope]) -> ConversationState:
    """Rebuild a conversation state by replaying events in order.

    Reference implementation the incremental projector must agree with.
    """
    state = ConversationState.empty(stream_id)
    for event in events:
        content = event.payload.get("content")
        if event.event_type == EventType.USER_QUERY:
            state.last_question = content
            state.history.append(HistoryEntry(role="user", content=content))
        elif event.event_type == EventType.AI_RESPONSE:
            state.last_answer = content
            state.history.append(HistoryEntry(role="assistant", content=content))
            state.total_tokens = min(
                state.total_tokens + total_tokens_from_meta(event.meta), MAX_TOKEN_COUNT,
            )
    return state


class FakeProvider(LLMProvider):
    """Test provider that returns canned responses and records requests."""

    default_model = "fake-model"

    def __init__(self, reply: str = "Fake response", total_tokens: int = 15) -> None:
        self.reply = reply
        self.total_tokens = total_tokens
        self.requests: list[GenerationRequest] = []

    @property
    def name(self) -> str:
        return "fake"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self.requests.append(request)
        return GenerationResult(
            content=self.reply,
            model=request.model,
            finish_reason="stop",
            usage=TokenUsage(
                input_tokens=self.total_tokens - 5,
                output_tokens=5,
                total_tokens=self.total_tokens,
            ),
            latency_ms=42,
        )


class FailingProvider(LLMProvider):
    """Test provider whose every call fails like a quota or transport error."""

    default_model = "fake-model"

    @property
    def name(self) -> str:
        return "failing"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        raise ProviderError("quota exceeded", provider=self.name)
