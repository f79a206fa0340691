"""Request/response schemas for the chat API. Wire fields are camelCase."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from eventchat.models import ConversationState, EventEnvelope, HistoryEntry


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(_CamelModel):
    # Optional so a missing message reaches the service and becomes a 400.
    message: str | None = None
    stream_id: str | None = None


class UsageResponse(_CamelModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(_CamelModel):
    stream_id: str
    reply: str
    total_tokens: int
    usage: UsageResponse


class ConversationResponse(_CamelModel):
    stream_id: str
    last_question: str | None = None
    last_answer: str | None = None
    history: list[HistoryEntry]
    total_tokens: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_state(cls, state: ConversationState) -> "ConversationResponse":
        return cls.model_validate(state.model_dump())


class EventResponse(_CamelModel):
    # meta is passed through as stored, keys unchanged
    event_id: str
    stream_id: str
    event_type: str
    payload: dict[str, Any]
    meta: dict[str, Any]
    created_at: datetime
    sequence_num: int | None = None

    @classmethod
    def from_envelope(cls, event: EventEnvelope) -> "EventResponse":
        return cls.model_validate(event.model_dump())
