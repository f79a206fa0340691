"""Canonical data structures and event types for eventchat.

Defined once here, referenced everywhere else. Event payloads represent the
type-specific content of each event; the EventEnvelope wraps them with
metadata. ConversationState is the projected read model.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Event types and payloads
# ---------------------------------------------------------------------------


class EventType(StrEnum):
    USER_QUERY = "USER_QUERY"
    AI_RESPONSE = "AI_RESPONSE"
    SYSTEM_ERROR = "SYSTEM_ERROR"


class UserQueryPayload(BaseModel):
    content: str


class AIResponsePayload(BaseModel):
    content: str


class SystemErrorPayload(BaseModel):
    message: str
    error_type: str = "ProviderError"


EVENT_TYPES: dict[str, type[BaseModel]] = {
    EventType.USER_QUERY: UserQueryPayload,
    EventType.AI_RESPONSE: AIResponsePayload,
    EventType.SYSTEM_ERROR: SystemErrorPayload,
}


# ---------------------------------------------------------------------------
# Token usage
# ---------------------------------------------------------------------------


# SQLite INTEGER is a signed 64-bit value; counts and sums are kept within it.
MAX_TOKEN_COUNT = 2**63 - 1


class TokenUsage(BaseModel):
    """Provider-independent usage counters attached to AI_RESPONSE meta."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


def _as_token_count(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if not 0 <= value <= MAX_TOKEN_COUNT:
        return None
    return value


def total_tokens_from_meta(meta: dict[str, Any] | None) -> int:
    """Normalize the token count carried by an event's meta.

    Two shapes are accepted: a flat ``{"total_tokens": n}`` and a nested
    ``{"usage": {"total_tokens": n}}``. The flat field wins when both are
    present. Anything missing or malformed counts as 0, and so does a count
    above ``MAX_TOKEN_COUNT``.
    """
    if not meta:
        return 0
    flat = _as_token_count(meta.get("total_tokens"))
    if flat is not None:
        return flat
    usage = meta.get("usage")
    if isinstance(usage, dict):
        nested = _as_token_count(usage.get("total_tokens"))
        if nested is not None:
            return nested
    return 0


# ---------------------------------------------------------------------------
# Event envelope
# ---------------------------------------------------------------------------


class EventEnvelope(BaseModel):
    """Wraps every event with metadata. Stored in the events table."""

    event_id: str
    stream_id: str
    event_type: str
    payload: dict[str, Any]
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    sequence_num: int | None = None  # assigned by DB on insert

    def typed_payload(self) -> BaseModel:
        """Deserialize payload into the correct Pydantic model based on event_type.

        Raises KeyError for event types outside EVENT_TYPES.
        """
        payload_cls = EVENT_TYPES[self.event_type]
        return payload_cls.model_validate(self.payload)


# ---------------------------------------------------------------------------
# Read model
# ---------------------------------------------------------------------------


class HistoryEntry(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ConversationState(BaseModel):
    """Projected state of one stream: a fold over its events."""

    stream_id: str
    last_question: str | None = None
    last_answer: str | None = None
    history: list[HistoryEntry] = Field(default_factory=list)
    total_tokens: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def empty(cls, stream_id: str) -> "ConversationState":
        return cls(stream_id=stream_id)
