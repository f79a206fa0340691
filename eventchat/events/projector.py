"""Conversation projector: projects events into the conversation_states table.

The read side of the CQRS pattern. Each USER_QUERY and AI_RESPONSE event
appends one entry to the stream's history; AI_RESPONSE events also add their
token count. Other event types are stored but not projected.
"""

import json
import logging
import sqlite3
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from pydantic import ValidationError as PydanticValidationError

from eventchat.db.connection import Database
from eventchat.errors import StorageError
from eventchat.models import (
    MAX_TOKEN_COUNT,
    ConversationState,
    EventEnvelope,
    EventType,
    total_tokens_from_meta,
)

logger = logging.getLogger(__name__)


class ConversationProjector:
    """Projects events into one materialized row per stream."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._handlers: dict[str, Callable[[EventEnvelope], Awaitable[None]]] = {
            EventType.USER_QUERY: self._handle_user_query,
            EventType.AI_RESPONSE: self._handle_ai_response,
        }

    async def project(self, events: list[EventEnvelope]) -> None:
        """Project a batch of already-appended events, in order."""
        for event in events:
            handler = self._handlers.get(event.event_type)
            if handler is None:
                logger.debug(
                    "No projection for %s on stream %s, skipping",
                    event.event_type, event.stream_id,
                )
                continue
            try:
                await handler(event)
            except PydanticValidationError:
                logger.warning(
                    "Malformed %s payload on stream %s, skipping",
                    event.event_type, event.stream_id, exc_info=True,
                )
            except (sqlite3.Error, ValueError, OverflowError) as e:
                raise StorageError(
                    f"Failed to project {event.event_type} for stream {event.stream_id}: {e}"
                ) from e

    async def get_state(self, stream_id: str) -> ConversationState | None:
        """Read projected conversation state. Returns None if not found."""
        try:
            row = await self._db.fetchone(
                "SELECT * FROM conversation_states WHERE stream_id = ?", (stream_id,)
            )
        except (sqlite3.Error, ValueError, OverflowError) as e:
            raise StorageError(f"Failed to read conversation state: {e}") from e
        if row is None:
            return None
        return ConversationState(
            stream_id=row["stream_id"],
            last_question=row["last_question"],
            last_answer=row["last_answer"],
            history=json.loads(row["history"]),
            total_tokens=row["total_tokens"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def _handle_user_query(self, event: EventEnvelope) -> None:
        payload = event.typed_payload()
        await self._append_turn(
            event.stream_id, "last_question", "user", payload.content, tokens=0,
        )

    async def _handle_ai_response(self, event: EventEnvelope) -> None:
        payload = event.typed_payload()
        await self._append_turn(
            event.stream_id, "last_answer", "assistant", payload.content,
            tokens=total_tokens_from_meta(event.meta),
        )

    async def _append_turn(
        self,
        stream_id: str,
        last_field: str,
        role: str,
        content: str,
        *,
        tokens: int,
    ) -> None:
        """Upsert the stream's row in a single statement.

        History is appended and total_tokens incremented inside SQLite, so
        two projections racing on the same stream cannot overwrite each other.
        The token sum saturates at MAX_TOKEN_COUNT instead of overflowing
        SQLite INTEGER.
        """
        entry = json.dumps({"role": role, "content": content})
        now = datetime.now(UTC).isoformat()
        await self._db.execute(
            f"""
            INSERT INTO conversation_states
                (stream_id, {last_field}, history, total_tokens, created_at, updated_at)
            VALUES (?, ?, json_array(json(?)), ?, ?, ?)
            ON CONFLICT(stream_id) DO UPDATE SET
                {last_field} = excluded.{last_field},
                history = json_insert(conversation_states.history, '$[#]', json(?)),
                total_tokens = CASE
                    WHEN conversation_states.total_tokens > ? - excluded.total_tokens
                        THEN ?
                    ELSE conversation_states.total_tokens + excluded.total_tokens
                END,
                updated_at = excluded.updated_at
            """,
            (
                stream_id, content, entry, tokens, now, now,
                entry, MAX_TOKEN_COUNT, MAX_TOKEN_COUNT,
            ),
        )
