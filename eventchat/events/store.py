"""Append-only event store backed by SQLite."""

import json
import logging
import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from eventchat.db.connection import Database
from eventchat.errors import StorageError, ValidationError
from eventchat.models import EventEnvelope

logger = logging.getLogger(__name__)


class EventStore:
    """Append-only event store. The write side of the CQRS pattern."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def append(
        self,
        stream_id: str,
        event_type: str,
        payload: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> EventEnvelope:
        """Append an event to a stream and return the stored envelope.

        The event gets a fresh event_id and created_at; sequence_num is
        assigned by the database. Raises StorageError if the write fails,
        in which case nothing was stored.
        """
        if not isinstance(stream_id, str) or not stream_id:
            raise ValidationError("stream_id must be a non-empty string")
        if not isinstance(event_type, str) or not event_type:
            raise ValidationError("event_type must be a non-empty string")

        envelope = EventEnvelope(
            event_id=str(uuid4()),
            stream_id=stream_id,
            event_type=str(event_type),
            payload=payload,
            meta=meta or {},
            created_at=datetime.now(UTC),
        )
        try:
            payload_json = json.dumps(envelope.payload)
            meta_json = json.dumps(envelope.meta)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Event data is not JSON-serializable: {e}") from e

        try:
            cursor = await self._db.execute(
                """
                INSERT INTO events
                    (event_id, stream_id, event_type, payload, meta, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    envelope.event_id,
                    envelope.stream_id,
                    envelope.event_type,
                    payload_json,
                    meta_json,
                    envelope.created_at.isoformat(),
                ),
            )
        except (sqlite3.Error, ValueError, OverflowError) as e:
            raise StorageError(f"Failed to append {event_type} event: {e}") from e

        assert cursor.lastrowid is not None
        envelope.sequence_num = cursor.lastrowid
        logger.debug(
            "Appended %s to stream %s (seq %d)",
            envelope.event_type, stream_id, envelope.sequence_num,
        )
        return envelope

    async def get_events(self, stream_id: str) -> list[EventEnvelope]:
        """Get all events for a stream, ordered by sequence_num."""
        try:
            rows = await self._db.fetchall(
                "SELECT * FROM events WHERE stream_id = ? ORDER BY sequence_num",
                (stream_id,),
            )
        except (sqlite3.Error, ValueError, OverflowError) as e:
            raise StorageError(f"Failed to read events: {e}") from e
        return [self._row_to_envelope(row) for row in rows]

    @staticmethod
    def _row_to_envelope(row) -> EventEnvelope:
        """Convert a database row to an EventEnvelope."""
        return EventEnvelope(
            event_id=row["event_id"],
            stream_id=row["stream_id"],
            event_type=row["event_type"],
            payload=json.loads(row["payload"]),
            meta=json.loads(row["meta"]),
            created_at=row["created_at"],
            sequence_num=row["sequence_num"],
        )
