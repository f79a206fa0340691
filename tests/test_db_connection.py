"""Integration tests for database connection and schema.

Verifies SQLite setup (WAL mode, table creation) and the full event
store → projector roundtrip against a file database.
"""

import os
import tempfile

from eventchat.db.connection import Database
from eventchat.events.projector import ConversationProjector
from eventchat.events.store import EventStore
from eventchat.models import EventType


class TestDatabaseConnection:
    async def test_connect_creates_tables(self):
        db = await Database.connect(":memory:")
        try:
            rows = await db.fetchall(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            )
            table_names = {row["name"] for row in rows}
            assert "events" in table_names
            assert "conversation_states" in table_names
        finally:
            await db.close()

    async def test_stream_id_index_exists(self):
        db = await Database.connect(":memory:")
        try:
            rows = await db.fetchall(
                "SELECT name FROM sqlite_master WHERE type='index' AND tbl_name='events'"
            )
            assert "idx_events_stream_id" in {row["name"] for row in rows}
        finally:
            await db.close()

    async def test_wal_mode_on_file_database(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db = await Database.connect(os.path.join(tmpdir, "test.db"))
            try:
                row = await db.fetchone("PRAGMA journal_mode")
                assert row["journal_mode"] == "wal"
            finally:
                await db.close()

    async def test_schema_idempotent(self):
        db = await Database.connect(":memory:")
        try:
            await db._ensure_schema()
            rows = await db.fetchall("SELECT name FROM sqlite_master WHERE type='table'")
            assert len(rows) >= 2
        finally:
            await db.close()


class TestFullRoundtrip:
    async def test_state_survives_reconnect(self):
        """Events and projection persist across connections to the same file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "chat.db")

            db = await Database.connect(path)
            try:
                store = EventStore(db)
                projector = ConversationProjector(db)
                query = await store.append("s1", EventType.USER_QUERY, {"content": "hi"})
                await projector.project([query])
                answer = await store.append(
                    "s1", EventType.AI_RESPONSE, {"content": "hello"}, {"total_tokens": 12},
                )
                await projector.project([answer])
            finally:
                await db.close()

            db = await Database.connect(path)
            try:
                events = await EventStore(db).get_events("s1")
                state = await ConversationProjector(db).get_state("s1")
                assert len(events) == 2
                assert [e.content for e in state.history] == ["hi", "hello"]
                assert state.total_tokens == 12
            finally:
                await db.close()
