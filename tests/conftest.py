"""Shared pytest fixtures for eventchat tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from eventchat.chat.router import get_chat_service
from eventchat.chat.service import ChatService
from eventchat.db.connection import Database
from eventchat.events.projector import ConversationProjector
from eventchat.events.store import EventStore
from eventchat.main import app
from tests.fixtures import FakeProvider


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def event_store(db):
    """EventStore backed by in-memory database."""
    return EventStore(db)


@pytest.fixture
async def projector(db):
    """ConversationProjector backed by in-memory database."""
    return ConversationProjector(db)


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
async def chat_service(event_store, projector, fake_provider):
    return ChatService(event_store, projector, fake_provider, system_prompt="Be brief.")


@pytest.fixture
async def client(chat_service):
    """Async test client with in-memory DB and FakeProvider wired into the app."""
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
