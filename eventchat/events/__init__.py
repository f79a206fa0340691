"""Event sourcing: append-only event store and conversation projection."""

from eventchat.events.projector import ConversationProjector
from eventchat.events.store import EventStore

__all__ = ["ConversationProjector", "EventStore"]
