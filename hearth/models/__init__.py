"""SQLAlchemy ORM models."""

from hearth.models.base import Base
from hearth.models.conversation import Conversation, ConversationParticipant, Message
from hearth.models.event import Event, EventRsvp
from hearth.models.resource import Resource
from hearth.models.user import User

__all__ = [
    "Base",
    "Conversation",
    "ConversationParticipant",
    "Event",
    "EventRsvp",
    "Message",
    "Resource",
    "User",
]
