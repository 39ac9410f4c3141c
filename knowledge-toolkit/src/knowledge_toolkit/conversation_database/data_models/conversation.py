"""
Conversation data model and storage interface.

The 'ConversationDatabase' ABC is the pluggable storage backend for
conversation state. It owns expiry: conversations idle for longer than the
configured time-to-live are removed by 'sweep_expired'. The concrete
implementation ('InMemoryConversationDatabase') is constructed explicitly and
handed to its callers, keeping the controller and API layer free of
storage-specific code.

Unknown ids are never an error: 'append_message' ignores them, 'get_recent'
returns None and 'delete' returns False.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from knowledge_toolkit.conversation_database.data_models.message import Message
from knowledge_toolkit.llms.base import Roles


class ConversationMetadata(BaseModel):
    """Set once at creation and never modified."""

    model_config = ConfigDict(frozen=True)

    user_id: str | None = None
    start_time: datetime


class Conversation(BaseModel):
    """A server-side chat session: an ordered, append-only list of messages."""

    id: str
    messages: list[Message] = Field(default_factory=list)
    last_activity: datetime
    metadata: ConversationMetadata


class ConversationSnapshot(BaseModel):
    """The bounded view of a conversation handed to callers."""

    messages: list[Message]
    metadata: ConversationMetadata


class ConversationDatabase(ABC):
    """Abstract repository for 'Conversation' state."""

    @abstractmethod
    async def create_conversation(self, user_id: str | None = None) -> str:
        """Allocate a new empty conversation and return its id."""
        pass

    @abstractmethod
    async def append_message(self, conversation_id: str | None, role: Roles, content: str) -> None:
        """Append a message and refresh 'last_activity'. Unknown or empty ids are silently ignored."""
        pass

    @abstractmethod
    async def get_recent(self, conversation_id: str) -> ConversationSnapshot | None:
        """Return the most recent messages and the metadata, or None when the id is unknown."""
        pass

    @abstractmethod
    async def delete_conversation(self, conversation_id: str) -> bool:
        pass

    @abstractmethod
    async def clear_all(self) -> int:
        """Remove every conversation and return how many were removed."""
        pass

    @abstractmethod
    async def sweep_expired(self) -> int:
        """Remove conversations idle for longer than the time-to-live and return how many were removed."""
        pass
