"""
Message data model.

Messages only exist inside a 'Conversation': they are created by appending to
one and disappear with it. Within a conversation, list order is chronological
order.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from knowledge_toolkit.llms.base import LLMMessage, Roles
from knowledge_toolkit.utils.time import get_current_timestamp


class Message(BaseModel):
    """A single user or assistant turn."""

    role: Roles
    content: str
    timestamp: datetime = Field(default_factory=get_current_timestamp)

    def to_llm_message(self) -> LLMMessage:
        return LLMMessage(role=self.role, content=self.content)
