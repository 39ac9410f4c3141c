"""
Chat controller (Facade).

'ChatController' is the single entry point the HTTP layer uses for chat. It
coordinates the conversation store and the agent for one conversation turn:

    1. create the conversation when no id is given,
    2. read the recent history (before the new message is stored),
    3. store the user message,
    4. ask the agent,
    5. store the assistant answer.

The agent itself never touches the store; all conversation state flows
through this class.
"""

from datetime import datetime

from pydantic import BaseModel

from knowledge_toolkit.agents.base import Agent, QueryWithContext
from knowledge_toolkit.conversation_database.data_models.conversation import (
    ConversationDatabase,
    ConversationSnapshot,
)
from knowledge_toolkit.llms.base import Roles
from knowledge_toolkit.utils.confidence import Confidence
from knowledge_toolkit.utils.time import get_current_timestamp
from knowledge_toolkit.vectorstores.base import DocumentMatch


class ConversationNotFound(Exception):
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation {conversation_id} not found")
        self.conversation_id = conversation_id


class ChatReply(BaseModel):
    conversation_id: str
    response: str
    sources: list[DocumentMatch]
    confidence: Confidence
    timestamp: datetime


class ChatController:
    def __init__(self, conversation_db: ConversationDatabase, agent: Agent):
        self.conversation_db = conversation_db
        self.agent = agent

    async def process_message(
        self, content: str, conversation_id: str | None = None, user_id: str | None = None
    ) -> ChatReply:
        """Run one chat turn. Raises 'ConversationNotFound' for an unknown (or expired) id."""
        if not conversation_id:
            conversation_id = await self.conversation_db.create_conversation(user_id)

        conversation = await self.conversation_db.get_recent(conversation_id)
        if conversation is None:
            raise ConversationNotFound(conversation_id)

        await self.conversation_db.append_message(conversation_id, Roles.USER, content)

        result = await self.agent.answer(
            QueryWithContext(
                query=content,
                history=[message.to_llm_message() for message in conversation.messages],
            )
        )

        await self.conversation_db.append_message(conversation_id, Roles.ASSISTANT, result.response)

        return ChatReply(
            conversation_id=conversation_id,
            response=result.response,
            sources=result.sources,
            confidence=result.confidence,
            timestamp=get_current_timestamp(),
        )

    async def get_conversation(self, conversation_id: str) -> ConversationSnapshot | None:
        return await self.conversation_db.get_recent(conversation_id)

    async def delete_conversation(self, conversation_id: str) -> bool:
        return await self.conversation_db.delete_conversation(conversation_id)

    async def clear_all(self) -> int:
        return await self.conversation_db.clear_all()
