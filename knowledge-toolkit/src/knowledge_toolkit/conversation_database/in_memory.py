"""
Process-local conversation storage with time-based expiry.

State lives in a dict for the lifetime of the process. Every mutation runs
under a single 'asyncio.Lock', so appends to the same conversation are applied
in the order their callers reach the store and the sweep never iterates while
another coroutine mutates.

'start()' launches the periodic expiry sweep as an asyncio task; 'stop()'
cancels it. Both are idempotent. The owner (normally the application lifespan)
is responsible for calling them.
"""

import asyncio
import contextlib
from datetime import datetime, timedelta
from typing import Callable

from loguru import logger

from knowledge_toolkit.conversation_database.data_models.conversation import (
    Conversation,
    ConversationDatabase,
    ConversationMetadata,
    ConversationSnapshot,
)
from knowledge_toolkit.conversation_database.data_models.message import Message
from knowledge_toolkit.llms.base import Roles
from knowledge_toolkit.utils.database import generate_uid
from knowledge_toolkit.utils.time import get_current_timestamp

DEFAULT_RECENT_WINDOW = 10
DEFAULT_TTL = timedelta(hours=1)
DEFAULT_SWEEP_INTERVAL = timedelta(minutes=15)


class InMemoryConversationDatabase(ConversationDatabase):
    """
    Dict-backed 'ConversationDatabase'.

    Attributes:
        recent_window: Number of trailing messages returned by 'get_recent'.
        ttl: Inactivity period after which a conversation is swept.
        sweep_interval: Period of the background sweep.
        clock: Source of "now"; injectable for tests.
    """

    def __init__(
        self,
        recent_window: int = DEFAULT_RECENT_WINDOW,
        ttl: timedelta = DEFAULT_TTL,
        sweep_interval: timedelta = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], datetime] = get_current_timestamp,
    ):
        self.recent_window = recent_window
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self.clock = clock
        self._conversations: dict[str, Conversation] = {}
        self._lock = asyncio.Lock()
        self._sweeper: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._conversations)

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    async def create_conversation(self, user_id: str | None = None) -> str:
        now = self.clock()
        conversation = Conversation(
            id=generate_uid(),
            last_activity=now,
            metadata=ConversationMetadata(user_id=user_id, start_time=now),
        )
        async with self._lock:
            self._conversations[conversation.id] = conversation
        return conversation.id

    async def append_message(self, conversation_id: str | None, role: Roles, content: str) -> None:
        if not conversation_id:
            return
        async with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                # Expired or deleted between the caller's lookup and this append; the message is dropped.
                logger.debug(f"Dropping {role} message for unknown conversation {conversation_id}")
                return
            now = self.clock()
            conversation.messages.append(Message(role=role, content=content, timestamp=now))
            conversation.last_activity = now

    async def get_recent(self, conversation_id: str) -> ConversationSnapshot | None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return None
        recent = conversation.messages[-self.recent_window :] if self.recent_window > 0 else []
        return ConversationSnapshot(
            messages=[message.model_copy() for message in recent],
            metadata=conversation.metadata,
        )

    async def delete_conversation(self, conversation_id: str) -> bool:
        async with self._lock:
            return self._conversations.pop(conversation_id, None) is not None

    async def clear_all(self) -> int:
        async with self._lock:
            count = len(self._conversations)
            self._conversations.clear()
        logger.info(f"Cleared {count} conversation(s)")
        return count

    async def sweep_expired(self) -> int:
        async with self._lock:
            cutoff = self.clock() - self.ttl
            expired = [cid for cid, conversation in self._conversations.items() if conversation.last_activity < cutoff]
            for conversation_id in expired:
                del self._conversations[conversation_id]
        if expired:
            logger.info(f"Cleaned up {len(expired)} inactive conversation session(s).")
        return len(expired)

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval.total_seconds())
            try:
                await self.sweep_expired()
            except Exception:
                logger.exception("Conversation sweep failed")

    async def start(self) -> None:
        if self.running:
            return
        self._sweeper = asyncio.create_task(self._sweep_forever(), name="conversation-sweeper")
        logger.info(f"Conversation sweeper started (every {self.sweep_interval}, ttl {self.ttl})")

    async def stop(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None
        logger.info("Conversation sweeper stopped")
