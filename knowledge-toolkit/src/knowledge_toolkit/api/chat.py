"""
Chat routes.

Thin HTTP adapter over 'ChatController': validation happens in the pydantic
request models, and an unknown conversation id maps to 404. The controller
never raises for provider failures (the agent degrades instead), so there is no
500 path specific to chat.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException

from knowledge_toolkit.api.schemas import (
    ChatRequest,
    ChatResponse,
    ClearAllResponse,
    ConversationMetadataOut,
    HistoryResponse,
    MessageOut,
    SourceOut,
    SuccessResponse,
)
from knowledge_toolkit.conversation_database.controller import ChatController, ConversationNotFound

CONVERSATION_NOT_FOUND = "Conversation not found."


def build_chat_router(controller: ChatController) -> APIRouter:
    router = APIRouter(prefix="/api/chat", tags=["chat"])

    @router.post("", response_model=ChatResponse)
    async def chat(request: ChatRequest) -> ChatResponse:
        conversation_id = str(request.conversation_id) if request.conversation_id else None
        try:
            reply = await controller.process_message(request.message, conversation_id)
        except ConversationNotFound:
            raise HTTPException(status_code=404, detail=CONVERSATION_NOT_FOUND)

        return ChatResponse(
            conversation_id=reply.conversation_id,
            response=reply.response,
            sources=[SourceOut(text=source.metadata.text, score=source.score) for source in reply.sources],
            confidence=reply.confidence,
            timestamp=reply.timestamp,
        )

    @router.get("/history/{conversation_id}", response_model=HistoryResponse)
    async def history(conversation_id: UUID) -> HistoryResponse:
        conversation = await controller.get_conversation(str(conversation_id))
        if conversation is None:
            raise HTTPException(status_code=404, detail=CONVERSATION_NOT_FOUND)

        return HistoryResponse(
            conversation_id=str(conversation_id),
            messages=[
                MessageOut(role=message.role, content=message.content, timestamp=message.timestamp)
                for message in conversation.messages
            ],
            metadata=ConversationMetadataOut(
                user_id=conversation.metadata.user_id, start_time=conversation.metadata.start_time
            ),
        )

    @router.post("/clear-all", response_model=ClearAllResponse)
    async def clear_all() -> ClearAllResponse:
        return ClearAllResponse(cleared=await controller.clear_all())

    @router.delete("/{conversation_id}", response_model=SuccessResponse)
    async def delete(conversation_id: UUID) -> SuccessResponse:
        if not await controller.delete_conversation(str(conversation_id)):
            raise HTTPException(status_code=404, detail=CONVERSATION_NOT_FOUND)
        return SuccessResponse()

    return router
