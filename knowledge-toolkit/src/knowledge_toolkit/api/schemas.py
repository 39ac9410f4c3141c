"""
Request and response bodies of the HTTP API.

JSON keys are camelCase (the frontend's convention); Python attributes stay
snake_case through pydantic aliases.
"""

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from knowledge_toolkit.utils.confidence import Confidence

MAX_TEXT_LENGTH = 5000

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
DocumentText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_TEXT_LENGTH)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(CamelModel):
    message: NonEmptyStr
    conversation_id: UUID | None = None


class SourceOut(CamelModel):
    text: str
    score: float


class ChatResponse(CamelModel):
    conversation_id: str
    response: str
    sources: list[SourceOut]
    confidence: Confidence
    timestamp: datetime


class MessageOut(CamelModel):
    role: str
    content: str
    timestamp: datetime


class ConversationMetadataOut(CamelModel):
    user_id: str | None
    start_time: datetime


class HistoryResponse(CamelModel):
    conversation_id: str
    messages: list[MessageOut]
    metadata: ConversationMetadataOut


class SuccessResponse(CamelModel):
    success: bool = True


class ClearAllResponse(CamelModel):
    cleared: int


class KnowledgeAddRequest(CamelModel):
    text: DocumentText
    category: str | None = None
    source: str | None = None


class KnowledgeAddResponse(CamelModel):
    id: str
    success: bool = True
    message: str = "Knowledge added"


class KnowledgeBulkAddRequest(CamelModel):
    documents: list[KnowledgeAddRequest] = Field(min_length=1)


class KnowledgeBulkAddResponse(CamelModel):
    added: int
    failed: int


class SearchResult(CamelModel):
    id: str
    text: str
    category: str
    source: str
    score: float


class SearchResponse(CamelModel):
    results: list[SearchResult]


class KnowledgeListResponse(CamelModel):
    page: int
    limit: int
    total: int
    items: list[dict[str, Any]]


class HealthResponse(CamelModel):
    status: str
    ollama: str
    vector_store: str
    timestamp: datetime
