"""
Knowledge base admin routes.

Provider failures (embedding backend or vector store down) are reported as
HTTP 500 with a short, fixed message; the underlying error is logged.
"""

from fastapi import APIRouter, HTTPException, Query
from loguru import logger

from knowledge_toolkit.api.schemas import (
    KnowledgeAddRequest,
    KnowledgeAddResponse,
    KnowledgeBulkAddRequest,
    KnowledgeBulkAddResponse,
    KnowledgeListResponse,
    SearchResponse,
    SearchResult,
    SuccessResponse,
)
from knowledge_toolkit.embeddings.base import EmbeddingUnavailable
from knowledge_toolkit.knowledge_base import KnowledgeBase, NewDocument
from knowledge_toolkit.vectorstores.base import VectorStoreUnavailable

PROVIDER_ERRORS = (EmbeddingUnavailable, VectorStoreUnavailable)


def build_knowledge_router(knowledge_base: KnowledgeBase) -> APIRouter:
    router = APIRouter(prefix="/api/knowledge", tags=["knowledge"])

    @router.post("/add", response_model=KnowledgeAddResponse)
    async def add(request: KnowledgeAddRequest) -> KnowledgeAddResponse:
        try:
            document_id = await knowledge_base.add(request.text, request.category, request.source)
        except PROVIDER_ERRORS as exc:
            logger.error(f"Knowledge add error: {exc}")
            raise HTTPException(status_code=500, detail="Failed to add knowledge document.")
        return KnowledgeAddResponse(id=document_id)

    @router.post("/bulk-add", response_model=KnowledgeBulkAddResponse)
    async def bulk_add(request: KnowledgeBulkAddRequest) -> KnowledgeBulkAddResponse:
        documents = [
            NewDocument(text=document.text, category=document.category, source=document.source)
            for document in request.documents
        ]
        try:
            result = await knowledge_base.bulk_add(documents)
        except PROVIDER_ERRORS as exc:
            logger.error(f"Bulk add error: {exc}")
            raise HTTPException(status_code=500, detail="Failed to bulk add knowledge documents.")
        return KnowledgeBulkAddResponse(added=result.added, failed=result.failed)

    @router.get("/search", response_model=SearchResponse)
    async def search(
        q: str = Query(..., min_length=1, pattern=r"\S"),
        limit: int = Query(5, ge=1, le=50),
    ) -> SearchResponse:
        try:
            matches = await knowledge_base.search(q.strip(), limit)
        except PROVIDER_ERRORS as exc:
            logger.error(f"Knowledge search error: {exc}")
            raise HTTPException(status_code=500, detail="Failed to search knowledge base.")
        return SearchResponse(
            results=[
                SearchResult(
                    id=match.id,
                    text=match.metadata.text,
                    category=match.metadata.category,
                    source=match.metadata.source,
                    score=match.score,
                )
                for match in matches
            ]
        )

    @router.get("/list", response_model=KnowledgeListResponse)
    async def list_documents(
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=100),
    ) -> KnowledgeListResponse:
        try:
            result = await knowledge_base.list_documents(page, limit)
        except VectorStoreUnavailable as exc:
            logger.error(f"Knowledge list error: {exc}")
            raise HTTPException(status_code=500, detail="Failed to list knowledge documents.")
        return KnowledgeListResponse(
            page=result.page,
            limit=result.limit,
            total=result.total,
            items=[{"id": record.id, **record.metadata.model_dump()} for record in result.items],
        )

    @router.delete("/{document_id}", response_model=SuccessResponse)
    async def delete(document_id: str) -> SuccessResponse:
        try:
            await knowledge_base.delete(document_id)
        except VectorStoreUnavailable as exc:
            logger.error(f"Knowledge delete error: {exc}")
            raise HTTPException(status_code=500, detail="Failed to delete knowledge document.")
        return SuccessResponse()

    return router
