"""
Knowledge base management: the admin-side operations on stored documents.

Documents are embedded with the configured 'EmbeddingsModel' and upserted into
the 'VectorStore' under fresh UUIDs. Bulk additions embed every text in one
batched call and upsert concurrently; an individual upsert failure is counted
and logged so one bad document does not sink the whole batch.
"""

import asyncio
from typing import Sequence

from loguru import logger
from pydantic import BaseModel

from knowledge_toolkit.embeddings.base import EmbeddingsModel, EmbeddingUnavailable
from knowledge_toolkit.utils.database import generate_uid
from knowledge_toolkit.vectorstores.base import (
    DEFAULT_CATEGORY,
    DEFAULT_SOURCE,
    DocumentMatch,
    DocumentMetadata,
    DocumentRecord,
    VectorStore,
    VectorStoreUnavailable,
)


class NewDocument(BaseModel):
    text: str
    category: str | None = None
    source: str | None = None


class BulkAddResult(BaseModel):
    added: int
    failed: int


class DocumentPage(BaseModel):
    page: int
    limit: int
    total: int
    items: list[DocumentRecord]


class KnowledgeBase:
    def __init__(self, embedding_model: EmbeddingsModel, vector_store: VectorStore):
        self.embedding_model = embedding_model
        self.vector_store = vector_store

    @staticmethod
    def _metadata(document: NewDocument) -> DocumentMetadata:
        return DocumentMetadata(
            text=document.text,
            category=document.category or DEFAULT_CATEGORY,
            source=document.source or DEFAULT_SOURCE,
        )

    async def add(self, text: str, category: str | None = None, source: str | None = None) -> str:
        """Embed and store one document; return its new id."""
        document = NewDocument(text=text, category=category, source=source)
        embeddings = await self.embedding_model.get_embeddings([document.text])
        document_id = generate_uid()
        await self.vector_store.upsert(document_id, embeddings[0], self._metadata(document))
        logger.info(f"Added knowledge document {document_id} (category={document.category or DEFAULT_CATEGORY})")
        return document_id

    async def bulk_add(self, documents: Sequence[NewDocument]) -> BulkAddResult:
        """
        Embed all texts in one call, then upsert each document concurrently.

        An embedding failure aborts the batch ('EmbeddingUnavailable'); upsert
        failures are counted in 'failed'.
        """
        if not documents:
            return BulkAddResult(added=0, failed=0)

        embeddings = await self.embedding_model.get_embeddings([document.text for document in documents])
        if len(embeddings) != len(documents):
            raise EmbeddingUnavailable(f"Expected {len(documents)} embeddings, got {len(embeddings)}")

        async def upsert_one(document: NewDocument, index: int) -> bool:
            try:
                await self.vector_store.upsert(generate_uid(), embeddings[index], self._metadata(document))
            except VectorStoreUnavailable as exc:
                logger.error(f"Bulk add document {index} failed: {exc}")
                return False
            return True

        outcomes = await asyncio.gather(*(upsert_one(document, i) for i, document in enumerate(documents)))
        added = sum(outcomes)
        logger.info(f"Bulk add finished: {added} added, {len(documents) - added} failed")
        return BulkAddResult(added=added, failed=len(documents) - added)

    async def search(self, query: str, limit: int = 5) -> list[DocumentMatch]:
        embeddings = await self.embedding_model.get_embeddings([query])
        matches = await self.vector_store.query(embeddings[0], limit)
        return sorted(matches, key=lambda match: match.score, reverse=True)

    async def list_documents(self, page: int = 1, limit: int = 50) -> DocumentPage:
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be >= 1")
        documents = await self.vector_store.list_all()
        start = (page - 1) * limit
        return DocumentPage(page=page, limit=limit, total=len(documents), items=documents[start : start + limit])

    async def delete(self, document_id: str) -> None:
        await self.vector_store.delete(document_id)
        logger.info(f"Deleted knowledge document {document_id}")
