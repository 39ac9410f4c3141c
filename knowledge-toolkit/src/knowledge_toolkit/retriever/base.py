"""
Retriever abstractions.

A retriever accepts a natural-language query and returns a ranked list of
stored documents, best match first.

Concrete implementations: 'VectorStoreRetriever'.
"""

from abc import ABC, abstractmethod

from loguru import logger
from pydantic import BaseModel, Field

from knowledge_toolkit.utils.prompt import render_context
from knowledge_toolkit.vectorstores.base import DocumentMatch


class RetrievedContext(BaseModel):
    """
    The retrieval output handed to the prompt builder.

    Attributes:
        context_text: Ranked document texts rendered for direct injection into the prompt.
        documents: The matches behind 'context_text', in descending score order.
    """

    context_text: str = ""
    documents: list[DocumentMatch] = Field(default_factory=list)


class Retriever(ABC):
    """
    Abstract base class for document retrievers.

    Attributes:
        top_k: Default maximum number of documents to return per query.
    """

    def __init__(self, top_k: int):
        if top_k < 1:
            raise ValueError("top_k must be >= 1")
        self.top_k = top_k

    @abstractmethod
    async def retrieve(self, query: str, top_k: int | None = None) -> list[DocumentMatch]:
        """Return up to 'top_k' (default 'self.top_k') documents most relevant to 'query'."""
        pass

    async def retrieve_context(self, query: str, top_k: int | None = None) -> RetrievedContext:
        """Retrieve documents and render them into the prompt-ready context block."""
        documents = await self.retrieve(query, top_k)
        logger.debug(f"Retrieved {len(documents)} documents for query {query[:60]!r}")
        return RetrievedContext(context_text=render_context(documents), documents=documents)
