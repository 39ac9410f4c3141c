"""
Vector store abstractions and document data models.

'DocumentMetadata' is the payload stored next to each vector. 'DocumentRecord'
adds the storage identity ('id'), representing a document as listed from the
store. 'DocumentMatch' further extends 'DocumentRecord' with the similarity
score returned by a nearest-neighbour query (higher means more relevant).

Concrete implementations: 'ChromaDBVectorStore', 'InMemoryVectorStore'.
"""

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field

from knowledge_toolkit.utils.time import get_current_timestamp, to_iso

DEFAULT_CATEGORY = "general"
DEFAULT_SOURCE = "manual"


class DocumentMetadata(BaseModel):
    """
    Metadata persisted with each document vector.

    Attributes:
        text: The raw document text; this is what gets injected into prompts.
        category: Free-form grouping label shown in the admin panel.
        source: Where the document came from (e.g. 'manual', a file name).
        timestamp: ISO 8601 time the document was added.
    """

    text: str
    category: str = DEFAULT_CATEGORY
    source: str = DEFAULT_SOURCE
    timestamp: str = Field(default_factory=lambda: to_iso(get_current_timestamp()))


class DocumentRecord(BaseModel):
    """A document as it exists in the vector store."""

    id: str
    metadata: DocumentMetadata


class DocumentMatch(DocumentRecord):
    """A 'DocumentRecord' returned from a similarity search, augmented with a relevance score."""

    score: float


class VectorStoreUnavailable(Exception):
    """The vector store could not complete an operation (after retries)."""


class VectorStore(ABC):
    """
    Abstract base class for vector store backends.

    'upsert' is idempotent by id. 'query' returns at most 'top_k' matches and
    callers must not rely on their order. Every failure surfaces as
    'VectorStoreUnavailable'.
    """

    @abstractmethod
    async def upsert(self, document_id: str, embedding: NDArray[np.float64], metadata: DocumentMetadata) -> None:
        """Insert or replace the vector and metadata stored under 'document_id'."""
        pass

    @abstractmethod
    async def query(self, embedding: NDArray[np.float64], top_k: int) -> list[DocumentMatch]:
        """Return up to 'top_k' documents most similar to 'embedding'."""
        pass

    @abstractmethod
    async def delete(self, document_id: str) -> None:
        """Remove the document stored under 'document_id'. Unknown ids are ignored."""
        pass

    @abstractmethod
    async def list_all(self) -> list[DocumentRecord]:
        """Return every stored document (full scan)."""
        pass

    @abstractmethod
    async def heartbeat(self) -> bool:
        """Return True when the backend is reachable."""
        pass
