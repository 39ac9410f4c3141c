"""
Process-local vector store using numpy cosine similarity.

Meant for local development without a vector database server and for tests.
Scores are cosine similarities in [-1, 1]; documents are listed in insertion
order.
"""

import asyncio

import numpy as np
from numpy.typing import NDArray

from knowledge_toolkit.vectorstores.base import DocumentMatch, DocumentMetadata, DocumentRecord, VectorStore


class InMemoryVectorStore(VectorStore):
    def __init__(self) -> None:
        self._vectors: dict[str, NDArray[np.float64]] = {}
        self._metadata: dict[str, DocumentMetadata] = {}
        self._lock = asyncio.Lock()

    async def upsert(self, document_id: str, embedding: NDArray[np.float64], metadata: DocumentMetadata) -> None:
        vector = np.asarray(embedding, dtype=np.float64).reshape(-1)
        async with self._lock:
            self._vectors[document_id] = vector
            self._metadata[document_id] = metadata

    async def query(self, embedding: NDArray[np.float64], top_k: int) -> list[DocumentMatch]:
        if not self._vectors:
            return []

        query = np.asarray(embedding, dtype=np.float64).reshape(-1)
        ids = list(self._vectors)
        matrix = np.vstack([self._vectors[i] for i in ids])
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        scores = np.divide(matrix @ query, norms, out=np.zeros(len(ids)), where=norms > 0)

        order = np.argsort(-scores)[:top_k]
        return [DocumentMatch(id=ids[i], score=float(scores[i]), metadata=self._metadata[ids[i]]) for i in order]

    async def delete(self, document_id: str) -> None:
        async with self._lock:
            self._vectors.pop(document_id, None)
            self._metadata.pop(document_id, None)

    async def list_all(self) -> list[DocumentRecord]:
        return [DocumentRecord(id=i, metadata=metadata) for i, metadata in self._metadata.items()]

    async def heartbeat(self) -> bool:
        return True
