"""
ChromaDB-backed vector store.

The knowledge base lives in a single collection configured for cosine distance,
so a match's similarity score is '1 - distance'. The client is chosen from the
constructor arguments:

    host given     -> 'chromadb.HttpClient' (remote Chroma server)
    db_path given  -> 'chromadb.PersistentClient' (local directory)
    neither        -> 'chromadb.EphemeralClient' (process memory)

The Chroma client is synchronous, so every call runs in a worker thread under
'asyncio.wait_for'. Each operation is retried immediately up to
'retry_attempts' times; timeouts count as failures. Exhausted retries surface
as 'VectorStoreUnavailable'.
"""

import asyncio
from typing import Any, Callable, TypeVar

import chromadb
import numpy as np
from chromadb.api import ClientAPI
from chromadb.api.models.Collection import Collection
from loguru import logger
from numpy.typing import NDArray

from knowledge_toolkit.utils.retry import call_with_retry
from knowledge_toolkit.vectorstores.base import (
    DocumentMatch,
    DocumentMetadata,
    DocumentRecord,
    VectorStore,
    VectorStoreUnavailable,
)

T = TypeVar("T")

LIST_PAGE_SIZE = 100


def _to_metadata(meta: Any) -> DocumentMetadata:
    return DocumentMetadata(**{"text": "", **dict(meta or {})})


class ChromaDBVectorStore(VectorStore):
    """
    'VectorStore' implementation on top of a ChromaDB collection.

    The client and collection are resolved on first use, inside a worker
    thread, so an unreachable server shows up as a failed operation (or a
    failed heartbeat) instead of a crash at construction time.

    Attributes:
        collection_name: Name of the Chroma collection holding the knowledge base.
        timeout: Seconds allowed for a single Chroma call.
        retry_attempts: Attempts per operation before giving up.
    """

    def __init__(
        self,
        collection_name: str = "knowledge",
        host: str | None = None,
        port: int = 8000,
        db_path: str | None = None,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        client: ClientAPI | None = None,
    ):
        self.collection_name = collection_name
        self.host = host
        self.port = port
        self.db_path = db_path
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self._client = client
        self._collection: Collection | None = None

    @property
    def client(self) -> ClientAPI:
        if self._client is None:
            if self.host:
                self._client = chromadb.HttpClient(host=self.host, port=self.port)
            elif self.db_path:
                self._client = chromadb.PersistentClient(path=self.db_path)
            else:
                self._client = chromadb.EphemeralClient()
        return self._client

    @property
    def collection(self) -> Collection:
        if self._collection is None:
            self._collection = self.client.get_or_create_collection(
                name=self.collection_name, metadata={"hnsw:space": "cosine"}
            )
        return self._collection

    async def _call(self, label: str, func: Callable[[], T]) -> T:
        async def attempt() -> T:
            return await asyncio.wait_for(asyncio.to_thread(func), timeout=self.timeout)

        try:
            return await call_with_retry(attempt, attempts=self.retry_attempts, label=f"Chroma {label}")
        except Exception as exc:
            raise VectorStoreUnavailable(f"Chroma {label} failed after {self.retry_attempts} attempts") from exc

    async def upsert(self, document_id: str, embedding: NDArray[np.float64], metadata: DocumentMetadata) -> None:
        vector = np.asarray(embedding, dtype=np.float64).reshape(-1).tolist()
        await self._call(
            "upsert",
            lambda: self.collection.upsert(
                ids=[document_id],
                embeddings=[vector],
                metadatas=[metadata.model_dump()],
                documents=[metadata.text],
            ),
        )

    async def query(self, embedding: NDArray[np.float64], top_k: int) -> list[DocumentMatch]:
        vector = np.asarray(embedding, dtype=np.float64).reshape(-1).tolist()
        result = await self._call(
            "query",
            lambda: self.collection.query(
                query_embeddings=[vector], n_results=top_k, include=["metadatas", "distances"]
            ),
        )
        ids = (result.get("ids") or [[]])[0]
        distances = (result.get("distances") or [[]])[0]
        metadatas = (result.get("metadatas") or [[]])[0]

        matches = [
            DocumentMatch(id=doc_id, score=1.0 - float(distance), metadata=_to_metadata(meta))
            for doc_id, distance, meta in zip(ids, distances, metadatas)
        ]
        logger.debug(f"Chroma query returned {len(matches)} matches (top_k={top_k})")
        return matches

    async def delete(self, document_id: str) -> None:
        await self._call("delete", lambda: self.collection.delete(ids=[document_id]))

    async def list_all(self) -> list[DocumentRecord]:
        records: list[DocumentRecord] = []
        offset = 0
        while True:
            page = await self._call(
                "list",
                lambda: self.collection.get(limit=LIST_PAGE_SIZE, offset=offset, include=["metadatas"]),
            )
            ids = page.get("ids") or []
            metadatas = page.get("metadatas") or []
            records += [DocumentRecord(id=doc_id, metadata=_to_metadata(meta)) for doc_id, meta in zip(ids, metadatas)]
            if len(ids) < LIST_PAGE_SIZE:
                return records
            offset += LIST_PAGE_SIZE

    async def heartbeat(self) -> bool:
        try:
            await asyncio.wait_for(asyncio.to_thread(lambda: self.client.heartbeat()), timeout=self.timeout)
        except Exception as exc:
            logger.error(f"Chroma heartbeat failed: {exc}")
            return False
        return True
