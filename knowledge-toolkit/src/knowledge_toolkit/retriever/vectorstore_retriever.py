"""
Semantic retriever: embed the query, then ask the vector store for neighbours.

Vector stores do not promise any result order, so matches are re-sorted by
descending score here. A 'top_k' larger than the number of stored documents
simply yields everything that is stored.
"""

from knowledge_toolkit.embeddings.base import EmbeddingsModel, EmbeddingUnavailable
from knowledge_toolkit.retriever.base import Retriever
from knowledge_toolkit.vectorstores.base import DocumentMatch, VectorStore


class VectorStoreRetriever(Retriever):
    def __init__(self, embedding_model: EmbeddingsModel, vector_store: VectorStore, top_k: int):
        super().__init__(top_k)
        self.embedding_model = embedding_model
        self.vector_store = vector_store

    async def retrieve(self, query: str, top_k: int | None = None) -> list[DocumentMatch]:
        """Raises 'EmbeddingUnavailable' or 'VectorStoreUnavailable' when a backend fails."""
        embeddings = await self.embedding_model.get_embeddings([query])
        if len(embeddings) == 0:
            raise EmbeddingUnavailable("Embedding backend returned no vector for the query.")

        matches = await self.vector_store.query(embeddings[0], top_k or self.top_k)
        return sorted(matches, key=lambda match: match.score, reverse=True)
