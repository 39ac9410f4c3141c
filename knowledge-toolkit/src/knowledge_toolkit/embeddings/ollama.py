"""
Ollama embeddings backend.

Uses the batched '/api/embed' endpoint, so a list of texts costs a single
request. The default model 'nomic-embed-text' must be pulled on the server.
"""

import httpx
import numpy as np
from loguru import logger
from numpy.typing import NDArray
from ollama import AsyncClient, RequestError, ResponseError

from knowledge_toolkit.embeddings.base import EmbeddingsModel, EmbeddingUnavailable
from knowledge_toolkit.llms.ollama import DEFAULT_OLLAMA_HOST


class OllamaEmbeddings(EmbeddingsModel):
    def __init__(
        self,
        model_name: str = "nomic-embed-text",
        host: str | None = None,
        timeout: float = 30.0,
        client: AsyncClient | None = None,
    ):
        self.model_name = model_name
        self.client = client or AsyncClient(host=host or DEFAULT_OLLAMA_HOST, timeout=timeout)

    async def get_embeddings(self, texts: str | list[str]) -> NDArray[np.float64]:
        batch = [texts] if isinstance(texts, str) else list(texts)
        if not batch:
            raise EmbeddingUnavailable("Nothing to embed.")

        try:
            response = await self.client.embed(model=self.model_name, input=batch)
        except (ResponseError, RequestError, httpx.HTTPError, ConnectionError) as exc:
            logger.error(f"Ollama embed failed ({self.model_name}): {exc}")
            raise EmbeddingUnavailable("Failed to generate embeddings from Ollama.") from exc

        vectors = list(response.embeddings or [])
        if len(vectors) != len(batch) or any(len(vector) == 0 for vector in vectors):
            logger.error(f"Ollama returned {len(vectors)} embeddings for {len(batch)} texts")
            raise EmbeddingUnavailable("Invalid embedding response from Ollama.")

        return np.asarray(vectors, dtype=np.float64)
