"""
Embeddings model abstractions.

Concrete implementations: 'OllamaEmbeddings'.
"""

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray


class EmbeddingUnavailable(Exception):
    """The embedding backend failed or returned no vectors."""


class EmbeddingsModel(ABC):
    """
    Abstract base class for text embedding models.

    Attributes:
        model_name: Identifier of the underlying model.
    """

    model_name: str

    @abstractmethod
    async def get_embeddings(self, texts: str | list[str]) -> NDArray[np.float64]:
        """Embed one or more texts and return a float64 array of shape '(n, embedding_size)'.

        Rows are in input order. Raise 'EmbeddingUnavailable' when the backend
        errors or does not return exactly one vector per text.
        """
        pass
