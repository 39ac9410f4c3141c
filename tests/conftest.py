"""Shared test fixtures."""

import re
import zlib
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest
from loguru import logger
from numpy.typing import NDArray

from knowledge_toolkit.embeddings.base import EmbeddingsModel
from knowledge_toolkit.llms.base import LLM, GenerationUnavailable
from knowledge_toolkit.vectorstores.in_memory import InMemoryVectorStore

EMBEDDING_SIZE = 64


class HashingEmbeddings(EmbeddingsModel):
    """Deterministic bag-of-words vectors: texts sharing words have positive cosine similarity."""

    model_name = "hashing"

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    async def get_embeddings(self, texts: str | list[str]) -> NDArray[np.float64]:
        batch = [texts] if isinstance(texts, str) else list(texts)
        self.calls.append(batch)
        vectors = np.zeros((len(batch), EMBEDDING_SIZE), dtype=np.float64)
        for row, text in enumerate(batch):
            for word in re.findall(r"[a-z0-9]+", text.lower()):
                vectors[row, zlib.crc32(word.encode()) % EMBEDDING_SIZE] += 1.0
        return vectors


class ScriptedLLM(LLM):
    """Returns a fixed answer and records every prompt it was given."""

    model_name = "scripted"

    def __init__(self, answer: str = "Scripted answer.", fail: bool = False) -> None:
        self.answer = answer
        self.fail = fail
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise GenerationUnavailable("Failed to generate response from Ollama.")
        return self.answer

    async def list_models(self) -> list[str]:
        if self.fail:
            raise GenerationUnavailable("Ollama is unreachable")
        return [self.model_name]


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def embeddings() -> HashingEmbeddings:
    return HashingEmbeddings()


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
