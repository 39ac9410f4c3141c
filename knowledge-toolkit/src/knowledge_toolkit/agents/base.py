"""
Agent abstractions and the per-request data models.

'QueryWithContext' is what a caller hands to an agent: the new user query plus
the preceding conversation turns. 'RAGResult' is what comes back. 'StageOutcome'
records whether one pipeline stage (retrieval, generation) succeeded, so the
agent can branch on an explicit value instead of relying on exceptions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from knowledge_toolkit.llms.base import LLMMessage
from knowledge_toolkit.utils.confidence import Confidence
from knowledge_toolkit.vectorstores.base import DocumentMatch

T = TypeVar("T")


class QueryWithContext(BaseModel):
    query: str
    history: list[LLMMessage] = Field(default_factory=list)


class RAGResult(BaseModel):
    """
    The answer to one query.

    Attributes:
        response: Generated (or fallback) answer text.
        sources: Documents the answer was grounded on, best match first.
        confidence: Label derived from the best retrieval score.
    """

    response: str
    sources: list[DocumentMatch] = Field(default_factory=list)
    confidence: Confidence = Confidence.LOW


@dataclass(frozen=True)
class StageOutcome(Generic[T]):
    """Success with a value, or failure with a human-readable reason."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "StageOutcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "StageOutcome[T]":
        return cls(error=error)


class Agent(ABC):
    """
    Abstract base class for question-answering agents.

    Implementations must never raise from 'answer': every internal failure is
    turned into a well-formed 'RAGResult'.
    """

    def __init__(self, system_prompt: str, description: str = ""):
        self.system_prompt = system_prompt
        self.description = description

    @abstractmethod
    async def answer(self, query_with_context: QueryWithContext) -> RAGResult:
        pass
