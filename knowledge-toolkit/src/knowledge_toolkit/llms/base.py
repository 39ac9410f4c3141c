"""
Core LLM abstractions and message data models.

All concrete generation backends ('OllamaLLM') implement the 'LLM' ABC. The
shared message format ('LLMMessage') is backend-agnostic so the orchestrator and
the controller never need to know which model server is in use.

Generation is single-shot: the orchestrator composes one prompt string and
receives one complete answer. Backends translate every transport problem
(timeouts, HTTP errors, empty output) into 'GenerationUnavailable'.
"""

from abc import ABC, abstractmethod
from enum import StrEnum

from pydantic import BaseModel


class Roles(StrEnum):
    """Conversation roles stored in a conversation and rendered into prompts."""

    USER = "user"
    ASSISTANT = "assistant"


class LLMMessage(BaseModel):
    """A single conversation turn as seen by the prompt builder."""

    content: str = ""
    role: Roles = Roles.ASSISTANT


class GenerationUnavailable(Exception):
    """The generation backend failed or returned no text."""


class LLM(ABC):
    """
    Abstract base class for language model backends.

    Attributes:
        model_name: Identifier of the model served by the backend.
    """

    model_name: str

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return the complete response for 'prompt'.

        Raise 'GenerationUnavailable' on any failure, including empty output.
        """
        pass

    @abstractmethod
    async def list_models(self) -> list[str]:
        """Return the model names available on the backend (used for health checks)."""
        pass
