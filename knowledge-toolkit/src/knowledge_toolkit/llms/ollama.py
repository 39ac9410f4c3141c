"""
Ollama generation backend.

Talks to a local Ollama server through the official 'ollama' async client. The
'/api/generate' endpoint is used in non-streaming mode, so a request either
returns the whole answer or fails.
"""

import httpx
from loguru import logger
from ollama import AsyncClient, RequestError, ResponseError

from knowledge_toolkit.llms.base import LLM, GenerationUnavailable

DEFAULT_OLLAMA_HOST = "http://localhost:11434"


class OllamaLLM(LLM):
    """
    'LLM' implementation backed by an Ollama server.

    Attributes:
        model_name: Ollama model tag, e.g. 'llama3.2'.
        temperature: Sampling temperature.
        num_predict: Maximum number of tokens to generate.
        client: The underlying 'ollama.AsyncClient'; its HTTP timeout bounds every call.
    """

    def __init__(
        self,
        model_name: str = "llama3.2",
        temperature: float = 0.7,
        num_predict: int = 2000,
        host: str | None = None,
        timeout: float = 30.0,
        client: AsyncClient | None = None,
    ):
        self.model_name = model_name
        self.temperature = temperature
        self.num_predict = num_predict
        self.client = client or AsyncClient(host=host or DEFAULT_OLLAMA_HOST, timeout=timeout)

    async def generate(self, prompt: str) -> str:
        try:
            response = await self.client.generate(
                model=self.model_name,
                prompt=prompt,
                stream=False,
                options={"temperature": self.temperature, "num_predict": self.num_predict},
            )
        except (ResponseError, RequestError, httpx.HTTPError, ConnectionError) as exc:
            logger.error(f"Ollama generate failed ({self.model_name}): {exc}")
            raise GenerationUnavailable("Failed to generate response from Ollama.") from exc

        text = response.response if response else ""
        if not text:
            logger.error(f"Ollama returned no text ({self.model_name})")
            raise GenerationUnavailable("No text content returned from Ollama.")
        return text

    async def list_models(self) -> list[str]:
        try:
            listing = await self.client.list()
        except (ResponseError, httpx.HTTPError, ConnectionError) as exc:
            raise GenerationUnavailable(f"Ollama is unreachable: {exc}") from exc
        return [model.model for model in listing.models if model.model]
