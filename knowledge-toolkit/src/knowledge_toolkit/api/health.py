import asyncio

from fastapi import APIRouter

from knowledge_toolkit.api.schemas import HealthResponse
from knowledge_toolkit.llms.base import LLM, GenerationUnavailable
from knowledge_toolkit.utils.time import get_current_timestamp
from knowledge_toolkit.vectorstores.base import VectorStore

CONNECTED = "connected"
DISCONNECTED = "disconnected"


async def check_llm(llm: LLM) -> str:
    try:
        await llm.list_models()
    except GenerationUnavailable:
        return DISCONNECTED
    return CONNECTED


async def check_vector_store(vector_store: VectorStore) -> str:
    return CONNECTED if await vector_store.heartbeat() else DISCONNECTED


def build_health_router(llm: LLM, vector_store: VectorStore) -> APIRouter:
    router = APIRouter(prefix="/api", tags=["health"])

    @router.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        ollama_status, vector_store_status = await asyncio.gather(check_llm(llm), check_vector_store(vector_store))
        return HealthResponse(
            status="ok",
            ollama=ollama_status,
            vector_store=vector_store_status,
            timestamp=get_current_timestamp(),
        )

    return router
