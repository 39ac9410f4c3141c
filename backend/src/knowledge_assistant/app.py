"""
Knowledge assistant HTTP application.

Each component is built by an independent function so a single piece (LLM,
embeddings, vector store, agent) can be swapped or inspected without building
the whole application. 'create_app' wires the components into FastAPI routers
and ties the conversation sweeper to the application lifespan. On startup the
lifespan logs whether Ollama (with its model list) and the vector store are
reachable; an unreachable dependency is logged, not fatal.

Error bodies:
    request validation failure -> 400 {"error": "Validation failed", "details": [...]}
    any HTTPException          -> its status code, {"error": <detail>}
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from knowledge_toolkit.agents.rag import RAG
from knowledge_toolkit.api.chat import build_chat_router
from knowledge_toolkit.api.health import build_health_router
from knowledge_toolkit.api.knowledge import build_knowledge_router
from knowledge_toolkit.conversation_database.controller import ChatController
from knowledge_toolkit.conversation_database.in_memory import InMemoryConversationDatabase
from knowledge_toolkit.embeddings.base import EmbeddingsModel
from knowledge_toolkit.embeddings.ollama import OllamaEmbeddings
from knowledge_toolkit.knowledge_base import KnowledgeBase
from knowledge_toolkit.llms.base import LLM, GenerationUnavailable
from knowledge_toolkit.llms.ollama import OllamaLLM
from knowledge_toolkit.retriever.vectorstore_retriever import VectorStoreRetriever
from knowledge_toolkit.utils.confidence import ConfidenceEstimator
from knowledge_toolkit.vectorstores.base import VectorStore
from knowledge_toolkit.vectorstores.chromadb import ChromaDBVectorStore

from knowledge_assistant.settings import Settings, get_settings

VALIDATION_FAILED = "Validation failed"


@dataclass
class Components:
    llm: LLM
    embedding_model: EmbeddingsModel
    vector_store: VectorStore
    conversation_db: InMemoryConversationDatabase
    agent: RAG
    knowledge_base: KnowledgeBase
    controller: ChatController


def build_llm(settings: Settings) -> LLM:
    logger.info(f"LLM backend: Ollama ({settings.llm_model}) at {settings.ollama_host}")
    return OllamaLLM(
        model_name=settings.llm_model,
        temperature=settings.llm_temperature,
        num_predict=settings.llm_num_predict,
        host=settings.ollama_host,
        timeout=settings.request_timeout,
    )


def build_embedding_model(settings: Settings) -> EmbeddingsModel:
    logger.info(f"Embedding model: Ollama ({settings.embedding_model})")
    return OllamaEmbeddings(
        model_name=settings.embedding_model,
        host=settings.ollama_host,
        timeout=settings.request_timeout,
    )


def build_vector_store(settings: Settings) -> VectorStore:
    if settings.chroma_host:
        logger.info(f"Vector store: Chroma server {settings.chroma_host}:{settings.chroma_port}")
    elif settings.chroma_path:
        logger.info(f"Vector store: Chroma at {settings.chroma_path}")
    else:
        logger.warning("Vector store: in-process Chroma, documents are lost on restart")
    return ChromaDBVectorStore(
        collection_name=settings.chroma_collection,
        host=settings.chroma_host or None,
        port=settings.chroma_port,
        db_path=settings.chroma_path or None,
        timeout=settings.request_timeout,
        retry_attempts=settings.vector_store_retry_attempts,
    )


def build_conversation_db(settings: Settings) -> InMemoryConversationDatabase:
    return InMemoryConversationDatabase(
        recent_window=settings.conversation_recent_window,
        ttl=timedelta(seconds=settings.conversation_ttl_seconds),
        sweep_interval=timedelta(seconds=settings.conversation_sweep_interval_seconds),
    )


def build_agent(settings: Settings, llm: LLM, embedding_model: EmbeddingsModel, vector_store: VectorStore) -> RAG:
    retriever = VectorStoreRetriever(embedding_model, vector_store, top_k=settings.retrieval_top_k)
    return RAG(
        llm=llm,
        retriever=retriever,
        top_k=settings.retrieval_top_k,
        history_window=settings.prompt_history_window,
        confidence_estimator=ConfidenceEstimator(
            high_threshold=settings.confidence_high_threshold,
            medium_threshold=settings.confidence_medium_threshold,
        ),
    )


def build_components(
    settings: Settings,
    llm: LLM | None = None,
    embedding_model: EmbeddingsModel | None = None,
    vector_store: VectorStore | None = None,
) -> Components:
    """Build every component from 'settings'; any provider passed in is used as is."""
    llm = llm or build_llm(settings)
    embedding_model = embedding_model or build_embedding_model(settings)
    vector_store = vector_store or build_vector_store(settings)
    conversation_db = build_conversation_db(settings)
    agent = build_agent(settings, llm, embedding_model, vector_store)
    return Components(
        llm=llm,
        embedding_model=embedding_model,
        vector_store=vector_store,
        conversation_db=conversation_db,
        agent=agent,
        knowledge_base=KnowledgeBase(embedding_model, vector_store),
        controller=ChatController(conversation_db, agent),
    )


async def _available_models(llm: LLM) -> list[str] | None:
    try:
        return await llm.list_models()
    except GenerationUnavailable:
        return None


async def log_dependency_status(llm: LLM, vector_store: VectorStore) -> None:
    """Probe Ollama and the vector store once and log what is reachable."""
    models, vector_store_ok = await asyncio.gather(_available_models(llm), vector_store.heartbeat())
    if models is None:
        logger.warning("Ollama: disconnected")
    else:
        logger.info(f"Ollama: connected (models: {', '.join(models) or 'none'})")
    if vector_store_ok:
        logger.info("Vector store: connected")
    else:
        logger.warning("Vector store: disconnected")


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": VALIDATION_FAILED, "details": jsonable_encoder(exc.errors())},
    )


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


def create_app(settings: Settings | None = None, components: Components | None = None) -> FastAPI:
    settings = settings or get_settings()
    components = components or build_components(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await log_dependency_status(components.llm, components.vector_store)
        await components.conversation_db.start()
        logger.info("Knowledge assistant started.")
        try:
            yield
        finally:
            await components.conversation_db.stop()
            logger.info("Knowledge assistant stopped.")

    app = FastAPI(title="Knowledge Assistant", lifespan=lifespan)
    app.state.components = components

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    app.include_router(build_chat_router(components.controller))
    app.include_router(build_knowledge_router(components.knowledge_base))
    app.include_router(build_health_router(components.llm, components.vector_store))
    return app
