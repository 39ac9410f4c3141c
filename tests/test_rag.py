"""Tests for the RAG agent: happy path, degradation paths and prompt contents."""

import pytest

from knowledge_toolkit.agents.base import QueryWithContext
from knowledge_toolkit.agents.rag import FALLBACK_RESPONSE, RAG
from knowledge_toolkit.knowledge_base import KnowledgeBase
from knowledge_toolkit.llms.base import LLMMessage, Roles
from knowledge_toolkit.retriever.base import Retriever
from knowledge_toolkit.retriever.vectorstore_retriever import VectorStoreRetriever
from knowledge_toolkit.utils.confidence import Confidence
from knowledge_toolkit.utils.prompt import NO_CONTEXT_PLACEHOLDER
from knowledge_toolkit.vectorstores.base import DocumentMatch, DocumentMetadata, VectorStoreUnavailable

PTO_TEXT = "Employees receive 25 PTO days per calendar year."


class StaticRetriever(Retriever):
    """Returns the same documents for every query, or raises 'error' when set."""

    def __init__(self, documents: list[DocumentMatch] | None = None, error: Exception | None = None) -> None:
        super().__init__(top_k=3)
        self.documents = documents or []
        self.error = error
        self.requested_top_k: list[int | None] = []

    async def retrieve(self, query: str, top_k: int | None = None) -> list[DocumentMatch]:
        self.requested_top_k.append(top_k)
        if self.error:
            raise self.error
        return self.documents


@pytest.fixture
def pto_retriever() -> StaticRetriever:
    return StaticRetriever([DocumentMatch(id="pto", score=0.82, metadata=DocumentMetadata(text=PTO_TEXT))])


# -- happy path --------------------------------------------------------------


async def test_pto_question_answered_with_high_confidence(llm, pto_retriever) -> None:
    llm.answer = "You receive 25 PTO days per year."
    agent = RAG(llm=llm, retriever=pto_retriever)

    result = await agent.answer(QueryWithContext(query="How many PTO days do I get?"))

    assert result.response == "You receive 25 PTO days per year."
    assert result.confidence == Confidence.HIGH
    assert len(result.sources) == 1
    assert result.sources[0].score == pytest.approx(0.82)
    assert "Source 1 (score: 0.820):\n" + PTO_TEXT in llm.prompts[0]
    assert "User question: How many PTO days do I get?" in llm.prompts[0]


async def test_requests_configured_top_k(llm, pto_retriever) -> None:
    agent = RAG(llm=llm, retriever=pto_retriever, top_k=5)
    await agent.answer(QueryWithContext(query="q"))
    assert pto_retriever.requested_top_k == [5]


async def test_system_prompt_leads_the_prompt(llm, pto_retriever) -> None:
    agent = RAG(llm=llm, retriever=pto_retriever, system_prompt="You are the HR bot.")
    await agent.answer(QueryWithContext(query="q"))
    assert llm.prompts[0].startswith("System: You are the HR bot.\n")


async def test_only_last_five_history_entries_reach_prompt(llm, pto_retriever) -> None:
    history = [LLMMessage(role=Roles.USER, content=f"earlier {i}") for i in range(8)]
    agent = RAG(llm=llm, retriever=pto_retriever)

    await agent.answer(QueryWithContext(query="q", history=history))

    prompt = llm.prompts[0]
    assert all(f"earlier {i}" in prompt for i in range(3, 8))
    assert all(f"earlier {i}" not in prompt for i in range(3))


async def test_medium_confidence_from_best_score(llm) -> None:
    retriever = StaticRetriever(
        [
            DocumentMatch(id="a", score=0.55, metadata=DocumentMetadata(text="a")),
            DocumentMatch(id="b", score=0.2, metadata=DocumentMetadata(text="b")),
        ]
    )
    result = await RAG(llm=llm, retriever=retriever).answer(QueryWithContext(query="q"))
    assert result.confidence == Confidence.MEDIUM
    assert [s.id for s in result.sources] == ["a", "b"]


async def test_no_documents_is_low_confidence(llm) -> None:
    result = await RAG(llm=llm, retriever=StaticRetriever()).answer(QueryWithContext(query="q"))
    assert result.confidence == Confidence.LOW
    assert result.sources == []
    assert NO_CONTEXT_PLACEHOLDER in llm.prompts[0]


# -- degradation -------------------------------------------------------------


async def test_retrieval_failure_still_answers(llm) -> None:
    retriever = StaticRetriever(error=VectorStoreUnavailable("index down"))
    result = await RAG(llm=llm, retriever=retriever).answer(QueryWithContext(query="q"))

    assert result.response == llm.answer
    assert result.sources == []
    assert result.confidence == Confidence.LOW
    assert NO_CONTEXT_PLACEHOLDER in llm.prompts[0]


async def test_generation_failure_returns_fallback(llm, pto_retriever) -> None:
    llm.fail = True
    result = await RAG(llm=llm, retriever=pto_retriever).answer(QueryWithContext(query="q"))

    assert result.response == FALLBACK_RESPONSE
    assert result.sources == []
    assert result.confidence == Confidence.LOW


async def test_unexpected_retriever_error_is_contained(llm) -> None:
    retriever = StaticRetriever(error=RuntimeError("bug"))
    result = await RAG(llm=llm, retriever=retriever).answer(QueryWithContext(query="q"))
    assert result.response == llm.answer


async def test_both_stages_failing_returns_fallback(llm) -> None:
    llm.fail = True
    retriever = StaticRetriever(error=VectorStoreUnavailable("index down"))
    result = await RAG(llm=llm, retriever=retriever).answer(QueryWithContext(query="q"))
    assert result.response == FALLBACK_RESPONSE


# -- end to end over the in-memory index -------------------------------------


async def test_end_to_end_with_in_memory_index(llm, embeddings, vector_store) -> None:
    knowledge_base = KnowledgeBase(embeddings, vector_store)
    pto_id = await knowledge_base.add(PTO_TEXT, category="hr", source="handbook")
    await knowledge_base.add("The office coffee machine is on the third floor.")

    agent = RAG(llm=llm, retriever=VectorStoreRetriever(embeddings, vector_store, top_k=3))
    result = await agent.answer(QueryWithContext(query="How many PTO days do employees receive?"))

    assert result.sources[0].id == pto_id
    assert result.sources[0].metadata.category == "hr"
    assert PTO_TEXT in llm.prompts[0]
