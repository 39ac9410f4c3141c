"""Tests for knowledge base management operations."""

from unittest.mock import AsyncMock

import numpy as np
import pytest

from knowledge_toolkit.embeddings.base import EmbeddingUnavailable
from knowledge_toolkit.knowledge_base import KnowledgeBase, NewDocument
from knowledge_toolkit.vectorstores.base import DocumentMetadata, VectorStoreUnavailable
from knowledge_toolkit.vectorstores.in_memory import InMemoryVectorStore


class RejectingStore(InMemoryVectorStore):
    """Fails every upsert whose text is 'reject me'."""

    async def upsert(self, document_id, embedding, metadata: DocumentMetadata) -> None:
        if metadata.text == "reject me":
            raise VectorStoreUnavailable("Chroma upsert failed after 3 attempts")
        await super().upsert(document_id, embedding, metadata)


@pytest.fixture
def knowledge_base(embeddings, vector_store) -> KnowledgeBase:
    return KnowledgeBase(embeddings, vector_store)


# -- add ---------------------------------------------------------------------


async def test_add_applies_metadata_defaults(knowledge_base, vector_store) -> None:
    document_id = await knowledge_base.add("Expense reports are due monthly.")

    [record] = await vector_store.list_all()
    assert record.id == document_id
    assert record.metadata.text == "Expense reports are due monthly."
    assert record.metadata.category == "general"
    assert record.metadata.source == "manual"
    assert record.metadata.timestamp


async def test_add_keeps_given_category_and_source(knowledge_base, vector_store) -> None:
    await knowledge_base.add("PTO is 25 days.", category="hr", source="handbook.pdf")

    [record] = await vector_store.list_all()
    assert (record.metadata.category, record.metadata.source) == ("hr", "handbook.pdf")


async def test_add_generates_unique_ids(knowledge_base) -> None:
    assert await knowledge_base.add("same text") != await knowledge_base.add("same text")


# -- bulk_add ----------------------------------------------------------------


async def test_bulk_add_embeds_once(knowledge_base, embeddings, vector_store) -> None:
    documents = [NewDocument(text=f"document {i}") for i in range(4)]

    result = await knowledge_base.bulk_add(documents)

    assert (result.added, result.failed) == (4, 0)
    assert len(embeddings.calls) == 1
    assert len(await vector_store.list_all()) == 4


async def test_bulk_add_counts_failed_upserts(embeddings) -> None:
    store = RejectingStore()
    knowledge_base = KnowledgeBase(embeddings, store)
    documents = [NewDocument(text="fine"), NewDocument(text="reject me"), NewDocument(text="also fine")]

    result = await knowledge_base.bulk_add(documents)

    assert (result.added, result.failed) == (2, 1)
    assert sorted(r.metadata.text for r in await store.list_all()) == ["also fine", "fine"]


async def test_bulk_add_empty(knowledge_base, embeddings) -> None:
    result = await knowledge_base.bulk_add([])
    assert (result.added, result.failed) == (0, 0)
    assert embeddings.calls == []


async def test_bulk_add_embedding_mismatch_raises(vector_store) -> None:
    model = AsyncMock()
    model.get_embeddings.return_value = np.ones((1, 4))
    with pytest.raises(EmbeddingUnavailable):
        await KnowledgeBase(model, vector_store).bulk_add([NewDocument(text="a"), NewDocument(text="b")])


# -- search / list / delete --------------------------------------------------


async def test_search_returns_best_match_first(knowledge_base) -> None:
    pto_id = await knowledge_base.add("Employees receive 25 PTO days per year.")
    await knowledge_base.add("Parking permits are issued by facilities.")

    results = await knowledge_base.search("how many pto days", limit=2)

    assert results[0].id == pto_id
    assert results[0].score >= results[-1].score


async def test_list_documents_paginates(knowledge_base) -> None:
    for i in range(5):
        await knowledge_base.add(f"document {i}")

    page = await knowledge_base.list_documents(page=2, limit=2)

    assert (page.page, page.limit, page.total) == (2, 2, 5)
    assert [r.metadata.text for r in page.items] == ["document 2", "document 3"]


async def test_list_documents_past_the_end(knowledge_base) -> None:
    await knowledge_base.add("only one")
    page = await knowledge_base.list_documents(page=3, limit=10)
    assert page.total == 1
    assert page.items == []


async def test_list_documents_rejects_bad_page(knowledge_base) -> None:
    with pytest.raises(ValueError):
        await knowledge_base.list_documents(page=0)


async def test_delete_removes_document(knowledge_base, vector_store) -> None:
    document_id = await knowledge_base.add("temporary")
    await knowledge_base.delete(document_id)
    assert await vector_store.list_all() == []
