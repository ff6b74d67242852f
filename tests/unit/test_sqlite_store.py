"""Unit tests for SQLiteDocumentStore.

Runs against a temporary database file so the real data directory is never
touched.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from condo_kb.models.knowledge import DocumentStatus, SourceKind
from condo_kb.providers.store.sqlite_store import SQLiteDocumentStore
from condo_kb.utils.errors import StorageError
from tests.conftest import hash_to_vector, make_chunk, make_document


@pytest.fixture
async def store(tmp_path):
    s = SQLiteDocumentStore(db_path=tmp_path / "knowledge.db")
    await s.initialize()
    yield s
    await s.close()


# ─── Documents ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_double_initialize_is_idempotent(store):
    await store.initialize()
    assert store.get_provider_name() == "sqlite_knowledge"


@pytest.mark.asyncio
async def test_create_and_get_document(store):
    doc = make_document(source_kind=SourceKind.FILE)
    await store.create_document(doc)

    fetched = await store.get_document("org-a", doc.id)

    assert fetched is not None
    assert fetched.id == doc.id
    assert fetched.source_kind is SourceKind.FILE
    assert fetched.mime_type == "application/pdf"
    assert fetched.status is DocumentStatus.PROCESSING
    assert fetched.created_at == doc.created_at


@pytest.mark.asyncio
async def test_get_document_from_other_org_is_none(store):
    doc = make_document(org_id="org-a")
    await store.create_document(doc)

    assert await store.get_document("org-b", doc.id) is None


@pytest.mark.asyncio
async def test_list_documents_newest_first_and_status_filter(store):
    now = datetime.now(timezone.utc)
    older = make_document(created_at=now - timedelta(days=2))
    newer = make_document(created_at=now)
    foreign = make_document(org_id="org-b")
    for d in (older, newer, foreign):
        await store.create_document(d)
    await store.update_document_status("org-a", older.id, DocumentStatus.READY)

    all_docs = await store.list_documents("org-a")
    ready = await store.list_documents("org-a", DocumentStatus.READY)

    assert [d.id for d in all_docs] == [newer.id, older.id]
    assert [d.id for d in ready] == [older.id]


@pytest.mark.asyncio
async def test_status_moves_out_of_processing_once(store):
    doc = make_document()
    await store.create_document(doc)

    assert await store.update_document_status("org-a", doc.id, DocumentStatus.ERROR) is True
    assert await store.update_document_status("org-a", doc.id, DocumentStatus.READY) is False

    fetched = await store.get_document("org-a", doc.id)
    assert fetched.status is DocumentStatus.ERROR


@pytest.mark.asyncio
async def test_status_update_is_org_scoped(store):
    doc = make_document(org_id="org-a")
    await store.create_document(doc)

    assert await store.update_document_status("org-b", doc.id, DocumentStatus.READY) is False


@pytest.mark.asyncio
async def test_status_cannot_return_to_processing(store):
    doc = make_document()
    await store.create_document(doc)

    with pytest.raises(ValueError):
        await store.update_document_status("org-a", doc.id, DocumentStatus.PROCESSING)


# ─── Chunks ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_add_and_get_chunks_in_index_order(store):
    doc = make_document()
    await store.create_document(doc)
    chunks = [make_chunk(doc.id, "org-a", f"chunk {i}", chunk_index=i) for i in (2, 0, 1)]

    assert await store.add_chunks(chunks) == 3

    stored = await store.get_document_chunks("org-a", doc.id)
    assert [c.chunk_index for c in stored] == [0, 1, 2]
    assert stored[0].content == "chunk 0"
    assert stored[0].embedding is None


@pytest.mark.asyncio
async def test_add_chunks_for_missing_document_fails_whole_batch(store):
    doc = make_document()
    await store.create_document(doc)
    batch = [
        make_chunk(doc.id, "org-a", "valid"),
        make_chunk("no-such-document", "org-a", "orphan", chunk_index=1),
    ]

    with pytest.raises(StorageError):
        await store.add_chunks(batch)

    assert await store.get_document_chunks("org-a", doc.id) == []


@pytest.mark.asyncio
async def test_delete_document_cascades_to_chunks(store):
    doc = make_document()
    await store.create_document(doc)
    await store.add_chunks([make_chunk(doc.id, "org-a", "lift rules")])

    assert await store.delete_document("org-a", doc.id) is True
    assert await store.get_document("org-a", doc.id) is None
    assert await store.search_chunks("org-a", hash_to_vector("lift rules"), 5) == []


@pytest.mark.asyncio
async def test_delete_document_other_org_is_noop(store):
    doc = make_document(org_id="org-a")
    await store.create_document(doc)

    assert await store.delete_document("org-b", doc.id) is False
    assert await store.get_document("org-a", doc.id) is not None


@pytest.mark.asyncio
async def test_delete_chunks_returns_count(store):
    doc = make_document()
    await store.create_document(doc)
    await store.add_chunks([make_chunk(doc.id, "org-a", f"c{i}", chunk_index=i) for i in range(4)])

    assert await store.delete_chunks("org-b", doc.id) == 0
    assert await store.delete_chunks("org-a", doc.id) == 4


# ─── Search ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_search_ranks_by_cosine_similarity(store):
    doc = make_document()
    await store.create_document(doc)
    contents = ["elevator stuck between floors", "garden watering schedule", "parking rules"]
    await store.add_chunks(
        [make_chunk(doc.id, "org-a", c, chunk_index=i) for i, c in enumerate(contents)]
    )

    results = await store.search_chunks("org-a", hash_to_vector("garden watering schedule"), 3)

    assert results[0].content == "garden watering schedule"
    assert results[0].similarity == pytest.approx(1.0)
    assert results[0].document_id == doc.id
    sims = [r.similarity for r in results]
    assert sims == sorted(sims, reverse=True)


@pytest.mark.asyncio
async def test_search_is_org_scoped_and_skips_null_embeddings(store):
    mine = make_document(org_id="org-a")
    theirs = make_document(org_id="org-b")
    await store.create_document(mine)
    await store.create_document(theirs)
    await store.add_chunks(
        [
            make_chunk(mine.id, "org-a", "pending chunk", embed=False),
            make_chunk(mine.id, "org-a", "boiler maintenance", chunk_index=1),
        ]
    )
    await store.add_chunks([make_chunk(theirs.id, "org-b", "boiler maintenance")])

    results = await store.search_chunks("org-a", hash_to_vector("boiler maintenance"), 10)

    assert len(results) == 1
    assert results[0].document_id == mine.id


@pytest.mark.asyncio
async def test_search_respects_limit(store):
    doc = make_document()
    await store.create_document(doc)
    await store.add_chunks([make_chunk(doc.id, "org-a", f"rule {i}", chunk_index=i) for i in range(8)])

    results = await store.search_chunks("org-a", hash_to_vector("rule 3"), 5)

    assert len(results) == 5
