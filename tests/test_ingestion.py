import pytest

from concertops.db.base import db_session
from concertops.db.models import CoreDoc, DocChunk
from concertops.services import ingestion
from concertops.services.chunker import chunk_text
from concertops.services.retrieval import retrieve_relevant_chunks

SETTLEMENT_DOC = "\n\n".join(
    [
        "Settlement night starts with the box office statement. " * 9,
        "Check every comp and kill against the manifest before signing anything. " * 8,
        "The house nut should match the contract rider exhibit line for line. " * 8,
    ]
)
RIDER_DOC = "Hospitality riders list catering, towels and dressing room needs for the whole party. " * 3


@pytest.fixture
def service_key(monkeypatch):
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-secret")
    return "service-secret"


def test_ingest_stores_chunks_with_token_counts(db):
    result = ingestion.ingest_document("settlements.md", SETTLEMENT_DOC, "accounting", batch_delay=0)
    expected = chunk_text(SETTLEMENT_DOC)
    assert result.total_chunks == len(expected) == 3
    assert result.chunks_created == 3
    assert result.llm["fallbacks"]["embedding"] >= 1
    with db_session() as s:
        rows = s.query(DocChunk).filter(DocChunk.doc_id == result.doc_id).order_by(DocChunk.chunk_index).all()
        assert [r.chunk_index for r in rows] == [0, 1, 2]
        assert rows[0].token_count == -(-len(rows[0].chunk_text) // 4)


def test_reingest_replaces_previous_chunks(db):
    first = ingestion.ingest_document("settlements.md", SETTLEMENT_DOC, "accounting", batch_delay=0)
    second = ingestion.ingest_document("settlements.md", RIDER_DOC, "tour_management", batch_delay=0)
    assert first.doc_id == second.doc_id
    with db_session() as s:
        assert s.query(CoreDoc).count() == 1
        assert s.query(DocChunk).count() == second.total_chunks == 1
        assert s.get(CoreDoc, first.doc_id).doc_type == "tour_management"


def test_small_batches_cover_every_chunk(db):
    result = ingestion.ingest_document("settlements.md", SETTLEMENT_DOC, batch_size=2, batch_delay=0)
    assert result.chunks_created == result.total_chunks == 3


def test_failed_batch_is_skipped(db, monkeypatch):
    calls = {"n": 0}
    real_embed = ingestion.embed_texts

    def flaky(texts):
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("rate limited")
        return real_embed(texts)

    monkeypatch.setattr(ingestion, "embed_texts", flaky)
    result = ingestion.ingest_document("settlements.md", SETTLEMENT_DOC, batch_size=2, batch_delay=0)
    assert result.total_chunks == 3
    assert result.chunks_created == 1


def test_retrieval_ranks_exact_chunk_first(db):
    ingestion.ingest_document("settlements.md", SETTLEMENT_DOC, "accounting", batch_delay=0)
    ingestion.ingest_document("riders.md", RIDER_DOC, "tour_management", batch_delay=0)
    target = chunk_text(SETTLEMENT_DOC)[1]
    hits = retrieve_relevant_chunks(target, match_count=2)
    assert len(hits) == 2
    assert hits[0].chunk_text == target
    assert hits[0].similarity == pytest.approx(1.0, abs=1e-4)
    assert hits[0].similarity >= hits[1].similarity

    only_riders = retrieve_relevant_chunks(target, match_count=5, doc_type="tour_management")
    assert [h.file_name for h in only_riders] == ["riders.md"]


def test_retrieval_without_db_returns_nothing():
    assert retrieve_relevant_chunks("anything") == []


def test_admin_ingest_requires_service_key(db, client, service_key):
    body = {"file_name": "riders.md", "raw_text": RIDER_DOC}
    assert client.post("/api/admin/ingest", json=body).status_code == 401
    r = client.post("/api/admin/ingest", json=body, headers={"Authorization": "Bearer wrong"})
    assert r.status_code == 401


def test_admin_ingest_validates_and_ingests(db, client, service_key):
    headers = {"Authorization": f"Bearer {service_key}"}
    r = client.post("/api/admin/ingest", json={"file_name": "riders.md"}, headers=headers)
    assert r.status_code == 400

    r = client.post("/api/admin/ingest", json={"file_name": "riders.md", "raw_text": RIDER_DOC}, headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["chunks_created"] == body["total_chunks"] == 1
    assert client.get("/health/db").json()["counts"]["doc_chunks"] == 1
