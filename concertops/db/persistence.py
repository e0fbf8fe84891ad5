from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

import numpy as np

from concertops.db import base as db_base
from concertops.db.base import db_session
from concertops.db.models import ConversationLog, CoreDoc, DocChunk, Subscription, Tour, UserPreferences
from concertops.models.types import DocChunkHit
from concertops.services.vector_index import cosine_top_k


def is_db_enabled() -> bool:
    # Important: reference SessionLocal on the module to avoid stale binding
    return getattr(db_base, "SessionLocal", None) is not None


def get_subscription(user_id: str) -> Optional[Dict[str, Any]]:
    if not is_db_enabled():
        return None
    with db_session() as s:
        sub = s.query(Subscription).filter(Subscription.user_id == user_id).first()
        if not sub:
            return None
        return {
            "plan": sub.plan,
            "status": sub.status,
            "stripe_customer_id": sub.stripe_customer_id,
            "stripe_subscription_id": sub.stripe_subscription_id,
            "current_period_end": sub.current_period_end,
        }


def get_preferred_currency(user_id: str) -> str:
    if not is_db_enabled():
        return "USD"
    with db_session() as s:
        prefs = s.query(UserPreferences).filter(UserPreferences.user_id == user_id).first()
        return (prefs.default_currency if prefs else None) or "USD"


def get_owned_tour_scale(user_id: str, tour_id: str) -> Optional[str]:
    """Scale of the user's tour, or None when the tour does not exist or belongs to someone else."""
    if not is_db_enabled():
        return None
    with db_session() as s:
        t = s.query(Tour).filter(Tour.id == tour_id, Tour.user_id == user_id).first()
        return (t.tour_scale or "theater") if t else None


def save_conversation_log(
    user_id: str,
    *,
    role: str,
    tour_scale: str,
    mode: str,
    user_message: str,
    assistant_message: str,
    tour_id: Optional[str] = None,
    retrieved_chunk_ids: Optional[List[str]] = None,
) -> Optional[str]:
    if not is_db_enabled():
        return None
    with db_session() as s:
        log = ConversationLog(
            user_id=user_id,
            tour_id=tour_id,
            role=role,
            tour_scale=tour_scale,
            mode=mode,
            user_message=user_message,
            assistant_message=assistant_message,
            retrieved_chunk_ids=retrieved_chunk_ids or [],
        )
        s.add(log)
        s.flush()
        return log.id


def upsert_core_doc(file_name: str, doc_type: str, raw_text: str) -> str:
    """Insert or replace a knowledge base document keyed by file_name; returns its id."""
    with db_session() as s:
        doc = s.query(CoreDoc).filter(CoreDoc.file_name == file_name).first()
        if doc is None:
            doc = CoreDoc(file_name=file_name)
            s.add(doc)
        doc.doc_type = doc_type
        doc.raw_text = raw_text
        doc.word_count = len(raw_text.split())
        doc.char_count = len(raw_text)
        s.flush()
        return doc.id


def delete_doc_chunks(doc_id: str) -> int:
    with db_session() as s:
        return s.query(DocChunk).filter(DocChunk.doc_id == doc_id).delete()


def insert_doc_chunks(doc_id: str, start_index: int, texts: List[str], embeddings: np.ndarray) -> None:
    # Ensure shapes align
    assert embeddings.shape[0] == len(texts), "embeddings/chunks length mismatch"
    with db_session() as s:
        for i, chunk in enumerate(texts):
            s.add(
                DocChunk(
                    doc_id=doc_id,
                    chunk_index=start_index + i,
                    chunk_text=chunk,
                    embedding=embeddings[i].tolist(),
                    token_count=math.ceil(len(chunk) / 4),
                )
            )


def _hit(chunk: DocChunk, file_name: str, doc_type: str, similarity: float) -> DocChunkHit:
    return DocChunkHit(
        id=chunk.id,
        doc_id=chunk.doc_id,
        chunk_text=chunk.chunk_text,
        chunk_index=chunk.chunk_index,
        file_name=file_name,
        doc_type=doc_type,
        similarity=similarity,
    )


def match_doc_chunks(query_embedding: List[float], match_count: int = 8, doc_type: Optional[str] = None) -> List[DocChunkHit]:
    """Nearest-neighbour search over stored chunks, most similar first.
    Uses pgvector cosine distance on Postgres and an in-process index elsewhere.
    """
    if not is_db_enabled():
        return []
    with db_session() as s:
        if db_base.is_postgres():
            distance = DocChunk.embedding.cosine_distance(query_embedding)
            q = (
                s.query(DocChunk, CoreDoc.file_name, CoreDoc.doc_type, distance.label("distance"))
                .join(CoreDoc, CoreDoc.id == DocChunk.doc_id)
            )
            if doc_type:
                q = q.filter(CoreDoc.doc_type == doc_type)
            rows = q.order_by(distance.asc()).limit(match_count).all()
            return [_hit(c, fname, dtype, 1.0 - float(dist)) for c, fname, dtype, dist in rows]

        q = s.query(DocChunk, CoreDoc.file_name, CoreDoc.doc_type).join(CoreDoc, CoreDoc.id == DocChunk.doc_id)
        if doc_type:
            q = q.filter(CoreDoc.doc_type == doc_type)
        rows = q.all()
        if not rows:
            return []
        embs = np.stack([np.asarray(c.embedding, dtype=np.float32) for c, _, _ in rows])
        ranked = cosine_top_k(query_embedding, embs, top_k=match_count)
        return [_hit(rows[i][0], rows[i][1], rows[i][2], sim) for i, sim in ranked]
