import logging
from typing import List, Optional

from concertops.db.persistence import match_doc_chunks
from concertops.models.types import DocChunkHit
from concertops.services.embedder import generate_embedding

logger = logging.getLogger(__name__)


def retrieve_relevant_chunks(query: str, match_count: int = 8, doc_type: Optional[str] = None) -> List[DocChunkHit]:
    """Fetch the stored knowledge base chunks closest to the query.
    Failures are logged and yield no context rather than failing the request.
    """
    try:
        embedding = generate_embedding(query)
        hits = match_doc_chunks(embedding, match_count=match_count, doc_type=doc_type or None)
        logger.info(
            "retrieval: q_len=%d doc_type=%s hits=%d top_sims=%s",
            len(query), doc_type, len(hits), [round(h.similarity, 3) for h in hits[:5]],
        )
        return hits
    except Exception as e:
        logger.error("retrieval: vector search failed: %s", e)
        return []
