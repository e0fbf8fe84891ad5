import logging
import time
from typing import Optional

from concertops.db.persistence import delete_doc_chunks, insert_doc_chunks, upsert_core_doc
from concertops.models.types import IngestResult
from concertops.services.chunker import chunk_text
from concertops.services.embedder import embed_texts
from concertops.services.metrics import begin_run, end_run

logger = logging.getLogger(__name__)

BATCH_SIZE = 10
BATCH_DELAY_SECONDS = 0.5


def ingest_document(
    file_name: str,
    raw_text: str,
    doc_type: Optional[str] = None,
    *,
    batch_size: int = BATCH_SIZE,
    batch_delay: float = BATCH_DELAY_SECONDS,
) -> IngestResult:
    """Store a knowledge base document, replacing any previous chunks for it.

    Chunks are embedded and inserted in fixed-size batches with a short pause
    between batches to stay under provider rate limits. A failing batch is
    logged and skipped.
    """
    begin_run()
    doc_id = upsert_core_doc(file_name, doc_type or "general", raw_text)
    removed = delete_doc_chunks(doc_id)
    chunks = chunk_text(raw_text)
    logger.info("ingest: file=%r doc_id=%s chunks=%d replaced=%d", file_name, doc_id, len(chunks), removed)

    created = 0
    for start in range(0, len(chunks), batch_size):
        batch = chunks[start:start + batch_size]
        try:
            embs = embed_texts(batch)
            insert_doc_chunks(doc_id, start, batch, embs)
            created += len(batch)
        except Exception as e:
            logger.error("ingest: batch %d failed for doc_id=%s: %s", start // batch_size, doc_id, e)
        if start + batch_size < len(chunks) and batch_delay > 0:
            time.sleep(batch_delay)

    summary = end_run()
    logger.info("ingest: doc_id=%s created=%d/%d", doc_id, created, len(chunks))
    return IngestResult(doc_id=doc_id, chunks_created=created, total_chunks=len(chunks), llm=summary)
