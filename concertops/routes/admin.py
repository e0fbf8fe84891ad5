from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from concertops.db.persistence import is_db_enabled
from concertops.models.types import IngestRequest, IngestResult
from concertops.services.auth import require_admin
from concertops.services.ingestion import ingest_document

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/admin/ingest", response_model=IngestResult, dependencies=[Depends(require_admin)])
def admin_ingest(req: IngestRequest) -> IngestResult:
    """Chunk, embed and store one reference document, replacing any previous version."""
    if not req.file_name.strip() or not req.raw_text.strip():
        raise HTTPException(status_code=400, detail="file_name and raw_text are required")
    if not is_db_enabled():
        raise HTTPException(status_code=503, detail="DB not enabled")
    try:
        return ingest_document(req.file_name.strip(), req.raw_text, req.doc_type)
    except Exception as e:
        logger.exception("admin: ingest failed file=%s", req.file_name)
        raise HTTPException(status_code=500, detail={"error": "Ingestion failed", "details": str(e)})
