from typing import Any, Dict

from fastapi import APIRouter

from concertops import config
from concertops.db import base as db_base
from concertops.db.base import db_session

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/health/db")
def health_db() -> Dict[str, Any]:
    env_present = bool(config.database_url())
    engine_init = db_base.engine is not None
    session_init = db_base.SessionLocal is not None
    state = {"env_present": env_present, "engine_initialized": engine_init, "session_initialized": session_init}
    if not session_init:
        return {"db": "disabled", **state}
    from concertops.db.models import CoreDoc, DocChunk, Subscription

    try:
        with db_session() as s:
            counts = {
                "core_docs": s.query(CoreDoc).count(),
                "doc_chunks": s.query(DocChunk).count(),
                "subscriptions": s.query(Subscription).count(),
            }
    except Exception as e:
        return {"db": "error", "error": str(e), **state}
    return {"db": "ok", "counts": counts, **state}
