import logging

from fastapi import APIRouter, Depends, HTTPException

from concertops.db.persistence import get_owned_tour_scale
from concertops.models.types import AuthUser, ChatRequest, ChatResponse, KnowledgeRequest, KnowledgeResponse
from concertops.services.assistant import ask, search_knowledge
from concertops.services.auth import get_current_user
from concertops.services.usage import enforce_usage

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/ai/chat", response_model=ChatResponse)
def chat(req: ChatRequest, user: AuthUser = Depends(get_current_user)) -> ChatResponse:
    if req.tour_id and get_owned_tour_scale(user.id, req.tour_id) is None:
        raise HTTPException(status_code=404, detail="Unknown tour")
    # Metering happens before any model call and cannot be bypassed by the client
    usage = enforce_usage(user.id)
    try:
        reply = ask(
            user.id,
            req.message,
            role=req.role,
            tour_scale=req.tour_scale,
            mode=req.mode,
            history=req.conversation_history,
            tour_id=req.tour_id,
        )
    except Exception:
        logger.exception("chat: failed user=%s mode=%s", user.id, req.mode)
        raise HTTPException(status_code=500, detail="An unexpected error occurred. Please try again.")
    return ChatResponse(
        message=reply.text,
        remaining_queries=usage.remaining,
        soft_warning=usage.soft_warning,
        conversation_log_id=reply.log_id,
    )


@router.post("/ai/knowledge", response_model=KnowledgeResponse)
def knowledge(req: KnowledgeRequest, user: AuthUser = Depends(get_current_user)) -> KnowledgeResponse:
    usage = enforce_usage(user.id)
    try:
        reply = search_knowledge(user.id, req.query, role=req.role, tour_scale=req.tour_scale, topic=req.topic)
    except Exception:
        logger.exception("knowledge: failed user=%s topic=%s", user.id, req.topic)
        raise HTTPException(status_code=500, detail="An unexpected error occurred.")
    return KnowledgeResponse(answer=reply.text, remaining_queries=usage.remaining, sources=reply.sources)
