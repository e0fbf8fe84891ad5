from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from concertops.db.persistence import get_preferred_currency, save_conversation_log
from concertops.models.types import HistoryTurn
from concertops.services.llm import KNOWLEDGE_SETTINGS, complete, generation_settings
from concertops.services.prompts import KNOWLEDGE_INSTRUCTION, build_system_prompt
from concertops.services.retrieval import retrieve_relevant_chunks

logger = logging.getLogger(__name__)

CHAT_MATCH_COUNT = 8
KNOWLEDGE_MATCH_COUNT = 10


class AssistantReply(BaseModel):
    text: str
    chunk_ids: List[str] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)
    log_id: Optional[str] = None


def _log(user_id: str, **fields) -> Optional[str]:
    try:
        return save_conversation_log(user_id, **fields)
    except Exception as e:
        logger.warning("assistant: conversation log not saved for user=%s: %s", user_id, e)
        return None


def ask(
    user_id: str,
    message: str,
    *,
    role: str,
    tour_scale: str,
    mode: str,
    history: Optional[Sequence[HistoryTurn]] = None,
    tour_id: Optional[str] = None,
) -> AssistantReply:
    """RAG chat turn: retrieve context, build the tailored prompt, complete, log."""
    chunks = retrieve_relevant_chunks(message, CHAT_MATCH_COUNT)
    prompt = build_system_prompt(role, tour_scale, mode, chunks, currency=get_preferred_currency(user_id))
    max_tokens, temperature = generation_settings(mode)
    text = complete(prompt, message, history, max_tokens=max_tokens, temperature=temperature, chunks=chunks)
    chunk_ids = [c.id for c in chunks]
    log_id = _log(
        user_id,
        role=role,
        tour_scale=tour_scale,
        mode=mode,
        user_message=message,
        assistant_message=text,
        tour_id=tour_id,
        retrieved_chunk_ids=chunk_ids,
    )
    return AssistantReply(text=text, chunk_ids=chunk_ids, sources=[c.file_name for c in chunks], log_id=log_id)


def search_knowledge(user_id: str, query: str, *, role: str, tour_scale: str, topic: Optional[str] = None) -> AssistantReply:
    """Article-style answer grounded in the knowledge base, optionally limited to one doc type."""
    chunks = retrieve_relevant_chunks(query, KNOWLEDGE_MATCH_COUNT, doc_type=topic)
    prompt = build_system_prompt(role, tour_scale, "knowledge", chunks) + KNOWLEDGE_INSTRUCTION
    max_tokens, temperature = KNOWLEDGE_SETTINGS
    text = complete(prompt, query, max_tokens=max_tokens, temperature=temperature, chunks=chunks)
    chunk_ids = [c.id for c in chunks]
    log_id = _log(
        user_id,
        role=role,
        tour_scale=tour_scale,
        mode="knowledge",
        user_message=query,
        assistant_message=text,
        retrieved_chunk_ids=chunk_ids,
    )
    # Unique file names, in retrieval order
    sources = list(dict.fromkeys(c.file_name for c in chunks))
    return AssistantReply(text=text, chunk_ids=chunk_ids, sources=sources, log_id=log_id)
