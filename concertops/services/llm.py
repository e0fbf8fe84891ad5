import logging
from typing import Dict, List, Optional, Sequence, Tuple

from tenacity import retry, stop_after_attempt, wait_exponential

from concertops import config
from concertops.models.types import DocChunkHit, HistoryTurn
from concertops.services.metrics import elapsed_ms, now, record_llm

logger = logging.getLogger(__name__)

HISTORY_TURNS = 10
NO_RESPONSE = "No response generated."
UNAVAILABLE = "The AI assistant is not configured right now."

# (max_tokens, temperature)
CHAT_SETTINGS: Dict[str, Tuple[int, float]] = {"crisis": (800, 0.3)}
DEFAULT_SETTINGS: Tuple[int, float] = (2000, 0.7)
KNOWLEDGE_SETTINGS: Tuple[int, float] = (2500, 0.5)


def generation_settings(mode: str) -> Tuple[int, float]:
    return CHAT_SETTINGS.get(mode, DEFAULT_SETTINGS)


def build_messages(system_prompt: str, message: str, history: Optional[Sequence[HistoryTurn]] = None) -> List[Dict[str, str]]:
    msgs = [{"role": "system", "content": system_prompt}]
    for turn in list(history or [])[-HISTORY_TURNS:]:
        msgs.append({"role": turn.role, "content": turn.content})
    msgs.append({"role": "user", "content": message})
    return msgs


def fallback_reply(chunks: Sequence[DocChunkHit]) -> str:
    # Deterministic reply used when no OpenAI key is configured
    if not chunks:
        return f"{UNAVAILABLE} Please try again later."
    top = chunks[0]
    excerpt = top.chunk_text if len(top.chunk_text) <= 600 else top.chunk_text[:600] + "..."
    return f"{UNAVAILABLE} Closest knowledge base excerpt ({top.file_name}):\n\n{excerpt}"


def _client():
    from openai import OpenAI
    return OpenAI()


@retry(reraise=True, stop=stop_after_attempt(2), wait=wait_exponential(multiplier=0.5, min=0.5, max=2))
def _chat(messages: List[Dict[str, str]], max_tokens: int, temperature: float) -> Tuple[str, int, int]:
    client = _client()
    resp = client.chat.completions.create(
        model=config.chat_model(),
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
    )
    usage = getattr(resp, "usage", None)
    content = resp.choices[0].message.content if resp.choices else None
    return (
        content or "",
        int(getattr(usage, "prompt_tokens", 0) or 0),
        int(getattr(usage, "completion_tokens", 0) or 0),
    )


def complete(
    system_prompt: str,
    message: str,
    history: Optional[Sequence[HistoryTurn]] = None,
    *,
    max_tokens: int,
    temperature: float,
    chunks: Optional[Sequence[DocChunkHit]] = None,
) -> str:
    if not config.openai_enabled():
        return fallback_reply(chunks or [])
    messages = build_messages(system_prompt, message, history)
    t0 = now()
    try:
        text, tokens_in, tokens_out = _chat(messages, max_tokens, temperature)
    except Exception:
        record_llm("openai", config.chat_model(), latency_ms=elapsed_ms(t0), ok=False)
        raise
    record_llm("openai", config.chat_model(), tokens_in=tokens_in, tokens_out=tokens_out, latency_ms=elapsed_ms(t0))
    logger.info("llm: model=%s tokens_in=%d tokens_out=%d ms=%d", config.chat_model(), tokens_in, tokens_out, elapsed_ms(t0))
    return text.strip() or NO_RESPONSE
