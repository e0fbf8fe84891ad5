import hashlib
import logging
from typing import List

import numpy as np
from tenacity import retry, stop_after_attempt, wait_exponential

from concertops import config
from concertops.config import EMBED_DIM
from concertops.services.metrics import elapsed_ms, now, record_fallback, record_llm

logger = logging.getLogger(__name__)

# Fallback deterministic embedding when OPENAI_API_KEY is not set


def _fallback_embed(texts: List[str]) -> np.ndarray:
    vecs = []
    for t in texts:
        seed = int(hashlib.sha256(t.encode("utf-8")).hexdigest()[:8], 16)
        rng = np.random.default_rng(seed)
        v = rng.random(EMBED_DIM, dtype=np.float32)
        v = v / (np.linalg.norm(v) + 1e-8)
        vecs.append(v)
    return np.stack(vecs, axis=0)


def _openai_client():
    from openai import OpenAI  # lazy import
    return OpenAI()


def _clean(text: str) -> str:
    return text.replace("\n", " ")


@retry(reraise=True, stop=stop_after_attempt(3), wait=wait_exponential(multiplier=0.5, min=0.5, max=4))
def _embed_openai(texts: List[str]) -> np.ndarray:
    client = _openai_client()
    resp = client.embeddings.create(model=config.embedding_model(), input=texts)
    emb = [d.embedding for d in resp.data]
    return np.array(emb, dtype=np.float32)


def embed_texts(texts: List[str]) -> np.ndarray:
    if not texts:
        return np.zeros((0, EMBED_DIM), dtype=np.float32)
    cleaned = [_clean(t) for t in texts]
    if config.openai_enabled():
        t0 = now()
        try:
            out = _embed_openai(cleaned)
            record_llm("openai", config.embedding_model(), latency_ms=elapsed_ms(t0), ok=True)
            return out
        except Exception as e:
            logger.warning("embedder: openai embedding failed, using fallback: %s", e)
            record_llm("openai", config.embedding_model(), latency_ms=elapsed_ms(t0), ok=False)
    record_fallback("embedding")
    return _fallback_embed(cleaned)


def generate_embedding(text: str) -> List[float]:
    return embed_texts([text])[0].tolist()
