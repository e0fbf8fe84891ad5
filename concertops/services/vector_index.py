from typing import List, Sequence, Tuple

import numpy as np


def cosine_top_k(query_vec: Sequence[float], embeddings: np.ndarray, top_k: int = 5) -> List[Tuple[int, float]]:
    """Row indices of ``embeddings`` nearest to ``query_vec`` by cosine
    similarity, most similar first, paired with their similarity."""
    if embeddings.size == 0 or top_k <= 0:
        return []
    q = np.asarray(query_vec, dtype=np.float32).reshape(-1)
    q = q / (np.linalg.norm(q) + 1e-8)
    norms = np.linalg.norm(embeddings, axis=1) + 1e-8
    sims = (embeddings @ q) / norms
    order = np.argsort(-sims, kind="stable")[:top_k]
    return [(int(i), float(sims[i])) for i in order]
