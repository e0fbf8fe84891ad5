import re
from typing import List

# Greedy paragraph packing with sentence fallback for oversized paragraphs

DEFAULT_MAX_CHUNK_SIZE = 800
DEFAULT_MIN_CHUNK_LENGTH = 50

PARAGRAPH_RE = re.compile(r"\n\n+")
SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")


def _split_paragraphs(text: str) -> List[str]:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return [p.strip() for p in PARAGRAPH_RE.split(text) if p.strip()]


def _hard_split(piece: str, max_chunk_size: int) -> List[str]:
    return [piece[i:i + max_chunk_size] for i in range(0, len(piece), max_chunk_size)]


def _split_sentences(para: str, max_chunk_size: int) -> List[str]:
    out: List[str] = []
    for sentence in SENTENCE_RE.split(para):
        sentence = sentence.strip()
        if not sentence:
            continue
        if len(sentence) > max_chunk_size:
            out.extend(_hard_split(sentence, max_chunk_size))
        else:
            out.append(sentence)
    return out


def chunk_text(
    text: str,
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
    min_chunk_length: int = DEFAULT_MIN_CHUNK_LENGTH,
) -> List[str]:
    """Split raw text into chunks of at most max_chunk_size characters.

    Paragraphs are packed greedily; a paragraph larger than the bound is packed
    sentence by sentence instead. Chunks of min_chunk_length characters or
    fewer are dropped.
    """
    chunks: List[str] = []
    current = ""
    for para in _split_paragraphs(text or ""):
        candidate = f"{current}\n\n{para}" if current else para
        if len(candidate) <= max_chunk_size:
            current = candidate
            continue

        if current:
            chunks.append(current.strip())
        if len(para) <= max_chunk_size:
            current = para
            continue

        sentence_chunk = ""
        for sentence in _split_sentences(para, max_chunk_size):
            joined = f"{sentence_chunk} {sentence}" if sentence_chunk else sentence
            if len(joined) <= max_chunk_size:
                sentence_chunk = joined
            else:
                if sentence_chunk:
                    chunks.append(sentence_chunk.strip())
                sentence_chunk = sentence
        current = sentence_chunk.strip()

    if current:
        chunks.append(current.strip())
    return [c for c in chunks if len(c) > min_chunk_length]
