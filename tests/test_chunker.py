from concertops.services.chunker import chunk_text


def _para(n: int, word: str = "venue") -> str:
    return " ".join([word] * n)


def test_small_paragraphs_are_packed_together():
    text = "\n\n".join([_para(20, "load"), _para(20, "rigging"), _para(20, "catering")])
    chunks = chunk_text(text)
    assert len(chunks) == 1
    assert "load" in chunks[0] and "catering" in chunks[0]


def test_chunks_respect_max_size_and_drop_short_fragments():
    text = "\n\n".join(_para(60, w) for w in ["advance", "settle", "hotel", "bus"]) + "\n\nok"
    chunks = chunk_text(text, max_chunk_size=800)
    assert chunks
    assert all(len(c) <= 800 for c in chunks)
    assert all(len(c) > 50 for c in chunks)
    assert "ok" not in chunks


def test_oversized_paragraph_splits_on_sentences():
    sentences = [f"Sentence number {i} covers the day sheet in detail." for i in range(40)]
    para = " ".join(sentences)
    assert len(para) > 800
    chunks = chunk_text(para)
    assert len(chunks) > 1
    assert all(len(c) <= 800 for c in chunks)
    # Sentences stay whole
    assert all(c.endswith(".") for c in chunks)


def test_single_huge_sentence_is_hard_split():
    blob = "x" * 2000
    chunks = chunk_text(blob)
    assert [len(c) for c in chunks] == [800, 800, 400]


def test_empty_text_yields_nothing():
    assert chunk_text("") == []
    assert chunk_text("   \n\n  ") == []
