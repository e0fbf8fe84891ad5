from concertops.models.types import DocChunkHit, HistoryTurn
from concertops.services import llm
from concertops.services.prompts import build_docs_context, build_system_prompt


def _hit(i: int, text: str = "Always advance the load-in time with the venue.") -> DocChunkHit:
    return DocChunkHit(
        id=f"c{i}",
        doc_id="d1",
        chunk_text=text,
        chunk_index=i,
        file_name="advancing_guide.md",
        doc_type="tour_management",
        similarity=0.9,
    )


def test_system_prompt_carries_role_scale_and_mode():
    prompt = build_system_prompt("pm", "arena", "crisis")
    assert "Production Manager" in prompt
    assert "Arena-level tours" in prompt
    assert "## Response Mode" in prompt
    assert "Institutional Knowledge Base" not in prompt


def test_system_prompt_includes_numbered_sources_and_currency():
    prompt = build_system_prompt("tm", "club", "chat", [_hit(0), _hit(1)], currency="EUR")
    assert "[1] Source: advancing_guide.md (tour_management)" in prompt
    assert "[2] Source: advancing_guide.md" in prompt
    assert prompt.endswith("User's preferred currency: EUR")


def test_docs_context_separates_chunks():
    ctx = build_docs_context([_hit(0, "first"), _hit(1, "second")])
    assert "first\n\n---\n\n[2] Source" in ctx
    assert build_docs_context([]) == ""


def test_generation_settings_per_mode():
    assert llm.generation_settings("crisis") == (800, 0.3)
    assert llm.generation_settings("chat") == (2000, 0.7)
    assert llm.generation_settings("settlement") == (2000, 0.7)
    assert llm.KNOWLEDGE_SETTINGS == (2500, 0.5)


def test_history_is_truncated_to_last_turns():
    history = [HistoryTurn(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}") for i in range(14)]
    msgs = llm.build_messages("sys", "now what?", history)
    assert msgs[0] == {"role": "system", "content": "sys"}
    assert msgs[-1] == {"role": "user", "content": "now what?"}
    middle = msgs[1:-1]
    assert len(middle) == llm.HISTORY_TURNS
    assert middle[0]["content"] == "turn 4"


def test_complete_without_key_uses_fallback():
    text = llm.complete("sys", "hello", max_tokens=10, temperature=0.1, chunks=[_hit(0)])
    assert text.startswith(llm.UNAVAILABLE)
    assert "advancing_guide.md" in text


def test_complete_uses_model_reply(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    seen = {}

    def fake_chat(messages, max_tokens, temperature):
        seen.update(max_tokens=max_tokens, temperature=temperature, n=len(messages))
        return "  Bus call is 9am.  ", 12, 5

    monkeypatch.setattr(llm, "_chat", fake_chat)
    assert llm.complete("sys", "when?", max_tokens=800, temperature=0.3) == "Bus call is 9am."
    assert seen == {"max_tokens": 800, "temperature": 0.3, "n": 2}


def test_complete_empty_reply_gets_placeholder(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(llm, "_chat", lambda *a: ("", 0, 0))
    assert llm.complete("sys", "?", max_tokens=5, temperature=0.1) == llm.NO_RESPONSE
