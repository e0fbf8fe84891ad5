from __future__ import annotations

import contextvars
import time
from typing import Any, Dict, List, Optional

# Context-local aggregator for a single ingestion run
metrics_ctx: contextvars.ContextVar[Optional[Dict[str, Any]]] = contextvars.ContextVar("ingestion_metrics", default=None)


def now() -> float:
    return time.perf_counter()


def elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


def make_aggregator() -> Dict[str, Any]:
    return {
        "llm": {},        # provider/model -> { calls, tokens_in, tokens_out, latency_ms: [ms], errors }
        "fallbacks": {},  # kind -> count
    }


def begin_run() -> None:
    metrics_ctx.set(make_aggregator())


def _percentile(values: List[int], p: float) -> Optional[int]:
    if not values:
        return None
    s = sorted(values)
    k = max(0, min(len(s) - 1, int(round((p / 100.0) * (len(s) - 1)))))
    return int(s[k])


def _summarize_latencies(values: List[int]) -> Dict[str, Optional[int]]:
    if not values:
        return {"p50": None, "p95": None, "max": None}
    return {
        "p50": _percentile(values, 50),
        "p95": _percentile(values, 95),
        "max": max(values),
    }


def end_run() -> Dict[str, Any]:
    agg = metrics_ctx.get() or {}
    metrics_ctx.set(None)
    out: Dict[str, Any] = {"llm": {}, "fallbacks": dict(agg.get("fallbacks") or {})}
    for key, v in (agg.get("llm") or {}).items():
        out["llm"][key] = {
            "calls": int(v.get("calls", 0)),
            "tokens_in": int(v.get("tokens_in", 0)),
            "tokens_out": int(v.get("tokens_out", 0)),
            "errors": int(v.get("errors", 0)),
            "latency": _summarize_latencies(v.get("latency_ms", []) or []),
        }
    return out


def record_fallback(kind: str) -> None:
    agg = metrics_ctx.get()
    if agg is None:
        return
    fb = agg["fallbacks"]
    fb[kind] = int(fb.get(kind, 0)) + 1


def record_llm(provider: str, model: str, *, tokens_in: int = 0, tokens_out: int = 0, latency_ms: int = 0, ok: bool = True) -> None:
    agg = metrics_ctx.get()
    if agg is None:
        return
    key = f"{provider}:{model}"
    llm = agg["llm"].setdefault(key, {"calls": 0, "tokens_in": 0, "tokens_out": 0, "latency_ms": [], "errors": 0})
    llm["calls"] += 1
    llm["tokens_in"] += int(tokens_in)
    llm["tokens_out"] += int(tokens_out)
    if latency_ms:
        llm["latency_ms"].append(int(latency_ms))
    if not ok:
        llm["errors"] += 1
