import asyncio
import importlib.util
from datetime import timedelta
from pathlib import Path

import httpx

from concertops import worker
from concertops.db.base import db_session
from concertops.db.models import UsageMetric
from concertops.services import usage

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "ingest_docs.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("ingest_docs", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_worker_reset_job(db):
    usage.check_and_increment_usage("w1")
    with db_session() as s:
        row = s.query(UsageMetric).filter(UsageMetric.user_id == "w1").one()
        row.last_query_at = usage.month_start() - timedelta(hours=1)
    assert asyncio.run(worker.job_reset_monthly_usage()) == 1
    assert usage.get_user_usage("w1").queries_this_month == 0
    assert usage.get_user_usage("w1").total_queries == 1


def test_worker_reset_job_twice_keeps_this_months_queries(db):
    usage.check_and_increment_usage("w2")
    assert asyncio.run(worker.job_reset_monthly_usage()) == 0
    assert asyncio.run(worker.job_reset_monthly_usage()) == 0
    assert usage.get_user_usage("w2").queries_this_month == 1


def test_infer_doc_type():
    cli = _load_script()
    assert cli.infer_doc_type("Settlement_Basics.md") == "accounting"
    assert cli.infer_doc_type("sound-check.txt") == "audio_engineering"
    assert cli.infer_doc_type("Japan Touring.pdf") == "international"
    assert cli.infer_doc_type("tour-management-101.md") == "tour_management"
    assert cli.infer_doc_type("arena_lighting.md") == "production"
    assert cli.infer_doc_type("travel.md") == "general"


def test_cli_posts_files_and_skips_short_ones(tmp_path, monkeypatch):
    cli = _load_script()
    (tmp_path / "b_rider.md").write_text("Rider line item. " * 20)
    (tmp_path / "a_short.txt").write_text("too short")
    (tmp_path / "ignored.docx").write_text("x" * 500)
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "svc")
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer svc"
        sent.append(request)
        return httpx.Response(200, json={"doc_id": "d1", "chunks_created": 1, "total_chunks": 1})

    transport = httpx.MockTransport(handler)
    real_client = httpx.Client
    monkeypatch.setattr(cli.httpx, "Client", lambda **kw: real_client(transport=transport, **kw))

    assert cli.main([str(tmp_path), "--api-url", "http://api.test", "--delay", "0"]) == 0
    assert [r.url.path for r in sent] == ["/api/admin/ingest"]
    assert b'"doc_type":"tour_management"' in sent[0].content.replace(b" ", b"")


def test_cli_missing_folder_or_key(tmp_path, monkeypatch):
    cli = _load_script()
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    assert cli.main([str(tmp_path)]) == 1
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "svc")
    assert cli.main([str(tmp_path / "nope")]) == 1
