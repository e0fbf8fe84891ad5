from concertops.models.types import AuthUser

FREE = AuthUser(id="free-1", email="free@example.com")
PRO = AuthUser(id="pro-1", email="pro@example.com")

CHAT = {"message": "How early should I advance the load-in?", "role": "tm", "tour_scale": "club", "mode": "chat"}


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/health/db").json()["db"] == "disabled"


def test_health_db_counts(db, client):
    body = client.get("/health/db").json()
    assert body["db"] == "ok"
    assert body["counts"] == {"core_docs": 0, "doc_chunks": 0, "subscriptions": 0}


def test_missing_token_is_401(db, client):
    r = client.post("/api/ai/chat", json=CHAT)
    assert r.status_code == 401


def test_chat_meters_and_logs(db, as_user):
    client = as_user(FREE)
    r = client.post("/api/ai/chat", json=CHAT)
    assert r.status_code == 200
    body = r.json()
    assert body["message"]
    assert body["remaining_queries"] == 74
    assert body["soft_warning"] is None
    assert body["conversation_log_id"]

    logs = client.get("/api/conversations").json()
    assert [c["id"] for c in logs] == [body["conversation_log_id"]]
    assert logs[0]["mode"] == "chat"

    usage = client.get("/api/usage").json()
    assert usage["total_queries"] == 1
    assert usage["plan"] == "free"
    assert usage["limit"] == 75


def test_chat_blocked_after_free_limit(db, as_user, monkeypatch):
    monkeypatch.setenv("FREE_TIER_QUERY_LIMIT", "1")
    client = as_user(FREE)
    assert client.post("/api/ai/chat", json=CHAT).status_code == 200
    r = client.post("/api/ai/chat", json=CHAT)
    assert r.status_code == 402
    assert r.json()["detail"]["code"] == "LIMIT_REACHED"
    # Blocked turns are not logged
    assert len(client.get("/api/conversations").json()) == 1


def test_chat_without_db_is_503(as_user):
    r = as_user(FREE).post("/api/ai/chat", json=CHAT)
    assert r.status_code == 503


def test_chat_rejects_unknown_mode(db, as_user):
    r = as_user(FREE).post("/api/ai/chat", json={**CHAT, "mode": "gossip"})
    assert r.status_code == 422


def test_knowledge_search(db, as_user):
    r = as_user(FREE).post("/api/ai/knowledge", json={"query": "rider basics", "role": "pa", "tour_scale": "theater"})
    assert r.status_code == 200
    body = r.json()
    assert body["answer"]
    assert body["sources"] == []
    assert body["remaining_queries"] == 74


def test_conversation_star_and_feedback(db, as_user):
    client = as_user(FREE)
    log_id = client.post("/api/ai/chat", json=CHAT).json()["conversation_log_id"]
    r = client.patch(f"/api/conversations/{log_id}", json={"is_starred": True, "user_feedback": "helpful"})
    assert r.status_code == 200
    assert r.json()["is_starred"] is True
    assert r.json()["user_feedback"] == "helpful"
    assert len(client.get("/api/conversations", params={"starred": True}).json()) == 1

    other = as_user(AuthUser(id="someone-else"))
    assert other.patch(f"/api/conversations/{log_id}", json={"is_starred": False}).status_code == 404


def test_conversation_nulls_leave_flags_and_clear_feedback(db, as_user):
    client = as_user(FREE)
    log_id = client.post("/api/ai/chat", json=CHAT).json()["conversation_log_id"]
    client.patch(f"/api/conversations/{log_id}", json={"is_starred": True, "tags": ["advance"], "user_feedback": "helpful"})

    r = client.patch(f"/api/conversations/{log_id}", json={"is_starred": None, "tags": None})
    assert r.status_code == 200
    assert r.json()["is_starred"] is True
    assert r.json()["tags"] == ["advance"]
    assert r.json()["user_feedback"] == "helpful"

    r = client.patch(f"/api/conversations/{log_id}", json={"user_feedback": None})
    assert r.status_code == 200
    assert r.json()["user_feedback"] is None
    assert r.json()["is_starred"] is True


def test_tours_are_pro_only(db, as_user):
    r = as_user(FREE).get("/api/tours")
    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "PRO_REQUIRED"


def test_tour_lifecycle(db, make_pro, as_user):
    make_pro(PRO.id)
    client = as_user(PRO)

    r = client.post("/api/tours", json={"name": "  ", "artist_name": "Band"})
    assert r.status_code == 400

    r = client.post("/api/tours", json={"name": "Fall Run", "artist_name": "The Band"})
    assert r.status_code == 201
    tour = r.json()["tour"]
    assert tour["tour_scale"] == "theater"
    assert tour["tour_type"] == "headline"
    assert tour["regions"] == ["US"]
    assert tour["currency"] == "USD"

    chat = client.post("/api/ai/chat", json={**CHAT, "tour_id": tour["id"]})
    assert chat.status_code == 200

    detail = client.get(f"/api/tours/{tour['id']}").json()
    assert detail["tour"]["name"] == "Fall Run"
    assert len(detail["conversations"]) == 1

    assert [t["id"] for t in client.get("/api/tours").json()["tours"]] == [tour["id"]]
    r = client.patch(f"/api/tours/{tour['id']}", json={"is_archived": True})
    assert r.json()["tour"]["is_archived"] is True
    assert client.get("/api/tours").json()["tours"] == []

    assert client.get("/api/tours/missing").status_code == 404


def test_tour_update_ignores_nulls_for_required_fields(db, make_pro, as_user):
    make_pro(PRO.id)
    client = as_user(PRO)
    tour = client.post("/api/tours", json={"name": "Fall Run", "artist_name": "The Band"}).json()["tour"]

    r = client.patch(
        f"/api/tours/{tour['id']}",
        json={"is_archived": None, "currency": None, "name": None, "tour_scale": None, "notes": "Bus call 9am"},
    )
    assert r.status_code == 200
    updated = r.json()["tour"]
    assert updated["is_archived"] is False
    assert updated["currency"] == "USD"
    assert updated["name"] == "Fall Run"
    assert updated["tour_scale"] == "theater"
    assert updated["notes"] == "Bus call 9am"

    r = client.patch(f"/api/tours/{tour['id']}", json={"notes": None})
    assert r.status_code == 200
    assert r.json()["tour"]["notes"] is None


def test_chat_with_someone_elses_tour_is_404(db, make_pro, as_user):
    make_pro(PRO.id)
    tour_id = as_user(PRO).post("/api/tours", json={"name": "Fall Run", "artist_name": "The Band"}).json()["tour"]["id"]

    client = as_user(FREE)
    r = client.post("/api/ai/chat", json={**CHAT, "tour_id": tour_id})
    assert r.status_code == 404
    assert client.post("/api/ai/chat", json={**CHAT, "tour_id": "no-such-tour"}).status_code == 404
    # Rejected turns use no query and leave no log
    assert client.get("/api/usage").json()["total_queries"] == 0
    assert client.get("/api/conversations").json() == []


def test_settlement_with_someone_elses_tour_is_404(db, make_pro, as_user):
    make_pro(PRO.id)
    tour_id = as_user(PRO).post("/api/tours", json={"name": "Fall Run", "artist_name": "The Band"}).json()["tour"]["id"]

    rival = AuthUser(id="pro-2")
    make_pro(rival.id)
    r = as_user(rival).post(
        "/api/settlements",
        json={"tour_id": tour_id, "gross_tickets": 10000, "artist_guarantee": 2000},
    )
    assert r.status_code == 404


def test_profile_and_preferences(db, as_user):
    client = as_user(FREE)
    body = client.get("/api/profile").json()
    assert body["profile"]["role"] == "tm"
    assert body["preferences"]["default_currency"] == "USD"

    r = client.patch("/api/profile", json={"full_name": "Sam Road", "tour_scale": "arena"})
    assert r.json()["profile"]["full_name"] == "Sam Road"
    assert r.json()["profile"]["tour_scale"] == "arena"

    r = client.patch("/api/preferences", json={"default_currency": "eur", "crisis_mode_enabled": True})
    assert r.status_code == 200
    assert r.json()["preferences"] == {
        "default_role": None,
        "default_tour_scale": None,
        "default_currency": "EUR",
        "crisis_mode_enabled": True,
    }
    assert client.patch("/api/preferences", json={"default_currency": "EURO"}).status_code == 400
