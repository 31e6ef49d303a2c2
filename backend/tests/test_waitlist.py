import threading

import orjson
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from inkmity.waitlist import app as waitlist_app
from inkmity.waitlist.store import WaitlistEntry, WaitlistStore, get_store


@pytest.fixture
def store(monkeypatch):
    sent = []

    async def fake_send(recipient, subject, body, html=None):
        sent.append(recipient)
        return True

    monkeypatch.setattr(waitlist_app, "send_email_async", fake_send)
    store = WaitlistStore("sqlite:///:memory:")
    store.sent = sent
    waitlist_app.app.dependency_overrides[get_store] = lambda: store
    yield store
    waitlist_app.app.dependency_overrides.clear()


@pytest.fixture
def client(store):
    return TestClient(waitlist_app.app)


def test_join_waitlist(store, client):
    res = client.post("/api/waitlist", json={"email": " Fan@Example.com ", "name": "  Ink   Fan "})
    assert res.status_code == 201
    data = res.json()
    assert data["ok"] is True
    assert data["position"] == 1
    assert data["total_signups"] == 1
    assert len(data["ref_code"]) == 8
    assert data["share_url"] == f"https://inkmity.com/?r={data['ref_code']}"
    assert store.sent == ["fan@example.com"]

    second = client.post("/api/waitlist", json={"email": "two@example.com"}).json()
    assert second["position"] == 2
    assert client.get("/api/waitlist").json() == {"total_signups": 2}


def test_duplicate_email_is_not_counted_twice(store, client):
    client.post("/api/waitlist", json={"email": "fan@example.com"})
    res = client.post("/api/waitlist", json={"email": "FAN@example.com"})
    assert res.status_code == 200
    assert res.json() == {"ok": True, "message": "Already on waitlist", "total_signups": 1}
    assert store.sent == ["fan@example.com"]


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"email": ""},
        {"email": "not-an-email"},
        {"email": "a@b.co", "name": "x" * 121},
    ],
)
def test_bad_requests_do_not_change_the_count(store, client, body):
    res = client.post("/api/waitlist", json=body)
    assert res.status_code == 400
    assert "error" in res.json()
    assert store.count() == 0


def test_double_encoded_body_is_accepted(store, client):
    inner = orjson.dumps({"email": "wrapped@example.com"}).decode()
    res = client.post(
        "/api/waitlist",
        content=orjson.dumps(inner),
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 201
    assert store.count() == 1


def test_malformed_json_is_400(store, client):
    res = client.post("/api/waitlist", content=b"{nope", headers={"Content-Type": "application/json"})
    assert res.status_code == 400
    res = client.post("/api/waitlist", content=b"[1, 2]", headers={"Content-Type": "application/json"})
    assert res.status_code == 400


def test_store_initializes_once_under_concurrency():
    store = WaitlistStore("sqlite:///:memory:")
    assert store.init_count == 0
    threads = [threading.Thread(target=store._ensure_ready) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert store.init_count == 1


def test_join_that_loses_an_insert_race_reports_existing_signup(tmp_path):
    store = WaitlistStore(f"sqlite:///{tmp_path / 'waitlist.db'}")
    factory = store._ensure_ready()
    engine = factory.kw["bind"]
    inserted = []

    @event.listens_for(factory, "before_flush")
    def rival_signup(session, flush_context, instances):
        # another request commits the same email between lookup and insert
        if not inserted:
            inserted.append(True)
            with engine.begin() as conn:
                conn.execute(
                    WaitlistEntry.__table__.insert().values(email="same@example.com", ref_code="rival001")
                )

    entry, created, position, total = store.join("same@example.com", "Fan")
    assert created is False
    assert entry.ref_code == "rival001"
    assert entry.name == "Fan"
    assert (position, total) == (1, 1)


def test_concurrent_duplicate_joins_do_not_fail(tmp_path):
    store = WaitlistStore(f"sqlite:///{tmp_path / 'waitlist.db'}")
    store._ensure_ready()
    barrier = threading.Barrier(8)
    results, errors = [], []

    def join():
        barrier.wait()
        try:
            results.append(store.join("same@example.com", None)[1])
        except Exception as exc:  # collected for the assertion below
            errors.append(type(exc).__name__)

    threads = [threading.Thread(target=join) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []
    assert results.count(True) == 1
    assert store.count() == 1
