from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from inkmity.main import app
from inkmity.models import Message, User, UserRole

from factories import ARTIST, CLIENT, as_user, setup_app


def seed(db):
    db.add_all([
        User(clerk_id=CLIENT, email="c@test.com", username="casey", role=UserRole.CLIENT),
        User(clerk_id=ARTIST, email="a@test.com", username="inky", role=UserRole.ARTIST),
    ])
    base = datetime.utcnow() - timedelta(hours=1)
    db.add_all([
        Message(sender_id=CLIENT, receiver_id=ARTIST, text="Hi", created_at=base),
        Message(sender_id=ARTIST, receiver_id=CLIENT, text="Hello", created_at=base + timedelta(minutes=1)),
        Message(sender_id="user_third", receiver_id=CLIENT, text="Older thread", created_at=base - timedelta(days=1)),
    ])
    db.commit()


def test_conversations_are_grouped_newest_first():
    Session = setup_app()
    seed(Session())
    as_user(CLIENT)
    client = TestClient(app)

    res = client.get("/api/messages/conversations")
    assert res.status_code == 200
    threads = res.json()
    assert [t["participant_id"] for t in threads] == [ARTIST, "user_third"]
    assert threads[0]["username"] == "inky"
    assert [m["text"] for m in threads[0]["messages"]] == ["Hi", "Hello"]
    assert threads[1]["username"] is None


def test_deleting_a_conversation_hides_it_only_for_the_caller():
    Session = setup_app()
    db = Session()
    seed(db)
    as_user(CLIENT)
    client = TestClient(app)

    res = client.delete(f"/api/messages/conversations/{ARTIST}")
    assert res.status_code == 200
    assert res.json()["ok"] is True
    threads = client.get("/api/messages/conversations").json()
    assert [t["participant_id"] for t in threads] == ["user_third"]

    # the artist still sees the full history
    as_user(ARTIST)
    threads = client.get("/api/messages/conversations").json()
    assert len(threads[0]["messages"]) == 2

    # new messages after the delete bring the thread back
    res = client.post("/api/messages", json={"receiver_id": CLIENT, "text": "Still there?"})
    assert res.status_code == 201
    as_user(CLIENT)
    threads = client.get("/api/messages/conversations").json()
    artist_thread = next(t for t in threads if t["participant_id"] == ARTIST)
    assert [m["text"] for m in artist_thread["messages"]] == ["Still there?"]


def test_send_message_validation():
    Session = setup_app()
    as_user(CLIENT)
    client = TestClient(app)

    assert client.post("/api/messages", json={"receiver_id": CLIENT, "text": "me"}).status_code == 400
    assert client.post("/api/messages", json={"receiver_id": ARTIST, "text": ""}).status_code == 422

    res = client.post(
        "/api/messages",
        json={"receiver_id": ARTIST, "text": "Booking?", "meta": {"kind": "system", "ref": "x"}},
    )
    assert res.status_code == 201
    # clients cannot forge system notices
    assert res.json()["meta"] == {"ref": "x"}
    assert Session().query(Message).count() == 1
