from fastapi.testclient import TestClient
from jose import jwt

from inkmity.core.config import settings
from inkmity.main import app
from inkmity.models import User, UserRole

from factories import ARTIST, CLIENT, as_user, setup_app


def test_sync_creates_user_with_unique_username():
    Session = setup_app()
    db = Session()
    db.add(User(clerk_id="user_other", email="o@test.com", username="jane-doe"))
    db.commit()
    as_user(CLIENT)
    client = TestClient(app)

    res = client.post(
        "/api/users/sync",
        json={
            "email": " Jane@Example.com ",
            "role": "client",
            "username": "Jane Doe",
            "first_name": "Jane",
            "last_name": "Doe",
            "profile": {"budget_min": 200},
        },
    )
    assert res.status_code == 200
    data = res.json()
    assert data["clerk_id"] == CLIENT
    assert data["email"] == "jane@example.com"
    assert data["username"].startswith("jane-doe-")
    assert data["username_slug"] == data["username"]
    assert data["profile"] == {"budget_min": 200}


def test_sync_is_an_upsert():
    Session = setup_app()
    as_user(ARTIST)
    client = TestClient(app)

    first = client.post("/api/users/sync", json={"email": "ink@test.com", "role": "artist", "first_name": "Ink"})
    assert first.status_code == 200
    assert first.json()["username"] == "ink"

    res = client.post("/api/users/sync", json={"email": "ink@test.com", "profile": {"shop": "Black Rose"}})
    data = res.json()
    assert data["id"] == first.json()["id"]
    # role is kept when not sent
    assert data["role"] == "artist"
    assert data["username"] == "ink"
    assert data["profile"] == {"shop": "Black Rose"}
    assert Session().query(User).count() == 1


def test_sync_rejects_invalid_email():
    setup_app()
    as_user(CLIENT)
    client = TestClient(app)
    res = client.post("/api/users/sync", json={"email": "not-an-email"})
    assert res.status_code == 422
    assert res.json()["detail"]["field_errors"] == {"email": "invalid"}


def test_me_and_dashboard():
    Session = setup_app()
    db = Session()
    db.add_all([
        User(clerk_id=f"user_artist_{i}", email=f"a{i}@test.com", username=f"artist-{i}", role=UserRole.ARTIST)
        for i in range(7)
    ])
    db.commit()
    client = TestClient(app)

    as_user(CLIENT)
    assert client.get("/api/users/me").status_code == 404
    assert client.get("/api/dashboard").status_code == 404

    client.post("/api/users/sync", json={"email": "c@test.com", "first_name": "Casey"})
    me = client.get("/api/users/me")
    assert me.status_code == 200
    assert me.json()["username"] == "casey"

    dash = client.get("/api/dashboard").json()
    assert dash["user"]["clerk_id"] == CLIENT
    assert len(dash["featured_artists"]) == 5
    assert all(a["role"] == "artist" for a in dash["featured_artists"])


def test_dashboard_excludes_the_caller():
    Session = setup_app()
    db = Session()
    db.add(User(clerk_id=ARTIST, email="a@test.com", username="me", role=UserRole.ARTIST))
    db.add(User(clerk_id="user_b", email="b@test.com", username="b", role=UserRole.ARTIST))
    db.commit()
    as_user(ARTIST)
    client = TestClient(app)
    dash = client.get("/api/dashboard").json()
    assert [a["clerk_id"] for a in dash["featured_artists"]] == ["user_b"]


def test_bearer_token_authentication():
    Session = setup_app()
    client = TestClient(app)

    token = jwt.encode({"sub": CLIENT}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    res = client.get("/api/bookings/appointments", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert res.json() == []

    bad = jwt.encode({"sub": CLIENT}, "wrong-secret", algorithm="HS256")
    res = client.get("/api/bookings/appointments", headers={"Authorization": f"Bearer {bad}"})
    assert res.status_code == 401
    assert res.headers["WWW-Authenticate"] == "Bearer"

    no_sub = jwt.encode({"foo": "bar"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    res = client.get("/api/bookings/appointments", headers={"Authorization": f"Bearer {no_sub}"})
    assert res.status_code == 401
