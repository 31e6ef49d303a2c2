from fastapi.testclient import TestClient

from inkmity.main import app
from inkmity.models import IntakeForm

from factories import ARTIST, CLIENT, as_user, make_booking, setup_app

CONSENTS = {
    "age_verification": True,
    "health_disclosure": True,
    "aftercare_instructions": True,
    "deposit_policy": True,
    "cancellation_policy": True,
}


def test_client_submits_intake_form():
    Session = setup_app()
    db = Session()
    booking = make_booking(db)
    as_user(CLIENT)
    client = TestClient(app)

    payload = {**CONSENTS, "health_info": {"allergies": "latex"}, "additional_notes": "Left forearm"}
    res = client.post(f"/api/bookings/{booking.id}/intake", json=payload, headers={"User-Agent": "pytest"})
    assert res.status_code == 201
    data = res.json()
    assert data["booking_id"] == booking.id
    assert data["health_info"] == {"allergies": "latex"}
    assert data["photo_release"] is False

    form = db.query(IntakeForm).one()
    assert form.consents_complete
    assert form.user_agent == "pytest"

    # resubmitting updates the same row
    res = client.post(f"/api/bookings/{booking.id}/intake", json={**payload, "additional_notes": "Right arm"})
    assert res.status_code == 201
    db.expire_all()
    assert db.query(IntakeForm).count() == 1
    assert db.query(IntakeForm).one().additional_notes == "Right arm"

    assert client.get(f"/api/bookings/{booking.id}/intake").json()["additional_notes"] == "Right arm"


def test_missing_consents_are_listed():
    Session = setup_app()
    db = Session()
    booking = make_booking(db)
    as_user(CLIENT)
    client = TestClient(app)

    res = client.post(f"/api/bookings/{booking.id}/intake", json={**CONSENTS, "deposit_policy": False})
    assert res.status_code == 422
    detail = res.json()["detail"]
    assert detail["field_errors"] == {"deposit_policy": "required"}
    assert db.query(IntakeForm).count() == 0


def test_only_the_client_submits_intake():
    Session = setup_app()
    db = Session()
    booking = make_booking(db)
    as_user(ARTIST)
    client = TestClient(app)

    assert client.post(f"/api/bookings/{booking.id}/intake", json=CONSENTS).status_code == 403
    assert client.get(f"/api/bookings/{booking.id}/intake").status_code == 404
