import time

import orjson
import pytest
from fastapi.testclient import TestClient

from inkmity.main import app
from inkmity.models import Billing, BillingStatus, BillingType, Booking, BookingStatus
from inkmity.services import stripe_gateway

from factories import ARTIST, CLIENT, add_intake, make_booking, setup_app

SECRET = "whsec_test"


def signed(payload: bytes, ts=None, secret=SECRET) -> str:
    ts = int(time.time()) if ts is None else ts
    return f"t={ts},v1={stripe_gateway.compute_signature(payload, ts, secret)}"


def event(kind: str, billing: Billing, session_id="cs_test_1") -> bytes:
    return orjson.dumps({
        "id": "evt_1",
        "type": kind,
        "data": {
            "object": {
                "id": session_id,
                "payment_intent": "pi_42",
                "metadata": {"billingId": str(billing.id), "bookingId": str(billing.booking_id)},
            }
        },
    })


def awaiting_deposit(db):
    booking = make_booking(db, status=BookingStatus.AWAITING_PAYMENT, deposit_required_cents=8000)
    add_intake(db, booking)
    billing = Billing(
        booking_id=booking.id,
        artist_id=ARTIST,
        client_id=CLIENT,
        type=BillingType.DEPOSIT,
        amount_cents=8000,
        status=BillingStatus.PENDING,
        stripe_checkout_session_id="cs_test_1",
    )
    db.add(billing)
    db.commit()
    db.refresh(billing)
    return booking, billing


def test_construct_event_verifies_signature():
    payload = b'{"type": "ping"}'
    now = 1_700_000_000
    header = signed(payload, ts=now)
    assert stripe_gateway.construct_event(payload, header, SECRET, now=now) == {"type": "ping"}

    with pytest.raises(stripe_gateway.WebhookSignatureError):
        stripe_gateway.construct_event(payload + b" ", header, SECRET, now=now)
    with pytest.raises(stripe_gateway.WebhookSignatureError):
        stripe_gateway.construct_event(payload, signed(payload, ts=now, secret="other"), SECRET, now=now)
    with pytest.raises(stripe_gateway.WebhookSignatureError):
        stripe_gateway.construct_event(payload, header, SECRET, tolerance=300, now=now + 301)
    with pytest.raises(stripe_gateway.WebhookSignatureError):
        stripe_gateway.construct_event(payload, "garbage", SECRET, now=now)


def test_construct_event_accepts_any_matching_v1():
    payload = b"{}"
    now = 1_700_000_000
    good = stripe_gateway.compute_signature(payload, now, SECRET)
    header = f"t={now},v1=deadbeef,v1={good}"
    assert stripe_gateway.construct_event(payload, header, SECRET, now=now) == {}


def test_checkout_completed_confirms_booking():
    Session = setup_app()
    db = Session()
    booking, billing = awaiting_deposit(db)
    client = TestClient(app)

    payload = event("checkout.session.completed", billing)
    res = client.post("/api/billing/webhook", content=payload, headers={"Stripe-Signature": signed(payload)})
    assert res.status_code == 200
    assert res.json() == {"received": True}

    db.expire_all()
    stored = db.query(Booking).one()
    assert stored.status == BookingStatus.BOOKED
    assert stored.confirmed_at is not None
    assert stored.payment_expires_at is None
    assert stored.deposit_paid_cents == 8000
    paid = db.query(Billing).one()
    assert paid.status == BillingStatus.PAID
    assert paid.stripe_payment_intent_id == "pi_42"
    first_paid_at = paid.paid_at

    # Stripe retries deliveries; the second one changes nothing
    res = client.post("/api/billing/webhook", content=payload, headers={"Stripe-Signature": signed(payload)})
    assert res.status_code == 200
    db.expire_all()
    assert db.query(Billing).one().paid_at == first_paid_at
    assert db.query(Booking).one().status == BookingStatus.BOOKED


def test_bad_signature_is_rejected():
    Session = setup_app()
    db = Session()
    _, billing = awaiting_deposit(db)
    client = TestClient(app)

    payload = event("checkout.session.completed", billing)
    res = client.post(
        "/api/billing/webhook",
        content=payload,
        headers={"Stripe-Signature": signed(payload, secret="whsec_wrong")},
    )
    assert res.status_code == 400
    res = client.post("/api/billing/webhook", content=payload)
    assert res.status_code == 400
    db.expire_all()
    assert db.query(Billing).one().status == BillingStatus.PENDING


def test_checkout_expired_event_expires_billing():
    Session = setup_app()
    db = Session()
    _, billing = awaiting_deposit(db)
    client = TestClient(app)

    payload = event("checkout.session.expired", billing)
    res = client.post("/api/billing/webhook", content=payload, headers={"Stripe-Signature": signed(payload)})
    assert res.status_code == 200
    db.expire_all()
    assert db.query(Billing).one().status == BillingStatus.EXPIRED


def test_billing_found_by_session_id_without_metadata():
    Session = setup_app()
    db = Session()
    _, billing = awaiting_deposit(db)
    client = TestClient(app)

    payload = orjson.dumps({
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_test_1", "payment_intent": "pi_1"}},
    })
    client.post("/api/billing/webhook", content=payload, headers={"Stripe-Signature": signed(payload)})
    db.expire_all()
    assert db.query(Billing).one().status == BillingStatus.PAID


def test_unknown_events_are_acknowledged():
    setup_app()
    client = TestClient(app)
    payload = orjson.dumps({"type": "customer.created", "data": {"object": {}}})
    res = client.post("/api/billing/webhook", content=payload, headers={"Stripe-Signature": signed(payload)})
    assert res.status_code == 200
