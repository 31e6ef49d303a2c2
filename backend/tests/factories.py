"""Shared setup for API tests: an isolated in-memory DB and a fake Stripe."""

from datetime import datetime, timedelta

import httpx
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from inkmity.api.dependencies import get_current_user_id, get_db
from inkmity.main import app
from inkmity.models import (
    AppointmentType,
    Booking,
    BookingStatus,
    IntakeForm,
    REQUIRED_CONSENTS,
)
from inkmity.models.base import BaseModel
from inkmity.services import stripe_gateway

ARTIST = "user_artist"
CLIENT = "user_client"


def setup_app():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)

    def override_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    return Session


def as_user(user_id: str) -> None:
    app.dependency_overrides[get_current_user_id] = lambda: user_id


def future(days: int = 10, hour: int = 15) -> datetime:
    base = datetime.utcnow() + timedelta(days=days)
    return base.replace(hour=hour, minute=0, second=0, microsecond=0)


def make_booking(db, **kwargs) -> Booking:
    start = kwargs.pop("start_at", None) or future()
    data = {
        "artist_id": ARTIST,
        "client_id": CLIENT,
        "start_at": start,
        "end_at": start + timedelta(hours=1),
        "status": BookingStatus.PENDING,
        "appointment_type": AppointmentType.TATTOO_SESSION,
        "price_cents": 0,
        "deposit_required_cents": 0,
    }
    data.update(kwargs)
    booking = Booking(**data)
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def add_intake(db, booking: Booking, complete: bool = True) -> IntakeForm:
    consents = {name: complete for name in REQUIRED_CONSENTS}
    form = IntakeForm(
        booking_id=booking.id,
        client_id=booking.client_id,
        artist_id=booking.artist_id,
        **consents,
    )
    db.add(form)
    db.commit()
    return form


class FakeResp:
    def __init__(self, data, status_code=200):
        self._data = data
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            request = httpx.Request("POST", "https://api.stripe.test/v1")
            response = httpx.Response(self.status_code, request=request, text="card_declined")
            raise httpx.HTTPStatusError("stripe error", request=request, response=response)

    def json(self):
        return self._data


def fake_stripe(monkeypatch, status_code=200):
    """Replace Stripe's HTTP client; returns the list of recorded POSTs."""
    calls = []

    class FakeClient:
        def __init__(self, *args, **kwargs):
            pass

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

        def post(self, url, data=None, headers=None):
            calls.append({"url": url, "data": data, "headers": headers})
            n = len(calls)
            if url.endswith("/refunds"):
                return FakeResp({"id": f"re_{n}"}, status_code)
            return FakeResp(
                {"id": f"cs_test_{n}", "url": f"https://checkout.stripe.test/pay/{n}"},
                status_code,
            )

    monkeypatch.setattr(stripe_gateway.httpx, "Client", FakeClient)
    return calls
