from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from inkmity import crud
from inkmity.main import app
from inkmity.models import Availability, BookingStatus, CalendarLock
from inkmity.models.base import BaseModel
from inkmity.schemas.booking import RescheduleRequest
from inkmity.services import booking_service

from factories import ARTIST, CLIENT, as_user, future, make_booking, setup_app


def test_booking_without_availability_row_takes_calendar_lock():
    Session = setup_app()
    as_user(CLIENT)
    client = TestClient(app)
    start = future()

    for offset in (0, 3):
        res = client.post(
            "/api/bookings",
            json={
                "artist_id": ARTIST,
                "start_at": (start + timedelta(hours=offset)).isoformat(),
                "duration_minutes": 120,
                "appointment_type": "tattoo_session",
                "price_cents": 10000,
            },
        )
        assert res.status_code == 201

    db = Session()
    assert db.query(Availability).count() == 0
    assert [row.artist_id for row in db.query(CalendarLock).all()] == [ARTIST]


def test_reschedule_locks_the_artist_calendar(monkeypatch):
    Session = setup_app()
    db = Session()
    booking = make_booking(db, start_at=future(days=10), status=BookingStatus.BOOKED)
    locked = []
    original = crud.crud_availability.lock_artist_calendar

    def spy(session, artist_id):
        locked.append(artist_id)
        return original(session, artist_id)

    monkeypatch.setattr(crud.crud_availability, "lock_artist_calendar", spy)
    booking_service.reschedule_booking(db, booking, CLIENT, RescheduleRequest(start_at=future(days=12, hour=17)))
    assert locked == [ARTIST]
    assert db.query(CalendarLock).count() == 1


def test_lock_row_created_by_a_concurrent_transaction_is_reused(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'calendar.db'}", connect_args={"check_same_thread": False})
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    created = []

    @event.listens_for(Session, "before_flush")
    def rival_booking(session, flush_context, instances):
        # another request creates the lock row between lookup and insert
        if not created:
            created.append(True)
            with engine.begin() as conn:
                conn.execute(CalendarLock.__table__.insert().values(artist_id=ARTIST))

    db = Session()
    row = crud.crud_availability.lock_artist_calendar(db, ARTIST)
    assert row.artist_id == ARTIST
    db.commit()
    assert db.query(CalendarLock).count() == 1
    db.close()
