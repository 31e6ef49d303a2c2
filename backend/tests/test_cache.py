from datetime import date, datetime, timedelta

import fakeredis

from inkmity.services import slots as slot_service
from inkmity.utils import redis_cache

from factories import ARTIST, make_booking, setup_app

DAY = date(2031, 6, 10)


def test_cache_slots_round_trip(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    data = [{"start_at": "2031-06-10T14:00:00", "end_at": "2031-06-10T15:00:00"}]
    redis_cache.cache_slots(data, ARTIST, DAY, 60, expire=10)
    assert redis_cache.get_cached_slots(ARTIST, DAY, 60) == data
    assert redis_cache.get_cached_slots(ARTIST, DAY, 30) is None
    assert redis_cache.get_cached_slots(ARTIST, DAY) is None


def test_invalidate_slot_cache_by_day(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    other = DAY + timedelta(days=1)
    redis_cache.cache_slots([{"a": 1}], ARTIST, DAY)
    redis_cache.cache_slots([{"a": 2}], ARTIST, other)
    redis_cache.invalidate_slot_cache(ARTIST, DAY)
    assert redis_cache.get_cached_slots(ARTIST, DAY) is None
    assert redis_cache.get_cached_slots(ARTIST, other) == [{"a": 2}]

    redis_cache.invalidate_slot_cache(ARTIST)
    assert redis_cache.get_cached_slots(ARTIST, other) is None


def test_corrupted_entry_is_a_miss(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)
    fake.set(f"slots:{ARTIST}:{DAY.isoformat()}:", "not json")
    assert redis_cache.get_cached_slots(ARTIST, DAY) is None


def test_get_slots_uses_cache_and_booking_invalidates(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)
    Session = setup_app()
    db = Session()
    now = datetime(2031, 6, 1)

    first = slot_service.get_slots(db, ARTIST, DAY, now=now)
    assert len(first) == 12

    # A row written behind the cache's back is not seen until invalidation
    make_booking(db, start_at=first[0]["start_at"], end_at=first[0]["end_at"])
    assert slot_service.get_slots(db, ARTIST, DAY, now=now) == first

    redis_cache.invalidate_slot_cache(ARTIST)
    fresh = slot_service.get_slots(db, ARTIST, DAY, now=now)
    assert len(fresh) == 11
    assert fresh[0]["start_at"] == first[1]["start_at"]


def test_cached_slots_drop_past_starts(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)
    Session = setup_app()
    db = Session()

    first = slot_service.get_slots(db, ARTIST, DAY, now=datetime(2031, 6, 1))
    later = first[3]["start_at"]
    remaining = slot_service.get_slots(db, ARTIST, DAY, now=later)
    assert [s["start_at"] for s in remaining] == [s["start_at"] for s in first[4:]]
