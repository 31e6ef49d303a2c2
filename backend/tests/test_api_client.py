import asyncio
import json
from datetime import date, datetime

import httpx
import pytest

from inkmity.client import ApiClient, ApiError
from inkmity.client import billing, bookings
from inkmity.schemas.booking import BookingCreate

BOOKING = {
    "id": 7,
    "artist_id": "user_artist",
    "client_id": "user_client",
    "start_at": "2031-01-14T15:00:00",
    "end_at": "2031-01-14T17:00:00",
    "appointment_type": "tattoo_session",
    "status": "pending",
}


def make_client(handler, token_provider=None):
    return ApiClient(
        "https://api.test/",
        token_provider=token_provider,
        transport=httpx.MockTransport(handler),
    )


def test_request_adds_bearer_and_drops_empty_params():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[])

    async def run():
        async with make_client(handler, lambda: "tok_1") as api:
            await api.get("/api/bookings", params={"artist_id": "a", "date": "2031-01-14", "skip": None, "q": ""})

    asyncio.run(run())
    assert seen["auth"] == "Bearer tok_1"
    assert seen["params"] == {"artist_id": "a", "date": "2031-01-14"}


def test_async_token_provider_and_anonymous_requests():
    seen = []

    def handler(request):
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={})

    async def token():
        return "tok_async"

    async def run():
        async with make_client(handler, token) as api:
            await api.get("/x")
        async with make_client(handler, lambda: None) as api:
            await api.get("/x")

    asyncio.run(run())
    assert seen == ["Bearer tok_async", None]


@pytest.mark.parametrize(
    "status, body, message",
    [
        (409, {"detail": {"error": "slot_unavailable", "message": "Slot already booked"}}, "Slot already booked"),
        (403, {"detail": "Not a participant"}, "Not a participant"),
        (400, {"error": "Email is required"}, "Email is required"),
        (500, None, "Internal Server Error"),
    ],
)
def test_errors_raise_api_error(status, body, message):
    def handler(request):
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    async def run():
        async with make_client(handler) as api:
            await api.post("/api/bookings", json={})

    with pytest.raises(ApiError) as info:
        asyncio.run(run())
    assert info.value.status == status
    assert info.value.message == message
    assert info.value.payload == body


def test_transport_failure_becomes_api_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async def run():
        async with make_client(handler) as api:
            await api.get("/api/bookings/7")

    with pytest.raises(ApiError) as info:
        asyncio.run(run())
    assert info.value.status == 0
    assert info.value.message == "Network error. Check your connection and try again."
    assert isinstance(info.value.__cause__, httpx.ConnectError)


def test_create_booking_sends_the_server_schema():
    sent = {}

    def handler(request):
        sent["path"] = request.url.path
        sent["json"] = json.loads(request.content)
        return httpx.Response(201, json=BOOKING)

    data = BookingCreate(
        artist_id="user_artist",
        start_at=datetime(2031, 1, 14, 15),
        end_at=datetime(2031, 1, 14, 17),
        price_cents=40000,
    )

    async def run():
        async with make_client(handler) as api:
            return await bookings.create_booking(api, data)

    booking = asyncio.run(run())
    assert booking.id == 7
    assert booking.status.value == "pending"
    assert sent["path"] == "/api/bookings"
    assert sent["json"] == {
        "artist_id": "user_artist",
        "start_at": "2031-01-14T15:00:00",
        "end_at": "2031-01-14T17:00:00",
        "note": "",
        "appointment_type": "tattoo_session",
        "price_cents": 40000,
    }


def test_list_slots_and_day_bookings():
    def handler(request):
        if request.url.path.endswith("/slots"):
            assert request.url.params["duration_minutes"] == "120"
            return httpx.Response(200, json=[{"start_at": "2031-01-14T15:00:00", "end_at": "2031-01-14T17:00:00"}])
        assert request.url.params["date"] == "2031-01-14"
        return httpx.Response(200, json=[BOOKING])

    async def run():
        async with make_client(handler) as api:
            slots = await bookings.list_slots(api, "user_artist", date(2031, 1, 14), 120)
            day = await bookings.list_bookings_for_day(api, "user_artist", date(2031, 1, 14))
            return slots, day

    slots, day = asyncio.run(run())
    assert slots[0].end_at == datetime(2031, 1, 14, 17)
    assert [b.id for b in day] == [7]


def test_billing_helpers():
    bodies = []

    def handler(request):
        bodies.append((request.url.path, json.loads(request.content)))
        if request.url.path.endswith("/checkout"):
            return httpx.Response(200, json={"mode": "redirect", "booking_id": 7, "url": "https://pay.test"})
        return httpx.Response(200, json={"ok": True, "refunds": []})

    async def run():
        async with make_client(handler) as api:
            checkout = await billing.start_checkout(api, 7)
            refund = await billing.refund_by_booking(api, 7)
            return checkout, refund

    checkout, refund = asyncio.run(run())
    assert checkout.url == "https://pay.test"
    assert refund.ok is True
    assert bodies == [
        ("/api/billing/checkout", {"booking_id": 7, "label": "Platform Fee"}),
        ("/api/billing/refund", {"booking_id": 7}),
    ]
