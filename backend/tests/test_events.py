"""
Tests for event endpoints: listing filters, CRUD and resize semantics.
"""

import pytest
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from httpx import AsyncClient

from ticketing.services import event_service


def _future(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, viewer):
    """Admin can create an event; every seat starts available."""
    response = await client.post(
        "/api/v1/events/",
        json={
            "title": "Python Conference 2026",
            "description": "Annual Python gathering",
            "date": _future(30),
            "location": "Convention Center",
            "total_seats": 500,
            "price": "49.50",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Python Conference 2026"
    assert data["total_seats"] == 500
    assert data["available_seats"] == 500
    assert Decimal(data["price"]) == Decimal("49.50")

    assert viewer.kinds() == ["eventCreated"]
    assert viewer.of_kind("eventCreated")[0]["id"] == data["id"]


@pytest.mark.asyncio
async def test_create_event_defaults(client: AsyncClient):
    """Seats default to 100 and price to 0."""
    response = await client.post(
        "/api/v1/events/",
        json={"title": "Meetup", "date": _future(7), "location": "Library"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["total_seats"] == 100
    assert data["available_seats"] == 100
    assert Decimal(data["price"]) == 0


@pytest.mark.asyncio
async def test_create_event_missing_location(client: AsyncClient):
    """Title, location and date are required."""
    response = await client.post(
        "/api/v1/events/",
        json={"title": "Nowhere", "date": _future(7)},
    )
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["kind"] == "validation"
    assert "location" in error["message"]


@pytest.mark.asyncio
async def test_create_event_invalid_seats(client: AsyncClient):
    """Zero seats or a negative price are rejected."""
    for body in (
        {"title": "No Seats", "date": _future(7), "location": "Hall", "total_seats": 0},
        {"title": "Paid To Attend", "date": _future(7), "location": "Hall", "price": "-1"},
    ):
        response = await client.post("/api/v1/events/", json=body)
        assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_events_ordered_by_date(client: AsyncClient, make_event):
    now = datetime.now(timezone.utc)
    await make_event(title="Later", date=now + timedelta(days=20))
    await make_event(title="Sooner", date=now + timedelta(days=2))
    await make_event(title="Middle", date=now + timedelta(days=10))

    response = await client.get("/api/v1/events/")
    assert response.status_code == 200
    assert [e["title"] for e in response.json()] == ["Sooner", "Middle", "Later"]


@pytest.mark.asyncio
async def test_list_events_search_and_location(client: AsyncClient, make_event):
    await make_event(title="Jazz Night", location="Blue Note, New York")
    await make_event(title="Rock Show", description="Loud jazz-free guitars", location="Stadium, Boston")
    await make_event(title="Opera Gala", location="Met, New York")

    response = await client.get("/api/v1/events/", params={"search": "JAZZ"})
    assert sorted(e["title"] for e in response.json()) == ["Jazz Night", "Rock Show"]

    response = await client.get("/api/v1/events/", params={"location": "new york"})
    assert sorted(e["title"] for e in response.json()) == ["Jazz Night", "Opera Gala"]

    response = await client.get("/api/v1/events/", params={"search": "jazz", "location": "boston"})
    assert [e["title"] for e in response.json()] == ["Rock Show"]


@pytest.mark.asyncio
async def test_list_events_date_filters(client: AsyncClient, make_event):
    await make_event(title="March", date=datetime(2030, 3, 10, 19, 0, tzinfo=timezone.utc))
    await make_event(title="April", date=datetime(2030, 4, 5, 20, 30, tzinfo=timezone.utc))
    await make_event(title="May", date=datetime(2030, 5, 1, 18, 0, tzinfo=timezone.utc))

    response = await client.get("/api/v1/events/", params={"date": "2030-04-05"})
    assert [e["title"] for e in response.json()] == ["April"]

    response = await client.get(
        "/api/v1/events/",
        params={"start_date": "2030-03-15T00:00:00+00:00", "end_date": "2030-05-01T18:00:00+00:00"},
    )
    assert [e["title"] for e in response.json()] == ["April", "May"]


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, test_event):
    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == test_event.id
    assert data["title"] == "Test Concert"


@pytest.mark.asyncio
async def test_get_event_not_found(client: AsyncClient):
    response = await client.get("/api/v1/events/99999")
    assert response.status_code == 404
    assert response.json()["error"]["kind"] == "not_found"


@pytest.mark.asyncio
async def test_update_event_partial(client: AsyncClient, test_event, viewer):
    """Omitted fields keep their value; seat counts are untouched."""
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"title": "Renamed Concert", "price": "30.00"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Renamed Concert"
    assert data["location"] == "Test Venue"
    assert Decimal(data["price"]) == Decimal("30.00")
    assert data["total_seats"] == 100
    assert data["available_seats"] == 100

    assert viewer.kinds() == ["eventUpdated"]
    assert viewer.of_kind("eventUpdated")[0]["title"] == "Renamed Concert"


@pytest.mark.asyncio
async def test_update_event_not_found(client: AsyncClient):
    response = await client.put("/api/v1/events/4242", json={"title": "Ghost"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_resize_keeps_booked_seats(client: AsyncClient, test_event, booking_payload, seat_state):
    """Growing an event adds the new seats on top of what's already sold."""
    await client.post("/api/v1/bookings/", json=booking_payload(test_event.id, quantity=4))

    response = await client.put(f"/api/v1/events/{test_event.id}", json={"total_seats": 150})
    assert response.status_code == 200
    assert response.json()["available_seats"] == 146
    assert await seat_state(test_event.id) == (150, 146, 4)


@pytest.mark.asyncio
async def test_resize_below_sold_floors_at_zero(client: AsyncClient, test_event, booking_payload, seat_state):
    """100 seats with 70 booked, shrunk to 40: available is 0, never negative."""
    for _ in range(7):
        response = await client.post("/api/v1/bookings/", json=booking_payload(test_event.id, quantity=10))
        assert response.status_code == 201
    assert await seat_state(test_event.id) == (100, 30, 70)

    response = await client.put(f"/api/v1/events/{test_event.id}", json={"total_seats": 40})
    assert response.status_code == 200
    assert response.json()["total_seats"] == 40
    assert response.json()["available_seats"] == 0

    # Still sold out for new bookings
    response = await client.post("/api/v1/bookings/", json=booking_payload(test_event.id))
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cancel_after_oversized_shrink_stays_within_total(
    client: AsyncClient, test_event, booking_payload, seat_state
):
    booking_ids = []
    for _ in range(7):
        response = await client.post("/api/v1/bookings/", json=booking_payload(test_event.id, quantity=10))
        booking_ids.append(response.json()["id"])
    await client.put(f"/api/v1/events/{test_event.id}", json={"total_seats": 40})

    # 60 still confirmed against 40 seats: nothing to give back yet
    await client.put(f"/api/v1/bookings/{booking_ids[0]}/cancel")
    assert await seat_state(test_event.id) == (40, 0, 60)

    for booking_id in booking_ids[1:4]:
        await client.put(f"/api/v1/bookings/{booking_id}/cancel")
    assert await seat_state(test_event.id) == (40, 10, 30)


@pytest.mark.asyncio
async def test_delete_event(client: AsyncClient, test_event, viewer):
    response = await client.delete(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 200
    assert response.json()["id"] == test_event.id

    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 404
    assert viewer.messages == [{"event": "eventDeleted", "data": {"id": test_event.id}}]


@pytest.mark.asyncio
async def test_delete_event_with_bookings_refused(client: AsyncClient, test_event, booking_payload):
    """Events that were ever booked can't be deleted, even if every booking was cancelled."""
    booking = (await client.post("/api/v1/bookings/", json=booking_payload(test_event.id))).json()
    await client.put(f"/api/v1/bookings/{booking['id']}/cancel")

    response = await client.delete(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 409
    assert response.json()["error"]["kind"] == "conflict"

    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_delete_event_not_found(client: AsyncClient):
    response = await client.delete("/api/v1/events/99999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_event_changes_drop_list_cache_before_publishing(client: AsyncClient, fanout, monkeypatch):
    steps = []

    async def invalidate():
        steps.append("invalidate")

    publish = fanout.publish

    async def recording_publish(kind, data, event_id=None):
        steps.append(kind)
        return await publish(kind, data, event_id=event_id)

    monkeypatch.setattr(event_service, "invalidate_event_cache", invalidate)
    monkeypatch.setattr(fanout, "publish", recording_publish)

    created = await client.post(
        "/api/v1/events/",
        json={"title": "Cache Night", "date": _future(5), "location": "Hall", "total_seats": 10},
    )
    event_id = created.json()["id"]
    await client.put(f"/api/v1/events/{event_id}", json={"total_seats": 20})
    await client.delete(f"/api/v1/events/{event_id}")

    assert steps == [
        "invalidate", "eventCreated",
        "invalidate", "eventUpdated",
        "invalidate", "eventDeleted",
    ]
