"""
Tests for the operational endpoints and request middleware.
"""

from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from ticketing.api.middleware import _route_template


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["cache"] == {"status": "disabled"}
    assert data["realtime_connections"] == 0


@pytest.mark.asyncio
async def test_root_points_at_realtime_channel(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["realtime"] == "/ws"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/api/v1/events/", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"

    generated = await client.get("/api/v1/events/")
    assert generated.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_metrics_exposes_booking_counters(client: AsyncClient, test_event, booking_payload):
    await client.post("/api/v1/bookings/", json=booking_payload(test_event.id))

    response = await client.get("/metrics")
    assert response.status_code == 200
    body = response.text
    assert 'booking_attempts_total{outcome="success"}' in body
    assert 'route="/api/v1/bookings/"' in body


def _request(url_path: str, route_path=None, path_params=None):
    route = SimpleNamespace(path=route_path) if route_path else None
    return SimpleNamespace(
        scope={"route": route},
        path_params=path_params or {},
        url=SimpleNamespace(path=url_path),
    )


@pytest.mark.parametrize(
    "url_path, route_path, path_params, expected",
    [
        # Route paths that already carry the router prefix
        ("/api/v1/bookings/", "/api/v1/bookings/", {}, "/api/v1/bookings/"),
        ("/api/v1/events/42", "/api/v1/events/{event_id}", {"event_id": 42}, "/api/v1/events/{event_id}"),
        # Route paths relative to an included router
        ("/api/v1/bookings/", "/bookings/", {}, "/api/v1/bookings/"),
        ("/api/v1/events/42", "/events/{event_id}", {"event_id": 42}, "/api/v1/events/{event_id}"),
        (
            "/api/v1/bookings/code/EVT-0A1B2C3D",
            "/bookings/code/{booking_code}",
            {"booking_code": "EVT-0A1B2C3D"},
            "/api/v1/bookings/code/{booking_code}",
        ),
        ("/health", "/health", {}, "/health"),
    ],
)
def test_route_template_includes_router_prefix(url_path, route_path, path_params, expected):
    assert _route_template(_request(url_path, route_path, path_params)) == expected


def test_route_template_for_unmatched_path():
    assert _route_template(_request("/nope")) == "unmatched"
