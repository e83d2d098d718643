"""
Pytest fixtures for test database, client, events and real-time viewers.

Each test gets a fresh database (SQLite file under tmp_path unless
TEST_DATABASE_URL points elsewhere) and a fresh connection registry.
"""

import asyncio
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("SEAT_LOCK_BACKEND", "local")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from ticketing import realtime
from ticketing.main import app
from ticketing.db.base import Base
from ticketing.db.session import get_db
from ticketing.models.booking import Booking, BookingStatus
from ticketing.models.event import Event
from ticketing.realtime import ConnectionRegistry, EventPublisher
from ticketing.services import strategy_factory


class FakeSocket:
    """Stands in for a WebSocket: records what the registry sends it."""

    def __init__(self, fail: bool = False, stall: bool = False):
        self.accepted = False
        self.fail = fail
        self.stall = stall
        self.messages: list[dict] = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.stall:
            # A viewer whose TCP buffer never drains
            await asyncio.sleep(3600)
        if self.fail:
            raise RuntimeError("socket closed")
        self.messages.append(data)

    def kinds(self) -> list[str]:
        return [m["event"] for m in self.messages]

    def of_kind(self, kind: str) -> list[dict]:
        return [m["data"] for m in self.messages if m["event"] == kind]


@pytest.fixture
def database_url(tmp_path) -> str:
    return os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture(scope="function")
async def session_factory(database_url) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables, yield a session factory, then drop tables for isolation."""
    engine = create_async_engine(database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session, like production."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fanout(monkeypatch) -> ConnectionRegistry:
    """Fresh registry and publisher per test."""
    registry = ConnectionRegistry()
    monkeypatch.setattr(realtime, "default_registry", registry)
    monkeypatch.setattr(realtime, "default_publisher", EventPublisher(registry))
    return registry


@pytest.fixture(autouse=True)
def fresh_seat_lock(monkeypatch):
    monkeypatch.setattr(strategy_factory, "_strategy", None)


@pytest.fixture
def socket_factory():
    return FakeSocket


@pytest_asyncio.fixture
async def viewer(fanout: ConnectionRegistry) -> FakeSocket:
    """A connected viewer on the global topic."""
    socket = FakeSocket()
    await fanout.connect(socket)
    return socket


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession):
    """Factory for events inserted straight into the database."""

    async def _make_event(
        title: str = "Test Concert",
        total_seats: int = 100,
        price: Decimal = Decimal("25.00"),
        location: str = "Test Venue",
        date: datetime = None,
        description: str = "A test event",
    ) -> Event:
        event = Event(
            title=title,
            description=description,
            location=location,
            date=date or datetime.now(timezone.utc) + timedelta(days=30),
            total_seats=total_seats,
            available_seats=total_seats,
            price=price,
        )
        db_session.add(event)
        await db_session.commit()
        return event

    return _make_event


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    """Create a test event with 100 seats at 25.00."""
    return await make_event()


@pytest.fixture
def booking_payload():
    def _payload(event_id: int, quantity: int = 1, **overrides) -> dict:
        payload = {
            "event_id": event_id,
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "mobile": "+44 20 7946 0000",
            "quantity": quantity,
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def seat_state(session_factory):
    """Read (total_seats, available_seats, confirmed seats in the ledger) fresh."""

    async def _seat_state(event_id: int) -> tuple[int, int, int]:
        async with session_factory() as session:
            event = await session.get(Event, event_id)
            confirmed = await session.scalar(
                select(func.coalesce(func.sum(Booking.quantity), 0)).where(
                    Booking.event_id == event_id,
                    Booking.status == BookingStatus.CONFIRMED.value,
                )
            )
            return event.total_seats, event.available_seats, int(confirmed)

    return _seat_state
