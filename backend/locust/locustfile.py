"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from locust import HttpUser, task, between, tag, events
from datetime import datetime, timezone, timedelta

# Shared state
EVENT_IDS = []
BOOKING_IDS = []
CONCURRENCY_EVENT_ID = None


def random_customer(quantity: int = 1, event_id: int = None) -> dict:
    handle = "".join(random.choices(string.ascii_lowercase, k=8))
    return {
        "event_id": event_id,
        "name": f"Load {handle}",
        "email": f"{handle}@loadtest.example.com",
        "mobile": f"555-{random.randint(1000, 9999)}",
        "quantity": quantity,
    }


def future_date(days: int = 30) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: concurrency event is created by the first user")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT SUM(quantity) FROM bookings WHERE event_id = X AND status = 'confirmed';
    Should be <= 10, and events.available_seats should equal 10 minus that sum.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        if CONCURRENCY_EVENT_ID:
            return
        resp = self.client.post("/api/v1/events/", json={
            "title": "Concurrency Test Event",
            "description": "10 seats only",
            "date": future_date(),
            "location": "Test",
            "total_seats": 10,
            "price": "15.00",
        })
        if resp.status_code == 201:
            globals()["CONCURRENCY_EVENT_ID"] = resp.json()["id"]
            print(f"\n+ Created event {CONCURRENCY_EVENT_ID} with 10 seats\n")

    @tag("concurrency")
    @task
    def book_limited_seats(self):
        """All users fight for the same 10 seats."""
        if not CONCURRENCY_EVENT_ID:
            return

        with self.client.post("/api/v1/bookings/",
            json=random_customer(event_id=CONCURRENCY_EVENT_ID),
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409 and resp.json()["error"]["kind"] == "insufficient_inventory":
                resp.success()  # Expected: sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        """Hammer the cached endpoint."""
        location = random.choice(["", "Venue", "Hall"])
        self.client.get(f"/api/v1/events/?location={location}", name="/api/v1/events/ [cached]")

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, allowed):
        if resp.status_code in allowed:
            resp.success()
        else:
            resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def invalid_event_id(self):
        with self.client.post("/api/v1/bookings/",
            json=random_customer(event_id=999999), catch_response=True) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def negative_quantity(self):
        with self.client.post("/api/v1/bookings/",
            json=random_customer(quantity=-5, event_id=1), catch_response=True) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def over_ticket_limit(self):
        with self.client.post("/api/v1/bookings/",
            json=random_customer(quantity=11, event_id=1), catch_response=True) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/bookings/",
            data="not json at all", catch_response=True) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def unknown_booking_code(self):
        with self.client.get("/api/v1/bookings/code/EVT-NOPE0000",
            name="/api/v1/bookings/code/{code}", catch_response=True) as resp:
            self._expect(resp, [404])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Mostly browsing, some bookings and cancellations, rare admin creates.
    """
    wait_time = between(1, 3)

    @task(50)
    def browse_events(self):
        resp = self.client.get("/api/v1/events/")
        if resp.status_code == 200:
            for event in resp.json():
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @task(20)
    def view_event(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @task(10)
    def book_seats(self):
        if EVENT_IDS:
            resp = self.client.post("/api/v1/bookings/",
                json=random_customer(random.randint(1, 3), random.choice(EVENT_IDS)))
            if resp.status_code == 201:
                BOOKING_IDS.append(resp.json()["id"])

    @task(2)
    def cancel_booking(self):
        if BOOKING_IDS:
            booking_id = BOOKING_IDS.pop(random.randrange(len(BOOKING_IDS)))
            self.client.put(f"/api/v1/bookings/{booking_id}/cancel", name="/api/v1/bookings/{id}/cancel")

    @task(3)
    def create_event(self):
        resp = self.client.post("/api/v1/events/", json={
            "title": f"Event {random.randint(1, 10000)}",
            "description": "Test event",
            "date": future_date(random.randint(1, 90)),
            "location": "Venue",
            "total_seats": random.randint(10, 500),
            "price": f"{random.randint(0, 120)}.00",
        })
        if resp.status_code == 201:
            EVENT_IDS.append(resp.json()["id"])
